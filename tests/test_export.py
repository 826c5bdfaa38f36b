import io
import uuid
import zipfile

import pytest
from httpx import ASGITransport, AsyncClient

from galleria.config import settings
from galleria.main import app
from galleria.models.photo import Photo
from galleria.services.export import archive_filename, dedupe_names, entry_names
from galleria.services.tokens import VIEWER_COOKIE, issue_viewer_token
from galleria.services.uploads import safe_filename


def test_dedupe_names_renames_repeats_in_order():
    assert dedupe_names(["a.jpg", "b.jpg", "a.jpg", "a.jpg"]) == ["a.jpg", "b.jpg", "a_2.jpg", "a_3.jpg"]


def test_dedupe_names_without_extension():
    assert dedupe_names(["scan", "scan"]) == ["scan", "scan_2"]


def test_dedupe_names_avoids_literal_collisions():
    names = dedupe_names(["a.jpg", "a.jpg", "a_2.jpg"])
    assert names[:2] == ["a.jpg", "a_2.jpg"]
    assert len(set(names)) == 3


def test_archive_filename_is_header_safe():
    assert archive_filename('Ann & Bob "2024"') == "Ann _ Bob _2024_.zip"


async def _setup_gallery(client, files):
    await client.post(
        "/api/admin/login",
        json={"email": settings.admin_email, "password": settings.admin_password},
    )
    response = await client.post(
        "/api/admin/galleries",
        json={"name": "Trip", "slug": f"trip-{uuid.uuid4().hex[:8]}", "password": "pw1234"},
    )
    gallery = response.json()["data"]
    for name, content in files:
        upload = await client.post(
            f"/api/admin/galleries/{gallery['id']}/photos",
            files={"file": (name, content, "image/jpeg")},
        )
        assert upload.status_code == 201
    client.cookies.clear()
    client.cookies.set(VIEWER_COOKIE, issue_viewer_token(gallery["id"]))
    return gallery


@pytest.mark.asyncio
async def test_export_manifest_lists_unique_names():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        gallery = await _setup_gallery(client, [("a.jpg", b"one"), ("a.jpg", b"two"), ("b.jpg", b"three")])
        response = await client.get(f"/api/galleries/{gallery['slug']}/export")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["galleryName"] == "Trip"
    assert [p["name"] for p in data["photos"]] == ["a.jpg", "a_2.jpg", "b.jpg"]
    for entry in data["photos"]:
        assert entry["url"].startswith("/api/images/galleries/")
        assert entry["url"].endswith("?variant=full")


@pytest.mark.asyncio
async def test_export_requires_viewer_token():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        gallery = await _setup_gallery(client, [])
        client.cookies.clear()
        assert (await client.get(f"/api/galleries/{gallery['slug']}/export")).status_code == 401
        assert (await client.get(f"/api/galleries/{gallery['slug']}/export/zip")).status_code == 401


@pytest.mark.asyncio
async def test_export_zip_contains_every_photo():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        gallery = await _setup_gallery(client, [("a.jpg", b"one"), ("a.jpg", b"two")])
        response = await client.get(f"/api/galleries/{gallery['slug']}/export/zip")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert 'filename="Trip.zip"' in response.headers["content-disposition"]

    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == ["a.jpg", "a_2.jpg"]
        assert archive.read("a.jpg") == b"one"
        assert archive.read("a_2.jpg") == b"two"


def test_entry_names_strip_directories_from_stored_names():
    photos = [
        Photo(original_name="../../evil.jpg"),
        Photo(original_name="C:\\Users\\me\\evil.jpg"),
        Photo(original_name=".."),
    ]
    assert entry_names(photos) == ["evil.jpg", "evil_2.jpg", "photo"]


@pytest.mark.parametrize("raw, expected", [
    ("../../evil.jpg", "evil.jpg"),
    ("albums/day1/a.jpg", "a.jpg"),
    ("..\\..\\b.png", "b.png"),
    ("/", "upload"),
    (None, "upload"),
    ("plain.jpg", "plain.jpg"),
])
def test_safe_filename(raw, expected):
    assert safe_filename(raw) == expected


@pytest.mark.asyncio
async def test_uploaded_path_names_never_escape_the_archive():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        gallery = await _setup_gallery(
            client, [("../../evil.jpg", b"one"), ("albums/day1/a.jpg", b"two")]
        )
        manifest = await client.get(f"/api/galleries/{gallery['slug']}/export")
        response = await client.get(f"/api/galleries/{gallery['slug']}/export/zip")

    assert [p["name"] for p in manifest.json()["data"]["photos"]] == ["evil.jpg", "a.jpg"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == ["evil.jpg", "a.jpg"]
        assert archive.read("evil.jpg") == b"one"
