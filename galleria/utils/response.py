from typing import Any

from pydantic import BaseModel


def _serialize(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True)
    if isinstance(data, list):
        return [_serialize(item) for item in data]
    if isinstance(data, dict):
        return {key: _serialize(value) for key, value in data.items()}
    return data


def success_response(data: Any = None, message: str | None = None) -> dict:
    return {"status": "success", "data": _serialize(data), "message": message}


def error_response(message: str, data: Any = None) -> dict:
    return {"status": "error", "data": _serialize(data), "message": message}
