from pydantic import BaseModel, Field


class ViewerLoginRequest(BaseModel):
    password: str = ""


class AdminSetupRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=8)
    name: str = Field(default="Admin", min_length=1)


class AdminLoginRequest(BaseModel):
    email: str
    password: str


class AdminResetRequest(BaseModel):
    secret: str = ""


class AdminResponse(BaseModel):
    id: str
    email: str
    name: str

    model_config = {"from_attributes": True}
