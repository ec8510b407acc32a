from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    name: str
    picture: str | None = None
    google_id: str
    created_at: datetime


class TokenPayload(BaseModel):
    sub: str  # user id
    exp: int
    type: str = "access"


class GoogleLoginRequest(BaseModel):
    token: str = ""


class GoogleLoginResponse(BaseModel):
    token: str
    user: UserResponse
