# campusnet/api/schemas/user_schema.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from campusnet.api.schemas._datetime_serializer import serialize_dt


class LoginRequest(BaseModel):
    # vazio cai na validação do AuthService ("College ID & password required")
    username: str = Field(default="", max_length=100)
    password: str = Field(default="", max_length=200)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    college_id: str
    username: str
    bio: str | None = None
    profile_pic: str | None = None
    cover_pic: str | None = None
    created_at: datetime | None = None
    last_login: datetime | None = None

    @field_serializer("created_at", "last_login")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)


class UserMiniResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    username: str
    college_id: str
    profile_pic: str | None = None
