# campusnet/api/schemas/message_schema.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chat_id: int = Field(gt=0)
    receiver: int = Field(gt=0)
    # vazio após strip é validado no service (mesma regra do socket)
    text: str = Field(max_length=4000)


class ListMessagesQuery(BaseModel):
    before: datetime | None = None
    limit: int = Field(default=50, ge=1)


class TypingEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chat_id: int | None = None
    to: int = Field(gt=0)
