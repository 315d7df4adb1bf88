# campusnet/api/schemas/chat_schema.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EnsureChatRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    with_user_id: int = Field(gt=0)
