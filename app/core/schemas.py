from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every API schema: snake_case in Python and storage, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserSnapshot(CamelModel):
    """Identity frozen at write time (message sender, note editor, task actor)."""
    user_id: str
    display_name: str


class StatusResponse(CamelModel):
    message: str
