# app/schemas/base.py
from pydantic import BaseModel, ValidationInfo, field_validator


class BackendPayload(BaseModel):
    """
    Base for every model parsed from a backend response.
    A JSON null in a field that has a default falls back to that default, so
    one missing reading does not reject the whole payload.
    """

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value, info: ValidationInfo):
        if value is not None or info.field_name is None:
            return value
        field = cls.model_fields[info.field_name]
        if field.is_required():
            return value
        return field.get_default(call_default_factory=True)
