import uuid
from datetime import date, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


def to_jsonable(value: Any) -> Any:
    """
    Convert a field value into something ``json.dumps`` accepts.

    Nested models keep their camelCase keys, UUIDs become strings, enums their
    value, dates and datetimes ISO 8601 and timedeltas seconds. Containers are
    converted item by item; anything unknown is stringified.
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, date):  # also datetime
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(item) for item in value]
    return str(value)


class CamelCaseBaseModel(BaseModel):
    """
    Response model with camelCase aliases.

    Fields are declared in snake_case; ``model_dump(by_alias=True)`` emits
    camelCase keys. Input is accepted under either name.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_serializer("*")
    def serialize_any(self, value):
        return to_jsonable(value)
