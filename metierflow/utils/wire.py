"""JSON shape of the view-models: camelCase keys, entities by alias, enums by value."""

import dataclasses
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


def to_wire(value):
    # Dict keys are ids and pass through untouched; only field names are camelCased.
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            to_camel(f.name): to_wire(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_wire(item) for item in value]
    return value
