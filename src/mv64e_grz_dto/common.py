from typing import Any

from pydantic import BaseModel, ConfigDict, SerializationInfo, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel


class StrictBaseModel(BaseModel):
    """Immutable record whose wire names are its field names."""

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        allow_inf_nan=False,
        frozen=True,
    )

    @model_serializer(mode="wrap")
    def _omit_absent_optionals(self, handler: SerializerFunctionWrapHandler, info: SerializationInfo) -> Any:
        data = handler(self)
        for name, field in type(self).model_fields.items():
            if getattr(self, name) is None:
                key = field.alias if info.by_alias and field.alias else name
                data.pop(key, None)
        return data


class CamelCaseModel(StrictBaseModel):
    """Immutable record whose wire names are the camelCase form of its field names."""

    model_config = ConfigDict(alias_generator=to_camel)
