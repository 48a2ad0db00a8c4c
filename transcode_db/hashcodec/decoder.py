from datetime import datetime, timezone
from typing import Any, Mapping, TypeVar

import pydantic
from pydantic import BaseModel

from transcode_db.errors import DecodeError, SchemaError
from transcode_db.models import ZERO_TIME

from .schema import MAPPING_SEPARATOR, FieldDescriptor, Mode, RecordSchema, schema_for

R = TypeVar("R", bound=BaseModel)

TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})

ZERO_VALUES: dict[str, Any] = {
    "str": "",
    "uint": 0,
    "bool": False,
    "time": ZERO_TIME,
}


def parse_time(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_value(field: FieldDescriptor, raw: str) -> Any:
    if field.kind == "str":
        return raw

    if field.kind == "bool":
        if raw in TRUE_VALUES:
            return True
        if raw in FALSE_VALUES:
            return False
        raise DecodeError(field.key, raw, "invalid boolean")

    if field.kind == "uint":
        # int() would also take "+1", " 1" and "1_000"
        if not raw.isascii() or not raw.isdigit():
            raise DecodeError(field.key, raw, "invalid unsigned integer")
        return int(raw)

    if field.kind == "time":
        try:
            return parse_time(raw)
        except (ValueError, OverflowError) as e:
            raise DecodeError(field.key, raw, str(e)) from e

    raise DecodeError(field.key, raw, f"unsupported kind {field.kind!r}")


def _field_for_loc(schema: RecordSchema, loc: Any) -> FieldDescriptor | None:
    for attr, info in schema.record_type.model_fields.items():
        if loc in (attr, info.alias):
            return schema.descriptor_for(attr)
    return None


def _decode(flat: Mapping[str, str], schema: RecordSchema) -> Any:
    values: dict[str, Any] = {}

    for field in schema.fields:
        if field.mode is Mode.EXCLUDED:
            continue

        if field.kind == "mapping":
            prefix = field.key + MAPPING_SEPARATOR
            values[field.attr] = {
                k[len(prefix) :]: v for k, v in flat.items() if k.startswith(prefix)
            }
        elif field.mode is Mode.EXPAND:
            if field.schema is None:
                raise SchemaError(f"{field.attr} is expanded but declares no schema")
            values[field.attr] = _decode(flat, field.schema)
        elif field.key in flat:
            values[field.attr] = parse_value(field, flat[field.key])
        else:
            values[field.attr] = ZERO_VALUES[field.kind]

    try:
        return schema.record_type.model_validate(values)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = _field_for_loc(schema, error["loc"][0]) if error["loc"] else None

        if field is None:
            raise DecodeError(schema.record_type.__name__, "", error["msg"]) from e

        raise DecodeError(field.key, flat.get(field.key, ""), error["msg"]) from e


def decode(flat: Mapping[str, str], record_type: type[R]) -> R:
    """Rebuild a ``record_type`` instance from a flat hash.

    Missing keys decode to the zero value of their field. Values that cannot be
    converted raise :class:`DecodeError` naming the hash key and raw value.
    """
    return _decode(flat, schema_for(record_type))
