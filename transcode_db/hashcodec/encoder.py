from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from transcode_db.errors import SchemaError
from transcode_db.models import ZERO_TIME

from .schema import MAPPING_SEPARATOR, FieldDescriptor, Mode, RecordSchema, schema_for


def format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def format_value(field: FieldDescriptor, value: Any) -> str:
    if field.kind == "bool":
        return "true" if value else "false"
    if field.kind == "uint":
        return str(int(value))
    if field.kind == "time":
        return format_time(value)
    return str(value)


def is_zero(value: Any) -> bool:
    if isinstance(value, datetime):
        return value == ZERO_TIME
    return not value


def _encode_into(record: BaseModel, schema: RecordSchema, out: dict[str, str]) -> None:
    for field in schema.fields:
        if field.mode is Mode.EXCLUDED:
            continue

        value = getattr(record, field.attr)

        if field.kind == "mapping":
            for map_key in sorted(value):
                out[f"{field.key}{MAPPING_SEPARATOR}{map_key}"] = value[map_key]
            continue

        if field.mode is Mode.EXPAND:
            if field.schema is None:
                raise SchemaError(f"{field.attr} is expanded but declares no schema")
            _encode_into(value, field.schema, out)
            continue

        if field.omit_empty and is_zero(value):
            continue

        out[field.key] = format_value(field, value)


def encode(record: BaseModel) -> dict[str, str]:
    """Flatten ``record`` into a hash of string keys to string values."""
    out: dict[str, str] = {}
    _encode_into(record, schema_for(type(record)), out)
    return out
