from .decoder import decode
from .encoder import encode
from .schema import FieldDescriptor, Mode, RecordSchema, schema_for, validate_schema

__all__ = [
    "decode",
    "encode",
    "FieldDescriptor",
    "Mode",
    "RecordSchema",
    "schema_for",
    "validate_schema",
]
