"""Static field tables describing how each record maps onto a flat hash.

Expanded sub-records merge their keys into the parent's namespace without any
prefixing, so every key reachable from a root record must be unique. Records
that are only ever nested (video, audio and thumbnail settings) carry their
own dotted key names for that reason. Mapping fields are written as one entry
per map key, under ``<key>.<map key>``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel

from transcode_db.errors import SchemaError
from transcode_db.models import (
    AudioPreset,
    Job,
    LocalPreset,
    OutputOptions,
    Preset,
    PresetMap,
    StreamingParams,
    ThumbnailPreset,
    TranscodeOutput,
    VideoPreset,
)

Kind = Literal["str", "uint", "bool", "time", "mapping"]

MAPPING_SEPARATOR = "."


class Mode(Enum):
    FLAT = "flat"
    EXPAND = "expand"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class FieldDescriptor:
    attr: str
    key: str
    mode: Mode = Mode.FLAT
    kind: Kind = "str"
    omit_empty: bool = False
    schema: "RecordSchema | None" = None


@dataclass(frozen=True)
class RecordSchema:
    record_type: type[BaseModel]
    fields: tuple[FieldDescriptor, ...]

    def descriptor_for(self, attr: str) -> FieldDescriptor | None:
        for field in self.fields:
            if field.attr == attr:
                return field
        return None


def flat(attr: str, key: str, kind: Kind = "str", omit_empty: bool = False) -> FieldDescriptor:
    return FieldDescriptor(attr=attr, key=key, kind=kind, omit_empty=omit_empty)


def expand(attr: str, key: str, schema: RecordSchema) -> FieldDescriptor:
    return FieldDescriptor(attr=attr, key=key, mode=Mode.EXPAND, schema=schema)


def mapping(attr: str, key: str) -> FieldDescriptor:
    return FieldDescriptor(attr=attr, key=key, mode=Mode.EXPAND, kind="mapping")


def excluded(attr: str) -> FieldDescriptor:
    return FieldDescriptor(attr=attr, key="", mode=Mode.EXCLUDED)


def _collect_keys(schema: RecordSchema, path: str) -> list[tuple[str, str, bool]]:
    keys: list[tuple[str, str, bool]] = []

    for field in schema.fields:
        if field.attr not in schema.record_type.model_fields:
            raise SchemaError(f"{schema.record_type.__name__} has no field {field.attr!r}")

        if field.mode is Mode.EXCLUDED:
            continue

        where = f"{path}.{field.attr}"

        if field.mode is Mode.EXPAND and field.kind != "mapping":
            if field.schema is None:
                raise SchemaError(f"{where} is expanded but declares no schema")
            keys.extend(_collect_keys(field.schema, where))
        else:
            keys.append((field.key, where, field.kind == "mapping"))

    return keys


def validate_schema(schema: RecordSchema) -> None:
    """Check that no two fields reachable from ``schema`` share a hash key.

    Also rejects mapping prefixes that would capture another field's key.
    """
    keys = _collect_keys(schema, schema.record_type.__name__)

    seen: dict[str, str] = {}
    for key, where, _ in keys:
        if key in seen:
            raise SchemaError(f"hash key {key!r} used by both {seen[key]} and {where}")
        seen[key] = where

    for prefix, where, is_mapping in keys:
        if not is_mapping:
            continue

        for key, other, _ in keys:
            if other != where and key.startswith(prefix + MAPPING_SEPARATOR):
                raise SchemaError(f"{other} key {key!r} collides with mapping {where}")


OUTPUT_OPTIONS = RecordSchema(OutputOptions, (flat("extension", "extension"),))

PRESET_MAP = RecordSchema(
    PresetMap,
    (
        flat("name", "presetmap_name"),
        mapping("provider_mapping", "pmapping"),
        expand("output_opts", "output", OUTPUT_OPTIONS),
    ),
)

STREAMING_PARAMS = RecordSchema(
    StreamingParams,
    (
        flat("segment_duration", "segmentDuration", kind="uint"),
        flat("protocol", "protocol"),
        flat("playlist_file_name", "playlistFileName"),
    ),
)

TRANSCODE_OUTPUT = RecordSchema(
    TranscodeOutput,
    (
        expand("preset_map", "presetmap", PRESET_MAP),
        flat("file_name", "filename"),
    ),
)

JOB = RecordSchema(
    Job,
    (
        flat("id", "jobID"),
        flat("provider_name", "providerName"),
        flat("provider_job_id", "providerJobID"),
        expand("streaming_params", "streamingparams", STREAMING_PARAMS),
        flat("creation_time", "creationTime", kind="time"),
        flat("source_media", "source"),
        # stored in a side collection by the job repository
        excluded("outputs"),
    ),
)

VIDEO_PRESET = RecordSchema(
    VideoPreset,
    (
        flat("profile", "video.profile", omit_empty=True),
        flat("profile_level", "video.profilelevel", omit_empty=True),
        flat("width", "video.width", omit_empty=True),
        flat("height", "video.height", omit_empty=True),
        flat("codec", "video.codec", omit_empty=True),
        flat("bitrate", "video.bitrate", omit_empty=True),
        flat("gop_size", "video.gopsize", omit_empty=True),
        flat("gop_mode", "video.gopmode", omit_empty=True),
        flat("interlace_mode", "video.interlacemode", omit_empty=True),
        flat("b_frames", "video.bframes", omit_empty=True),
    ),
)

AUDIO_PRESET = RecordSchema(
    AudioPreset,
    (
        flat("codec", "audio.codec", omit_empty=True),
        flat("bitrate", "audio.bitrate", omit_empty=True),
    ),
)

THUMBNAIL_PRESET = RecordSchema(
    ThumbnailPreset,
    (
        flat("codec", "thumbnail.codec", omit_empty=True),
        flat("width", "thumbnail.width", omit_empty=True),
        flat("height", "thumbnail.height", omit_empty=True),
        flat("frame_capture_numerator", "thumbnail.framecapturenumerator", omit_empty=True),
        flat("frame_capture_denominator", "thumbnail.framecapturedenominator", omit_empty=True),
        flat("quality", "thumbnail.quality", omit_empty=True),
        flat("max_captures", "thumbnail.maxcaptures", omit_empty=True),
    ),
)

PRESET = RecordSchema(
    Preset,
    (
        flat("name", "name"),
        flat("description", "description", omit_empty=True),
        flat("container", "container", omit_empty=True),
        flat("rate_control", "ratecontrol", omit_empty=True),
        flat("two_pass", "twopass", kind="bool"),
        expand("video", "video", VIDEO_PRESET),
        expand("audio", "audio", AUDIO_PRESET),
        expand("thumbnail", "thumbnail", THUMBNAIL_PRESET),
    ),
)

LOCAL_PRESET = RecordSchema(
    LocalPreset,
    (
        # the name is the store key
        excluded("name"),
        expand("preset", "preset", PRESET),
    ),
)

SCHEMAS: dict[type[BaseModel], RecordSchema] = {
    schema.record_type: schema
    for schema in (
        OUTPUT_OPTIONS,
        PRESET_MAP,
        STREAMING_PARAMS,
        TRANSCODE_OUTPUT,
        JOB,
        VIDEO_PRESET,
        AUDIO_PRESET,
        THUMBNAIL_PRESET,
        PRESET,
        LOCAL_PRESET,
    )
}


def schema_for(record_type: type[BaseModel]) -> RecordSchema:
    try:
        return SCHEMAS[record_type]
    except KeyError:
        raise SchemaError(f"no hash schema declared for {record_type.__name__}") from None


for _schema in SCHEMAS.values():
    validate_schema(_schema)
