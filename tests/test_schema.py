from unittest.mock import patch

import pytest

from transcode_db.errors import SchemaError
from transcode_db.hashcodec import decode, encode, schema_for, validate_schema
from transcode_db.hashcodec.schema import (
    AUDIO_PRESET,
    JOB,
    LOCAL_PRESET,
    PRESET_MAP,
    SCHEMAS,
    FieldDescriptor,
    Mode,
    RecordSchema,
    excluded,
    expand,
    flat,
    mapping,
)
from transcode_db.models import (
    Job,
    LocalPreset,
    Preset,
    PresetMap,
    StreamingParams,
    TranscodeOutput,
)


class TestValidateSchema:
    @pytest.mark.parametrize("record_type", [Job, LocalPreset, PresetMap, TranscodeOutput])
    def test_declared_schemas_are_valid(self, record_type: type) -> None:
        validate_schema(schema_for(record_type))

    def test_colliding_expanded_keys(self) -> None:
        inner = RecordSchema(StreamingParams, (flat("protocol", "source"),))
        schema = RecordSchema(
            Job,
            (
                flat("source_media", "source"),
                expand("streaming_params", "streamingparams", inner),
            ),
        )

        with pytest.raises(SchemaError, match="'source'"):
            validate_schema(schema)

    def test_same_sub_schema_expanded_twice(self) -> None:
        schema = RecordSchema(
            Preset,
            (
                expand("audio", "audio", AUDIO_PRESET),
                expand("video", "video", AUDIO_PRESET),
            ),
        )

        with pytest.raises(SchemaError, match="audio.codec"):
            validate_schema(schema)

    def test_mapping_prefix_shadows_key(self) -> None:
        schema = RecordSchema(
            PresetMap,
            (
                flat("name", "pmapping.name"),
                mapping("provider_mapping", "pmapping"),
            ),
        )

        with pytest.raises(SchemaError, match="collides with mapping"):
            validate_schema(schema)

    def test_unknown_attribute(self) -> None:
        schema = RecordSchema(PresetMap, (flat("nope", "nope"),))

        with pytest.raises(SchemaError, match="no field 'nope'"):
            validate_schema(schema)

    def test_excluded_fields_have_no_key(self) -> None:
        excluded_attrs = [f.attr for f in JOB.fields if f.key == ""]

        assert excluded_attrs == ["outputs"]
        assert LOCAL_PRESET.descriptor_for("name") == excluded("name")

    def test_unknown_record_type(self) -> None:
        with pytest.raises(SchemaError):
            schema_for(str)  # type: ignore[arg-type]

    def test_preset_map_descriptor_lookup(self) -> None:
        descriptor = PRESET_MAP.descriptor_for("name")

        assert descriptor is not None
        assert descriptor.key == "presetmap_name"
        assert PRESET_MAP.descriptor_for("missing") is None


class TestMissingSubSchema:
    @pytest.fixture
    def broken(self) -> RecordSchema:
        return RecordSchema(PresetMap, (FieldDescriptor("output_opts", "output", Mode.EXPAND),))

    def test_encode_raises_schema_error(self, broken: RecordSchema) -> None:
        with patch.dict(SCHEMAS, {PresetMap: broken}), pytest.raises(SchemaError):
            encode(PresetMap(name="p"))

    def test_decode_raises_schema_error(self, broken: RecordSchema) -> None:
        with patch.dict(SCHEMAS, {PresetMap: broken}), pytest.raises(SchemaError):
            decode({"extension": "mp4"}, PresetMap)
