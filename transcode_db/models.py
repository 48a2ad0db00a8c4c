"""Records persisted by the repository.

Field aliases are the external JSON names. The hash keys each field is stored
under live in :mod:`transcode_db.hashcodec.schema` and are declared there
independently.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from transcode_db.errors import ValidationError

ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


class Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class OutputOptions(Record):
    # without the dot: "webm", not ".webm"
    extension: str = Field("", alias="extension")

    def validate_options(self) -> None:
        if self.extension == "":
            raise ValidationError("extension is required")

        if self.extension.startswith("."):
            raise ValidationError(f"extension must not start with a dot: {self.extension!r}")


class PresetMap(Record):
    """Aggregates provider presets under one name.

    Each preset map points at the preset that implements it on every provider.
    """

    name: str = Field("", alias="name")
    provider_mapping: dict[str, str] = Field(default_factory=dict, alias="providerMapping")
    output_opts: OutputOptions = Field(default_factory=OutputOptions, alias="output")


class StreamingParams(Record):
    segment_duration: int = Field(0, ge=0, alias="segmentDuration")
    protocol: Literal["", "hls", "dash"] = Field("", alias="protocol")
    playlist_file_name: str = Field("", alias="playlistFileName")


class TranscodeOutput(Record):
    preset_map: PresetMap = Field(default_factory=PresetMap, alias="presetmap")
    file_name: str = Field("", alias="filename")


class Job(Record):
    id: str = Field("", alias="jobId")
    provider_name: str = Field("", alias="providerName")
    provider_job_id: str = Field("", alias="providerJobId")
    streaming_params: StreamingParams = Field(
        default_factory=StreamingParams, alias="streamingParams"
    )
    creation_time: datetime = Field(ZERO_TIME, alias="creationTime")
    source_media: str = Field("", alias="source")
    outputs: tuple[TranscodeOutput, ...] = Field((), alias="outputs")

    @field_validator("creation_time")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        try:
            return v.astimezone(timezone.utc)
        except OverflowError:
            raise ValueError(f"{v.isoformat()} is out of range in UTC") from None


class VideoPreset(Record):
    profile: str = Field("", alias="profile")
    profile_level: str = Field("", alias="profileLevel")
    width: str = Field("", alias="width")
    height: str = Field("", alias="height")
    codec: str = Field("", alias="codec")
    bitrate: str = Field("", alias="bitrate")
    gop_size: str = Field("", alias="gopSize")
    gop_mode: str = Field("", alias="gopMode")
    interlace_mode: str = Field("", alias="interlaceMode")
    b_frames: str = Field("", alias="bframes")


class AudioPreset(Record):
    codec: str = Field("", alias="codec")
    bitrate: str = Field("", alias="bitrate")


class ThumbnailPreset(Record):
    codec: str = Field("", alias="codec")
    width: str = Field("", alias="width")
    height: str = Field("", alias="height")
    frame_capture_numerator: str = Field("", alias="frameCaptureNumerator")
    frame_capture_denominator: str = Field("", alias="frameCaptureDenominator")
    quality: str = Field("", alias="frameCaptureQuality")
    max_captures: str = Field("", alias="maxCaptures")


class Preset(Record):
    name: str = Field("", alias="name")
    description: str = Field("", alias="description")
    container: str = Field("", alias="container")
    rate_control: str = Field("", alias="rateControl")
    two_pass: bool = Field(False, alias="twoPass")
    video: VideoPreset = Field(default_factory=VideoPreset, alias="video")
    audio: AudioPreset = Field(default_factory=AudioPreset, alias="audio")
    thumbnail: ThumbnailPreset = Field(default_factory=ThumbnailPreset, alias="thumbnail")


class LocalPreset(Record):
    """A preset stored locally for providers that cannot store presets themselves."""

    name: str = Field("", alias="name")
    preset: Preset = Field(default_factory=Preset, alias="preset")
