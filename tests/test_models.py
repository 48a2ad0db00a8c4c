from datetime import datetime, timedelta, timezone

import pytest

from transcode_db.errors import ValidationError
from transcode_db.models import Job, OutputOptions, PresetMap, StreamingParams, TranscodeOutput


class TestOutputOptions:
    def test_empty_extension_is_rejected(self) -> None:
        with pytest.raises(ValidationError, match="extension is required"):
            OutputOptions(extension="").validate_options()

    @pytest.mark.parametrize("extension", ["mp4", "webm", "ts", "m3u8"])
    def test_extensions_are_accepted(self, extension: str) -> None:
        OutputOptions(extension=extension).validate_options()

    def test_leading_dot_is_rejected(self) -> None:
        with pytest.raises(ValidationError, match="dot"):
            OutputOptions(extension=".mp4").validate_options()


class TestJsonNames:
    def test_job_dumps_external_names(self) -> None:
        job = Job(
            id="abc",
            provider_name="mediaconvert",
            provider_job_id="j-1",
            source_media="s3://bucket/in.mov",
            creation_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
            outputs=[
                TranscodeOutput(
                    preset_map=PresetMap(name="mp4", provider_mapping={"mediaconvert": "p1"}),
                    file_name="out.mp4",
                )
            ],
        )

        data = job.model_dump(by_alias=True)

        assert data["jobId"] == "abc"
        assert data["providerJobId"] == "j-1"
        assert data["source"] == "s3://bucket/in.mov"
        assert data["outputs"][0]["filename"] == "out.mp4"
        assert data["outputs"][0]["presetmap"]["providerMapping"] == {"mediaconvert": "p1"}
        assert data["outputs"][0]["presetmap"]["output"] == {"extension": ""}

    def test_job_parses_external_names(self) -> None:
        job = Job.model_validate(
            {
                "jobId": "abc",
                "providerName": "mediaconvert",
                "streamingParams": {"segmentDuration": 6, "protocol": "hls"},
                "outputs": [{"presetmap": {"name": "hls"}, "filename": "master.m3u8"}],
            }
        )

        assert job.id == "abc"
        assert job.streaming_params == StreamingParams(segment_duration=6, protocol="hls")
        assert job.outputs[0].file_name == "master.m3u8"


class TestJob:
    def test_creation_time_out_of_utc_range(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            Job(creation_time=datetime(1, 1, 1, tzinfo=timezone(timedelta(hours=1))))

    def test_naive_creation_time_is_utc(self) -> None:
        job = Job(creation_time=datetime(2024, 1, 1, 10, 0))

        assert job.creation_time.tzinfo is timezone.utc
        assert job.creation_time.hour == 10

    def test_creation_time_converted_to_utc(self) -> None:
        job = Job(creation_time=datetime(2024, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=-5))))

        assert job.creation_time == datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc)
        assert job.creation_time.hour == 15

    def test_negative_segment_duration_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            StreamingParams(segment_duration=-1)

    def test_records_are_immutable(self) -> None:
        job = Job(id="abc")

        with pytest.raises(ValueError):
            job.id = "other"  # type: ignore[misc]
