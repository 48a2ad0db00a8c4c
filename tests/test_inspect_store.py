import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import fakeredis
import pytest

from transcode_db.config import Config
from transcode_db.errors import NotFoundError
from transcode_db.models import OutputOptions, PresetMap
from transcode_db.repository import RedisRepository
from transcode_db.scripts.inspect_store import logging_config, main, run


class TestRun:
    @pytest.fixture
    def repo(self) -> RedisRepository:
        repo = RedisRepository(Config(), client=fakeredis.FakeRedis(decode_responses=True))
        repo.create_preset_map(
            PresetMap(
                name="mp4",
                provider_mapping={"mediaconvert": "p1"},
                output_opts=OutputOptions(extension="mp4"),
            )
        )
        return repo

    def test_get_prints_external_names(
        self, repo: RedisRepository, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run(repo.preset_maps, "mp4", delete=False) == 0

        data = json.loads(capsys.readouterr().out)
        assert data == {
            "name": "mp4",
            "providerMapping": {"mediaconvert": "p1"},
            "output": {"extension": "mp4"},
        }

    def test_list_reports_failures(
        self, repo: RedisRepository, capsys: pytest.CaptureFixture[str]
    ) -> None:
        client: Any = repo.storage.client
        client.hset("localpreset:broken", mapping={"twopass": "nah"})
        client.sadd("localpresets", "broken")

        assert run(repo.local_presets, None, delete=False) == 1
        assert "could not decode broken" in capsys.readouterr().err

    def test_delete(self, repo: RedisRepository, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(repo.preset_maps, "mp4", delete=True) == 0
        assert "deleted presetmap:mp4" in capsys.readouterr().out

        with pytest.raises(NotFoundError):
            run(repo.preset_maps, "mp4", delete=False)


class TestMain:
    @patch("transcode_db.scripts.inspect_store.configure_logging")
    @patch("transcode_db.scripts.inspect_store.RedisRepository")
    def test_not_found_exits_with_error(
        self, mock_repo: Any, _mock_logging: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_repo.return_value.jobs.get.side_effect = NotFoundError("job 'x' not found")

        with patch("sys.argv", ["transcode-db", "jobs", "x"]):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        assert "job 'x' not found" in capsys.readouterr().err


class TestLoggingConfig:
    def test_quiet_console_only(self) -> None:
        config = logging_config(verbose=False)

        assert list(config["formatters"]) == ["default"]
        assert "%(name)s" not in config["formatters"]["default"]["format"]
        assert config["handlers"]["console"]["level"] == "WARNING"
        assert "file" not in config["handlers"]

    def test_verbose_names_the_logger(self) -> None:
        config = logging_config(verbose=True)

        assert "%(name)s" in config["formatters"]["default"]["format"]
        assert config["handlers"]["console"]["level"] == "DEBUG"

    def test_log_dir_adds_rotating_file(self, tmp_path: Path) -> None:
        config = logging_config(verbose=False, log_dir=str(tmp_path))

        log_file = tmp_path.resolve() / "transcode-db.log"
        assert config["handlers"]["file"]["filename"] == str(log_file)
        assert config["loggers"]["transcode_db"]["handlers"] == ["console", "file"]
