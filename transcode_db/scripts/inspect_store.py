import argparse
import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from transcode_db import __version__
from transcode_db.config import Config
from transcode_db.errors import NotFoundError, StoreError
from transcode_db.repository import HashRepository, RedisRepository


def logging_config(verbose: bool, log_dir: str | None = None) -> dict[str, Any]:
    fmt = "[%(asctime)s] %(levelname)s %(message)s"
    if verbose:
        fmt = "[%(asctime)s] %(levelname)s [%(name)s:%(lineno)d] %(message)s"

    config: dict[str, Any] = {
        "version": 1,
        "formatters": {"default": {"format": fmt}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "level": "DEBUG" if verbose else "WARNING",
                "formatter": "default",
            },
        },
        "loggers": {"transcode_db": {"level": "DEBUG", "handlers": ["console"]}},
    }

    if log_dir:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(Path(log_dir).resolve() / "transcode-db.log"),
            "maxBytes": 1024**2 * 10,
            "backupCount": 10,
            "formatter": "default",
        }
        config["loggers"]["transcode_db"]["handlers"].append("file")

    return config


def configure_logging(verbose: bool) -> None:
    logging.config.dictConfig(logging_config(verbose, os.getenv("TDB_LOG_DIR")))


def dump(record: BaseModel) -> str:
    return record.model_dump_json(by_alias=True, indent=2)


def run(repo: HashRepository[Any], identity: str | None, delete: bool) -> int:
    if identity is None:
        listing = repo.list()

        for record in listing:
            print(dump(record))

        for failed, error in listing.failures:
            print(f"could not decode {failed}: {error}", file=sys.stderr)

        return 1 if listing.partial else 0

    if delete:
        repo.delete(identity)
        print(f"deleted {repo.key(identity)}")
        return 0

    print(dump(repo.get(identity)))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect stored jobs and presets")

    parser.add_argument("entity", choices=["jobs", "presetmaps", "localpresets"])
    parser.add_argument("identity", nargs="?", help="job id or preset name (lists all if omitted)")
    parser.add_argument("--delete", action="store_true", help="delete the given entity")
    parser.add_argument("--config", help="path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")

    args = parser.parse_args()

    if args.delete and args.identity is None:
        parser.error("--delete requires an identity")

    if args.config is not None:
        os.environ["TDB_CONFIG_PATH"] = args.config

    configure_logging(args.verbose)

    logger = logging.getLogger(__name__)
    logger.debug(f"transcode-db version {__version__}")

    repository = RedisRepository(Config())

    repos: dict[str, HashRepository[Any]] = {
        "jobs": repository.jobs,
        "presetmaps": repository.preset_maps,
        "localpresets": repository.local_presets,
    }

    try:
        sys.exit(run(repos[args.entity], args.identity, args.delete))
    except (NotFoundError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
