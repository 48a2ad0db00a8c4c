import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)
from typing_extensions import override


def find_config_path() -> str | None:
    """Locate the YAML config file, if there is one.

    Priority (high to low):
    1. TDB_CONFIG_PATH environment variable
    2. ./config.yaml
    3. $XDG_CONFIG_HOME/transcode-db/config.yaml
    4. $HOME/.config/transcode-db/config.yaml
    """
    if config_path := os.getenv("TDB_CONFIG_PATH"):
        return config_path

    if Path("config.yaml").is_file():
        return "config.yaml"

    if xdg_config_home := os.getenv("XDG_CONFIG_HOME"):
        path = Path(xdg_config_home) / "transcode-db" / "config.yaml"
        if path.is_file():
            return str(path.resolve())

    if home := os.getenv("HOME"):
        path = Path(home) / ".config" / "transcode-db" / "config.yaml"
        if path.is_file():
            return str(path.resolve())

    return None


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"address must be host:port, got {addr!r}")
    return host, int(port)


class RedisConfig(BaseModel):
    redis_addr: str = Field("127.0.0.1:6379", description="host:port of the Redis server")
    sentinel_addrs: list[str] = Field(
        default_factory=list, description="host:port of each Sentinel, replaces redis_addr"
    )
    sentinel_master_name: str | None = Field(None, description="Sentinel master set name")
    password: str | None = Field(None, description="Redis password")
    db: int = Field(0, ge=0, description="Redis logical database")
    pool_size: int = Field(10, gt=0, description="Maximum connections in the pool")
    pool_timeout: float = Field(5.0, gt=0, description="Seconds to wait on connect")
    idle_timeout: float | None = Field(
        None, gt=0, description="Seconds a socket may idle before it is health-checked"
    )

    @field_validator("redis_addr")
    @classmethod
    def validate_redis_addr(cls, v: str) -> str:
        _split_addr(v)
        return v

    @field_validator("sentinel_addrs")
    @classmethod
    def validate_sentinel_addrs(cls, v: list[str]) -> list[str]:
        for addr in v:
            _split_addr(addr)
        return v

    @property
    def host(self) -> str:
        return _split_addr(self.redis_addr)[0]

    @property
    def port(self) -> int:
        return _split_addr(self.redis_addr)[1]

    @property
    def sentinels(self) -> list[tuple[str, int]]:
        return [_split_addr(addr) for addr in self.sentinel_addrs]


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TDB_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    redis: RedisConfig = Field(default_factory=RedisConfig)

    @classmethod
    @override
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]

        if (config_path := find_config_path()) is not None:
            sources.append(YamlConfigSettingsSource(settings_cls, config_path))

        return tuple(sources)
