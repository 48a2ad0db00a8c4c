from datetime import datetime

import redis

from transcode_db.config import Config
from transcode_db.models import Job, LocalPreset, PresetMap
from transcode_db.storage import Storage

from .base import HashRepository, Listing
from .jobs import JobRepository
from .presets import LocalPresetRepository, PresetMapRepository

__all__ = [
    "HashRepository",
    "JobRepository",
    "Listing",
    "LocalPresetRepository",
    "PresetMapRepository",
    "RedisRepository",
]


class RedisRepository:
    """Jobs, preset maps and local presets persisted in Redis.

    The configuration is passed in explicitly; ``client`` overrides the client
    that would otherwise be built from ``config.redis``.
    """

    def __init__(self, config: Config, client: "redis.Redis[str] | None" = None) -> None:
        self.config = config
        self.storage = Storage(client) if client is not None else Storage.from_config(config.redis)

        self.jobs = JobRepository(self.storage)
        self.preset_maps = PresetMapRepository(self.storage)
        self.local_presets = LocalPresetRepository(self.storage)

    def create_job(self, job: Job) -> Job:
        return self.jobs.create(job)

    def get_job(self, job_id: str) -> Job:
        return self.jobs.get(job_id)

    def update_job(self, job: Job) -> Job:
        return self.jobs.update(job)

    def delete_job(self, job_id: str) -> None:
        self.jobs.delete(job_id)

    def list_jobs(self, since: datetime | None = None, limit: int = 0) -> Listing[Job]:
        return self.jobs.list_since(since, limit)

    def create_preset_map(self, preset_map: PresetMap) -> PresetMap:
        return self.preset_maps.create(preset_map)

    def get_preset_map(self, name: str) -> PresetMap:
        return self.preset_maps.get(name)

    def update_preset_map(self, preset_map: PresetMap) -> PresetMap:
        return self.preset_maps.update(preset_map)

    def delete_preset_map(self, name: str) -> None:
        self.preset_maps.delete(name)

    def list_preset_maps(self) -> Listing[PresetMap]:
        return self.preset_maps.list()

    def create_local_preset(self, local_preset: LocalPreset) -> LocalPreset:
        return self.local_presets.create(local_preset)

    def get_local_preset(self, name: str) -> LocalPreset:
        return self.local_presets.get(name)

    def update_local_preset(self, local_preset: LocalPreset) -> LocalPreset:
        return self.local_presets.update(local_preset)

    def delete_local_preset(self, name: str) -> None:
        self.local_presets.delete(name)

    def list_local_presets(self) -> Listing[LocalPreset]:
        return self.local_presets.list()
