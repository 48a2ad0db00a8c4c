from transcode_db.hashcodec import decode
from transcode_db.models import LocalPreset, PresetMap

from .base import HashRepository


class PresetMapRepository(HashRepository[PresetMap]):
    namespace = "presetmap"
    index_key = "presetmaps"
    record_type = PresetMap

    def identity_of(self, record: PresetMap) -> str:
        return record.name

    def prepare(self, record: PresetMap) -> PresetMap:
        record = super().prepare(record)
        record.output_opts.validate_options()
        return record

    def update(self, record: PresetMap) -> PresetMap:
        record.output_opts.validate_options()
        return super().update(record)


class LocalPresetRepository(HashRepository[LocalPreset]):
    namespace = "localpreset"
    index_key = "localpresets"
    record_type = LocalPreset

    def identity_of(self, record: LocalPreset) -> str:
        return record.name

    def load(self, identity: str, fields: dict[str, str]) -> LocalPreset:
        # the name is only kept in the key
        return decode(fields, LocalPreset).model_copy(update={"name": identity})
