import secrets
from datetime import datetime, timezone

from redis.client import Pipeline

from transcode_db.hashcodec import decode, encode
from transcode_db.models import ZERO_TIME, Job, TranscodeOutput
from transcode_db.storage import write_hash

from .base import HashRepository, Listing


def generate_id() -> str:
    return secrets.token_hex(8)


class JobRepository(HashRepository[Job]):
    """Jobs, with their outputs kept in a side collection.

    ``job:<id>`` holds the job hash and ``job:<id>:outputs`` lists the keys of
    one hash per output, ``job:<id>:output:<n>``, in order. All of them are
    written in the same transaction.
    """

    namespace = "job"
    index_key = "jobs"
    record_type = Job

    def identity_of(self, record: Job) -> str:
        return record.id

    def outputs_key(self, identity: str) -> str:
        return f"{self.key(identity)}:outputs"

    def output_key(self, identity: str, index: int) -> str:
        return f"{self.key(identity)}:output:{index}"

    def prepare(self, record: Job) -> Job:
        update: dict[str, object] = {}

        if not record.id:
            update["id"] = generate_id()

        if record.creation_time == ZERO_TIME:
            update["creation_time"] = datetime.now(timezone.utc)

        if update:
            record = record.model_copy(update=update)

        return super().prepare(record)

    def watched_keys(self, identity: str) -> list[str]:
        return [self.key(identity), self.outputs_key(identity)]

    def stale_keys(self, pipe: Pipeline, identity: str) -> list[str]:
        output_keys = pipe.lrange(self.outputs_key(identity), 0, -1)
        return [*output_keys, self.outputs_key(identity)]

    def write(self, pipe: Pipeline, identity: str, record: Job) -> None:
        write_hash(pipe, self.key(identity), encode(record))

        output_keys: list[str] = []
        for index, output in enumerate(record.outputs):
            output_key = self.output_key(identity, index)
            write_hash(pipe, output_key, encode(output))
            output_keys.append(output_key)

        if output_keys:
            pipe.rpush(self.outputs_key(identity), *output_keys)

        pipe.zadd(self.index_key, {identity: record.creation_time.timestamp()})

    def remove(self, pipe: Pipeline, identity: str) -> None:
        pipe.delete(self.key(identity))
        pipe.zrem(self.index_key, identity)

    def load(self, identity: str, fields: dict[str, str]) -> Job:
        job = decode(fields, Job)

        outputs = tuple(
            decode(self.storage.load(output_key), TranscodeOutput)
            for output_key in self.storage.list_range(self.outputs_key(identity))
        )

        return job.model_copy(update={"outputs": outputs})

    def identities(self) -> list[str]:
        return self.storage.range_by_score(self.index_key)

    def list_since(self, since: datetime | None = None, limit: int = 0) -> Listing[Job]:
        """List jobs created at or after ``since``, oldest first, at most ``limit`` of them."""
        min_score: float | str = "-inf"

        if since is not None:
            if since.tzinfo is None:
                since = since.replace(tzinfo=timezone.utc)
            min_score = since.timestamp()

        return Listing(
            lambda: self.storage.range_by_score(self.index_key, min_score, limit), self.get
        )
