import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

from pydantic import BaseModel
from redis.client import Pipeline

from transcode_db.errors import DecodeError, DuplicateError, NotFoundError, ValidationError
from transcode_db.hashcodec import decode, encode
from transcode_db.storage import Storage, write_hash

R = TypeVar("R", bound=BaseModel)

logger = logging.getLogger(__name__)


class Listing(Generic[R]):
    """Lazy listing of every entity in one namespace.

    Each iteration re-reads the index, so the listing can be iterated again to
    see fresh results. Entries that fail to decode are logged and recorded in
    ``failures`` rather than ending the iteration.
    """

    def __init__(self, identities: Callable[[], list[str]], load: Callable[[str], R]) -> None:
        self._identities = identities
        self._load = load
        self.failures: list[tuple[str, DecodeError]] = []

    def __iter__(self) -> Iterator[R]:
        self.failures = []

        for identity in self._identities():
            try:
                yield self._load(identity)
            except NotFoundError:
                # deleted after the index was read
                continue
            except DecodeError as e:
                logger.warning(f"skipping {identity}: {e}")
                self.failures.append((identity, e))

    @property
    def partial(self) -> bool:
        return bool(self.failures)


class HashRepository(ABC, Generic[R]):
    namespace: str
    index_key: str
    record_type: type[R]

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def key(self, identity: str) -> str:
        return f"{self.namespace}:{identity}"

    @abstractmethod
    def identity_of(self, record: R) -> str: ...

    def check_identity(self, identity: str, error: type[Exception] = NotFoundError) -> None:
        """Reject identities that could not have been created in this namespace.

        A ``:`` would address a side-collection key instead of an entity hash.
        """
        if not identity or ":" in identity:
            raise error(
                f"invalid {self.namespace} name {identity!r}: must be non-empty without ':'"
            )

    def prepare(self, record: R) -> R:
        """Validate ``record`` before creation, assigning anything it lacks."""
        self.check_identity(self.identity_of(record), ValidationError)
        return record

    def watched_keys(self, identity: str) -> list[str]:
        return [self.key(identity)]

    def stale_keys(self, pipe: Pipeline, identity: str) -> list[str]:
        """Keys besides the main hash to drop when ``identity`` is rewritten or deleted.

        Called on a watching pipeline, before ``multi()``.
        """
        return []

    def write(self, pipe: Pipeline, identity: str, record: R) -> None:
        write_hash(pipe, self.key(identity), encode(record))
        pipe.sadd(self.index_key, identity)

    def remove(self, pipe: Pipeline, identity: str) -> None:
        pipe.delete(self.key(identity))
        pipe.srem(self.index_key, identity)

    def load(self, identity: str, fields: dict[str, str]) -> R:
        return decode(fields, self.record_type)

    def identities(self) -> list[str]:
        return self.storage.members(self.index_key)

    def create(self, record: R) -> R:
        record = self.prepare(record)
        identity = self.identity_of(record)
        key = self.key(identity)

        def create_tx(pipe: Pipeline) -> None:
            if pipe.exists(key):
                raise DuplicateError(f"{self.namespace} {identity!r} already exists")
            stale = self.stale_keys(pipe, identity)
            pipe.multi()
            if stale:
                pipe.delete(*stale)
            self.write(pipe, identity, record)

        self.storage.transaction(create_tx, *self.watched_keys(identity))
        logger.debug(f"created {key}")

        return record

    def get(self, identity: str) -> R:
        self.check_identity(identity)

        fields = self.storage.load(self.key(identity))

        if not fields:
            raise NotFoundError(f"{self.namespace} {identity!r} not found")

        return self.load(identity, fields)

    def update(self, record: R) -> R:
        identity = self.identity_of(record)
        self.check_identity(identity)
        key = self.key(identity)

        def update_tx(pipe: Pipeline) -> None:
            if not pipe.exists(key):
                raise NotFoundError(f"{self.namespace} {identity!r} not found")
            stale = self.stale_keys(pipe, identity)
            pipe.multi()
            if stale:
                pipe.delete(*stale)
            self.write(pipe, identity, record)

        self.storage.transaction(update_tx, *self.watched_keys(identity))
        logger.debug(f"updated {key}")

        return record

    def delete(self, identity: str) -> None:
        self.check_identity(identity)
        key = self.key(identity)

        def delete_tx(pipe: Pipeline) -> None:
            if not pipe.exists(key):
                raise NotFoundError(f"{self.namespace} {identity!r} not found")
            stale = self.stale_keys(pipe, identity)
            pipe.multi()
            if stale:
                pipe.delete(*stale)
            self.remove(pipe, identity)

        self.storage.transaction(delete_tx, *self.watched_keys(identity))
        logger.debug(f"deleted {key}")

    def list(self) -> Listing[R]:
        return Listing(self.identities, self.get)
