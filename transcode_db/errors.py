class TranscodeDBError(Exception):
    pass


class ValidationError(TranscodeDBError):
    pass


class NotFoundError(TranscodeDBError):
    pass


class DuplicateError(TranscodeDBError):
    pass


class SchemaError(TranscodeDBError):
    pass


class StoreError(TranscodeDBError):
    pass


class DecodeError(TranscodeDBError):
    def __init__(self, key: str, raw: str, reason: str = "") -> None:
        self.key = key
        self.raw = raw
        self.reason = reason

        msg = f"cannot decode {key!r} from {raw!r}"
        if reason:
            msg += f": {reason}"

        super().__init__(msg)
