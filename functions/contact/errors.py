from typing import Dict


class ContactError(Exception):
    """Base class for errors raised while handling a submission."""


class ConfigurationError(ContactError):
    pass


class MalformedBody(ContactError):
    """The request body could not be decoded into a field mapping."""


class ValidationError(ContactError):
    """One or more submitted fields are missing or invalid."""

    def __init__(self, fields: Dict[str, str]) -> None:
        super().__init__(", ".join(f"{k}: {v}" for k, v in fields.items()))
        self.fields = fields


class StoreFailure(ContactError):
    TRANSIENT = "transient"
    CONFLICT = "conflict"
    FATAL = "fatal"

    def __init__(self, kind: str, detail: str = "") -> None:
        super().__init__(f"{kind}: {detail}" if detail else kind)
        self.kind = kind
        self.detail = detail

    @property
    def retryable(self) -> bool:
        return self.kind == self.TRANSIENT


class NotifyFailure(ContactError):
    pass
