import uuid
from datetime import datetime, timezone
from typing import Callable, Tuple


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    # Fixed width so lexical order of the sort key matches time order
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def new_identity(clock: Callable[[], datetime] = utc_now,
                 id_factory: Callable[[], uuid.UUID] = uuid.uuid4) -> Tuple[str, str]:
    """Return a fresh ``(id, received_at)`` pair.

    The timestamp is taken once and must be reused for both the sort key and
    the stored attribute.
    """
    return str(id_factory()), format_timestamp(clock())
