import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .errors import ConfigurationError

DEFAULT_REGION = "us-east-1"
DEFAULT_TIMEOUT_SECONDS = 3.0
DEFAULT_RETRY_BACKOFF_SECONDS = 0.2


@dataclass(frozen=True)
class Settings:
    """Deployment configuration, read once per cold start."""

    table_name: str
    from_email: str
    to_email: str
    region: str = DEFAULT_REGION
    allowed_origins: Tuple[str, ...] = field(default=("*",))
    store_timeout: float = DEFAULT_TIMEOUT_SECONDS
    notify_timeout: float = DEFAULT_TIMEOUT_SECONDS
    store_retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        missing = [k for k in ("TABLE_NAME", "FROM_EMAIL", "TO_EMAIL") if not env.get(k)]
        if missing:
            raise ConfigurationError(f"missing environment variables: {', '.join(missing)}")

        origins = tuple(o.strip() for o in env.get("ALLOWED_ORIGINS", "*").split(",") if o.strip())
        return cls(table_name=env["TABLE_NAME"],
                   from_email=env["FROM_EMAIL"],
                   to_email=env["TO_EMAIL"],
                   region=env.get("REGION") or env.get("AWS_REGION") or DEFAULT_REGION,
                   allowed_origins=origins or ("*",),
                   store_timeout=_seconds(env, "STORE_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
                   notify_timeout=_seconds(env, "NOTIFY_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
                   store_retry_backoff=_seconds(env, "STORE_RETRY_BACKOFF_SECONDS",
                                                DEFAULT_RETRY_BACKOFF_SECONDS))


def _seconds(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative")
    return value
