"""Lambda entrypoint for ``POST /contact``.

Validate, persist, then notify. Persistence is the commit point: once the
item is written the caller gets 200 with the record id, whether or not the
notification email goes out.
"""
import json
import os
import time
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from aws_lambda_powertools import Logger

from .errors import MalformedBody, NotifyFailure, StoreFailure, ValidationError
from .identity import new_identity
from .models import ContactMessage
from .notifier import Notifier, SesNotifier
from .settings import Settings
from .store import DynamoMessageStore, MessageStore
from .validation import header, parse_body, validate

logger = Logger(service="contact")

STORE_ATTEMPTS = 2


def response(status: int, payload: Optional[Dict[str, Any]], headers: Dict[str, str]) -> Dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json", **headers},
        "body": json.dumps(payload) if payload is not None else "",
    }


def cors_headers(allowed: Sequence[str], event: Mapping[str, Any]) -> Dict[str, str]:
    headers = {
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }
    if "*" in allowed:
        headers["Access-Control-Allow-Origin"] = "*"
        return headers
    origin = header(event.get("headers"), "Origin")
    if origin in allowed:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


def fallback_origins() -> Tuple[str, ...]:
    """Allowed origins straight from the environment, for when settings failed to load."""
    raw = os.environ.get("ALLOWED_ORIGINS", "*")
    return tuple(o.strip() for o in raw.split(",") if o.strip()) or ("*",)


class ContactHandler:
    def __init__(self, settings: Settings, store: MessageStore, notifier: Notifier,
                 identity: Callable[[], Tuple[str, str]] = new_identity,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.settings = settings
        self.store = store
        self.notifier = notifier
        self.identity = identity
        self.sleep = sleep

    def cors_headers(self, event: Mapping[str, Any]) -> Dict[str, str]:
        return cors_headers(self.settings.allowed_origins, event)

    def __call__(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        cors = self.cors_headers(event)
        method = (event.get("httpMethod") or "POST").upper()
        if method == "OPTIONS":
            return response(204, None, cors)
        if method != "POST":
            return response(405, {"error": "method_not_allowed"}, {**cors, "Allow": "POST, OPTIONS"})

        try:
            submission = validate(parse_body(event))
        except MalformedBody as e:
            logger.warning("Rejected malformed body", extra={"reason": str(e)})
            return response(400, {"error": "invalid_body", "detail": str(e)}, cors)
        except ValidationError as e:
            logger.info("Rejected invalid submission", extra={"fields": sorted(e.fields)})
            return response(400, {"error": "validation_error", "fields": e.fields}, cors)

        record_id, received_at = self.identity()
        message = ContactMessage.accept(submission, record_id, received_at)
        try:
            self.persist(message)
        except StoreFailure as e:
            logger.error("Failed to store submission",
                         extra={"record_id": record_id, "kind": e.kind, "detail": e.detail})
            return response(500, {"error": "internal_error"}, cors)

        try:
            self.notifier.notify(message)
        except NotifyFailure as e:
            # stored already; the operator sees this in the logs only
            logger.error("Notification failed", extra={"record_id": record_id, "detail": str(e)})
        except Exception:
            logger.exception("Unexpected notifier error", extra={"record_id": record_id})
        else:
            logger.info("Notification sent", extra={"record_id": record_id})

        return response(200, {"id": record_id}, cors)

    def persist(self, message: ContactMessage) -> None:
        """Write the item, retrying once after a transient failure."""
        for attempt in range(1, STORE_ATTEMPTS + 1):
            try:
                self.store.put(message)
            except StoreFailure as e:
                if attempt > 1 and e.kind == StoreFailure.CONFLICT:
                    # ids are never reused, so the earlier attempt was applied
                    logger.warning("Retry found the item already written", extra={"record_id": message.id})
                    return
                if not e.retryable or attempt == STORE_ATTEMPTS:
                    raise
                logger.warning("Transient store failure, retrying",
                               extra={"record_id": message.id, "attempt": attempt, "detail": e.detail})
                self.sleep(self.settings.store_retry_backoff)
            else:
                logger.info("Stored submission", extra={"record_id": message.id, "attempt": attempt})
                return


@lru_cache(maxsize=1)
def default_handler() -> ContactHandler:
    settings = Settings.from_env()
    return ContactHandler(settings,
                          DynamoMessageStore.from_settings(settings),
                          SesNotifier.from_settings(settings))


@logger.inject_lambda_context
def handler(event, context):
    try:
        return default_handler()(event)
    except Exception:
        logger.exception("Unhandled error while processing submission")
        return response(500, {"error": "internal_error"}, cors_headers(fallback_origins(), event))
