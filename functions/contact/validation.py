"""Request body decoding and field validation.

Decoding problems raise :class:`MalformedBody`; field problems raise
:class:`ValidationError` with every failing field. Neither has side effects.
"""
import base64
import binascii
import json
from email import policy
from email.parser import BytesParser
from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qsl

from .errors import MalformedBody, ValidationError
from .models import Submission

MAX_LENGTHS = {
    "name": 200,
    "email": 256,
    "subject": 200,
    "message": 2000,
}
REQUIRED = ("name", "email", "message")


def header(headers: Optional[Mapping[str, str]], key: str) -> str:
    if not headers:
        return ""
    if key in headers:
        return headers[key] or ""
    for k, v in headers.items():
        if k.lower() == key.lower():
            return v or ""
    return ""


def raw_body(event: Mapping[str, Any]) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            raise MalformedBody("body is not valid base64") from None
    return body.encode("utf-8")


def parse_body(event: Mapping[str, Any]) -> Dict[str, Any]:
    """Decode an API Gateway proxy event body into a field mapping."""
    body = raw_body(event)
    content_type = header(event.get("headers"), "Content-Type")
    media_type = content_type.split(";", 1)[0].strip().lower()

    # fetch() with a string body and no header sends text/plain
    if media_type in ("", "application/json", "text/plain") or media_type.endswith("+json"):
        return _parse_json(body)
    if media_type == "multipart/form-data":
        return _parse_multipart(body, content_type)
    if media_type == "application/x-www-form-urlencoded":
        return dict(parse_qsl(_text(body), keep_blank_values=True))
    raise MalformedBody(f"unsupported media type {media_type}")


def _text(body: bytes) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        raise MalformedBody("body is not valid UTF-8") from None


def _parse_json(body: bytes) -> Dict[str, Any]:
    text = _text(body)
    if not text.strip():
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedBody(f"invalid JSON: {e.msg}") from None
    if not isinstance(payload, dict):
        raise MalformedBody("JSON body must be an object")
    return payload


def _parse_multipart(body: bytes, content_type: str) -> Dict[str, Any]:
    head = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode("utf-8")
    document = BytesParser(policy=policy.HTTP).parsebytes(head + body)
    if not document.is_multipart() or not document.get_boundary():
        raise MalformedBody("multipart body without boundary")

    fields = {}
    for part in document.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name or part.get_filename():
            continue
        payload = part.get_payload(decode=True) or b""
        fields[name] = _text(payload)
    return fields


def validate(fields: Mapping[str, Any]) -> Submission:
    """Check the known fields and build a :class:`Submission`.

    Unknown keys are ignored.
    """
    errors = {}
    values = {}
    for key in ("name", "email", "subject", "message"):
        value = fields.get(key)
        if value is None:
            if key in REQUIRED:
                errors[key] = "required"
            continue
        if not isinstance(value, str):
            errors[key] = "must be a string"
            continue
        value = value.strip()
        if not value:
            if key in REQUIRED:
                errors[key] = "required"
            continue
        if len(value) > MAX_LENGTHS[key]:
            errors[key] = f"must be at most {MAX_LENGTHS[key]} characters"
            continue
        values[key] = value

    if "email" in values and not is_email(values["email"]):
        errors["email"] = "invalid email address"

    if errors:
        raise ValidationError(errors)
    return Submission(name=values["name"],
                      email=values["email"],
                      message=values["message"],
                      subject=values.get("subject"))


def is_email(value: str) -> bool:
    if value.count("@") != 1 or any(c.isspace() for c in value):
        return False
    local, domain = value.split("@")
    return bool(local) and bool(domain)
