from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import NotifyFailure
from .models import ContactMessage
from .settings import Settings

CHARSET = "UTF-8"


class Notifier(Protocol):
    def notify(self, message: ContactMessage) -> None:
        ...


def compose_subject(message: ContactMessage) -> str:
    if message.subject:
        return f"[Contact] {message.subject}"
    return f"[Contact] New message from {message.name}"


def compose_body(message: ContactMessage) -> str:
    lines = [
        "A new contact form submission was received.",
        "",
        f"Name: {message.name}",
        f"Email: {message.email}",
    ]
    if message.subject:
        lines.append(f"Subject: {message.subject}")
    lines += [
        f"Received at: {message.received_at}",
        f"Reference: {message.id}",
        "",
        "--- Message ---",
        message.message,
        "",
    ]
    return "\n".join(lines)


class SesNotifier:
    """Sends the operator notification through SES.

    The submitter address only ever appears in the body and ``Reply-To``;
    the envelope sender is the configured verified address.
    """

    def __init__(self, client, from_email: str, to_email: str) -> None:
        self.client = client
        self.from_email = from_email
        self.to_email = to_email

    @classmethod
    def from_settings(cls, settings: Settings) -> "SesNotifier":
        config = Config(region_name=settings.region,
                        connect_timeout=settings.notify_timeout,
                        read_timeout=settings.notify_timeout,
                        retries={"max_attempts": 1, "mode": "standard"})
        return cls(boto3.client("ses", config=config), settings.from_email, settings.to_email)

    def notify(self, message: ContactMessage) -> None:
        try:
            self.client.send_email(
                Source=self.from_email,
                Destination={"ToAddresses": [self.to_email]},
                Message={
                    "Subject": {"Data": compose_subject(message), "Charset": CHARSET},
                    "Body": {"Text": {"Data": compose_body(message), "Charset": CHARSET}},
                },
                ReplyToAddresses=[message.email],
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "ClientError")
            raise NotifyFailure(code) from e
        except BotoCoreError as e:
            raise NotifyFailure(type(e).__name__) from e
