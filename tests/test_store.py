from __future__ import annotations

import pytest
from botocore.exceptions import ClientError, ConnectTimeoutError, NoCredentialsError, ReadTimeoutError

from contact.errors import StoreFailure
from contact.models import ContactMessage
from contact.store import DynamoMessageStore

MESSAGE = ContactMessage(id="0b6f3c1e-6d7a-4f0e-9a59-2f1b8a4d9c10",
                         received_at="2024-05-01T12:30:45.123Z",
                         name="Jane",
                         email="jane@example.com",
                         message="Hello")


class FakeTable:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def put_item(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "PutItem")


def test_put_writes_one_guarded_item():
    table = FakeTable()
    DynamoMessageStore(table).put(MESSAGE)
    assert table.calls == [{
        "Item": {
            "id": MESSAGE.id,
            "received_at": "2024-05-01T12:30:45.123Z",
            "name": "Jane",
            "email": "jane@example.com",
            "message": "Hello",
        },
        "ConditionExpression": "attribute_not_exists(id)",
    }]


def test_subject_is_stored_when_present():
    table = FakeTable()
    msg = ContactMessage(**{**MESSAGE.__dict__, "subject": "Quote"})
    DynamoMessageStore(table).put(msg)
    assert table.calls[0]["Item"]["subject"] == "Quote"


@pytest.mark.parametrize("error, kind", [
    (client_error("ConditionalCheckFailedException"), StoreFailure.CONFLICT),
    (client_error("ProvisionedThroughputExceededException"), StoreFailure.TRANSIENT),
    (client_error("ThrottlingException"), StoreFailure.TRANSIENT),
    (client_error("InternalServerError"), StoreFailure.TRANSIENT),
    (client_error("ResourceNotFoundException"), StoreFailure.FATAL),
    (client_error("AccessDeniedException"), StoreFailure.FATAL),
    (ConnectTimeoutError(endpoint_url="https://dynamodb.us-east-1.amazonaws.com"), StoreFailure.TRANSIENT),
    (ReadTimeoutError(endpoint_url="https://dynamodb.us-east-1.amazonaws.com"), StoreFailure.TRANSIENT),
    (NoCredentialsError(), StoreFailure.FATAL),
])
def test_failures_are_classified(error, kind):
    with pytest.raises(StoreFailure) as exc:
        DynamoMessageStore(FakeTable(error)).put(MESSAGE)
    assert exc.value.kind == kind
    assert exc.value.retryable is (kind == StoreFailure.TRANSIENT)


def test_from_settings_targets_configured_table(settings):
    store = DynamoMessageStore.from_settings(settings)
    assert store.table.name == "contact_messages"
    client = store.table.meta.client
    assert client.meta.region_name == "us-east-1"
    assert client.meta.config.read_timeout == settings.store_timeout
    assert client.meta.config.connect_timeout == settings.store_timeout
