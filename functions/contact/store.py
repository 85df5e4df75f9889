from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ConnectionError, HTTPClientError

from .errors import StoreFailure
from .models import ContactMessage
from .settings import Settings

TRANSIENT_CODES = frozenset({
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
    "InternalServerError",
    "ServiceUnavailable",
    "TransactionInProgressException",
})


class MessageStore(Protocol):
    def put(self, message: ContactMessage) -> None:
        ...


class DynamoMessageStore:
    """Writes one item per accepted submission.

    The ``attribute_not_exists`` guard turns an id collision into a
    ``conflict`` failure instead of a silent overwrite.
    """

    def __init__(self, table) -> None:
        self.table = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "DynamoMessageStore":
        config = Config(region_name=settings.region,
                        connect_timeout=settings.store_timeout,
                        read_timeout=settings.store_timeout,
                        retries={"max_attempts": 1, "mode": "standard"})
        table = boto3.resource("dynamodb", config=config).Table(settings.table_name)
        return cls(table)

    def put(self, message: ContactMessage) -> None:
        try:
            self.table.put_item(Item=message.to_item(),
                                ConditionExpression="attribute_not_exists(id)")
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == "ConditionalCheckFailedException":
                raise StoreFailure(StoreFailure.CONFLICT, code) from e
            if code in TRANSIENT_CODES:
                raise StoreFailure(StoreFailure.TRANSIENT, code) from e
            raise StoreFailure(StoreFailure.FATAL, code or "ClientError") from e
        except (ConnectionError, HTTPClientError) as e:
            raise StoreFailure(StoreFailure.TRANSIENT, type(e).__name__) from e
        except BotoCoreError as e:
            raise StoreFailure(StoreFailure.FATAL, type(e).__name__) from e
