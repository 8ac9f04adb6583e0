"""Key-value store collaborator.

The challenge flow only needs four operations: get, put, delete and a
partition query with an optional exclusive lower bound on the sort key.
``DynamoDBStore`` implements them on top of the low-level DynamoDB
client; anything that satisfies ``KeyValueStore`` can stand in for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Protocol

from boto3.dynamodb.types import TypeDeserializer
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from otp_auth.exceptions import StoreUnavailableError
from otp_auth.utils.logging import get_logger

logger = get_logger(__name__)

Item = dict[str, Any]


@dataclass(frozen=True)
class KeyCondition:
    """Partition-key equality plus an optional ``sort_key > value`` bound."""

    partition_key: str
    partition_value: Any
    sort_key: Optional[str] = None
    sort_after: Optional[Any] = None


class KeyValueStore(Protocol):
    """Operations the challenge flow needs from its data store."""

    def get(self, table: str, key: Mapping[str, Any]) -> Optional[Item]:
        ...

    def put(self, table: str, item: Mapping[str, Any], ttl: Optional[int] = None) -> None:
        ...

    def delete(self, table: str, key: Mapping[str, Any]) -> None:
        ...

    def query(
        self,
        table: str,
        condition: KeyCondition,
        index: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> list[Item]:
        ...


class DynamoDBStore:
    """``KeyValueStore`` backed by DynamoDB.

    ``ttl`` values are written to the ``ttl`` attribute configured as the
    table's time-to-live attribute.
    """

    TTL_ATTRIBUTE = "ttl"

    def __init__(self, client: Any):
        self._client = client
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    def get(self, table: str, key: Mapping[str, Any]) -> Optional[Item]:
        response = self._call(
            "get_item",
            table,
            TableName=table,
            Key=self._serialize(key),
            ConsistentRead=True,
        )
        raw = response.get("Item")
        return self._deserialize(raw) if raw else None

    def put(self, table: str, item: Mapping[str, Any], ttl: Optional[int] = None) -> None:
        payload = dict(item)
        if ttl is not None:
            payload[self.TTL_ATTRIBUTE] = int(ttl)
        self._call("put_item", table, TableName=table, Item=self._serialize(payload))

    def delete(self, table: str, key: Mapping[str, Any]) -> None:
        self._call("delete_item", table, TableName=table, Key=self._serialize(key))

    def query(
        self,
        table: str,
        condition: KeyCondition,
        index: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> list[Item]:
        names = {"#pk": condition.partition_key}
        values: dict[str, Any] = {":pk": condition.partition_value}
        expression = "#pk = :pk"
        if condition.sort_key is not None and condition.sort_after is not None:
            names["#sk"] = condition.sort_key
            values[":sk"] = condition.sort_after
            expression += " AND #sk > :sk"

        params: dict[str, Any] = {
            "TableName": table,
            "KeyConditionExpression": expression,
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": self._serialize(values),
            "ScanIndexForward": ascending,
        }
        if index:
            params["IndexName"] = index
        if limit:
            params["Limit"] = limit

        items: list[Item] = []
        while True:
            response = self._call("query", table, **params)
            items.extend(self._deserialize(raw) for raw in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key or (limit and len(items) >= limit):
                break
            params["ExclusiveStartKey"] = last_key
        return items[:limit] if limit else items

    def _call(self, operation: str, table: str, **params: Any) -> Any:
        try:
            return getattr(self._client, operation)(**params)
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                "DynamoDB request failed",
                extra={"operation": operation, "table": table, "error_code": error_code},
            )
            raise StoreUnavailableError(
                f"DynamoDB {operation} failed", detail=error_code
            ) from exc
        except BotoCoreError as exc:
            logger.error(
                "DynamoDB unreachable",
                extra={"operation": operation, "table": table, "error": type(exc).__name__},
            )
            raise StoreUnavailableError(
                f"DynamoDB {operation} failed", detail=type(exc).__name__
            ) from exc

    def _serialize(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return {key: self._serializer.serialize(value) for key, value in values.items()}

    def _deserialize(self, raw: Mapping[str, Any]) -> Item:
        item = {key: self._deserializer.deserialize(value) for key, value in raw.items()}
        return {key: _plain_number(value) for key, value in item.items()}


def _plain_number(value: Any) -> Any:
    # TypeDeserializer yields Decimal for every number.
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value
