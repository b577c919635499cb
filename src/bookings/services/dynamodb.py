"""Thin boto3 wrapper over the booking tables.

Table names are ``{prefix}-{table}``; the prefix comes from
DYNAMODB_TABLE_PREFIX (``booking-{environment}`` by default). Conditional
failures are reported as return values, any other ClientError propagates.
"""

from collections.abc import Callable
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from bookings.config import get_settings
from bookings.utils.logging import get_logger

logger = get_logger(__name__)

# Shared across Lambda invocations of a warm container
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service(table_prefix: str | None = None) -> "DynamoDBService":
    """Get the process-wide DynamoDBService, creating it on first use.

    Args:
        table_prefix: Table name prefix. Only used on first call.
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService(table_prefix)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Forget the shared instance so tests can build one inside mock_aws."""
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def serialize_attribute(value: Any) -> dict[str, Any]:
    """Convert a plain value to the low-level attribute format used by transactions."""
    if isinstance(value, bool):
        return {"BOOL": value}
    if isinstance(value, str):
        return {"S": value}
    if isinstance(value, int | float):
        return {"N": str(value)}
    if value is None:
        return {"NULL": True}
    if isinstance(value, list):
        return {"L": [serialize_attribute(v) for v in value]}
    if isinstance(value, dict):
        return {"M": {k: serialize_attribute(v) for k, v in value.items()}}
    return {"S": str(value)}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class DynamoDBService:
    """Table access for reservations, night claims and listings."""

    def __init__(self, table_prefix: str | None = None) -> None:
        self.name_prefix = table_prefix or get_settings().table_prefix
        self._dynamodb = boto3.resource("dynamodb")
        self._client = boto3.client("dynamodb")

    def table_name(self, table: str) -> str:
        """Full table name for a short name such as ``reservations``."""
        return f"{self.name_prefix}-{table}"

    def _table(self, table: str) -> Any:
        return self._dynamodb.Table(self.table_name(table))

    def get_item(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        """Strongly consistent read of one item, or None."""
        response = self._table(table).get_item(Key=key, ConsistentRead=True)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Write an item.

        Returns:
            False if ``condition_expression`` rejected the write
        """
        kwargs: dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            self._table(table).put_item(**kwargs)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            raise
        return True

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Query a table or index and return every page of results."""
        kwargs: dict[str, Any] = {"KeyConditionExpression": key_condition}
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression
        return self._collect(self._table(table).query, kwargs)

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
        sort_key_condition: Any | None = None,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Query a GSI partition, optionally narrowed by a sort key condition.

        Args:
            table: Table name without prefix
            index_name: GSI name
            partition_key_name: GSI partition key attribute
            partition_key_value: Partition to read
            sort_key_condition: Optional ``Key(...)`` condition on the sort key
            filter_expression: Optional ``Attr(...)`` filter on other attributes
        """
        key_condition = Key(partition_key_name).eq(partition_key_value)
        if sort_key_condition is not None:
            key_condition = key_condition & sort_key_condition
        return self.query(
            table,
            key_condition,
            index_name=index_name,
            filter_expression=filter_expression,
        )

    def scan(self, table: str, filter_expression: Any | None = None) -> list[dict[str, Any]]:
        """Read a whole table. Only used for admin listings."""
        kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression
        return self._collect(self._table(table).scan, kwargs)

    def transact_write(self, items: list[dict[str, Any]]) -> bool:
        """Apply TransactWriteItems all-or-nothing.

        Args:
            items: TransactItems in low-level attribute format

        Returns:
            False if DynamoDB cancelled the transaction because a condition
            failed or a concurrent transaction touched the same items
        """
        try:
            self._client.transact_write_items(TransactItems=items)  # type: ignore[arg-type]
        except ClientError as e:
            if _error_code(e) != "TransactionCanceledException":
                raise
            reasons = [
                r.get("Code", "None") for r in e.response.get("CancellationReasons", [])
            ]
            logger.info("Transaction cancelled: %s", ", ".join(reasons) or "no reasons")
            return False
        return True

    @staticmethod
    def _collect(
        operation: Callable[..., dict[str, Any]], kwargs: dict[str, Any]
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        while True:
            response = operation(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs = {**kwargs, "ExclusiveStartKey": last_key}
