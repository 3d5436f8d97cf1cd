from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from common.errors import BackendError, OptimisticLockError

from .models import Record


logger = logging.getLogger(__name__)

DEFAULT_TABLE = "applications"
ENV_TABLE = "FS_ENV_TABLE"

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _error_code(e: ClientError) -> Optional[str]:
    return e.response.get("Error", {}).get("Code")


class RecordStore:
    """
    DynamoDB-backed persistence for `Record`, one item per application.

    Usage
    - `fetch(name)` returns the stored Record, or an empty one if the item
      doesn't exist.
    - `persist(record)` overwrites the whole item and returns the new version.
      Without `check_version` two concurrent runs against the same name race
      and the last writer wins.
    - `persist(record, check_version=True)` only succeeds if the stored version
      still equals `record.version` (optimistic lock), else raises
      `OptimisticLockError`.

    Item layout
    - name:    S  partition key
    - envs:    M  {KEY: {"Value": S}}
    - version: N  incremented on every persist
    """

    def __init__(
        self,
        *,
        dynamodb: Optional[object] = None,
        table: str = DEFAULT_TABLE,
        region_name: Optional[str] = None,
    ) -> None:
        if dynamodb is None:
            try:
                dynamodb = boto3.client("dynamodb", region_name=region_name)
            except BotoCoreError as e:
                raise BackendError(str(e)) from e
        self._ddb = dynamodb
        self._table = table

    # -------- Core operations --------
    def fetch(self, name: str) -> Record:
        """Read the Record for `name`.

        Returns an empty Record when the item doesn't exist.
        Raises BackendError for any DynamoDB failure.
        """
        logger.debug("GetItem table=%s name=%s", self._table, name)
        try:
            resp = self._ddb.get_item(
                TableName=self._table,
                Key={"name": {"S": name}},
                ProjectionExpression="envs, #v",
                ExpressionAttributeNames={"#v": "version"},
            )
        except (ClientError, BotoCoreError) as e:
            raise BackendError(
                f"{e}\nError getting environment variables for {name}"
            ) from e

        raw = resp.get("Item")
        if not raw:
            logger.debug("No item for %s; starting empty", name)
            return Record.empty(name)

        item = {k: _deserializer.deserialize(v) for k, v in raw.items()}
        return Record.from_item(name, item)

    def persist(self, record: Record, *, check_version: bool = False) -> int:
        """Write the whole Record, replacing whatever is stored; returns the new version.

        Args:
        - record: the Record to store under `record.name`.
        - check_version: when True, the put is conditional on the stored
          version matching `record.version` (or being absent when that is None).
        """
        new_version = (record.version or 0) + 1
        item: Dict[str, Any] = {
            "name": {"S": record.name},
            "envs": _serializer.serialize(record.envs_payload()),
            "version": {"N": str(new_version)},
        }
        params: Dict[str, Any] = {"TableName": self._table, "Item": item}

        if check_version:
            params["ExpressionAttributeNames"] = {"#v": "version"}
            if record.version is None:
                params["ConditionExpression"] = "attribute_not_exists(#v)"
            else:
                params["ConditionExpression"] = "#v = :v"
                params["ExpressionAttributeValues"] = {":v": {"N": str(record.version)}}

        logger.debug(
            "PutItem table=%s name=%s vars=%d version=%d conditional=%s",
            self._table,
            record.name,
            len(record.variables),
            new_version,
            check_version,
        )
        try:
            self._ddb.put_item(**params)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise OptimisticLockError(
                    f"{record.name} was modified by another writer since it was read"
                ) from e
            raise BackendError(str(e)) from e
        except BotoCoreError as e:
            raise BackendError(str(e)) from e

        return new_version
