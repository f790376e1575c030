"""DynamoDB project store (single-table layout)."""

import json
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from ..api.serializers import (
    parse_collection,
    parse_composite,
    parse_conflict,
    parse_image_layer,
    parse_trait,
    parse_trait_set,
    parse_trait_value,
    serialize_composite,
)
from ..models import (
    Collection,
    Conflict,
    GenerationRun,
    ImageComposite,
    ImageLayer,
    Trait,
    TraitSet,
    TraitValue,
)
from ..utils import in_trait_set
from .store import DuplicateHashError, ProjectStore, StoreError

logger = logging.getLogger(__name__)


def _to_item(record: dict) -> dict:
    """DynamoDB rejects floats; round-trip numbers through Decimal."""
    return json.loads(json.dumps(record), parse_float=Decimal)


def _failed_condition(error: ClientError) -> bool:
    """Whether a write was rejected by its condition expression."""
    code = error.response["Error"]["Code"]
    if code == "ConditionalCheckFailedException":
        return True
    if code == "TransactionCanceledException":
        reasons = error.response.get("CancellationReasons", [])
        return any(reason.get("Code") == "ConditionalCheckFailed" for reason in reasons)
    return False


class DynamoStore(ProjectStore):
    """
    All items of a collection share the partition key "<project>#<collection>".

    Sort keys:
        COLLECTION
        TRAITSET#<order>#<id>
        TRAIT#<id>
        VALUE#<trait id>#<order>#<id>
        LAYER#<id>
        CONFLICT#<order>#<id>
        COMPOSITE#<group>#<traits hash>
        USED#<group>#<trait id>#<value id>

    Zero-padded <order> keeps query results in stored order.
    """

    def __init__(self, table_name: str, region_name: str | None = None):
        self.table_name = table_name
        self.table = boto3.resource("dynamodb", region_name=region_name).Table(table_name)

    def _pk(self, project_id: str, collection_id: str) -> str:
        return f"{project_id}#{collection_id}"

    def _query_all(self, pk: str, prefix: str) -> list[dict]:
        """Query every item under a sort key prefix, following pagination."""
        items = []
        kwargs = {"KeyConditionExpression": Key("pk").eq(pk) & Key("sk").begins_with(prefix)}
        try:
            while True:
                response = self.table.query(**kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return items
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            raise StoreError(f"Query {pk} {prefix} failed: {e}")

    def _records(self, run: GenerationRun, prefix: str) -> list[dict]:
        return [item["record"] for item in self._query_all(self._pk(run.project_id, run.collection_id), prefix)]

    def get_collection(self, project_id: str, collection_id: str) -> Collection:
        try:
            response = self.table.get_item(Key={"pk": self._pk(project_id, collection_id), "sk": "COLLECTION"})
        except ClientError as e:
            raise StoreError(f"Failed to read collection {collection_id}: {e}")
        if "Item" not in response:
            raise StoreError(f"Unknown collection {collection_id} in project {project_id}")
        return parse_collection(response["Item"]["record"])

    def trait_sets(self, project_id: str, collection_id: str) -> list[TraitSet]:
        items = self._query_all(self._pk(project_id, collection_id), "TRAITSET#")
        return [parse_trait_set(item["record"]) for item in items]

    def traits(self, run: GenerationRun) -> list[Trait]:
        traits = [parse_trait(r) for r in self._records(run, "TRAIT#")]
        return [t for t in traits if in_trait_set(t.trait_set_ids, run.trait_set_id)]

    def trait_values(self, run: GenerationRun, trait: Trait) -> list[TraitValue]:
        return [parse_trait_value(r) for r in self._records(run, f"VALUE#{trait.id}#")]

    def image_layers(self, run: GenerationRun) -> list[ImageLayer]:
        layers = [parse_image_layer(r) for r in self._records(run, "LAYER#")]
        return [layer for layer in layers if in_trait_set(layer.trait_set_ids, run.trait_set_id)]

    def conflicts(self, run: GenerationRun) -> list[Conflict]:
        conflicts = [parse_conflict(r) for r in self._records(run, "CONFLICT#")]
        return [c for c in conflicts if in_trait_set(c.trait_set_ids, run.trait_set_id)]

    def used_value_ids(self, run: GenerationRun, trait: Trait) -> set[str]:
        prefix = f"USED#{run.composite_group_id}#{trait.id}#"
        items = self._query_all(self._pk(run.project_id, run.collection_id), prefix)
        return {item["sk"][len(prefix):] for item in items}

    def create_composite(self, composite: ImageComposite, run: GenerationRun) -> ImageComposite:
        """
        Write the composite and its USED# markers in one transaction.

        The composite put is conditional on its traits hash being new in the
        group; if it fails, no marker is written either.
        """
        created = replace(
            composite,
            id=uuid.uuid4().hex,
            composite_group_id=run.composite_group_id,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        pk = self._pk(run.project_id, run.collection_id)

        transact_items = [{
            "Put": {
                "TableName": self.table_name,
                "Item": {
                    "pk": pk,
                    "sk": f"COMPOSITE#{run.composite_group_id}#{created.traits_hash}",
                    "record": _to_item(serialize_composite(created)),
                },
                "ConditionExpression": "attribute_not_exists(sk)",
            }
        }]
        # Mark consumed values so later batches can exclude always-unique ones
        for pair in created.traits:
            if pair.trait_value is None:
                continue
            transact_items.append({
                "Put": {
                    "TableName": self.table_name,
                    "Item": {
                        "pk": pk,
                        "sk": f"USED#{run.composite_group_id}#{pair.trait.id}#{pair.trait_value.id}",
                        "compositeId": created.id,
                    },
                }
            })

        try:
            self.table.meta.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if _failed_condition(e):
                raise DuplicateHashError(f"Traits hash {created.traits_hash} already used in {run.composite_group_id}")
            raise StoreError(f"Failed to create composite: {e}")

        logger.debug(f"Created composite {created.id} ({created.traits_hash})")
        return created

    def is_unique_hash(self, traits_hash: str, run: GenerationRun) -> bool:
        key = {
            "pk": self._pk(run.project_id, run.collection_id),
            "sk": f"COMPOSITE#{run.composite_group_id}#{traits_hash}",
        }
        try:
            response = self.table.get_item(Key=key, ProjectionExpression="sk", ConsistentRead=True)
        except ClientError as e:
            raise StoreError(f"Failed to check traits hash {traits_hash}: {e}")
        return "Item" not in response

    def composites(self, run: GenerationRun) -> list[ImageComposite]:
        composites = [parse_composite(r) for r in self._records(run, f"COMPOSITE#{run.composite_group_id}#")]
        return sorted(composites, key=lambda c: c.item_index or 0)
