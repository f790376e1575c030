"""Tests for the DynamoDB store against a mocked table."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from artgen.clients import dynamo
from artgen.clients.store import DuplicateHashError, StoreError
from artgen.engine import fingerprint
from artgen.models import GenerationRun, ImageComposite, TraitValuePair

from conftest import make_trait, make_value

RUN = GenerationRun(project_id="p1", collection_id="c1", composite_group_id="g1")


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "PutItem")


def cancelled(*reason_codes: str) -> ClientError:
    response = {
        "Error": {"Code": "TransactionCanceledException", "Message": "Transaction cancelled"},
        "CancellationReasons": [{"Code": code} for code in reason_codes],
    }
    return ClientError(response, "TransactWriteItems")


@pytest.fixture
def table(monkeypatch):
    table = MagicMock()
    resource = MagicMock()
    resource.Table.return_value = table
    monkeypatch.setattr(dynamo.boto3, "resource", lambda *args, **kwargs: resource)
    return table


@pytest.fixture
def store(table):
    return dynamo.DynamoStore("artgen", region_name="us-east-1")


def composite() -> ImageComposite:
    pairs = [
        TraitValuePair(trait=make_trait("bg"), trait_value=make_value("red", "bg", 0.25)),
        TraitValuePair(trait=make_trait("hat", z_index=1), trait_value=None),
    ]
    return ImageComposite(traits=pairs, traits_hash=fingerprint(pairs), external_url=None, item_index=0)


class TestReads:

    def test_query_follows_pagination(self, store, table):
        table.query.side_effect = [
            {"Items": [{"record": {"id": "bg", "name": "Bg"}}], "LastEvaluatedKey": {"pk": "p1#c1", "sk": "TRAIT#bg"}},
            {"Items": [{"record": {"id": "hat", "name": "Hat", "zIndex": Decimal(2)}}]},
        ]

        traits = store.traits(RUN)

        assert [t.id for t in traits] == ["bg", "hat"]
        assert traits[1].z_index == 2
        assert table.query.call_args_list[1].kwargs["ExclusiveStartKey"] == {"pk": "p1#c1", "sk": "TRAIT#bg"}

    def test_used_value_ids_from_sort_keys(self, store, table):
        table.query.return_value = {"Items": [{"sk": "USED#g1#bg#red"}, {"sk": "USED#g1#bg#blue"}]}

        assert store.used_value_ids(RUN, make_trait("bg")) == {"red", "blue"}

    def test_missing_collection(self, store, table):
        table.get_item.return_value = {}

        with pytest.raises(StoreError):
            store.get_collection("p1", "c1")

    def test_query_error_wrapped(self, store, table):
        table.query.side_effect = client_error("ProvisionedThroughputExceededException")

        with pytest.raises(StoreError):
            store.conflicts(RUN)

    def test_unique_hash_is_consistent_read(self, store, table):
        table.get_item.return_value = {}
        assert store.is_unique_hash("abc", RUN)

        table.get_item.return_value = {"Item": {"sk": "COMPOSITE#g1#abc"}}
        assert not store.is_unique_hash("abc", RUN)
        assert table.get_item.call_args.kwargs["ConsistentRead"] is True


class TestCreateComposite:

    def test_composite_and_used_markers_in_one_transaction(self, store, table):
        created = store.create_composite(composite(), RUN)

        table.put_item.assert_not_called()
        table.batch_writer.assert_not_called()
        items = table.meta.client.transact_write_items.call_args.kwargs["TransactItems"]
        composite_put, marker_put = (entry["Put"] for entry in items)
        assert len(items) == 2
        assert composite_put["TableName"] == "artgen"
        assert composite_put["Item"]["sk"] == f"COMPOSITE#g1#{created.traits_hash}"
        assert composite_put["Item"]["record"]["traits"][0]["traitValue"]["rarity"] == Decimal("0.25")
        assert composite_put["ConditionExpression"] == "attribute_not_exists(sk)"
        assert marker_put["Item"]["sk"] == "USED#g1#bg#red"
        assert "ConditionExpression" not in marker_put
        assert created.id is not None

    def test_duplicate_hash(self, store, table):
        table.meta.client.transact_write_items.side_effect = cancelled("ConditionalCheckFailed", "None")

        with pytest.raises(DuplicateHashError):
            store.create_composite(composite(), RUN)

    def test_failed_transaction_is_store_error(self, store, table):
        """A marker write failure cancels the composite write as well."""
        table.meta.client.transact_write_items.side_effect = cancelled("None", "ValidationError")

        with pytest.raises(StoreError) as exc_info:
            store.create_composite(composite(), RUN)
        assert not isinstance(exc_info.value, DuplicateHashError)

    def test_other_errors_wrapped(self, store, table):
        table.meta.client.transact_write_items.side_effect = client_error("ProvisionedThroughputExceededException")

        with pytest.raises(StoreError):
            store.create_composite(composite(), RUN)
