"""Tests for transaction persistence and field extraction."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from payout_sync.db.unit_of_work import UnitOfWork
from payout_sync.transactions.clients.base import RemoteTransaction
from payout_sync.transactions.persister import (
    TransactionPersister,
    decimal_safe,
    parse_timestamp,
)
from tests.fixtures.database import add_cabinet
from tests.fixtures.gate_platform import make_record


def remote(external_id, **overrides) -> RemoteTransaction:
    return RemoteTransaction.model_validate(make_record(external_id, **overrides))


async def stored_rows(session_factory, cabinet_id):
    async with UnitOfWork(session_factory) as uow:
        return await uow.transactions.filter(cabinet_id=cabinet_id)


class TestExtractFields:
    """Tests for TransactionPersister.extract_fields."""

    def test_columns_from_record(self):
        persister = TransactionPersister(store=None)
        fields = persister.extract_fields(remote(42), cabinet_id=7)

        assert fields["external_id"] == 42
        assert fields["payment_method_id"] == 5000000042
        assert fields["wallet"] == "wallet-42"
        assert fields["status"] == 2
        assert fields["cabinet_id"] == 7
        assert fields["amount"] == {"trader": {"643": "1500.50"}}
        assert fields["created_at_external"] == "2024-05-01T08:55:00.000000Z"
        assert fields["updated_at_external"] == "2024-05-01T09:00:01.000000Z"

    def test_approval_and_expiry_shifted_three_hours(self):
        persister = TransactionPersister(store=None)
        fields = persister.extract_fields(
            remote(1, approved_at="2024-05-01T09:00:00Z", expired_at="2024-05-01T23:30:00"),
            cabinet_id=1,
        )

        assert fields["approved_at"] == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert fields["expired_at"] == datetime(2024, 5, 2, 2, 30, tzinfo=timezone.utc)

    def test_missing_timestamps_stay_empty(self):
        persister = TransactionPersister(store=None)
        fields = persister.extract_fields(remote(1, approved_at=None, expired_at=""), 1)

        assert fields["approved_at"] is None
        assert fields["expired_at"] is None

    def test_offset_is_configurable(self):
        persister = TransactionPersister(store=None, local_time_offset_hours=0)
        fields = persister.extract_fields(remote(1), 1)

        assert fields["approved_at"] == datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def test_unmodelled_fields_kept_as_json(self):
        persister = TransactionPersister(store=None)
        tx = RemoteTransaction.model_validate(
            make_record(1, method={"label": "СБП"}, fee=Decimal("0.30"))
        )

        extra = json.loads(persister.extract_fields(tx, 1)["extra_data"])

        assert extra == {"method": {"label": "СБП"}, "fee": "0.30"}

    def test_decimal_amounts_become_exact_strings(self):
        persister = TransactionPersister(store=None)
        tx = remote(1, amount=Decimal("1234567890.123456789"), total=[0.1, 2])

        fields = persister.extract_fields(tx, 1)

        assert fields["amount"] == "1234567890.123456789"
        assert fields["total"] == ["0.1", 2]


class TestHelpers:
    """Tests for module-level helpers."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-05-01T09:00:00Z", datetime(2024, 5, 1, 9, tzinfo=timezone.utc)),
            ("2024-05-01T09:00:00", datetime(2024, 5, 1, 9, tzinfo=timezone.utc)),
            ("2024-05-01T12:00:00+03:00", datetime(2024, 5, 1, 9, tzinfo=timezone.utc)),
        ],
    )
    def test_parse_timestamp(self, value, expected):
        assert parse_timestamp(value) == expected

    def test_decimal_safe_leaves_other_values(self):
        assert decimal_safe({"a": True, "b": None, "c": "x", "d": 3}) == {
            "a": True,
            "b": None,
            "c": "x",
            "d": 3,
        }


@pytest.mark.asyncio
class TestSave:
    """Tests for TransactionPersister.save against a real database."""

    async def test_inserts_new_transactions(self, store, session_factory):
        cabinet = await add_cabinet(session_factory, "alice")

        saved = await TransactionPersister(store).save([remote(1), remote(2)], cabinet.id)

        assert sorted(row.external_id for row in saved) == [1, 2]
        rows = await stored_rows(session_factory, cabinet.id)
        assert sorted(row.external_id for row in rows) == [1, 2]

    async def test_second_save_inserts_nothing(self, store, session_factory):
        cabinet = await add_cabinet(session_factory, "alice")
        persister = TransactionPersister(store)
        await persister.save([remote(1), remote(2)], cabinet.id)

        saved = await persister.save([remote(1), remote(2), remote(3)], cabinet.id)

        assert [row.external_id for row in saved] == [3]
        assert len(await stored_rows(session_factory, cabinet.id)) == 3

    async def test_same_external_id_in_another_cabinet_is_stored(self, store, session_factory):
        alice = await add_cabinet(session_factory, "alice")
        bob = await add_cabinet(session_factory, "bob")
        persister = TransactionPersister(store)
        await persister.save([remote(1)], alice.id)

        saved = await persister.save([remote(1)], bob.id)

        assert len(saved) == 1
        assert saved[0].cabinet_id == bob.id

    async def test_duplicates_within_batch_stored_once(self, store, session_factory):
        cabinet = await add_cabinet(session_factory, "alice")

        saved = await TransactionPersister(store).save(
            [remote(1), remote(1, wallet="other")], cabinet.id
        )

        assert len(saved) == 1
        assert saved[0].wallet == "wallet-1"

    async def test_empty_batch(self, store, session_factory):
        cabinet = await add_cabinet(session_factory, "alice")
        assert await TransactionPersister(store).save([], cabinet.id) == []

    async def test_failure_raised_after_all_inserts_settle(self):
        store = AsyncMock()
        store.find_cabinet_external_ids.return_value = set()
        created = []

        async def create_transaction(**fields):
            if fields["external_id"] == 2:
                raise RuntimeError("insert failed")
            created.append(fields["external_id"])
            return fields

        store.create_transaction.side_effect = create_transaction

        with pytest.raises(RuntimeError, match="insert failed"):
            await TransactionPersister(store).save(
                [remote(1), remote(2), remote(3)], cabinet_id=1
            )

        assert sorted(created) == [1, 3]
