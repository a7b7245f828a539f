"""
Integration tests for the DuckDB storage backend.

Runs against an in-memory store loaded with the sample dataset (25 records
per type) anchored at the fixed test instant.
"""

import pytest

from marinaops.models.enums import ContractStatus, InvoiceStatus, PaymentStatus, WorkOrderStatus
from marinaops.storage import StorageError
from tests.conftest import NOW


def test_dataset_counts(sample_dataset):
    counts = sample_dataset.counts()
    assert counts["marina_groups"] == 1
    assert counts["marinas"] == 3
    assert counts["users"] == 5
    for table in ("owners", "boats", "berths", "contracts", "invoices", "payments", "bookings", "work_orders"):
        assert counts[table] == 25


def test_count_records(sample_storage):
    assert sample_storage.count_records("owners") == 25
    assert sample_storage.count_records("owners", marina_id="marina-1") == 9
    assert sample_storage.count_records("marinas") == 3


def test_count_unknown_table_raises(sample_storage):
    with pytest.raises(StorageError):
        sample_storage.count_records("widgets")


def test_health_check(sample_storage):
    assert sample_storage.health_check() is True


class TestMarinaReads:
    def test_list_all_marinas(self, sample_storage):
        marinas = sample_storage.list_marinas(now=NOW)
        assert [m.id for m in marinas] == ["marina-1", "marina-2", "marina-3"]

    def test_list_scoped_to_one_marina(self, sample_storage):
        marinas = sample_storage.list_marinas(marina_id="marina-2", now=NOW)
        assert [m.id for m in marinas] == ["marina-2"]

    def test_missing_marina_is_none(self, sample_storage):
        assert sample_storage.read_marina("marina-404", now=NOW) is None

    def test_relations_are_scoped(self, sample_storage):
        marina = sample_storage.read_marina("marina-1", now=NOW)

        assert len(marina.berths) == 9
        assert len(marina.owners) == 9
        assert {c.status for c in marina.contracts} <= {ContractStatus.ACTIVE, ContractStatus.PENDING}
        assert {i.status for i in marina.invoices} <= {InvoiceStatus.PENDING, InvoiceStatus.OVERDUE}
        assert {p.status for p in marina.payments} <= {PaymentStatus.COMPLETED}
        assert {w.status for w in marina.work_orders} <= {
            WorkOrderStatus.PENDING,
            WorkOrderStatus.IN_PROGRESS,
        }

    def test_users_load_roles(self, sample_storage):
        marina = sample_storage.read_marina("marina-1", now=NOW)
        emails = {u.email for u in marina.users}
        assert "admin@marina.example" in emails
        assert all(u.roles for u in marina.users)


class TestMarinaGroupReads:
    def test_group_overviews(self, sample_storage):
        groups = sample_storage.list_marina_groups(now=NOW)
        assert len(groups) == 1

        group = groups[0]
        assert len(group.marinas) == 3
        assert sum(m.counts.berths for m in group.marinas) == 25
        assert sum(m.counts.owners for m in group.marinas) == 25
        assert sum(m.counts.users for m in group.marinas) == 5

    def test_work_order_split_matches_open_count(self, sample_storage):
        group = sample_storage.read_marina_group("group-1", now=NOW)
        for marina in group.marinas:
            assert marina.counts.work_orders == (
                marina.counts.pending_work_orders + marina.counts.in_progress_work_orders
            )

    def test_monthly_revenue_is_positive(self, sample_storage):
        group = sample_storage.read_marina_group("group-1", now=NOW)
        assert all(m.monthly_revenue > 0 for m in group.marinas)

    def test_missing_group_is_none(self, sample_storage):
        assert sample_storage.read_marina_group("group-404", now=NOW) is None


class TestRecordReads:
    def test_owner_relations(self, sample_storage):
        owner = sample_storage.read_owner("owner-1", now=NOW)

        assert owner.first_name == "John"
        assert [b.id for b in owner.boats] == ["boat-1"]
        assert [p.id for p in owner.payments] == ["payment-1"]
        # invoice-1 is paid, so it is outside the outstanding scope
        assert owner.invoices == []

    def test_contract_invoices_are_not_scoped(self, sample_storage):
        contract = sample_storage.read_contract("contract-1")
        assert [i.id for i in contract.invoices] == ["invoice-1"]
        assert contract.invoices[0].status == InvoiceStatus.PAID

    def test_references_are_nested(self, sample_storage):
        contract = sample_storage.read_contract("contract-1")
        assert contract.owner.id == "owner-1"
        assert contract.boat.id == "boat-1"
        assert contract.berth.id == "berth-1"

    def test_flat_lists_filter_by_marina(self, sample_storage):
        bookings = sample_storage.list_bookings(marina_id="marina-3")
        assert bookings
        assert all(b.marina_id == "marina-3" for b in bookings)

    def test_missing_record_is_none(self, sample_storage):
        assert sample_storage.read_invoice("invoice-404") is None
        assert sample_storage.read_work_order("work-order-404") is None


class TestUsersAndSettings:
    def test_user_lookup_is_case_insensitive(self, sample_storage):
        user = sample_storage.get_user_by_email("ADMIN@marina.example")
        assert user is not None
        assert user.id == "user-1"
        assert user.password_hash

    def test_password_hash_is_not_serialized(self, sample_storage):
        user = sample_storage.read_user("user-1")
        assert "passwordHash" not in user.model_dump(by_alias=True)

    def test_setting_round_trip(self, sample_storage):
        sample_storage.write_setting("storage_test_key", '{"a": 1}')
        assert sample_storage.read_setting("storage_test_key") == '{"a": 1}'

    def test_missing_setting_is_none(self, sample_storage):
        assert sample_storage.read_setting("never_written") is None
