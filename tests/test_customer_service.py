"""Tests for the customer workflows against a mocked repository."""

from unittest.mock import AsyncMock

import pytest

from app.shopping.modules.customers.models import Customer
from app.shopping.modules.customers.repository import (
    ConcurrencyConflictError,
    CustomerNotFoundError,
    CustomerRepository,
)
from app.shopping.modules.customers.service import (
    CustomerService,
    OutcomeKind,
    ValidationError,
    customer_from_payload,
    validate_customer_payload,
)
from app.shopping.modules.customers.sorting import SortState


def _test_customers() -> list[Customer]:
    return [
        Customer(id=1, first_name="Ramil", last_name="Naum", address="Los-Ang", discount="5", version=1),
        Customer(id=2, first_name="Bob", last_name="Dillan", address="Berlin", discount="7", version=1),
        Customer(id=3, first_name="Kile", last_name="Rise", address="London", discount="0", version=1),
        Customer(id=4, first_name="John", last_name="Konor", address="Vashington", discount="3", version=1),
    ]


def _customer(customer_id: int) -> Customer | None:
    return next((c for c in _test_customers() if c.id == customer_id), None)


@pytest.fixture()
def repo():
    return AsyncMock(spec=CustomerRepository)


@pytest.fixture()
def service(repo):
    return CustomerService(repo)


REQUIRED = (ValidationError("first_name", "First name is required."),)


class TestIndex:
    @pytest.mark.asyncio
    async def test_null_search_lists_all(self, service, repo):
        repo.get_all.return_value = _test_customers()
        outcome = await service.index(None)
        assert outcome.kind is OutcomeKind.FOUND
        assert outcome.listing.count == 4

    @pytest.mark.asyncio
    async def test_empty_search_with_sort_lists_all(self, service, repo):
        repo.get_all.return_value = _test_customers()
        outcome = await service.index("", SortState.ADDRESS_DESC)
        assert outcome.listing.count == 4
        assert outcome.listing.sort is SortState.ADDRESS_DESC

    @pytest.mark.asyncio
    async def test_search_exposes_filter_and_sort_links(self, service, repo):
        repo.get_all.return_value = _test_customers()
        outcome = await service.index("il", SortState.LAST_NAME_ASC)
        assert outcome.listing.count == 3
        assert outcome.listing.current_filter == "il"
        assert outcome.listing.sort_links["last_name"] is SortState.LAST_NAME_DESC
        assert outcome.listing.sort_links["address"] is SortState.ADDRESS_ASC
        repo.get_all.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_storage_failure_is_invalid(self, service, repo):
        repo.get_all.side_effect = RuntimeError("db down")
        outcome = await service.index("il")
        assert outcome.kind is OutcomeKind.INVALID
        assert outcome.listing is None


class TestShow:
    @pytest.mark.asyncio
    async def test_lookup_error_is_invalid(self, service, repo):
        repo.get_by_id.side_effect = Exception()
        outcome = await service.show(0)
        assert outcome.kind is OutcomeKind.INVALID

    @pytest.mark.asyncio
    async def test_absent_is_not_found(self, service, repo):
        repo.get_by_id.return_value = None
        outcome = await service.show(42)
        assert outcome.kind is OutcomeKind.NOT_FOUND
        assert outcome.customer_id == 42

    @pytest.mark.asyncio
    async def test_existing_id_is_found(self, service, repo):
        repo.get_by_id.return_value = _customer(1)
        outcome = await service.show(1)
        assert outcome.kind is OutcomeKind.FOUND
        c = outcome.customer
        assert (c.id, c.first_name, c.last_name, c.address, c.discount) == (1, "Ramil", "Naum", "Los-Ang", "5")
        repo.get_by_id.assert_awaited_once_with(1)


class TestCreate:
    @pytest.mark.asyncio
    async def test_new_returns_blank_draft(self, service, repo):
        outcome = await service.new()
        assert outcome.kind is OutcomeKind.FOUND
        assert outcome.customer.id is None
        repo.get_by_id.assert_not_awaited()
        repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_draft_is_added(self, service, repo):
        draft = Customer(id=1, first_name="Jack", last_name="Sparrow")
        outcome = await service.create(draft, [])
        assert outcome.kind is OutcomeKind.CREATED
        repo.add.assert_awaited_once_with(draft)

    @pytest.mark.asyncio
    async def test_validation_errors_reject_draft_unchanged(self, service, repo):
        draft = Customer()
        outcome = await service.create(draft, REQUIRED)
        assert outcome.kind is OutcomeKind.REJECTED
        assert outcome.customer is draft
        assert outcome.errors == REQUIRED
        repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_failure_is_invalid(self, service, repo):
        repo.add.side_effect = RuntimeError("insert failed")
        outcome = await service.create(Customer(first_name="Jack", last_name="Sparrow"))
        assert outcome.kind is OutcomeKind.INVALID


class TestEdit:
    @pytest.mark.asyncio
    async def test_edit_form_absent_is_not_found(self, service, repo):
        repo.get_by_id.return_value = None
        outcome = await service.edit_form(1)
        assert outcome.kind is OutcomeKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_edit_form_found(self, service, repo):
        repo.get_by_id.return_value = _customer(1)
        outcome = await service.edit_form(1)
        assert outcome.kind is OutcomeKind.FOUND
        assert outcome.customer.first_name == "Ramil"
        assert outcome.customer.discount == "5"

    @pytest.mark.asyncio
    async def test_id_mismatch_is_not_found_without_update(self, service, repo):
        outcome = await service.edit(1, Customer(id=0))
        assert outcome.kind is OutcomeKind.NOT_FOUND
        repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrency_conflict(self, service, repo):
        draft = Customer(id=1, first_name="Ramil", last_name="Naum", version=1)
        repo.update.side_effect = ConcurrencyConflictError(1)
        outcome = await service.edit(1, draft)
        assert outcome.kind is OutcomeKind.CONFLICT
        assert outcome.customer is draft

    @pytest.mark.asyncio
    async def test_other_update_failure_is_invalid(self, service, repo):
        repo.update.side_effect = RuntimeError("disk full")
        outcome = await service.edit(1, Customer(id=1, first_name="R", last_name="N"))
        assert outcome.kind is OutcomeKind.INVALID

    @pytest.mark.asyncio
    async def test_valid_edit_is_updated(self, service, repo):
        draft = Customer(id=1, first_name="Ramil", last_name="Naum", version=1)
        outcome = await service.edit(1, draft)
        assert outcome.kind is OutcomeKind.UPDATED
        repo.update.assert_awaited_once_with(draft)

    @pytest.mark.asyncio
    async def test_validation_errors_reject_draft_unchanged(self, service, repo):
        draft = Customer(id=1)
        outcome = await service.edit(1, draft, REQUIRED)
        assert outcome.kind is OutcomeKind.REJECTED
        assert outcome.customer is draft
        repo.update.assert_not_awaited()


class TestDelete:
    @pytest.mark.asyncio
    async def test_confirm_absent_is_not_found(self, service, repo):
        repo.get_by_id.return_value = None
        outcome = await service.delete_confirm(1)
        assert outcome.kind is OutcomeKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_confirm_found(self, service, repo):
        repo.get_by_id.return_value = _customer(1)
        outcome = await service.delete_confirm(1)
        assert outcome.kind is OutcomeKind.FOUND
        assert outcome.customer.last_name == "Naum"

    @pytest.mark.asyncio
    async def test_execute_removes(self, service, repo):
        outcome = await service.delete_execute(1)
        assert outcome.kind is OutcomeKind.DELETED
        repo.remove.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_execute_failure_is_soft(self, service, repo):
        repo.remove.side_effect = Exception()
        outcome = await service.delete_execute(1)
        assert outcome.kind is OutcomeKind.REJECTED
        assert outcome.customer_id == 1

    @pytest.mark.asyncio
    async def test_execute_already_gone_is_soft(self, service, repo):
        repo.remove.side_effect = CustomerNotFoundError(1)
        outcome = await service.delete_execute(1)
        assert outcome.kind is OutcomeKind.REJECTED


class TestValidateCustomerPayload:
    def test_valid(self):
        assert validate_customer_payload({"first_name": "Jack", "last_name": "Sparrow"}) == []

    def test_names_required(self):
        errs = validate_customer_payload({"first_name": "  ", "address": "Berlin"})
        assert [e.field for e in errs] == ["first_name", "last_name"]

    def test_discount_is_not_parsed(self):
        assert validate_customer_payload({"first_name": "A", "last_name": "B", "discount": "ten"}) == []

    def test_length_limit(self):
        errs = validate_customer_payload({"first_name": "A", "last_name": "B", "address": "x" * 256})
        assert [e.field for e in errs] == ["address"]

    def test_numeric_id_and_version(self):
        errs = validate_customer_payload({"first_name": "A", "last_name": "B", "id": "abc", "version": "2"})
        assert [e.field for e in errs] == ["id"]

    def test_edit_requires_version(self):
        errs = validate_customer_payload({"first_name": "A", "last_name": "B", "id": "1"})
        assert [(e.field, e.message) for e in errs] == [("version", "version is required.")]
        assert validate_customer_payload({"first_name": "A", "last_name": "B", "id": "1", "version": "3"}) == []


class TestCustomerFromPayload:
    def test_builds_trimmed_draft(self):
        c = customer_from_payload(
            {"id": "3", "version": "2", "first_name": " Kile ", "last_name": "Rise", "address": "", "discount": " 0 "}
        )
        assert c.id == 3
        assert c.version == 2
        assert c.first_name == "Kile"
        assert c.address is None
        assert c.discount == "0"

    def test_bad_numbers_become_none(self):
        c = customer_from_payload({"id": "x", "version": None})
        assert c.id is None
        assert c.version is None
        assert c.first_name == ""
