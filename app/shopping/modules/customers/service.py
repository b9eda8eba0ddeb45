"""
Customer workflows: list, show, create, edit, delete.

Each operation makes at most one repository call per step and classifies the
result into an `Outcome`. Nothing is retried and nothing is raised to the
caller; the view layer maps outcome kinds to responses.

Failure tiers:
- lookup errors (repository raised) -> INVALID
- missing record / route-body id mismatch -> NOT_FOUND
- stale version on update -> CONFLICT
- failed delete -> REJECTED (the confirmation page is shown again)
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from app.shopping.modules.customers.models import Customer
from app.shopping.modules.customers.query import CustomerListing, build_listing
from app.shopping.modules.customers.repository import ConcurrencyConflictError, CustomerRepository
from app.shopping.modules.customers.sorting import SortState

logger = logging.getLogger(__name__)

MAX_FIELD_LENGTH = 255
TEXT_FIELDS = ("first_name", "last_name", "address", "discount")
REQUIRED_FIELDS = {"first_name": "First name", "last_name": "Last name"}


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


def _parse_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def validate_customer_payload(payload: dict[str, Any]) -> list[ValidationError]:
    errs: list[ValidationError] = []
    for field, label in REQUIRED_FIELDS.items():
        if not (payload.get(field) or "").strip():
            errs.append(ValidationError(field, f"{label} is required."))
    for field in TEXT_FIELDS:
        if len((payload.get(field) or "").strip()) > MAX_FIELD_LENGTH:
            errs.append(ValidationError(field, f"Must be at most {MAX_FIELD_LENGTH} characters."))
    for field in ("id", "version"):
        raw = payload.get(field)
        if raw not in (None, "") and _parse_int(raw) is None:
            errs.append(ValidationError(field, f"{field} must be a number."))
    # An edit must say which version it was made against.
    if "id" in payload and payload.get("version") in (None, ""):
        errs.append(ValidationError("version", "version is required."))
    return errs


def customer_from_payload(payload: dict[str, Any]) -> Customer:
    """Transient Customer built from form input; never attached to a session."""
    return Customer(
        id=_parse_int(payload.get("id")),
        first_name=(payload.get("first_name") or "").strip(),
        last_name=(payload.get("last_name") or "").strip(),
        address=(payload.get("address") or "").strip() or None,
        discount=(payload.get("discount") or "").strip() or None,
        version=_parse_int(payload.get("version")),
    )


class OutcomeKind(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    REJECTED = "rejected"
    CONFLICT = "conflict"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    customer: Customer | None = None
    customer_id: int | None = None
    errors: tuple[ValidationError, ...] = ()
    listing: CustomerListing | None = None


class CustomerService:
    def __init__(self, repo: CustomerRepository) -> None:
        self.repo = repo

    async def index(self, search: str | None = None, sort: SortState | str | None = None) -> Outcome:
        try:
            customers = await self.repo.get_all()
        except Exception:
            logger.exception("Customer list lookup failed")
            return Outcome(OutcomeKind.INVALID)
        return Outcome(OutcomeKind.FOUND, listing=build_listing(customers, search, sort))

    async def show(self, customer_id: int) -> Outcome:
        try:
            c = await self.repo.get_by_id(customer_id)
        except Exception:
            logger.exception("Customer lookup failed (customer_id=%s)", customer_id)
            return Outcome(OutcomeKind.INVALID, customer_id=customer_id)
        if c is None:
            return Outcome(OutcomeKind.NOT_FOUND, customer_id=customer_id)
        return Outcome(OutcomeKind.FOUND, customer=c, customer_id=c.id)

    # Edit and delete pages open with the same lookup as the detail page.
    edit_form = show
    delete_confirm = show

    async def new(self) -> Outcome:
        return Outcome(OutcomeKind.FOUND, customer=Customer(first_name="", last_name=""))

    async def create(self, draft: Customer, errors: Sequence[ValidationError] = ()) -> Outcome:
        if errors:
            return Outcome(OutcomeKind.REJECTED, customer=draft, errors=tuple(errors))
        try:
            await self.repo.add(draft)
        except Exception:
            logger.exception("Customer create failed")
            return Outcome(OutcomeKind.INVALID, customer=draft)
        return Outcome(OutcomeKind.CREATED, customer=draft, customer_id=draft.id)

    async def edit(self, customer_id: int, draft: Customer, errors: Sequence[ValidationError] = ()) -> Outcome:
        if draft.id != customer_id:
            return Outcome(OutcomeKind.NOT_FOUND, customer_id=customer_id)
        if errors:
            return Outcome(OutcomeKind.REJECTED, customer=draft, customer_id=customer_id, errors=tuple(errors))
        try:
            await self.repo.update(draft)
        except ConcurrencyConflictError as e:
            logger.warning("Customer update conflict (customer_id=%s): %s", customer_id, e)
            return Outcome(OutcomeKind.CONFLICT, customer=draft, customer_id=customer_id)
        except Exception:
            logger.exception("Customer update failed (customer_id=%s)", customer_id)
            return Outcome(OutcomeKind.INVALID, customer=draft, customer_id=customer_id)
        return Outcome(OutcomeKind.UPDATED, customer=draft, customer_id=customer_id)

    async def delete_execute(self, customer_id: int) -> Outcome:
        try:
            await self.repo.remove(customer_id)
        except Exception as e:
            logger.warning("Customer delete failed (customer_id=%s): %s", customer_id, e)
            return Outcome(OutcomeKind.REJECTED, customer_id=customer_id)
        return Outcome(OutcomeKind.DELETED, customer_id=customer_id)
