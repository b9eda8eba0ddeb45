from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from app.shopping.modules.customers.models import Customer
from app.shopping.modules.customers.sorting import SortState, resolve_sort


def normalize_search(search: str | None) -> str:
    return (search or "").strip()


def matches_search(customer: Customer, search: str | None) -> bool:
    """Case-insensitive substring match on last name or first name."""
    term = normalize_search(search).casefold()
    if not term:
        return True
    return term in (customer.last_name or "").casefold() or term in (customer.first_name or "").casefold()


def filter_customers(customers: Iterable[Customer], search: str | None) -> list[Customer]:
    return [c for c in customers if matches_search(c, search)]


def list_customers(
    customers: Iterable[Customer],
    search: str | None = None,
    sort: SortState | str | None = None,
) -> list[Customer]:
    """
    Filter then order. Always returns a new list; the input is never mutated.
    """
    return resolve_sort(sort).order(filter_customers(customers, search))


@dataclass(frozen=True)
class CustomerListing:
    """View model for the customer list page."""

    customers: list[Customer]
    current_filter: str
    sort: SortState
    sort_links: dict[str, SortState] = field(default_factory=dict)
    total: int = 0

    @property
    def count(self) -> int:
        return len(self.customers)


def build_listing(
    customers: Sequence[Customer],
    search: str | None = None,
    sort: SortState | str | None = None,
) -> CustomerListing:
    resolution = resolve_sort(sort)
    term = normalize_search(search)
    ordered = resolution.order(filter_customers(customers, term))
    return CustomerListing(
        customers=ordered,
        current_filter=term,
        sort=resolution.state,
        sort_links=resolution.next_states,
        total=len(customers),
    )
