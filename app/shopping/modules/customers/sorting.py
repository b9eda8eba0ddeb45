"""
Column sort states for the customer list.

Every sortable field has exactly two states (ascending, descending). The list
page renders one header link per field; clicking the link of the active
ascending field asks for its descending counterpart, every other link asks for
the ascending state of its field. Nothing is remembered between requests: the
current state travels in the query string.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.shopping.modules.customers.models import Customer


class SortState(str, Enum):
    FIRST_NAME_ASC = "FirstNameAsc"
    FIRST_NAME_DESC = "FirstNameDesc"
    LAST_NAME_ASC = "LastNameAsc"
    LAST_NAME_DESC = "LastNameDesc"
    ADDRESS_ASC = "AddressAsc"
    ADDRESS_DESC = "AddressDesc"
    DISCOUNT_ASC = "DiscountAsc"
    DISCOUNT_DESC = "DiscountDesc"


DEFAULT_SORT = SortState.LAST_NAME_ASC

# field -> (ascending, descending)
SORT_FIELDS: dict[str, tuple[SortState, SortState]] = {
    "first_name": (SortState.FIRST_NAME_ASC, SortState.FIRST_NAME_DESC),
    "last_name": (SortState.LAST_NAME_ASC, SortState.LAST_NAME_DESC),
    "address": (SortState.ADDRESS_ASC, SortState.ADDRESS_DESC),
    "discount": (SortState.DISCOUNT_ASC, SortState.DISCOUNT_DESC),
}

_FIELD_OF: dict[SortState, str] = {
    state: field for field, pair in SORT_FIELDS.items() for state in pair
}

_DESCENDING = frozenset(desc for _asc, desc in SORT_FIELDS.values())

_TOGGLE: dict[SortState, SortState] = {
    SortState.FIRST_NAME_ASC: SortState.FIRST_NAME_DESC,
    SortState.FIRST_NAME_DESC: SortState.FIRST_NAME_ASC,
    SortState.LAST_NAME_ASC: SortState.LAST_NAME_DESC,
    SortState.LAST_NAME_DESC: SortState.LAST_NAME_ASC,
    SortState.ADDRESS_ASC: SortState.ADDRESS_DESC,
    SortState.ADDRESS_DESC: SortState.ADDRESS_ASC,
    SortState.DISCOUNT_ASC: SortState.DISCOUNT_DESC,
    SortState.DISCOUNT_DESC: SortState.DISCOUNT_ASC,
}

# Bare field names ("LastName") mean the ascending state.
_ALIASES: dict[str, SortState] = {
    "firstname": SortState.FIRST_NAME_ASC,
    "lastname": SortState.LAST_NAME_ASC,
    "address": SortState.ADDRESS_ASC,
    "discount": SortState.DISCOUNT_ASC,
}


def _field_alias(token: SortState | str | None) -> SortState | None:
    if isinstance(token, SortState):
        return None
    return _ALIASES.get((token or "").strip().replace("_", "").lower())


def parse_sort(token: SortState | str | None) -> SortState:
    """
    Map a query-string token to a SortState.

    Accepts member values ("LastNameDesc"), member names ("LAST_NAME_DESC")
    and bare field names ("LastName", "last_name"). Anything else, including
    None and "", yields DEFAULT_SORT.
    """
    if isinstance(token, SortState):
        return token
    raw = (token or "").strip()
    if not raw:
        return DEFAULT_SORT
    try:
        return SortState(raw)
    except ValueError:
        pass
    if raw.upper() in SortState.__members__:
        return SortState[raw.upper()]
    return _field_alias(raw) or DEFAULT_SORT


def toggle(state: SortState) -> SortState:
    """Opposite direction of the same field. toggle(toggle(s)) == s."""
    return _TOGGLE[state]


def sort_field(state: SortState) -> str:
    return _FIELD_OF[state]


def is_descending(state: SortState) -> bool:
    return state in _DESCENDING


def next_states(current: SortState) -> dict[str, SortState]:
    """Token each field's header link should carry while `current` is active."""
    links: dict[str, SortState] = {}
    for field, (asc, _desc) in SORT_FIELDS.items():
        links[field] = toggle(asc) if current == asc else asc
    return links


def _text_key(field: str) -> Callable[["Customer"], str]:
    def key(customer: "Customer") -> str:
        return getattr(customer, field) or ""

    return key


@dataclass(frozen=True)
class SortResolution:
    state: SortState
    field: str
    descending: bool
    key: Callable[["Customer"], str]
    next_states: dict[str, SortState]

    def order(self, customers: Iterable["Customer"]) -> list["Customer"]:
        # sorted() is stable, also with reverse=True.
        return sorted(customers, key=self.key, reverse=self.descending)


def resolve_sort(
    requested: SortState | str | None,
    current: SortState | str | None = None,
) -> SortResolution:
    """
    Resolve the effective sort state and its ordering.

    `requested` wins; without it `current` is kept; without both the default
    ordering (last name ascending) applies. A bare field name ("Address")
    requested while that field is already active flips its direction.
    Fields compare as plain text, discount included.
    """
    if not (requested or ""):
        state = parse_sort(current)
    else:
        state = parse_sort(requested)
        alias = _field_alias(requested)
        if alias is not None and (current or ""):
            active = parse_sort(current)
            if sort_field(active) == sort_field(alias):
                state = toggle(active)
    field = sort_field(state)
    return SortResolution(
        state=state,
        field=field,
        descending=is_descending(state),
        key=_text_key(field),
        next_states=next_states(state),
    )
