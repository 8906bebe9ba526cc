"""Domain models for the person ledger."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Person:
    """Tracked subject with a running total, scoped to one owner."""

    id: str
    owner_id: str
    name: str
    item: str
    unit: str
    total_quantity: float
    version: int
    created_at: str
    modified_at: str


@dataclass(frozen=True)
class Detail:
    """One calendar day's quantity entries for a person."""

    id: str
    person_id: str
    selected_date: date
    quantity_entries: list[float]
    item: str
    unit: str
    total_quantity: float
    version: int
    created_date: str
    modified_date: str


@dataclass(frozen=True)
class LedgerEntry:
    """Validated entry submission with a normalized date key."""

    name: str
    selected_date: date
    date_label: str
    quantity_entries: list[float]
    item: str = ""
    unit: str = ""

    @property
    def total(self) -> float:
        return sum(self.quantity_entries)
