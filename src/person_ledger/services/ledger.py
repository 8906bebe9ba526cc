"""Ledger application service: validation, normalization and ownership."""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime

from person_ledger.domain.ledger import Detail, LedgerEntry, Person
from person_ledger.errors import ValidationError
from person_ledger.services.ledger_repository import DEFAULT_PAGE_SIZE, LedgerRepository

MAX_PAGE_SIZE = 100

logger = logging.getLogger(__name__)


@dataclass
class LedgerService:
    """Application service for person ledgers."""

    repository: LedgerRepository

    def create_person(  # noqa: PLR0913
        self,
        owner_id: str,
        *,
        name: str,
        selected_date: str,
        quantity_entries: Sequence[object],
        item: str | None = "",
        unit: str | None = "",
    ) -> str:
        """Create a person with its first daily entry and return its id."""
        entry = parse_entry(name, selected_date, quantity_entries, item, unit)
        person_id = self.repository.create_person(
            owner_id=owner_id,
            name=entry.name,
            item=entry.item,
            unit=entry.unit,
            entries=entry.quantity_entries,
            selected_date=entry.selected_date,
            date_label=entry.date_label,
        )
        logger.info(
            "Created person",
            extra={"person_id": person_id, "total_quantity": entry.total},
        )
        return person_id

    def add_entry(  # noqa: PLR0913
        self,
        owner_id: str,
        person_id: str,
        *,
        name: str,
        selected_date: str,
        quantity_entries: Sequence[object],
        item: str | None = "",
        unit: str | None = "",
    ) -> float:
        """Append entries for a date and return the person's new total."""
        entry = parse_entry(name, selected_date, quantity_entries, item, unit)
        return self.repository.append_entry(
            person_id=person_id,
            owner_id=owner_id,
            entries=entry.quantity_entries,
            selected_date=entry.selected_date,
            date_label=entry.date_label,
            item=entry.item,
            unit=entry.unit,
        )

    def list_persons(self, owner_id: str) -> list[Person]:
        """Return all persons owned by the user."""
        return self.repository.list_persons(owner_id)

    def search_persons(self, owner_id: str, name: str | None) -> list[Person]:
        """Return owned persons whose name starts with ``name``."""
        if not name:
            raise ValidationError("Missing name query parameter")
        return self.repository.search_persons_by_name_prefix(owner_id, name)

    def list_details(
        self,
        owner_id: str,
        person_id: str,
        last_visible: str | None = None,
        page_size: int | None = None,
    ) -> list[Detail]:
        """Return a page of a person's details, newest date first."""
        size = DEFAULT_PAGE_SIZE if page_size is None else page_size
        if not 1 <= size <= MAX_PAGE_SIZE:
            raise ValidationError(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")
        return self.repository.list_details(
            person_id, owner_id, page_size=size, cursor=last_visible or None
        )

    def delete_person(self, owner_id: str, person_id: str) -> None:
        """Delete a person and all of its details."""
        self.repository.delete_person(person_id, owner_id)


def parse_entry(
    name: str | None,
    selected_date: str | None,
    quantity_entries: Sequence[object] | None,
    item: str | None = "",
    unit: str | None = "",
) -> LedgerEntry:
    """Validate a raw entry submission."""
    cleaned_name = (name or "").strip()
    if not cleaned_name:
        raise ValidationError("Missing or invalid fields: name")
    if not isinstance(selected_date, str) or not selected_date.strip():
        raise ValidationError("Missing or invalid fields: selected_date")
    if isinstance(quantity_entries, str | bytes) or not isinstance(
        quantity_entries, Sequence
    ):
        raise ValidationError("Missing or invalid fields: quantity_entries")
    if not quantity_entries:
        raise ValidationError("Missing or invalid fields: quantity_entries")
    values: list[float] = []
    for value in quantity_entries:
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ValidationError("quantity_entries must contain only numbers")
        try:
            finite = math.isfinite(value)
        except OverflowError:
            finite = False
        if not finite:
            raise ValidationError("quantity_entries must contain finite numbers")
        values.append(value)
    return LedgerEntry(
        name=cleaned_name,
        selected_date=normalize_date(selected_date),
        date_label=selected_date.strip(),
        quantity_entries=values,
        item=(item or "").strip(),
        unit=(unit or "").strip(),
    )


def normalize_date(value: str) -> date:
    """Parse an ISO date or datetime and truncate it to a UTC calendar date.

    Aware datetimes are converted to UTC first; naive ones are taken as UTC.
    """
    raw = value.strip()
    if not raw:
        raise ValidationError("selected_date is required")
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid selected_date: {value!r}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC)
    return parsed.date()
