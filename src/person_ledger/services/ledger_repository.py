"""Ledger persistence on top of a document store.

The repository owns the aggregate invariant: a person's ``total_quantity``
equals the sum of its details' ``total_quantity``. Scalar updates go through
a compare-and-swap on the document ``version`` so concurrent appends retry
instead of overwriting each other.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol

from person_ledger.domain.ledger import Detail, Person
from person_ledger.domain.store import Document, FieldFilter, OrderBy
from person_ledger.errors import (
    DuplicateDocumentError,
    NotFoundError,
    StoreError,
    ValidationError,
)

PERSONS = "persons"
DETAILS = "person_details"
DEFAULT_PAGE_SIZE = 10
MAX_CAS_ATTEMPTS = 5
# Largest code point; sorts after every name character under byte-order collation.
NAME_PREFIX_SENTINEL = "\U0010ffff"

logger = logging.getLogger(__name__)


class WriteBatch(Protocol):
    """All-or-nothing group of deletes."""

    def delete(self, collection: str, doc_id: str) -> None:
        """Queue a document for deletion."""

    def commit(self) -> None:
        """Apply every queued delete atomically."""


class DocumentStore(Protocol):
    """Document storage capability consumed by the ledger."""

    def get(self, collection: str, doc_id: str) -> Document | None:
        """Return a document by id, if present."""

    def add(self, collection: str, fields: dict[str, object]) -> str:
        """Insert a document and return its id."""

    def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, object],
        expected: dict[str, object] | None = None,
    ) -> bool:
        """Update a document when it matches ``expected``; return whether it did."""

    def query(  # noqa: PLR0913
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        order_by: OrderBy | None = None,
        limit: int | None = None,
        start_after: Document | None = None,
    ) -> list[Document]:
        """Return documents matching every filter."""

    def batch(self) -> WriteBatch:
        """Start a new delete batch."""


@dataclass
class LedgerRepository:
    """Translates ledger operations into document store operations."""

    store: DocumentStore

    def create_person(  # noqa: PLR0913
        self,
        owner_id: str,
        name: str,
        item: str,
        unit: str,
        entries: Sequence[float],
        selected_date: date,
        date_label: str,
    ) -> str:
        """Create a person together with its first daily detail."""
        if not entries:
            raise ValidationError("quantity_entries must not be empty")
        if not name:
            raise ValidationError("name is required")
        if selected_date is None:
            raise ValidationError("selected_date is required")
        total = sum(entries)
        now = _now()
        person_id = self.store.add(
            PERSONS,
            {
                "owner_id": owner_id,
                "name": name,
                "item": item,
                "unit": unit,
                "total_quantity": total,
                "version": 0,
                "created_at": now,
                "modified_at": now,
            },
        )
        try:
            self.store.add(
                DETAILS,
                _new_detail_fields(
                    person_id, entries, selected_date, date_label, item, unit
                ),
            )
        except StoreError:
            logger.warning(
                "Person created without its first detail",
                extra={"person_id": person_id},
            )
            raise
        return person_id

    def append_entry(  # noqa: PLR0913
        self,
        person_id: str,
        owner_id: str,
        entries: Sequence[float],
        selected_date: date,
        date_label: str,
        item: str = "",
        unit: str = "",
    ) -> float:
        """Add entries to a person's total and merge them into the date's detail."""
        if not entries:
            raise ValidationError("quantity_entries must not be empty")
        person = self.get_person(person_id, owner_id)
        delta = sum(entries)
        new_total = self._increment_total(person, delta)
        try:
            self._merge_detail(
                person.id, entries, selected_date, date_label, item, unit
            )
        except StoreError:
            logger.warning(
                "Reverting person total after failed detail write",
                extra={"person_id": person.id, "delta": delta},
            )
            self._increment_total(self.get_person(person.id, owner_id), -delta)
            raise
        return new_total

    def get_person(self, person_id: str, owner_id: str) -> Person:
        """Return a person owned by ``owner_id`` or raise NotFoundError."""
        doc = self.store.get(PERSONS, person_id)
        if doc is None or doc.get("owner_id") != owner_id:
            raise NotFoundError("Person not found or unauthorized")
        return _parse_person(doc)

    def list_persons(self, owner_id: str) -> list[Person]:
        """Return every person owned by ``owner_id``."""
        docs = self.store.query(
            PERSONS,
            [FieldFilter("owner_id", "==", owner_id)],
            order_by=OrderBy("name"),
        )
        return [_parse_person(doc) for doc in docs]

    def search_persons_by_name_prefix(self, owner_id: str, prefix: str) -> list[Person]:
        """Return owned persons whose name starts with ``prefix``."""
        docs = self.store.query(
            PERSONS,
            [
                FieldFilter("owner_id", "==", owner_id),
                FieldFilter("name", ">=", prefix),
                FieldFilter("name", "<", prefix + NAME_PREFIX_SENTINEL),
            ],
            order_by=OrderBy("name"),
        )
        return [_parse_person(doc) for doc in docs]

    def list_details(
        self,
        person_id: str,
        owner_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        cursor: str | None = None,
    ) -> list[Detail]:
        """Return one page of details, newest date first.

        ``cursor`` is the id of the last detail of the previous page. A cursor
        that does not resolve to one of this person's details is ignored.
        """
        person = self.get_person(person_id, owner_id)
        start_after = None
        if cursor:
            cursor_doc = self.store.get(DETAILS, cursor)
            if cursor_doc is not None and cursor_doc.get("person_id") == person.id:
                start_after = cursor_doc
            else:
                logger.warning(
                    "Ignoring unknown details cursor",
                    extra={"person_id": person.id, "cursor": cursor},
                )
        docs = self.store.query(
            DETAILS,
            [FieldFilter("person_id", "==", person.id)],
            order_by=OrderBy("selected_date", descending=True),
            limit=page_size,
            start_after=start_after,
        )
        return [_parse_detail(doc) for doc in docs]

    def delete_person(self, person_id: str, owner_id: str) -> None:
        """Delete a person and all of its details in one batch."""
        person = self.get_person(person_id, owner_id)
        details = self.store.query(
            DETAILS, [FieldFilter("person_id", "==", person.id)]
        )
        batch = self.store.batch()
        for doc in details:
            batch.delete(DETAILS, doc.id)
        batch.delete(PERSONS, person.id)
        batch.commit()
        logger.info(
            "Deleted person",
            extra={"person_id": person.id, "detail_count": len(details)},
        )

    def _increment_total(self, person: Person, delta: float) -> float:
        current = person
        for _ in range(MAX_CAS_ATTEMPTS):
            new_total = current.total_quantity + delta
            updated = self.store.update(
                PERSONS,
                current.id,
                {
                    "total_quantity": new_total,
                    "version": current.version + 1,
                    "modified_at": _now(),
                },
                expected={"version": current.version},
            )
            if updated:
                return new_total
            logger.info(
                "Retrying total update after concurrent write",
                extra={"person_id": current.id},
            )
            current = self.get_person(current.id, current.owner_id)
        raise StoreError("Too many concurrent updates to person total")

    def _merge_detail(  # noqa: PLR0913
        self,
        person_id: str,
        entries: Sequence[float],
        selected_date: date,
        date_label: str,
        item: str,
        unit: str,
    ) -> None:
        for _ in range(MAX_CAS_ATTEMPTS):
            existing = self._find_detail(person_id, selected_date)
            if existing is None:
                try:
                    self.store.add(
                        DETAILS,
                        _new_detail_fields(
                            person_id, entries, selected_date, date_label, item, unit
                        ),
                    )
                except DuplicateDocumentError:
                    # Another request created this date first; merge into it.
                    continue
                return
            merged = [*existing.quantity_entries, *entries]
            fields: dict[str, object] = {
                "quantity_entries": merged,
                "total_quantity": sum(merged),
                "modified_date": date_label,
                "version": existing.version + 1,
            }
            if item:
                fields["item"] = item
            if unit:
                fields["unit"] = unit
            if self.store.update(
                DETAILS, existing.id, fields, expected={"version": existing.version}
            ):
                return
        raise StoreError("Too many concurrent updates to daily entry")

    def _find_detail(self, person_id: str, selected_date: date) -> Detail | None:
        docs = self.store.query(
            DETAILS,
            [
                FieldFilter("person_id", "==", person_id),
                FieldFilter("selected_date", "==", selected_date.isoformat()),
            ],
            limit=1,
        )
        if not docs:
            return None
        return _parse_detail(docs[0])


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()


def _new_detail_fields(  # noqa: PLR0913
    person_id: str,
    entries: Sequence[float],
    selected_date: date,
    date_label: str,
    item: str,
    unit: str,
) -> dict[str, object]:
    return {
        "person_id": person_id,
        "selected_date": selected_date.isoformat(),
        "quantity_entries": list(entries),
        "item": item,
        "unit": unit,
        "total_quantity": sum(entries),
        "version": 0,
        "created_date": date_label,
        "modified_date": date_label,
    }


def _parse_person(doc: Document) -> Person:
    return Person(
        id=doc.id,
        owner_id=str(doc.get("owner_id", "")),
        name=str(doc.get("name", "")),
        item=str(doc.get("item") or ""),
        unit=str(doc.get("unit") or ""),
        total_quantity=float(doc.get("total_quantity") or 0.0),
        version=int(doc.get("version") or 0),
        created_at=str(doc.get("created_at") or ""),
        modified_at=str(doc.get("modified_at") or ""),
    )


def _parse_detail(doc: Document) -> Detail:
    entries = doc.get("quantity_entries") or []
    return Detail(
        id=doc.id,
        person_id=str(doc.get("person_id", "")),
        selected_date=date.fromisoformat(str(doc.get("selected_date"))[:10]),
        quantity_entries=[float(value) for value in entries],
        item=str(doc.get("item") or ""),
        unit=str(doc.get("unit") or ""),
        total_quantity=float(doc.get("total_quantity") or 0.0),
        version=int(doc.get("version") or 0),
        created_date=str(doc.get("created_date") or ""),
        modified_date=str(doc.get("modified_date") or ""),
    )
