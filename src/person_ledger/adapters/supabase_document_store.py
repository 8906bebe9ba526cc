"""Supabase implementation of the document store."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from supabase import Client, PostgrestAPIError

from person_ledger.domain.store import Document, FieldFilter, FilterOp, OrderBy
from person_ledger.errors import DuplicateDocumentError, StoreError
from person_ledger.services.ledger_repository import DocumentStore, WriteBatch

UNIQUE_VIOLATION = "23505"
INVALID_TEXT_REPRESENTATION = "22P02"

_FILTER_METHODS: dict[FilterOp, str] = {
    "==": "eq",
    "<": "lt",
    "<=": "lte",
    ">": "gt",
    ">=": "gte",
}


@dataclass
class SupabaseDocumentStore(DocumentStore):
    """Document store backed by Supabase tables, one table per collection."""

    client: Client

    def get(self, collection: str, doc_id: str) -> Document | None:
        """Return a row by id, if present."""
        request = self.client.table(collection).select("*").eq("id", doc_id).limit(1)
        try:
            response = request.execute()
        except PostgrestAPIError as exc:
            # Ids that are not valid UUIDs cannot exist.
            if exc.code == INVALID_TEXT_REPRESENTATION:
                return None
            raise StoreError(f"Failed to read {collection}: {exc.message}") from exc
        if not response.data:
            return None
        return _to_document(response.data[0])

    def add(self, collection: str, fields: dict[str, object]) -> str:
        """Insert a row and return its id."""
        try:
            response = self.client.table(collection).insert(fields).execute()
        except PostgrestAPIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateDocumentError(
                    f"Duplicate document in {collection}"
                ) from exc
            raise StoreError(f"Failed to insert into {collection}: {exc.message}") from exc
        if not response.data:
            raise StoreError(f"Failed to insert into {collection}")
        return str(response.data[0]["id"])

    def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, object],
        expected: dict[str, object] | None = None,
    ) -> bool:
        """Update a row, guarded by ``expected`` column values."""
        request = self.client.table(collection).update(fields).eq("id", doc_id)
        for column, value in (expected or {}).items():
            request = request.eq(column, value)
        response = _execute(request, collection)
        return bool(response.data)

    def query(  # noqa: PLR0913
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        order_by: OrderBy | None = None,
        limit: int | None = None,
        start_after: Document | None = None,
    ) -> list[Document]:
        """Run a filtered, ordered query."""
        request = self.client.table(collection).select("*")
        for item in filters:
            request = _apply_filter(request, item.field, item.op, item.value)
        if start_after is not None:
            if order_by is None:
                raise ValueError("start_after requires order_by")
            request = _apply_filter(
                request,
                order_by.field,
                "<" if order_by.descending else ">",
                start_after.get(order_by.field),
            )
        if order_by is not None:
            request = request.order(order_by.field, desc=order_by.descending)
        if limit is not None:
            request = request.limit(limit)
        response = _execute(request, collection)
        return [_to_document(row) for row in response.data or []]

    def batch(self) -> "SupabaseWriteBatch":
        """Start a delete batch committed through a single SQL function call."""
        return SupabaseWriteBatch(self.client)


@dataclass
class SupabaseWriteBatch(WriteBatch):
    """Collects deletes and commits them in one transaction."""

    client: Client
    targets: list[dict[str, str]] = field(default_factory=list)

    def delete(self, collection: str, doc_id: str) -> None:
        """Queue a row for deletion."""
        self.targets.append({"collection": collection, "id": doc_id})

    def commit(self) -> None:
        """Delete every queued row via the delete_documents function."""
        if not self.targets:
            return
        try:
            self.client.rpc("delete_documents", {"targets": self.targets}).execute()
        except PostgrestAPIError as exc:
            raise StoreError(f"Batch delete failed: {exc.message}") from exc
        self.targets = []


def _apply_filter(request, column: str, op: FilterOp, value: object):  # type: ignore[no-untyped-def]
    return getattr(request, _FILTER_METHODS[op])(column, value)


def _execute(request, collection: str):  # type: ignore[no-untyped-def]
    try:
        return request.execute()
    except PostgrestAPIError as exc:
        raise StoreError(f"Query on {collection} failed: {exc.message}") from exc


def _to_document(row: dict[str, object]) -> Document:
    fields = dict(row)
    doc_id = str(fields.pop("id"))
    return Document(id=doc_id, fields=fields)
