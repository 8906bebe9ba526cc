"""Value types exchanged with the document store."""

from dataclasses import dataclass
from typing import Literal

FilterOp = Literal["==", "<", "<=", ">", ">="]


@dataclass(frozen=True)
class Document:
    """Stored document: an id plus its fields."""

    id: str
    fields: dict[str, object]

    def get(self, key: str, default: object = None) -> object:
        return self.fields.get(key, default)


@dataclass(frozen=True)
class FieldFilter:
    """Single field comparison used in queries."""

    field: str
    op: FilterOp
    value: object


@dataclass(frozen=True)
class OrderBy:
    """Query ordering on one field."""

    field: str
    descending: bool = False
