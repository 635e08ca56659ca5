from dataclasses import dataclass
from enum import Enum
from itertools import groupby
from typing import Any, Iterator, Mapping, Optional

from .attributes import PLAIN, Attributes, check_names
from .errors import InvalidRange, OutOfRange


@dataclass(frozen=True)
class Selection:
    """Half-open character range ``[location, location + length)``.

    A zero length denotes a caret, not a selection.
    """
    location: int = 0
    length: int = 0

    @property
    def end(self) -> int:
        return self.location + self.length

    @property
    def is_caret(self) -> bool:
        return self.length == 0

    @classmethod
    def between(cls, start: int, end: int) -> "Selection":
        if end < start:
            start, end = end, start
        return cls(start, end - start)

    def overlaps(self, other: "Selection") -> bool:
        return self.location < other.end and other.location < self.end

    def __iter__(self):
        return iter(range(self.location, self.end))


class SetMode(Enum):
    MERGE = "merge"
    REPLACE = "replace"


class AttributedDocument:
    """Ordered text where every character carries an ``Attributes`` record.

    Attributes are kept in a list parallel to the text. Runs are not stored;
    ``runs()`` groups adjacent equal records on demand, so two adjacent runs
    with identical attributes always read as one.
    """

    def __init__(self, text: str = "", attributes: Optional[list[Attributes]] = None):
        if attributes is None:
            attributes = [PLAIN] * len(text)
        elif len(attributes) != len(text):
            raise ValueError(
                f"Attribute count {len(attributes)} does not match text length {len(text)}"
            )
        self._text = text
        self._attributes: list[Attributes] = list(attributes)

    @classmethod
    def from_runs(cls, runs) -> "AttributedDocument":
        """Build a document from ``(text, Attributes)`` pairs."""
        text_parts: list[str] = []
        attrs: list[Attributes] = []
        for chunk, chunk_attrs in runs:
            text_parts.append(chunk)
            attrs.extend([chunk_attrs] * len(chunk))
        return cls(''.join(text_parts), attrs)

    @property
    def text(self) -> str:
        return self._text

    @property
    def length(self) -> int:
        return len(self._text)

    def __len__(self) -> int:
        return len(self._text)

    def __eq__(self, other) -> bool:
        if not isinstance(other, AttributedDocument):
            return NotImplemented
        return self._text == other._text and self._attributes == other._attributes

    def __repr__(self) -> str:
        return f"AttributedDocument({self._text!r}, runs={len(list(self.runs()))})"

    def copy(self) -> "AttributedDocument":
        return AttributedDocument(self._text, self._attributes)

    # --- Range checks ---
    def check_range(self, selection: Selection) -> None:
        if selection.location < 0 or selection.length < 0 or selection.end > len(self._text):
            raise InvalidRange(
                f"Range [{selection.location}, {selection.end}) outside document of length {len(self._text)}"
            )

    def check_index(self, index: int) -> None:
        if not 0 <= index < len(self._text):
            raise OutOfRange(f"Index {index} outside document of length {len(self._text)}")

    # --- Queries ---
    def attributes_at(self, index: int) -> Attributes:
        self.check_index(index)
        return self._attributes[index]

    def substring(self, selection: Selection) -> str:
        self.check_range(selection)
        return self._text[selection.location:selection.end]

    def attributes_in(self, selection: Selection) -> list[Attributes]:
        self.check_range(selection)
        return self._attributes[selection.location:selection.end]

    def runs(self, selection: Optional[Selection] = None) -> Iterator[tuple[Selection, Attributes]]:
        """Yield maximal ``(range, attributes)`` runs, optionally clipped to a range."""
        if selection is None:
            selection = Selection(0, len(self._text))
        self.check_range(selection)
        pos = selection.location
        for attrs, group in groupby(self._attributes[selection.location:selection.end]):
            count = sum(1 for _ in group)
            yield Selection(pos, count), attrs
            pos += count

    # --- Mutations ---
    def set_attributes(self, selection: Selection, updates: Mapping[str, Any],
                       mode: SetMode = SetMode.MERGE) -> None:
        """Apply ``updates`` to every character in ``selection``.

        MERGE overwrites only the named fields; REPLACE resets every other
        field to its default.
        """
        self.check_range(selection)
        check_names(updates)
        if mode is SetMode.REPLACE:
            fresh = PLAIN.merged(updates)
            for i in selection:
                self._attributes[i] = fresh
            return
        # Identical inputs share one merged record
        cache: dict[Attributes, Attributes] = {}
        for i in selection:
            current = self._attributes[i]
            merged = cache.get(current)
            if merged is None:
                merged = cache[current] = current.merged(updates)
            self._attributes[i] = merged

    def remove_attribute(self, selection: Selection, name: str) -> None:
        self.check_range(selection)
        check_names((name,))
        for i in selection:
            self._attributes[i] = self._attributes[i].without(name)

    def insert_text(self, location: int, text: str, attributes: Attributes = PLAIN) -> None:
        if not 0 <= location <= len(self._text):
            raise InvalidRange(f"Insertion point {location} outside document of length {len(self._text)}")
        self._text = self._text[:location] + text + self._text[location:]
        self._attributes[location:location] = [attributes] * len(text)

    def delete(self, selection: Selection) -> None:
        """Delete characters; surviving characters keep their attributes."""
        self.check_range(selection)
        self._text = self._text[:selection.location] + self._text[selection.end:]
        del self._attributes[selection.location:selection.end]

    def replace(self, selection: Selection, text: str, attributes: Attributes = PLAIN) -> None:
        self.delete(selection)
        self.insert_text(selection.location, text, attributes)
