"""Character attributes for attributed documents.

Every character of a document carries one immutable ``Attributes`` record.
The vocabulary is closed: bold and italic font traits, an underline kind,
strikethrough, a foreground colour and an optional image-group link marker.
"""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Mapping, NamedTuple, Optional

from .constants import JournalConstants


class UnderlineStyle(Enum):
    SINGLE = "single"
    DOUBLE = "double"
    THICK = "thick"


class Color(NamedTuple):
    red: int
    green: int
    blue: int

    def to_hex(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"


ACCENT_COLOR = Color(*JournalConstants.LINK_ACCENT_COLOR)


@dataclass(frozen=True)
class LinkMarker:
    """Marks a character as part of an image-group link region.

    The link URL is derived from the group id, so the two can never
    disagree, and the underline marker is present exactly when a
    ``LinkMarker`` is.
    """
    group_id: str

    @property
    def url(self) -> str:
        return JournalConstants.IMAGE_LINK_PREFIX + self.group_id


@dataclass(frozen=True)
class Attributes:
    bold: bool = False
    italic: bool = False
    underline: Optional[UnderlineStyle] = None
    strikethrough: bool = False
    foreground: Optional[Color] = None
    link: Optional[LinkMarker] = None

    def merged(self, updates: Mapping[str, Any]) -> "Attributes":
        """Return a copy with the given fields overwritten."""
        check_names(updates)
        return replace(self, **updates)

    def without(self, name: str) -> "Attributes":
        """Return a copy with one field reset to its default."""
        check_names((name,))
        return replace(self, **{name: _DEFAULTS[name]})

    @property
    def is_plain(self) -> bool:
        return self == PLAIN


PLAIN = Attributes()

ATTRIBUTE_NAMES = tuple(f.name for f in fields(Attributes))
_DEFAULTS = {f.name: f.default for f in fields(Attributes)}


def check_names(names) -> None:
    unknown = [n for n in names if n not in _DEFAULTS]
    if unknown:
        raise ValueError(f"Unknown attribute name(s): {', '.join(unknown)}")


def link_bundle(group_id: str, accent: Color = ACCENT_COLOR) -> dict:
    """Attribute updates painted over a new link region, applied as one batch."""
    return {
        'link': LinkMarker(group_id),
        'foreground': accent,
        'underline': UnderlineStyle.SINGLE,
    }
