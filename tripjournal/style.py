"""Style state derived from character attributes."""

from dataclasses import dataclass, replace
from enum import Enum

from .attributes import Attributes, UnderlineStyle


class StyleDimension(Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underlined"
    STRIKETHROUGH = "strikethrough"


@dataclass(frozen=True)
class StyleState:
    """Which style bits are active at a caret or selection anchor.

    ``underlined`` only reports a manual underline: the underline painted
    by a link region is reported through ``link_underline`` instead, so it
    never shows up as a toggleable plain underline.
    """
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    strikethrough: bool = False
    has_link: bool = False
    link_underline: bool = False

    def toggled(self, dimension: StyleDimension) -> "StyleState":
        name = dimension.value
        return replace(self, **{name: not getattr(self, name)})

    def font_updates(self) -> dict:
        return {'bold': self.bold, 'italic': self.italic}


def derive_style(attributes: Attributes) -> StyleState:
    has_link = attributes.link is not None
    return StyleState(
        bold=attributes.bold,
        italic=attributes.italic,
        underlined=attributes.underline is not None and not has_link,
        strikethrough=attributes.strikethrough,
        has_link=has_link,
        link_underline=has_link,
    )


def typing_attributes(style: StyleState) -> Attributes:
    """Attributes for characters typed at a caret with this style.

    Only the four style bits carry over; typed text never joins a link.
    """
    return Attributes(
        bold=style.bold,
        italic=style.italic,
        underline=UnderlineStyle.SINGLE if style.underlined else None,
        strikethrough=style.strikethrough,
    )
