"""Style toggling over a selection or at the caret."""

from enum import Enum

from .attributes import Attributes, UnderlineStyle
from .model import AttributedDocument, Selection, SetMode
from .style import StyleDimension, StyleState, derive_style, typing_attributes


class ToggleResult(Enum):
    APPLIED = "applied"
    TYPING_STYLE = "typing_style"
    REJECTED_LINK_UNDERLINE = "rejected_link_underline"


class StyleToggleEngine:
    """Toggles one style dimension at a time for a single editing session.

    With a selection, the style at the selection anchor is read, the one
    bit is flipped and the resulting composite style is written over the
    whole selection, so every character ends up with the same value for
    that dimension. With a caret, only the typing style changes.
    """

    def __init__(self):
        # Style applied to characters typed at the caret
        self.typing_style = StyleState()

    def style_at(self, document: AttributedDocument, selection: Selection) -> StyleState:
        """Style reported to a toolbar for this selection or caret."""
        if not len(document):
            return self.typing_style
        if selection.is_caret:
            index = max(selection.location - 1, 0)
            index = min(index, len(document) - 1)
        else:
            document.check_range(selection)
            index = selection.location
        return derive_style(document.attributes_at(index))

    def sync_typing_style(self, document: AttributedDocument, selection: Selection) -> StyleState:
        """Refresh the typing style after the caret or selection moved."""
        self.typing_style = self.style_at(document, selection)
        return self.typing_style

    def typing_attributes(self) -> Attributes:
        return typing_attributes(self.typing_style)

    def toggle(self, document: AttributedDocument, selection: Selection,
               dimension: StyleDimension) -> ToggleResult:
        document.check_range(selection)
        if selection.is_caret:
            self.typing_style = self.typing_style.toggled(dimension)
            return ToggleResult.TYPING_STYLE

        anchor = document.attributes_at(selection.location)
        current = derive_style(anchor)
        if dimension is StyleDimension.UNDERLINE and current.link_underline:
            # Link underlines are owned by the link region
            return ToggleResult.REJECTED_LINK_UNDERLINE

        new_style = current.toggled(dimension)
        document.set_attributes(selection, new_style.font_updates(), SetMode.MERGE)
        if dimension is StyleDimension.UNDERLINE:
            self._write_underline(document, selection, new_style.underlined)
        elif dimension is StyleDimension.STRIKETHROUGH:
            document.set_attributes(selection, {'strikethrough': new_style.strikethrough})
        self.typing_style = new_style
        return ToggleResult.APPLIED

    def _write_underline(self, document: AttributedDocument, selection: Selection,
                         underlined: bool) -> None:
        value = UnderlineStyle.SINGLE if underlined else None
        # Characters of a link region keep their link underline
        for run, attrs in list(document.runs(selection)):
            if attrs.link is None:
                document.set_attributes(run, {'underline': value})

    def toggle_bold(self, document: AttributedDocument, selection: Selection) -> ToggleResult:
        return self.toggle(document, selection, StyleDimension.BOLD)

    def toggle_italic(self, document: AttributedDocument, selection: Selection) -> ToggleResult:
        return self.toggle(document, selection, StyleDimension.ITALIC)

    def toggle_underline(self, document: AttributedDocument, selection: Selection) -> ToggleResult:
        return self.toggle(document, selection, StyleDimension.UNDERLINE)

    def toggle_strikethrough(self, document: AttributedDocument, selection: Selection) -> ToggleResult:
        return self.toggle(document, selection, StyleDimension.STRIKETHROUGH)
