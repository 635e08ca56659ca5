"""Render attributed documents for a terminal using Blessed."""

from typing import Optional

import blessed

from .attributes import PLAIN, Attributes
from .model import AttributedDocument

# Terminals lack a portable strikethrough, so struck text is overlaid
COMBINING_LONG_STROKE = '\u0336'


class TerminalRenderer:
    """Turns a document into display lines with terminal attributes."""

    def __init__(self, terminal: Optional[blessed.Terminal] = None):
        self.term = terminal or blessed.Terminal()

    def _sequence(self, attrs: Attributes) -> str:
        out = [self.term.normal]
        if attrs.bold:
            out.append(self.term.bold)
        if attrs.italic:
            out.append(self.term.italic)
        if attrs.underline is not None:
            out.append(self.term.underline)
        if attrs.foreground is not None:
            out.append(self.term.color_rgb(*attrs.foreground))
        return ''.join(out)

    def render_lines(self, document: AttributedDocument) -> list[str]:
        """One string per paragraph, attributes reset at the end of each."""
        lines: list[str] = []
        out: list[str] = []
        active = PLAIN
        text = document.text
        for run, attrs in document.runs():
            for i in run:
                ch = text[i]
                if ch == '\n':
                    if active != PLAIN:
                        out.append(self.term.normal)
                    lines.append(''.join(out))
                    out = []
                    active = PLAIN
                    continue
                if attrs != active:
                    out.append(self._sequence(attrs) if attrs != PLAIN else self.term.normal)
                    active = attrs
                out.append(ch + COMBINING_LONG_STROKE if attrs.strikethrough else ch)
        if active != PLAIN:
            out.append(self.term.normal)
        lines.append(''.join(out))
        return lines

    def render(self, document: AttributedDocument) -> str:
        return '\n'.join(self.render_lines(document))
