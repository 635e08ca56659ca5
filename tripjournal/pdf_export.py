"""Export journal entries to PDF.

Uses the standard PDF fonts, so nothing needs to be embedded. Styled runs
keep their bold/italic face and colour; underlines and strikethroughs are
drawn as lines.
"""

import io
from typing import Optional

from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .attributes import Attributes, UnderlineStyle
from .model import AttributedDocument

# (regular, bold, italic, bold italic)
STANDARD_FONTS = {
    "Helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "Times": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "Courier": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
}


class FontLoadError(Exception):
    """Exception raised when a font cannot be used."""


class PDFExporter:
    """Lay out an attributed document on US Letter pages."""

    def __init__(self, font_name: str = "Helvetica", font_size: int = 12):
        if font_name not in STANDARD_FONTS:
            raise FontLoadError(f"Unknown font: {font_name}")
        self.faces = STANDARD_FONTS[font_name]
        self.font_size = font_size
        self.line_height = font_size * 1.4
        self.page_width, self.page_height = letter
        self.margin = 72  # 1 inch
        self.text_width = self.page_width - 2 * self.margin

        # Track unprintable characters for warning
        self.unprintable_chars: set[str] = set()

    def _face(self, attrs: Attributes) -> str:
        return self.faces[(1 if attrs.bold else 0) + (2 if attrs.italic else 0)]

    def _make_pdf_safe(self, text: str) -> str:
        """Replace characters the standard fonts cannot show with '?'."""
        result = []
        for char in text:
            try:
                char.encode('cp1252')
                result.append(char)
            except UnicodeEncodeError:
                self.unprintable_chars.add(char)
                result.append('?')
        return ''.join(result)

    def _pieces(self, document: AttributedDocument):
        """Yield paragraphs as lists of (text, attributes) words and spaces."""
        paragraph: list[tuple[str, Attributes]] = []
        text = document.text
        for run, attrs in document.runs():
            chunk = text[run.location:run.end]
            lines = chunk.split('\n')
            for li, line in enumerate(lines):
                if li > 0:
                    yield paragraph
                    paragraph = []
                word = ''
                for ch in line:
                    if word and (ch == ' ') != (word[-1] == ' '):
                        paragraph.append((word, attrs))
                        word = ''
                    word += ch
                if word:
                    paragraph.append((word, attrs))
        yield paragraph

    def _wrap(self, paragraph):
        lines: list[list[tuple[str, Attributes]]] = []
        line: list[tuple[str, Attributes]] = []
        width = 0.0
        for word, attrs in paragraph:
            safe = self._make_pdf_safe(word)
            w = stringWidth(safe, self._face(attrs), self.font_size)
            if line and width + w > self.text_width and not word.isspace():
                lines.append(line)
                line, width = [], 0.0
            if not line and word.isspace():
                continue
            line.append((safe, attrs))
            width += w
        lines.append(line)
        return lines

    def _draw_segment(self, c: canvas.Canvas, x: float, y: float, text: str, attrs: Attributes) -> float:
        face = self._face(attrs)
        width = stringWidth(text, face, self.font_size)
        if attrs.foreground is not None:
            r, g, b = attrs.foreground
            c.setFillColorRGB(r / 255, g / 255, b / 255)
            c.setStrokeColorRGB(r / 255, g / 255, b / 255)
        else:
            c.setFillColorRGB(0, 0, 0)
            c.setStrokeColorRGB(0, 0, 0)
        c.setFont(face, self.font_size)
        c.drawString(x, y, text)
        if attrs.underline is not None:
            c.setLineWidth(1.5 if attrs.underline is UnderlineStyle.THICK else 0.5)
            c.line(x, y - 2, x + width, y - 2)
            if attrs.underline is UnderlineStyle.DOUBLE:
                c.line(x, y - 4, x + width, y - 4)
        if attrs.strikethrough:
            c.setLineWidth(0.5)
            mid = y + self.font_size * 0.3
            c.line(x, mid, x + width, mid)
        return width

    def export(self, document: AttributedDocument, title: Optional[str] = None) -> bytes:
        """Render ``document`` (with an optional title line) to PDF bytes."""
        self.unprintable_chars = set()
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=letter)
        top = self.page_height - self.margin
        y = top

        if title:
            c.setFont(self.faces[1], self.font_size * 1.5)
            c.drawString(self.margin, y, self._make_pdf_safe(title))
            y -= self.line_height * 2

        for paragraph in self._pieces(document):
            for line in self._wrap(paragraph):
                if y < self.margin:
                    c.showPage()
                    y = top
                x = self.margin
                for text, attrs in line:
                    x += self._draw_segment(c, x, y, text, attrs)
                y -= self.line_height

        c.showPage()
        c.save()
        return buffer.getvalue()

    def get_unprintable_warning(self) -> Optional[str]:
        if not self.unprintable_chars:
            return None
        shown = ', '.join(f"U+{ord(ch):04X}" for ch in sorted(self.unprintable_chars)[:10])
        return (f"Warning: {len(self.unprintable_chars)} unique unprintable character(s) "
                f"replaced with '?': {shown}")
