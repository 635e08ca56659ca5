"""RTF encoding and decoding of attributed documents.

Documents are persisted as RTF. Character styles map to the usual control
words (``\\b``, ``\\i``, ``\\ul``, ``\\strike``, ``\\cf``). Link regions are
written as RTF hyperlink fields whose instruction is ``HYPERLINK
"image://<groupID>"``, so other RTF readers still see a link.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from itertools import groupby
from typing import Optional

from .attributes import PLAIN, Attributes, Color, LinkMarker, UnderlineStyle
from .constants import JournalConstants
from .errors import DecodeFailure, UnsupportedLinkScheme
from .links import resolve_link_tap
from .model import AttributedDocument

logger = logging.getLogger(__name__)

MAX_RTF_SIZE = JournalConstants.MAX_RTF_SIZE

_UNDERLINE_WORDS = {
    UnderlineStyle.SINGLE: 'ul',
    UnderlineStyle.DOUBLE: 'uldb',
    UnderlineStyle.THICK: 'ulth',
}
_UNDERLINE_KINDS = {word: kind for kind, word in _UNDERLINE_WORDS.items()}

# Control words that produce a single character
_SYMBOL_WORDS = {
    'par': '\n',
    'line': '\n',
    'tab': '\t',
    'emdash': '\u2014',
    'endash': '\u2013',
    'lquote': '\u2018',
    'rquote': '\u2019',
    'ldblquote': '\u201c',
    'rdblquote': '\u201d',
    'bullet': '\u2022',
}

# Destinations whose content is never document text
_SKIPPED_DESTINATIONS = {
    'fonttbl', 'stylesheet', 'info', 'pict', 'header', 'footer',
    'headerl', 'headerr', 'footerl', 'footerr', 'footnote', 'object',
    'listtable', 'listoverridetable', 'revtbl', 'themedata', 'expandedcolortbl',
}

_TOKEN = re.compile(
    r"\\([a-zA-Z]+)(-?\d+)? ?"      # control word with optional parameter
    r"|\\'([0-9a-fA-F]{2})"         # hex escape
    r"|\\(.)"                       # control symbol
    r"|([{}])"                      # group
    r"|[\r\n]+"                     # source line breaks
    r"|([^\\{}\r\n]+)",             # text
    re.S,
)

_HYPERLINK = re.compile(r'HYPERLINK\s+"([^"]*)"')


# --- Encoding ---

def encode(document: AttributedDocument) -> bytes:
    """Serialize a document to RTF bytes.

    Every attribute, link markers included, survives ``decode``.
    """
    colors = _color_table(document)
    out = [_header(colors)]
    text = document.text
    for link, group in groupby(document.runs(), key=lambda r: r[1].link):
        body = ''.join(
            _encode_run(text[run.location:run.end], attrs, colors)
            for run, attrs in group
        )
        if link is None:
            out.append(body)
        else:
            out.append(
                r'{\field{\*\fldinst{HYPERLINK "' + link.url + r'"}}{\fldrslt '
                + body + '}}'
            )
    out.append('}')
    return ''.join(out).encode('ascii')


def encode_plain(document: AttributedDocument) -> str:
    """Plain-text mirror used for list previews and search."""
    return document.text


def _color_table(document: AttributedDocument) -> list[Color]:
    colors: list[Color] = []
    for _, attrs in document.runs():
        if attrs.foreground is not None and attrs.foreground not in colors:
            colors.append(attrs.foreground)
    return colors


def _header(colors: list[Color]) -> str:
    font_size = JournalConstants.DEFAULT_FONT_SIZE * 2  # half-points
    rtf = r'{\rtf1\ansi\ansicpg1252\deff0'
    rtf += r'{\fonttbl\f0\fswiss\fcharset0 ' + JournalConstants.DEFAULT_FONT_NAME + ';}' + '\n'
    rtf += r'{\colortbl;'
    for c in colors:
        rtf += rf'\red{c.red}\green{c.green}\blue{c.blue};'
    rtf += '}\n'
    rtf += rf'\pard\f0\fs{font_size} '
    return rtf


def _encode_run(text: str, attrs: Attributes, colors: list[Color]) -> str:
    controls = []
    if attrs.bold:
        controls.append(r'\b')
    if attrs.italic:
        controls.append(r'\i')
    if attrs.underline is not None:
        controls.append('\\' + _UNDERLINE_WORDS[attrs.underline])
    if attrs.strikethrough:
        controls.append(r'\strike')
    if attrs.foreground is not None:
        controls.append(rf'\cf{colors.index(attrs.foreground) + 1}')
    escaped = _escape_rtf(text)
    if not controls:
        return escaped
    return '{' + ''.join(controls) + ' ' + escaped + '}'


def _escape_rtf(text: str) -> str:
    """Escape special characters for RTF."""
    result = []
    for char in text:
        code = ord(char)
        if char in '\\{}':
            result.append('\\' + char)
        elif char == '\n':
            result.append('\\par\n')
        elif char == '\t':
            result.append('\\tab ')
        elif 32 <= code < 128:
            result.append(char)
        elif code > 0xFFFF:
            # Outside the BMP: UTF-16 surrogate pair, signed 16-bit values
            code -= 0x10000
            for unit in (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF)):
                result.append(f'\\u{unit - 65536}?')
        else:
            result.append(f'\\u{code if code < 32768 else code - 65536}?')
    return ''.join(result)


# --- Decoding ---

class _Field:
    """Shared by the groups of one ``\\field`` so the result sees the instruction."""

    def __init__(self):
        self.instruction: list[str] = []

    @property
    def link(self) -> Optional[LinkMarker]:
        match = _HYPERLINK.search(''.join(self.instruction))
        if not match:
            return None
        try:
            return LinkMarker(resolve_link_tap(match.group(1)))
        except UnsupportedLinkScheme:
            return None


@dataclass
class _State:
    bold: bool = False
    italic: bool = False
    underline: Optional[UnderlineStyle] = None
    strikethrough: bool = False
    color: int = 0
    uc: int = 1
    destination: str = 'body'  # body, skip, colortbl, fldinst
    ignorable: bool = False
    hyperlink: Optional[_Field] = None
    link: Optional[LinkMarker] = None


@dataclass
class _Parser:
    state: _State = field(default_factory=_State)
    stack: list[_State] = field(default_factory=list)
    chars: list[str] = field(default_factory=list)
    attrs: list[Attributes] = field(default_factory=list)
    colors: list[Optional[Color]] = field(default_factory=list)
    pending_color: dict = field(default_factory=dict)
    skip: int = 0
    cache: dict = field(default_factory=dict)

    def current_attributes(self) -> Attributes:
        s = self.state
        key = (s.bold, s.italic, s.underline, s.strikethrough, s.color, s.link)
        attrs = self.cache.get(key)
        if attrs is None:
            foreground = None
            if s.color != 0:
                # Entry 0 of the colour table is the automatic colour
                if not 0 < s.color < len(self.colors):
                    raise DecodeFailure(f"Colour index {s.color} not in colour table")
                foreground = self.colors[s.color]
            attrs = self.cache[key] = Attributes(
                bold=s.bold, italic=s.italic, underline=s.underline,
                strikethrough=s.strikethrough, foreground=foreground, link=s.link,
            )
        return attrs

    def emit(self, text: str) -> None:
        if self.skip:
            dropped = min(self.skip, len(text))
            self.skip -= dropped
            text = text[dropped:]
        if not text:
            return
        destination = self.state.destination
        if destination == 'fldinst':
            if self.state.hyperlink is not None:
                self.state.hyperlink.instruction.append(text)
            return
        if destination == 'colortbl':
            for _ in range(text.count(';')):
                self.end_color()
            return
        if destination != 'body':
            return
        attrs = self.current_attributes()
        for ch in text:
            if (0xDC00 <= ord(ch) <= 0xDFFF and self.chars
                    and 0xD800 <= ord(self.chars[-1]) <= 0xDBFF):
                high = ord(self.chars[-1])
                self.chars[-1] = chr(0x10000 + ((high - 0xD800) << 10) + (ord(ch) - 0xDC00))
                continue
            self.chars.append(ch)
            self.attrs.append(attrs)

    def end_color(self) -> None:
        c = self.pending_color
        if c:
            self.colors.append(Color(c.get('red', 0), c.get('green', 0), c.get('blue', 0)))
        else:
            self.colors.append(None)
        self.pending_color = {}

    def open_group(self) -> None:
        self.stack.append(self.state)
        self.state = replace(self.state, ignorable=False)

    def close_group(self) -> bool:
        """Pop one group; returns True once the outermost group closes."""
        if not self.stack:
            raise DecodeFailure("Unbalanced '}' in RTF data")
        self.state = self.stack.pop()
        return not self.stack

    def control_word(self, word: str, param: Optional[int]) -> None:
        s = self.state
        if s.ignorable:
            s.ignorable = False
            if word == 'fldinst':
                s.destination = 'fldinst'
            else:
                s.destination = 'skip'
            return
        if s.destination == 'skip':
            return
        if s.destination == 'colortbl':
            if word in ('red', 'green', 'blue') and param is not None:
                self.pending_color[word] = param
            return

        on = param is None or param != 0
        if word in _SKIPPED_DESTINATIONS:
            s.destination = 'skip'
        elif word == 'colortbl':
            s.destination = 'colortbl'
        elif word == 'field':
            s.hyperlink = _Field()
        elif word == 'fldinst':
            s.destination = 'fldinst'
        elif word == 'fldrslt':
            s.destination = 'body'
            s.link = s.hyperlink.link if s.hyperlink is not None else None
        elif word == 'b':
            s.bold = on
        elif word == 'i':
            s.italic = on
        elif word in ('ulnone', 'ulc'):
            if word == 'ulnone':
                s.underline = None
        elif word.startswith('ul'):
            s.underline = _UNDERLINE_KINDS.get(word, UnderlineStyle.SINGLE) if on else None
        elif word in ('strike', 'striked'):
            s.strikethrough = on
        elif word == 'cf':
            s.color = param or 0
        elif word == 'plain':
            s.bold = s.italic = s.strikethrough = False
            s.underline = None
            s.color = 0
        elif word == 'uc':
            s.uc = max(param or 0, 0)
        elif word == 'u' and param is not None:
            code = param + 65536 if param < 0 else param
            if not 0 <= code <= 0x10FFFF:
                raise DecodeFailure(f"Unicode escape \\u{param} out of range")
            self.emit(chr(code))
            self.skip = s.uc
        elif word in _SYMBOL_WORDS:
            self.emit(_SYMBOL_WORDS[word])

    def control_symbol(self, symbol: str) -> None:
        if symbol == '*':
            self.state.ignorable = True
        elif symbol in '\\{}':
            self.emit(symbol)
        elif symbol == '~':
            self.emit('\u00a0')
        elif symbol == '_':
            self.emit('\u2011')
        elif symbol in '\r\n':
            self.emit('\n')
        # Optional hyphens and unknown symbols produce nothing


def parse_rtf(data: bytes) -> AttributedDocument:
    """Parse RTF bytes into a document.

    Raises:
        DecodeFailure: if the data is not well-formed RTF.
    """
    if len(data) > MAX_RTF_SIZE:
        raise DecodeFailure(f"RTF data exceeds {MAX_RTF_SIZE} bytes")
    if not data.startswith(b'{\\rtf'):
        raise DecodeFailure("Data does not start with an RTF header")

    rtf_text = data.decode('cp1252', errors='replace')
    parser = _Parser()
    try:
        closed = _feed(parser, rtf_text)
    except DecodeFailure:
        raise
    except (ValueError, IndexError) as e:
        raise DecodeFailure(f"Malformed RTF data: {e}") from e
    if not closed:
        raise DecodeFailure("Unterminated RTF group")
    return AttributedDocument(''.join(parser.chars), parser.attrs)


def _feed(parser: _Parser, rtf_text: str) -> bool:
    """Run every token through ``parser``; True once the outer group closed."""
    pos = 0
    while pos < len(rtf_text):
        match = _TOKEN.match(rtf_text, pos)
        if match is None:
            raise DecodeFailure(f"Unexpected RTF content at offset {pos}")
        pos = match.end()
        word, param, hex_code, symbol, brace, text = match.groups()
        if word is not None:
            parser.control_word(word, int(param) if param is not None else None)
        elif hex_code is not None:
            parser.emit(bytes([int(hex_code, 16)]).decode('cp1252', errors='replace'))
        elif symbol is not None:
            if symbol == "'":
                # Malformed hex escape: keep whatever follows as text
                continue
            parser.control_symbol(symbol)
        elif brace == '{':
            parser.open_group()
        elif brace == '}':
            if parser.close_group():
                return True
        elif text is not None:
            parser.emit(text)
    return False


def decode_plain(text: Optional[str]) -> AttributedDocument:
    """Build a document from plain text with default attributes. Never fails."""
    text = text or ""
    return AttributedDocument(text, [PLAIN] * len(text))


def decode(data: Optional[bytes], fallback_text: Optional[str] = None) -> AttributedDocument:
    """Decode persisted bytes, degrading to plain text when they are malformed.

    Args:
        data: RTF bytes as produced by ``encode`` (or another RTF writer).
        fallback_text: Plain-text mirror to show when ``data`` cannot be
            parsed. Defaults to ``data`` read as UTF-8.
    """
    if data:
        try:
            return parse_rtf(data)
        except DecodeFailure as e:
            logger.debug(f"Falling back to plain text: {e}")
    if fallback_text is None:
        fallback_text = data.decode('utf-8', errors='replace') if data else ""
    return decode_plain(fallback_text)
