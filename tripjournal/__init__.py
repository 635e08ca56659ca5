"""Tripjournal - trip journals with rich text and photo links."""

from .attributes import Attributes, Color, LinkMarker, UnderlineStyle
from .links import LinkRegionManager, has_link_overlap, resolve_link_tap
from .model import AttributedDocument, Selection, SetMode
from .rtf_codec import decode, decode_plain, encode
from .session import EditingSession
from .style import StyleDimension, StyleState, derive_style
from .toggle import StyleToggleEngine, ToggleResult

__all__ = [
    'Attributes',
    'Color',
    'LinkMarker',
    'UnderlineStyle',
    'AttributedDocument',
    'Selection',
    'SetMode',
    'StyleState',
    'StyleDimension',
    'derive_style',
    'StyleToggleEngine',
    'ToggleResult',
    'LinkRegionManager',
    'has_link_overlap',
    'resolve_link_tap',
    'encode',
    'decode',
    'decode_plain',
    'EditingSession',
]
