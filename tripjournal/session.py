"""Editing session for one journal entry.

A session owns its document, selection, typing style and link manager.
Nothing here is shared between sessions.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from .attributes import ACCENT_COLOR, Color
from .commands import CommandRegistry
from .errors import UnsupportedLinkScheme
from .links import ImageLoader, LinkRegionManager, resolve_link_tap
from .model import AttributedDocument, Selection
from .rtf_codec import decode, encode, encode_plain
from .store import JournalEntry, JournalStore
from .style import StyleDimension, StyleState
from .toggle import StyleToggleEngine, ToggleResult

logger = logging.getLogger(__name__)


class EditingSession:
    def __init__(self, store: JournalStore, entry: JournalEntry,
                 accent: Color = ACCENT_COLOR,
                 executor: Optional[ThreadPoolExecutor] = None):
        self.store = store
        self.entry = entry
        self.document = AttributedDocument()
        self.selection = Selection()
        self.toggles = StyleToggleEngine()
        self.links = LinkRegionManager(store, entry.id, accent=accent, executor=executor)
        self.commands = CommandRegistry()
        self.modified = False
        self.status_message: Optional[str] = None

    @classmethod
    def open(cls, store: JournalStore, entry: JournalEntry, **kwargs) -> "EditingSession":
        session = cls(store, entry, **kwargs)
        session.load()
        return session

    def load(self) -> None:
        """Load the stored document, degrading to the plain mirror if needed."""
        stored = self.store.load_document(self.entry.id)
        if stored is None:
            self.document = AttributedDocument()
        else:
            self.document = decode(stored.data, fallback_text=stored.plain)
        self.modified = False
        self.select(len(self.document))

    # --- Selection ---
    def select(self, location: int, length: int = 0) -> None:
        selection = Selection(location, length)
        self.document.check_range(selection)
        self.selection = selection
        self.toggles.sync_typing_style(self.document, selection)

    @property
    def current_style(self) -> StyleState:
        if self.selection.is_caret:
            return self.toggles.typing_style
        return self.toggles.style_at(self.document, self.selection)

    def selected_text(self) -> str:
        return self.document.substring(self.selection)

    # --- Editing ---
    def type_text(self, text: str) -> None:
        """Replace the selection (or insert at the caret) with typed text."""
        attrs = self.toggles.typing_attributes()
        self.document.replace(self.selection, text, attrs)
        self.selection = Selection(self.selection.location + len(text), 0)
        self.modified = True

    def delete_backward(self) -> None:
        if not self.selection.is_caret:
            self.document.delete(self.selection)
            self.select(self.selection.location)
        elif self.selection.location > 0:
            self.document.delete(Selection(self.selection.location - 1, 1))
            self.select(self.selection.location - 1)
        else:
            return
        self.modified = True

    def toggle(self, dimension: StyleDimension) -> ToggleResult:
        result = self.toggles.toggle(self.document, self.selection, dimension)
        if result is ToggleResult.APPLIED:
            self.modified = True
        return result

    def handle_shortcut(self, shortcut: str) -> bool:
        """Run the command bound to ``shortcut``; returns True if one ran."""
        command = self.commands.get(shortcut)
        if command is None:
            return False
        command.execute(self)
        return True

    # --- Photo links ---
    def attach_images(self, image_loaders: Iterable[ImageLoader]) -> str:
        """Turn the selection into a link to a new group of images.

        Raises:
            InvalidRange: if nothing is selected.
            LinkOverlapError: if the selection touches an existing link.
        """
        group_id = self.links.create_link_region(self.document, self.selection, image_loaders)
        self.modified = True
        return group_id

    def remove_link(self, group_id: str) -> bool:
        changed = self.links.remove_link_region(self.document, group_id)
        if changed:
            self.modified = True
        return bool(changed)

    def open_gallery(self, url: str) -> Optional[tuple[str, list[bytes]]]:
        """Caption and images behind a tapped link, or None for other links."""
        try:
            group_id = resolve_link_tap(url)
        except UnsupportedLinkScheme:
            return None
        handle = self.store.fetch_image_group(self.entry.id, group_id)
        if handle is None:
            logger.warning(f"No image group {group_id} for entry {self.entry.id}")
            return None
        return handle.caption, self.store.list_images(handle)

    # --- Persistence ---
    def save(self) -> bool:
        snapshot = self.document.copy()
        ok = self.store.save_document(self.entry.id, encode(snapshot), encode_plain(snapshot))
        if ok:
            self.modified = False
            self.status_message = "Saved"
        else:
            self.status_message = "Could not save entry"
        return ok

    def close(self) -> None:
        """Finish pending image loads and release the loader threads."""
        self.links.shutdown()
