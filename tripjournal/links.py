"""Image-group link regions inside attributed documents.

A link region is a run of characters painted with the link bundle (a
``LinkMarker``, the accent colour and a single underline). The images of a
region live in the store under the region's group id; the document only
holds the marker.
"""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Callable, Iterable, Optional
from urllib.parse import urlsplit

from .attributes import ACCENT_COLOR, Color, link_bundle
from .constants import JournalConstants
from .errors import InvalidRange, LinkOverlapError, UnsupportedLinkScheme
from .model import AttributedDocument, Selection

if TYPE_CHECKING:
    from .store import ImageGroupHandle, JournalStore

logger = logging.getLogger(__name__)

# Returns the raw bytes behind a user-picked photo; may raise
ImageLoader = Callable[[], bytes]


def has_link_overlap(document: AttributedDocument, selection: Selection) -> bool:
    """True if any character in ``selection`` belongs to a link region."""
    return any(attrs.link is not None for attrs in document.attributes_in(selection))


def link_regions(document: AttributedDocument) -> dict[str, list[Selection]]:
    """Map each group id to the fragments of the document it covers.

    Partial deletions can split a region, so a group may own several
    fragments.
    """
    regions: dict[str, list[Selection]] = {}
    for run, attrs in document.runs():
        if attrs.link is None:
            continue
        fragments = regions.setdefault(attrs.link.group_id, [])
        if fragments and fragments[-1].end == run.location:
            fragments[-1] = Selection(fragments[-1].location, fragments[-1].length + run.length)
        else:
            fragments.append(run)
    return regions


def is_image_link(url: str) -> bool:
    try:
        resolve_link_tap(url)
    except UnsupportedLinkScheme:
        return False
    return True


def resolve_link_tap(url: str) -> str:
    """Return the group id of an ``image://<groupID>`` URL.

    Raises:
        UnsupportedLinkScheme: for any other URL, so the caller can fall
            back to its default link handling.
    """
    parts = urlsplit(url)
    if parts.scheme.lower() != JournalConstants.IMAGE_LINK_SCHEME or not parts.netloc:
        raise UnsupportedLinkScheme(f"Not an image link: {url}")
    # netloc rather than hostname: hostname would lowercase the group id
    return parts.netloc


class LinkRegionManager:
    """Creates and removes link regions for one journal entry.

    Image bytes are loaded on a thread pool, one task per image. The group
    id and caption are fixed before any task starts and a completed task
    only appends to the image group, never touching the document.
    """

    def __init__(self, store: "JournalStore", owner_id: str,
                 accent: Color = ACCENT_COLOR,
                 executor: Optional[ThreadPoolExecutor] = None):
        self.store = store
        self.owner_id = owner_id
        self.accent = accent
        self._executor = executor
        self._owns_executor = executor is None
        self.pending: list[Future] = []

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=JournalConstants.IMAGE_LOADER_WORKERS,
                thread_name_prefix="image-loader",
            )
        return self._executor

    def create_link_region(self, document: AttributedDocument, selection: Selection,
                           image_loaders: Iterable[ImageLoader]) -> str:
        """Tag ``selection`` as a link to a new image group and load its images.

        Returns:
            The new group id.

        Raises:
            InvalidRange: if the selection is empty or out of bounds.
            LinkOverlapError: if the selection touches an existing region.
        """
        document.check_range(selection)
        if selection.is_caret:
            raise InvalidRange("A link region needs a non-empty selection")
        if has_link_overlap(document, selection):
            raise LinkOverlapError(
                f"Range [{selection.location}, {selection.end}) overlaps an existing link region"
            )

        group_id = uuid.uuid4().hex
        caption = document.substring(selection)
        document.set_attributes(selection, link_bundle(group_id, self.accent))

        handle = self.store.create_image_group(self.owner_id, group_id, caption)
        if handle is None:
            logger.warning(f"Could not create image group {group_id}; images not attached")
            self.pending = []
            return group_id

        self.pending = [
            self.executor.submit(self._load_and_append, handle, loader)
            for loader in image_loaders
        ]
        return group_id

    def _load_and_append(self, handle: "ImageGroupHandle", loader: ImageLoader) -> bool:
        try:
            data = loader()
        except Exception as e:
            # A failed load is dropped; the other images still attach
            logger.warning(f"Dropping image for group {handle.group_id}: {e}")
            raise
        return self.store.append_image(handle, data)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the image loads of the last region have finished."""
        if self.pending:
            wait(self.pending, timeout=timeout)

    def group_id_at(self, document: AttributedDocument, index: int) -> Optional[str]:
        link = document.attributes_at(index).link
        return link.group_id if link else None

    def remove_link_region(self, document: AttributedDocument, group_id: str) -> int:
        """Strip the link bundle from every fragment of ``group_id``.

        Returns:
            Number of characters that were part of the region.
        """
        changed = 0
        for fragment in link_regions(document).get(group_id, []):
            for name in ('link', 'foreground', 'underline'):
                document.remove_attribute(fragment, name)
            changed += fragment.length
        handle = self.store.fetch_image_group(self.owner_id, group_id)
        if handle is not None:
            self.store.delete_image_group(handle)
        return changed

    def shutdown(self) -> None:
        """Wait for pending image loads; stop the executor if it is ours."""
        self.wait()
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)
            self._executor = None
