"""On-disk storage for trips, journal entries and image groups.

The editing core talks to storage only through the ``JournalStore``
protocol. ``FileJournalStore`` keeps a JSON index plus one blob file per
document and per image under a data directory, written atomically. Failures
are logged and reported as ``False``/``None``; they never end an editing
session.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
import uuid
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import platformdirs

from .constants import JournalConstants
from .errors import PersistenceFailure
from .trips import Trip, contains_day, sort_trips, validate_trip_dates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JournalEntry:
    id: str
    trip_id: str
    day: date
    content: str = ""  # plain-text mirror of the document


@dataclass(frozen=True)
class ImageGroupHandle:
    id: str
    owner_id: str
    group_id: str
    caption: str


@dataclass(frozen=True)
class StoredDocument:
    data: Optional[bytes]
    plain: str


class JournalStore(Protocol):
    """Interface the editing core uses to persist documents and images."""

    def save_document(self, owner_id: str, data: bytes, plain: str) -> bool:
        ...

    def load_document(self, owner_id: str) -> Optional[StoredDocument]:
        ...

    def create_image_group(self, owner_id: str, group_id: str, caption: str) -> Optional[ImageGroupHandle]:
        ...

    def append_image(self, handle: ImageGroupHandle, data: bytes) -> bool:
        ...

    def fetch_image_group(self, owner_id: str, group_id: str) -> Optional[ImageGroupHandle]:
        ...

    def list_images(self, handle: ImageGroupHandle) -> list[bytes]:
        ...

    def delete_image_group(self, handle: ImageGroupHandle) -> bool:
        ...


def default_data_dir() -> Path:
    return Path(platformdirs.user_data_dir(JournalConstants.APP_NAME))


def _atomic_write(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` via a temp file and rename.

    Raises:
        PersistenceFailure: if the file could not be written.
    """
    temp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode='wb',
            dir=path.parent,
            prefix=JournalConstants.ATOMIC_SAVE_PREFIX + path.name,
            suffix=JournalConstants.ATOMIC_SAVE_SUFFIX,
            delete=False,
        ) as temp_file:
            temp_name = temp_file.name
            temp_file.write(data)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_name, path)
    except OSError as e:
        if temp_name is not None:
            try:
                os.remove(temp_name)
            except OSError:
                pass
        raise PersistenceFailure(f"Could not write {path}: {e}") from e


class FileJournalStore:
    """File-backed ``JournalStore`` with trip and entry bookkeeping.

    Layout under ``root``::

        journal.json          trips, entries and image groups
        documents/<id>.rtf    encoded entry documents
        images/<id>.bin       image and cover blobs

    One lock serialises every operation, since images are appended from
    loader threads while the editing thread saves.
    """

    def __init__(self, root: Optional[os.PathLike | str] = None):
        self.root = Path(root) if root is not None else default_data_dir()
        self._index_file = self.root / JournalConstants.INDEX_FILENAME
        self._documents_dir = self.root / JournalConstants.DOCUMENTS_DIRNAME
        self._images_dir = self.root / JournalConstants.IMAGES_DIRNAME
        self._index_cache: Optional[Dict[str, Dict[str, Any]]] = None
        self._lock = threading.RLock()

    # --- Index ---
    @staticmethod
    def _empty_index() -> Dict[str, Dict[str, Any]]:
        return {"trips": {}, "entries": {}, "groups": {}}

    def _load_index(self) -> Dict[str, Dict[str, Any]]:
        if self._index_cache is not None:
            return self._index_cache

        if not self._index_file.exists():
            self._index_cache = self._empty_index()
            return self._index_cache

        try:
            with open(self._index_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load journal index from {self._index_file}: {e}")
            self._index_cache = self._empty_index()
            return self._index_cache

        if not isinstance(data, dict):
            logger.warning("Journal index has invalid format (not a dict), ignoring")
            data = {}
        index = self._empty_index()
        for key in index:
            if isinstance(data.get(key), dict):
                index[key] = data[key]
        self._index_cache = index
        return self._index_cache

    def _edit_index(self) -> Dict[str, Dict[str, Any]]:
        """Copy of the index to mutate and hand to ``_commit``."""
        return copy.deepcopy(self._load_index())

    def _commit(self, index: Dict[str, Dict[str, Any]]) -> None:
        payload = json.dumps(index, indent=2).encode('utf-8')
        _atomic_write(self._index_file, payload)
        self._index_cache = index

    def clear_cache(self) -> None:
        """Drop the in-memory index so the next call re-reads the file."""
        with self._lock:
            self._index_cache = None

    def _document_path(self, owner_id: str) -> Path:
        return self._documents_dir / f"{owner_id}.rtf"

    def _image_path(self, image_id: str) -> Path:
        return self._images_dir / f"{image_id}.bin"

    def _remove_files(self, paths) -> None:
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove {path}: {e}")

    # --- Trips ---
    @staticmethod
    def _trip_to_record(trip: Trip) -> Dict[str, Any]:
        return {
            "name": trip.name,
            "start_date": trip.start_date.isoformat(),
            "end_date": trip.end_date.isoformat() if trip.end_date else None,
            "has_cover": trip.cover_image is not None,
        }

    def _trip_from_record(self, trip_id: str, record: Dict[str, Any]) -> Optional[Trip]:
        try:
            end = record.get("end_date")
            cover = None
            if record.get("has_cover"):
                cover = self._read_blob(self._image_path(f"cover-{trip_id}"))
            return Trip(
                id=trip_id,
                name=record["name"],
                start_date=date.fromisoformat(record["start_date"]),
                end_date=date.fromisoformat(end) if end else None,
                cover_image=cover,
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid trip record {trip_id}: {e}")
            return None

    def _read_blob(self, path: Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None

    def add_trip(self, name: str, start_date: date, end_date: Optional[date] = None,
                 cover_image: Optional[bytes] = None) -> Optional[Trip]:
        """Create a trip.

        Raises:
            ValueError: if ``end_date`` precedes ``start_date``.
        """
        trip = Trip(uuid.uuid4().hex, name, start_date, end_date, cover_image)
        return trip if self.update_trip(trip) else None

    def update_trip(self, trip: Trip) -> bool:
        validate_trip_dates(trip.start_date, trip.end_date)
        with self._lock:
            index = self._edit_index()
            index["trips"][trip.id] = self._trip_to_record(trip)
            cover_path = self._image_path(f"cover-{trip.id}")
            try:
                if trip.cover_image is not None:
                    _atomic_write(cover_path, trip.cover_image)
                self._commit(index)
            except PersistenceFailure as e:
                logger.warning(f"Could not save trip {trip.id}: {e}")
                return False
            if trip.cover_image is None:
                self._remove_files([cover_path])
            return True

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        with self._lock:
            record = self._load_index()["trips"].get(trip_id)
            if record is None:
                return None
            return self._trip_from_record(trip_id, record)

    def list_trips(self) -> list[Trip]:
        """All trips, newest start date first."""
        with self._lock:
            trips = [
                self._trip_from_record(trip_id, record)
                for trip_id, record in self._load_index()["trips"].items()
            ]
        return sort_trips(t for t in trips if t is not None)

    def delete_trip(self, trip_id: str) -> bool:
        """Delete a trip together with its entries and their images."""
        with self._lock:
            index = self._edit_index()
            if index["trips"].pop(trip_id, None) is None:
                return False
            entry_ids = [
                entry_id for entry_id, record in index["entries"].items()
                if record.get("trip_id") == trip_id
            ]
            doomed = [self._image_path(f"cover-{trip_id}")]
            for entry_id in entry_ids:
                doomed.extend(self._drop_entry(index, entry_id))
            try:
                self._commit(index)
            except PersistenceFailure as e:
                logger.warning(f"Could not delete trip {trip_id}: {e}")
                return False
            self._remove_files(doomed)
            return True

    # --- Entries ---
    @staticmethod
    def _entry_from_record(entry_id: str, record: Dict[str, Any]) -> JournalEntry:
        return JournalEntry(
            id=entry_id,
            trip_id=record["trip_id"],
            day=date.fromisoformat(record["day"]),
            content=record.get("content", ""),
        )

    def entry_for_day(self, trip_id: str, day: date) -> Optional[JournalEntry]:
        """The entry for one day of a trip, created on first access.

        Raises:
            ValueError: if the trip does not include ``day``.
        """
        with self._lock:
            trip = self.get_trip(trip_id)
            if trip is None:
                logger.warning(f"No trip with id {trip_id}")
                return None
            if not contains_day(trip, day):
                raise ValueError(f"{day} is not a day of trip {trip.name!r}")
            existing = self.find_entry(trip_id, day)
            if existing is not None:
                return existing
            index = self._edit_index()
            entry_id = uuid.uuid4().hex
            index["entries"][entry_id] = {
                "trip_id": trip_id,
                "day": day.isoformat(),
                "content": "",
                "has_document": False,
            }
            try:
                self._commit(index)
            except PersistenceFailure as e:
                logger.warning(f"Could not create entry for {day}: {e}")
                return None
            return JournalEntry(entry_id, trip_id, day)

    def find_entry(self, trip_id: str, day: date) -> Optional[JournalEntry]:
        """The entry already written for ``day``, without creating one."""
        with self._lock:
            for entry_id, record in self._load_index()["entries"].items():
                if record.get("trip_id") == trip_id and record.get("day") == day.isoformat():
                    return self._entry_from_record(entry_id, record)
        return None

    def get_entry(self, entry_id: str) -> Optional[JournalEntry]:
        with self._lock:
            record = self._load_index()["entries"].get(entry_id)
            return self._entry_from_record(entry_id, record) if record else None

    def list_entries(self, trip_id: str) -> list[JournalEntry]:
        """Entries of a trip, most recent day first."""
        with self._lock:
            entries = [
                self._entry_from_record(entry_id, record)
                for entry_id, record in self._load_index()["entries"].items()
                if record.get("trip_id") == trip_id
            ]
        return sorted(entries, key=lambda e: e.day, reverse=True)

    def _drop_entry(self, index: Dict[str, Dict[str, Any]], entry_id: str) -> list[Path]:
        """Remove an entry and its groups from ``index``; returns files to delete."""
        index["entries"].pop(entry_id, None)
        doomed = [self._document_path(entry_id)]
        for group_key in [k for k, g in index["groups"].items() if g.get("owner_id") == entry_id]:
            group = index["groups"].pop(group_key)
            doomed.extend(self._image_path(image_id) for image_id in group.get("images", []))
        return doomed

    def delete_entry(self, entry_id: str) -> bool:
        with self._lock:
            index = self._edit_index()
            if entry_id not in index["entries"]:
                return False
            doomed = self._drop_entry(index, entry_id)
            try:
                self._commit(index)
            except PersistenceFailure as e:
                logger.warning(f"Could not delete entry {entry_id}: {e}")
                return False
            self._remove_files(doomed)
            return True

    # --- Documents ---
    def save_document(self, owner_id: str, data: bytes, plain: str) -> bool:
        with self._lock:
            index = self._edit_index()
            record = index["entries"].get(owner_id)
            if record is None:
                logger.warning(f"Cannot save document for unknown entry {owner_id}")
                return False
            record["content"] = plain
            record["has_document"] = True
            try:
                _atomic_write(self._document_path(owner_id), data)
                self._commit(index)
            except PersistenceFailure as e:
                logger.warning(f"Could not save document for entry {owner_id}: {e}")
                return False
            return True

    def load_document(self, owner_id: str) -> Optional[StoredDocument]:
        with self._lock:
            record = self._load_index()["entries"].get(owner_id)
            if record is None:
                return None
            data = None
            if record.get("has_document"):
                data = self._read_blob(self._document_path(owner_id))
            return StoredDocument(data=data, plain=record.get("content", ""))

    # --- Image groups ---
    @staticmethod
    def _handle(key: str, record: Dict[str, Any]) -> ImageGroupHandle:
        return ImageGroupHandle(
            id=key,
            owner_id=record["owner_id"],
            group_id=record["group_id"],
            caption=record.get("caption", ""),
        )

    def create_image_group(self, owner_id: str, group_id: str, caption: str) -> Optional[ImageGroupHandle]:
        with self._lock:
            index = self._edit_index()
            if owner_id not in index["entries"]:
                logger.warning(f"Cannot create image group for unknown entry {owner_id}")
                return None
            key = uuid.uuid4().hex
            record = {"owner_id": owner_id, "group_id": group_id, "caption": caption, "images": []}
            index["groups"][key] = record
            try:
                self._commit(index)
            except PersistenceFailure as e:
                logger.warning(f"Could not create image group {group_id}: {e}")
                return None
            return self._handle(key, record)

    def append_image(self, handle: ImageGroupHandle, data: bytes) -> bool:
        with self._lock:
            index = self._edit_index()
            record = index["groups"].get(handle.id)
            if record is None:
                logger.warning(f"Image group {handle.group_id} no longer exists")
                return False
            image_id = uuid.uuid4().hex
            record["images"].append(image_id)
            try:
                _atomic_write(self._image_path(image_id), data)
                self._commit(index)
            except PersistenceFailure as e:
                logger.warning(f"Could not append image to group {handle.group_id}: {e}")
                self._remove_files([self._image_path(image_id)])
                return False
            return True

    def fetch_image_group(self, owner_id: str, group_id: str) -> Optional[ImageGroupHandle]:
        with self._lock:
            for key, record in self._load_index()["groups"].items():
                if record.get("owner_id") == owner_id and record.get("group_id") == group_id:
                    return self._handle(key, record)
        return None

    def list_images(self, handle: ImageGroupHandle) -> list[bytes]:
        """Images of a group in the order they were appended."""
        with self._lock:
            record = self._load_index()["groups"].get(handle.id)
            if record is None:
                return []
            images = []
            for image_id in record.get("images", []):
                data = self._read_blob(self._image_path(image_id))
                if data is not None:
                    images.append(data)
            return images

    def delete_image_group(self, handle: ImageGroupHandle) -> bool:
        with self._lock:
            index = self._edit_index()
            record = index["groups"].pop(handle.id, None)
            if record is None:
                return False
            try:
                self._commit(index)
            except PersistenceFailure as e:
                logger.warning(f"Could not delete image group {handle.group_id}: {e}")
                return False
            self._remove_files(self._image_path(i) for i in record.get("images", []))
            return True
