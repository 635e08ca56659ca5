"""Tests for the file-backed journal store."""

import json
import os
import shutil
import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import patch

from tripjournal.store import FileJournalStore


class StoreTestCase(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.store = FileJournalStore(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def add_rome(self):
        return self.store.add_trip("Rome", date(2025, 1, 5), date(2025, 1, 7))


class TestTrips(StoreTestCase):

    def test_add_and_get(self):
        trip = self.store.add_trip("Rome", date(2025, 1, 5), date(2025, 1, 7), cover_image=b"jpeg")
        loaded = FileJournalStore(self.temp_dir).get_trip(trip.id)
        self.assertEqual(loaded.name, "Rome")
        self.assertEqual(loaded.end_date, date(2025, 1, 7))
        self.assertEqual(loaded.cover_image, b"jpeg")

    def test_invalid_dates(self):
        with self.assertRaises(ValueError):
            self.store.add_trip("Backwards", date(2025, 1, 5), date(2025, 1, 1))
        self.assertEqual(self.store.list_trips(), [])

    def test_list_newest_first(self):
        self.store.add_trip("Old", date(2019, 1, 1), date(2019, 1, 2))
        self.store.add_trip("New", date(2024, 6, 1))
        self.assertEqual([t.name for t in self.store.list_trips()], ["New", "Old"])

    def test_update_trip_removes_cover(self):
        trip = self.store.add_trip("Rome", date(2025, 1, 5), cover_image=b"jpeg")
        trip.cover_image = None
        trip.name = "Roma"
        self.assertTrue(self.store.update_trip(trip))
        loaded = self.store.get_trip(trip.id)
        self.assertEqual(loaded.name, "Roma")
        self.assertIsNone(loaded.cover_image)

    def test_delete_trip_cascades(self):
        trip = self.add_rome()
        entry = self.store.entry_for_day(trip.id, date(2025, 1, 6))
        self.store.save_document(entry.id, b"{\\rtf1 x}", "x")
        handle = self.store.create_image_group(entry.id, "g1", "caption")
        self.store.append_image(handle, b"img")

        self.assertTrue(self.store.delete_trip(trip.id))
        self.assertIsNone(self.store.get_trip(trip.id))
        self.assertIsNone(self.store.get_entry(entry.id))
        self.assertIsNone(self.store.fetch_image_group(entry.id, "g1"))
        self.assertEqual(os.listdir(Path(self.temp_dir) / "images"), [])
        self.assertFalse(self.store.delete_trip(trip.id))


class TestEntries(StoreTestCase):

    def test_entry_created_once_per_day(self):
        trip = self.add_rome()
        first = self.store.entry_for_day(trip.id, date(2025, 1, 6))
        again = self.store.entry_for_day(trip.id, date(2025, 1, 6))
        self.assertEqual(first.id, again.id)
        self.assertEqual(first.content, "")

    def test_find_entry_does_not_create(self):
        trip = self.add_rome()
        self.assertIsNone(self.store.find_entry(trip.id, date(2025, 1, 6)))
        self.assertEqual(self.store.list_entries(trip.id), [])
        created = self.store.entry_for_day(trip.id, date(2025, 1, 6))
        self.assertEqual(self.store.find_entry(trip.id, date(2025, 1, 6)).id, created.id)

    def test_day_outside_trip(self):
        trip = self.add_rome()
        with self.assertRaises(ValueError):
            self.store.entry_for_day(trip.id, date(2025, 1, 8))

    def test_unknown_trip(self):
        with self.assertLogs('tripjournal.store', level='WARNING'):
            self.assertIsNone(self.store.entry_for_day("nope", date(2025, 1, 5)))

    def test_list_entries_most_recent_first(self):
        trip = self.add_rome()
        for day in (5, 7, 6):
            self.store.entry_for_day(trip.id, date(2025, 1, day))
        days = [e.day.day for e in self.store.list_entries(trip.id)]
        self.assertEqual(days, [7, 6, 5])

    def test_delete_entry(self):
        trip = self.add_rome()
        entry = self.store.entry_for_day(trip.id, date(2025, 1, 5))
        self.assertTrue(self.store.delete_entry(entry.id))
        self.assertEqual(self.store.list_entries(trip.id), [])
        self.assertFalse(self.store.delete_entry(entry.id))


class TestDocuments(StoreTestCase):

    def test_save_and_load(self):
        entry = self.store.entry_for_day(self.add_rome().id, date(2025, 1, 5))
        self.assertTrue(self.store.save_document(entry.id, b"{\\rtf1 hi}", "hi"))
        stored = FileJournalStore(self.temp_dir).load_document(entry.id)
        self.assertEqual(stored.data, b"{\\rtf1 hi}")
        self.assertEqual(stored.plain, "hi")
        self.assertEqual(self.store.get_entry(entry.id).content, "hi")

    def test_new_entry_has_no_data(self):
        entry = self.store.entry_for_day(self.add_rome().id, date(2025, 1, 5))
        stored = self.store.load_document(entry.id)
        self.assertIsNone(stored.data)
        self.assertEqual(stored.plain, "")

    def test_unknown_owner(self):
        with self.assertLogs('tripjournal.store', level='WARNING'):
            self.assertFalse(self.store.save_document("missing", b"x", "x"))
        self.assertIsNone(self.store.load_document("missing"))

    def test_write_failure_reported(self):
        entry = self.store.entry_for_day(self.add_rome().id, date(2025, 1, 5))
        with patch('tripjournal.store.os.replace', side_effect=OSError("disk full")):
            with self.assertLogs('tripjournal.store', level='WARNING'):
                self.assertFalse(self.store.save_document(entry.id, b"x", "x"))
        self.assertIsNone(self.store.load_document(entry.id).data)
        leftovers = [n for n in os.listdir(Path(self.temp_dir) / "documents") if n.endswith(".tmp")]
        self.assertEqual(leftovers, [])


class TestImageGroups(StoreTestCase):

    def setUp(self):
        super().setUp()
        self.entry = self.store.entry_for_day(self.add_rome().id, date(2025, 1, 5))

    def test_append_and_list_in_order(self):
        handle = self.store.create_image_group(self.entry.id, "g1", "the Forum")
        for blob in (b"a", b"b", b"c"):
            self.assertTrue(self.store.append_image(handle, blob))
        fetched = self.store.fetch_image_group(self.entry.id, "g1")
        self.assertEqual(fetched, handle)
        self.assertEqual(fetched.caption, "the Forum")
        self.assertEqual(self.store.list_images(fetched), [b"a", b"b", b"c"])

    def test_fetch_is_scoped_to_owner(self):
        self.store.create_image_group(self.entry.id, "g1", "x")
        self.assertIsNone(self.store.fetch_image_group("other-entry", "g1"))

    def test_unknown_owner(self):
        with self.assertLogs('tripjournal.store', level='WARNING'):
            self.assertIsNone(self.store.create_image_group("missing", "g1", "x"))

    def test_delete_image_group(self):
        handle = self.store.create_image_group(self.entry.id, "g1", "x")
        self.store.append_image(handle, b"a")
        self.assertTrue(self.store.delete_image_group(handle))
        self.assertIsNone(self.store.fetch_image_group(self.entry.id, "g1"))
        self.assertEqual(self.store.list_images(handle), [])
        with self.assertLogs('tripjournal.store', level='WARNING'):
            self.assertFalse(self.store.append_image(handle, b"b"))


class TestIndexFile(StoreTestCase):

    def test_corrupted_index_treated_as_empty(self):
        Path(self.temp_dir, "journal.json").write_text("{not json", encoding='utf-8')
        with self.assertLogs('tripjournal.store', level='WARNING'):
            self.assertEqual(self.store.list_trips(), [])

    def test_non_dict_index_ignored(self):
        Path(self.temp_dir, "journal.json").write_text(json.dumps([1, 2]), encoding='utf-8')
        with self.assertLogs('tripjournal.store', level='WARNING'):
            self.assertEqual(self.store.list_trips(), [])

    def test_clear_cache_rereads_file(self):
        other = FileJournalStore(self.temp_dir)
        self.assertEqual(other.list_trips(), [])
        self.add_rome()
        self.assertEqual(other.list_trips(), [])
        other.clear_cache()
        self.assertEqual(len(other.list_trips()), 1)


def test_default_data_dir_uses_platformdirs(tmp_path):
    with patch('tripjournal.store.platformdirs.user_data_dir', return_value=str(tmp_path)):
        store = FileJournalStore()
    assert store.root == tmp_path


if __name__ == '__main__':
    unittest.main()
