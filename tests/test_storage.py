import tempfile
import unittest
from pathlib import Path

import storage
from tools import Instruction, ToolResult


def _record(title, genre="Drama"):
    return {"movie": title, "genre": genre, "plot": "", "releaseYear": "2020", "vote_average": 7.1}


class StorageTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = Path(self.tmpdir.name) / "test.db"
        storage.init_db(self.db_path)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_add_movie_is_unique_per_title(self):
        self.assertTrue(storage.add_movie("lib", _record("Tuhog"), self.db_path))
        self.assertFalse(storage.add_movie("lib", _record(" tuhog "), self.db_path))
        self.assertEqual(len(storage.get_library("lib", self.db_path)), 1)

    def test_library_is_scoped(self):
        storage.add_movie("a", _record("Oh, Hi!", "Romance, Comedy"), self.db_path)
        storage.add_movie("b", _record("Tuhog"), self.db_path)
        storage.add_movie("a", _record("Dracula: A Love Tale"), self.db_path)

        library_a = storage.get_library("a", self.db_path)
        library_b = storage.get_library("b", self.db_path)

        self.assertEqual([entry["movie"] for entry in library_a], ["Oh, Hi!", "Dracula: A Love Tale"])
        self.assertEqual(library_a[0]["genre"], "Romance, Comedy")
        self.assertEqual(len(library_b), 1)

    def test_remove_movie(self):
        storage.add_movie("lib", _record("Tuhog"), self.db_path)
        self.assertTrue(storage.remove_movie("lib", "TUHOG", self.db_path))
        self.assertFalse(storage.remove_movie("lib", "Tuhog", self.db_path))
        self.assertEqual(storage.get_library("lib", self.db_path), [])

    def test_apply_tool_result(self):
        added = ToolResult("", Instruction.ADD_MOVIE, _record("Tuhog"))
        removed = ToolResult("", Instruction.REMOVE_MOVIE, {"title": "Tuhog"})
        shown = ToolResult("", Instruction.SHOW_LIBRARY, [])

        self.assertTrue(storage.apply_tool_result("lib", added, self.db_path))
        self.assertFalse(storage.apply_tool_result("lib", shown, self.db_path))
        self.assertTrue(storage.apply_tool_result("lib", removed, self.db_path))
        self.assertEqual(storage.get_library("lib", self.db_path), [])

    def test_clear_library(self):
        storage.add_movie("lib", _record("Tuhog"), self.db_path)
        storage.clear_library("lib", self.db_path)
        self.assertEqual(storage.get_library("lib", self.db_path), [])


if __name__ == "__main__":
    unittest.main()
