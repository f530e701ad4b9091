import unittest

import genres


class GenreCatalogTests(unittest.TestCase):
    def test_round_trip_for_every_genre(self):
        self.assertEqual(len(genres.GENRE_IDS), 19)
        for name in genres.GENRE_IDS:
            self.assertEqual(genres.name_for(genres.id_for(name)), name)

    def test_lookup_is_case_normalized(self):
        self.assertEqual(genres.id_for("comedy"), 35)
        self.assertEqual(genres.id_for("  SCIENCE fiction "), 878)
        self.assertEqual(genres.id_for("tv movie"), 10770)

    def test_unknown_names_resolve_to_none(self):
        self.assertIsNone(genres.id_for("nonexistent"))
        self.assertIsNone(genres.id_for(""))
        self.assertIsNone(genres.name_for(1))

    def test_resolve_genre_passes_numeric_ids_through(self):
        self.assertEqual(genres.resolve_genre("10749"), 10749)
        self.assertEqual(genres.resolve_genre(27), 27)
        self.assertEqual(genres.resolve_genre("horror"), 27)
        self.assertIsNone(genres.resolve_genre("vibes"))
        self.assertIsNone(genres.resolve_genre(None))

    def test_names_for_drops_unknown_ids(self):
        self.assertEqual(genres.names_for([18, 999, 10749]), ["Drama", "Romance"])
        self.assertEqual(genres.names_for(None), [])


if __name__ == "__main__":
    unittest.main()
