import unittest
from unittest import mock

import requests

import tmdb_client
from config import ConfigurationError


def _response(status=200, payload=None, bad_json=False):
    response = mock.Mock()
    response.status_code = status
    if bad_json:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


OH_HI = {"id": 1, "title": "Oh, Hi!", "overview": "A weekend away.", "release_date": "2025-07-25"}
OH_HI_MARK = {"id": 2, "title": "Oh Hi Mark", "overview": "", "release_date": "2003-06-27"}


class FetchPageTests(unittest.TestCase):
    @mock.patch("tmdb_client.requests.get")
    def test_discover_sends_key_and_params(self, get):
        get.return_value = _response(payload={"results": [OH_HI]})

        items = tmdb_client.fetch_page("key", "discover", {"with_genres": "35"})

        self.assertEqual(items, [OH_HI])
        url = get.call_args.args[0]
        params = get.call_args.kwargs["params"]
        self.assertTrue(url.endswith("/discover/movie"))
        self.assertEqual(params["api_key"], "key")
        self.assertEqual(params["with_genres"], "35")
        self.assertEqual(get.call_args.kwargs["timeout"], tmdb_client.TIMEOUT)

    @mock.patch("tmdb_client.requests.get")
    def test_search_mode_uses_search_endpoint(self, get):
        get.return_value = _response(payload={"results": []})
        tmdb_client.fetch_page("key", "search", {"query": "space"})
        self.assertTrue(get.call_args.args[0].endswith("/search/movie"))

    @mock.patch("tmdb_client.requests.get")
    def test_failures_degrade_to_empty(self, get):
        for outcome in (
            _response(status=500),
            _response(bad_json=True),
            _response(payload={"results": "nope"}),
            requests.Timeout(),
        ):
            with self.subTest(outcome=outcome):
                if isinstance(outcome, Exception):
                    get.side_effect = outcome
                else:
                    get.side_effect = None
                    get.return_value = outcome
                self.assertEqual(tmdb_client.fetch_page("key", "discover", {}), [])

    def test_missing_key_is_fatal(self):
        with self.assertRaises(ConfigurationError):
            tmdb_client.fetch_page("", "discover", {})

    @mock.patch("tmdb_client.requests.get")
    def test_search_keywords(self, get):
        get.return_value = _response(payload={"results": [{"id": 9882, "name": "space"}, {"id": 1}]})
        self.assertEqual(tmdb_client.search_keywords("key", "space"), ["9882", "1"])

        get.return_value = _response(status=401)
        self.assertEqual(tmdb_client.search_keywords("key", "space"), [])


class VerifyMovieTests(unittest.TestCase):
    @mock.patch("tmdb_client.requests.get")
    def test_exact_case_insensitive_match_is_found(self, get):
        get.return_value = _response(payload={"results": [OH_HI_MARK, OH_HI]})
        result = tmdb_client.verify_movie("key", "oh, hi!")
        self.assertTrue(result["found"])
        self.assertEqual(result["item"], OH_HI)

    @mock.patch("tmdb_client.requests.get")
    def test_near_miss_returns_suggestions(self, get):
        others = [{"id": i, "title": f"Hi {i}"} for i in range(5)]
        get.return_value = _response(payload={"results": [OH_HI] + others})
        result = tmdb_client.verify_movie("key", "Oh Hi")
        self.assertFalse(result["found"])
        self.assertEqual(result["suggestions"], ["Oh, Hi!", "Hi 0", "Hi 1"])

    @mock.patch("tmdb_client.requests.get")
    def test_no_results(self, get):
        get.return_value = _response(payload={"results": []})
        self.assertEqual(tmdb_client.verify_movie("key", "zzz"), {"found": False, "suggestions": []})

    @mock.patch("tmdb_client.requests.get")
    def test_upstream_failure_propagates(self, get):
        get.return_value = _response(status=503)
        with self.assertRaises(tmdb_client.CatalogError):
            tmdb_client.verify_movie("key", "Oh, Hi!")


if __name__ == "__main__":
    unittest.main()
