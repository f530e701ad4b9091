import requests
from loguru import logger

from config import DEFAULT_LANGUAGE, ConfigurationError


BASE_URL = "https://api.themoviedb.org/3"
TIMEOUT = 10


class CatalogError(RuntimeError):
    pass


def _get(url, params):
    try:
        response = requests.get(url, params=params, timeout=TIMEOUT)
    except requests.RequestException as exc:
        raise CatalogError(f"TMDB request failed: {exc.__class__.__name__}") from exc
    if response.status_code != 200:
        raise CatalogError(f"TMDB request failed: {response.status_code}")
    try:
        data = response.json()
    except ValueError as exc:
        raise CatalogError("TMDB returned a malformed payload") from exc
    if not isinstance(data, dict):
        raise CatalogError("TMDB returned a malformed payload")
    return data


def _auth(api_key, language=None):
    if not api_key:
        raise ConfigurationError("TMDB_API_KEY is not set")
    params = {"api_key": api_key}
    if language:
        params["language"] = language
    return params


def _results(data):
    results = data.get("results") or []
    if not isinstance(results, list):
        raise CatalogError("TMDB returned a malformed payload")
    return [item for item in results if isinstance(item, dict) and item.get("title")]


def discover_movies(api_key, params, language=DEFAULT_LANGUAGE):
    url = f"{BASE_URL}/discover/movie"
    payload = _auth(api_key, language)
    payload["include_adult"] = "false"
    payload.update(params)
    return _results(_get(url, payload))


def search_movies(api_key, params, language=DEFAULT_LANGUAGE):
    url = f"{BASE_URL}/search/movie"
    payload = _auth(api_key, language)
    payload["include_adult"] = "false"
    payload.update(params)
    return _results(_get(url, payload))


def search_keywords(api_key, term):
    url = f"{BASE_URL}/search/keyword"
    payload = _auth(api_key)
    payload["query"] = term
    try:
        data = _get(url, payload)
    except CatalogError as exc:
        logger.warning("[TMDB] Keyword lookup for '{}' failed: {}", term, exc)
        return []
    return [str(keyword["id"]) for keyword in data.get("results") or [] if "id" in keyword]


def fetch_page(api_key, mode, params, language=DEFAULT_LANGUAGE):
    """Fetch one catalog page, degrading to an empty list on upstream failure."""
    fetch = search_movies if mode == "search" else discover_movies
    try:
        items = fetch(api_key, params, language)
    except CatalogError as exc:
        logger.warning("[TMDB] {} request failed, returning no items: {}", mode, exc)
        return []
    logger.debug("[TMDB] {} returned {} items", mode, len(items))
    return items


def verify_movie(api_key, title, language=DEFAULT_LANGUAGE):
    items = search_movies(api_key, {"query": title}, language)
    wanted = normalize_title(title)
    for item in items:
        if normalize_title(item["title"]) == wanted:
            return {"found": True, "item": item}
    return {"found": False, "suggestions": [item["title"] for item in items[:3]]}


def normalize_title(title):
    return (title or "").strip().casefold()
