import datetime
import random
import re

from loguru import logger

import genres
import tmdb_client
from config import DEFAULT_LANGUAGE
from tmdb_client import normalize_title


DEFAULT_AMOUNT = 5
MAX_KEYWORD_IDS = 10
RANDOM_PAGES = 5
RANDOM_SORTS = ["popularity.desc", "vote_average.desc", "release_date.desc", "revenue.desc"]
RANDOM_BAND = (1.0, 10.0)
FALLBACK_MIN_RATING = 7.0

NO_PLOT = "No description available"
UNKNOWN = "Unknown"
FALLBACK_REASON = "Popular movies to get you started"
FALLBACK_MESSAGE = "Popular movies to get you started."

_DECADE = re.compile(r"^((?:18|19|20)\d{2})'?s$", re.I)
_SHORT_DECADE = re.compile(r"^'?(\d0)'?s$", re.I)
_YEAR = re.compile(r"^(?:18|19|20)\d{2}$")


def build_query(
    api_key,
    genre=None,
    keywords=None,
    decade=None,
    sort=None,
    min_rating=None,
    max_rating=None,
    page=None,
    released_only=True,
    today=None,
    rng=None,
):
    rng = rng or random
    today = today or datetime.date.today()
    sort_by = sort or rng.choice(RANDOM_SORTS)
    page = page or pick_page(sort_by, rng)

    genre_id = genres.resolve_genre(genre)
    if keywords and not genre_id:
        return "search", {"query": keywords, "page": page, "sort_by": sort_by}

    params = {}
    if released_only:
        params["primary_release_date.lte"] = today.isoformat()

    if genre_id:
        params["with_genres"] = str(genre_id)
    elif genre:
        logger.debug("[Recommender] Unknown genre '{}', no genre filter applied", genre)

    if keywords:
        keyword_ids = tmdb_client.search_keywords(api_key, keywords)[:MAX_KEYWORD_IDS]
        if keyword_ids:
            params["with_keywords"] = "|".join(keyword_ids)
        else:
            logger.debug("[Recommender] No keyword ids for '{}'", keywords)

    window = decade_range(decade)
    if window:
        start, end = window
        if released_only:
            end = min(end, today)
        params["primary_release_date.gte"] = start.isoformat()
        params["primary_release_date.lte"] = end.isoformat()

    if min_rating is None and max_rating is None:
        params["vote_average.gte"] = RANDOM_BAND[0]
        params["vote_average.lte"] = RANDOM_BAND[1]
    else:
        if min_rating is not None:
            params["vote_average.gte"] = float(min_rating)
        if max_rating is not None:
            params["vote_average.lte"] = float(max_rating)

    params["sort_by"] = sort_by
    params["page"] = page
    return "discover", params


def decade_range(decade):
    """Expand "1990s" to 1990-01-01..1999-12-31 and "1995" to that one year.

    Two-digit decades read as the nearest century: "90s" is the 1990s and
    "20s" the 2020s.
    """
    if not decade:
        return None
    token = str(decade).strip()
    match = _DECADE.match(token)
    short = _SHORT_DECADE.match(token)
    if match or short:
        if match:
            start = int(match.group(1))
        else:
            start = int(short.group(1))
            start += 1900 if start >= 30 else 2000
        return datetime.date(start, 1, 1), datetime.date(start + 9, 12, 31)
    if _YEAR.match(token):
        year = int(token)
        return datetime.date(year, 1, 1), datetime.date(year, 12, 31)
    logger.debug("[Recommender] Ignoring unparseable decade '{}'", decade)
    return None


def pick_page(sort_by, rng=None):
    rng = rng or random
    lowered = (sort_by or "").lower()
    if "popular" in lowered or "top rated" in lowered or lowered.startswith("vote_count."):
        return 1
    return rng.randint(1, RANDOM_PAGES)


def exclude_seen(items, history):
    seen = {normalize_title(entry.get("movie")) for entry in history or []}
    return [item for item in items if normalize_title(item.get("title")) not in seen]


def released_items(items, today=None):
    cutoff = (today or datetime.date.today()).isoformat()
    return [
        item
        for item in items
        if item.get("release_date") and item["release_date"][:10] <= cutoff
    ]


def format_movie(item, reason=None):
    names = genres.names_for(item.get("genre_ids"))
    release_date = item.get("release_date") or ""
    year = release_date.split("-")[0]
    record = {
        "movie": item["title"],
        "genre": ", ".join(names) or UNKNOWN,
        "plot": item.get("overview") or NO_PLOT,
        "releaseYear": year if len(year) == 4 and year.isdigit() else UNKNOWN,
        "vote_average": float(item.get("vote_average") or 0),
    }
    if reason:
        record["recommendation_reason"] = reason
    return record


def format_results(items, amount=DEFAULT_AMOUNT, reason=None, rng=None):
    rng = rng or random
    shuffled = list(items)
    rng.shuffle(shuffled)
    return [format_movie(item, reason) for item in shuffled[: max(amount, 0)]]


def genre_counts(history):
    counts = {}
    for entry in history or []:
        for name in (entry.get("genre") or "").split(","):
            name = name.strip()
            if not name or name == UNKNOWN:
                continue
            counts[name] = counts.get(name, 0) + 1
    return counts


def favorite_genre(history):
    counts = genre_counts(history)
    best = None
    for name, count in counts.items():
        if best is None or count > counts[best]:
            best = name
    return best


def search(
    api_key,
    history,
    genre=None,
    keywords=None,
    decade=None,
    amount=DEFAULT_AMOUNT,
    sort=None,
    min_rating=None,
    max_rating=None,
    language=DEFAULT_LANGUAGE,
    today=None,
    rng=None,
):
    amount = DEFAULT_AMOUNT if amount is None else amount
    mode, params = build_query(
        api_key,
        genre=genre,
        keywords=keywords,
        decade=decade,
        sort=sort,
        min_rating=min_rating,
        max_rating=max_rating,
        today=today,
        rng=rng,
    )
    logger.info("[Recommender] Search mode={} params={}", mode, params)
    items = tmdb_client.fetch_page(api_key, mode, params, language)
    if mode == "search":
        items = released_items(items, today)
    unseen = exclude_seen(items, history)
    return {"movies": format_results(unseen, amount, rng=rng)}


def recommend(api_key, history, amount=DEFAULT_AMOUNT, language=DEFAULT_LANGUAGE, today=None, rng=None):
    amount = DEFAULT_AMOUNT if amount is None else amount
    if not history:
        logger.info("[Recommender] Empty history, using popular fallback")
        return _fallback(api_key, amount, language, today, rng)

    favorite = favorite_genre(history)
    genre_id = genres.id_for(favorite)
    if not genre_id:
        logger.info("[Recommender] No usable favorite genre ({}), using popular fallback", favorite)
        return _fallback(api_key, amount, language, today, rng)

    _, params = build_query(
        api_key,
        genre=genre_id,
        sort="popularity.desc",
        page=1,
        today=today,
        rng=rng,
    )
    items = tmdb_client.fetch_page(api_key, "discover", params, language)
    if not items:
        logger.info("[Recommender] No {} movies returned, using popular fallback", favorite)
        return _fallback(api_key, amount, language, today, rng)

    unseen = exclude_seen(items, history)
    if not unseen:
        logger.info("[Recommender] Every {} movie is already in the library, showing them anyway", favorite)
        unseen = items

    movies = format_results(unseen, amount, f"Similar to your favorite genre: {favorite}", rng)
    return {
        "movies": movies,
        "message": f"Found {len(movies)} recommendations based on your favorite genre: {favorite}",
    }


def _fallback(api_key, amount, language, today, rng):
    _, params = build_query(
        api_key,
        sort="popularity.desc",
        min_rating=FALLBACK_MIN_RATING,
        page=1,
        today=today,
        rng=rng,
    )
    items = tmdb_client.fetch_page(api_key, "discover", params, language)
    return {
        "movies": format_results(items, amount, FALLBACK_REASON, rng),
        "message": FALLBACK_MESSAGE,
    }
