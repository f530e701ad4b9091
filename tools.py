"""Tool functions exposed to the chat agent.

Every tool takes the caller's library (viewing history) as an argument and
returns a JSON-serializable payload. Library-changing tools return a
``ToolResult`` whose ``instruction`` tells the UI what to do with the library;
the tools themselves never write to storage.
"""

import enum
from dataclasses import dataclass
from typing import Any

from loguru import logger

import recommender
import tmdb_client
from config import DEFAULT_LANGUAGE
from tmdb_client import normalize_title


class Instruction(str, enum.Enum):
    ADD_MOVIE = "ADD_MOVIE"
    ALREADY_IN_LIBRARY = "ALREADY_IN_LIBRARY"
    MOVIE_NOT_FOUND = "MOVIE_NOT_FOUND"
    CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"
    REMOVE_MOVIE = "REMOVE_MOVIE"
    NOT_IN_LIBRARY = "NOT_IN_LIBRARY"
    SHOW_LIBRARY = "SHOW_LIBRARY"


@dataclass(frozen=True)
class ToolResult:
    message: str
    instruction: Instruction
    data: Any = None

    def to_dict(self):
        payload = {"message": self.message, "instruction": self.instruction.value}
        if self.data is not None:
            payload["data"] = self.data
        return payload


def search_movies(
    api_key,
    history,
    genre=None,
    keywords=None,
    decade=None,
    amount=recommender.DEFAULT_AMOUNT,
    sort=None,
    min_rating=None,
    max_rating=None,
    language=DEFAULT_LANGUAGE,
):
    return recommender.search(
        api_key,
        history,
        genre=genre,
        keywords=keywords,
        decade=decade,
        amount=amount,
        sort=sort,
        min_rating=min_rating,
        max_rating=max_rating,
        language=language,
    )


def recommend_movies(api_key, history, amount=recommender.DEFAULT_AMOUNT, language=DEFAULT_LANGUAGE):
    return recommender.recommend(api_key, history, amount=amount, language=language)


def verify_and_add(
    api_key,
    title,
    history,
    genre=None,
    release_year=None,
    vote_average=None,
    plot=None,
    language=DEFAULT_LANGUAGE,
):
    existing = _find(history, title)
    if existing:
        return ToolResult(
            f'"{existing["movie"]}" is already in your library.',
            Instruction.ALREADY_IN_LIBRARY,
            {"title": existing["movie"]},
        )

    try:
        result = tmdb_client.verify_movie(api_key, title, language)
    except tmdb_client.CatalogError as exc:
        logger.warning("[Tools] Could not verify '{}': {}", title, exc)
        return ToolResult(
            "The movie database is unavailable right now. Please try again later.",
            Instruction.CATALOG_UNAVAILABLE,
        )

    if not result["found"]:
        suggestions = result["suggestions"]
        if suggestions:
            message = f"Movie not found. Did you mean: {', '.join(suggestions)}?"
        else:
            message = "Movie does not exist"
        return ToolResult(message, Instruction.MOVIE_NOT_FOUND, {"suggestions": suggestions})

    record = recommender.format_movie(result["item"])
    if genre:
        record["genre"] = genre
    if release_year:
        record["releaseYear"] = str(release_year)
    if vote_average is not None:
        record["vote_average"] = float(vote_average)
    if plot:
        record["plot"] = plot
    return ToolResult(
        f'I\'ll add "{record["movie"]}" to your library.',
        Instruction.ADD_MOVIE,
        record,
    )


def remove_movie(title, history):
    existing = _find(history, title)
    if not existing:
        return ToolResult(f'"{title}" is not in your library.', Instruction.NOT_IN_LIBRARY)
    return ToolResult(
        f'I\'ll remove "{existing["movie"]}" from your library.',
        Instruction.REMOVE_MOVIE,
        {"title": existing["movie"]},
    )


def view_library(history):
    history = list(history or [])
    if not history:
        return ToolResult("Your library is empty.", Instruction.SHOW_LIBRARY, [])
    titles = "\n".join(f"- {entry['movie']}" for entry in history)
    return ToolResult(f"Here are the movies in your library:\n{titles}", Instruction.SHOW_LIBRARY, history)


def _find(history, title):
    wanted = normalize_title(title)
    for entry in history or []:
        if normalize_title(entry.get("movie")) == wanted:
            return entry
    return None


TOOL_SCHEMAS = [
    {
        "type": "function",
        "name": "search_movies",
        "description": (
            "Search TMDB for movies matching a genre, mood keywords, decade, sort order or "
            "rating bounds. Movies already in the user's library are left out."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "genre": {"type": "string", "description": "Genre name or TMDB genre id."},
                "keywords": {
                    "type": "string",
                    "description": 'Theme or mood keywords, e.g. "friendship", "space".',
                },
                "decade": {"type": "string", "description": 'A decade like "1990s" or "90s", or a year like "1995".'},
                "amount": {"type": "integer", "description": "Number of movies to return (default 5)."},
                "sort": {
                    "type": "string",
                    "description": (
                        "TMDB sort key: popularity.desc (popular), vote_count.desc (top rated), "
                        "release_date.desc (new), revenue.desc (box office); use .asc for the opposite."
                    ),
                },
                "min_rating": {"type": "number", "description": "Minimum rating (1-10). Only if asked."},
                "max_rating": {"type": "number", "description": "Maximum rating (1-10). Only if asked."},
            },
        },
    },
    {
        "type": "function",
        "name": "recommend_movies",
        "description": "Recommend movies based on the favorite genre in the user's library.",
        "parameters": {
            "type": "object",
            "properties": {
                "amount": {"type": "integer", "description": "Number of movies to return (default 5)."},
            },
        },
    },
    {
        "type": "function",
        "name": "add_to_library",
        "description": "Verify a movie exists on TMDB and add it to the user's library.",
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "The exact movie title."},
                "genre": {"type": "string"},
                "release_year": {"type": "string"},
                "vote_average": {"type": "number"},
                "plot": {"type": "string"},
            },
            "required": ["title"],
        },
    },
    {
        "type": "function",
        "name": "remove_from_library",
        "description": "Remove a movie from the user's library.",
        "parameters": {
            "type": "object",
            "properties": {"title": {"type": "string"}},
            "required": ["title"],
        },
    },
    {
        "type": "function",
        "name": "view_library",
        "description": "List the movies in the user's library.",
        "parameters": {"type": "object", "properties": {}},
    },
]


_PROPERTIES = {schema["name"]: set(schema["parameters"]["properties"]) for schema in TOOL_SCHEMAS}


def dispatch(name, arguments, api_key, history, language=DEFAULT_LANGUAGE):
    """Run a tool by name and return ``(payload, tool_result_or_None)``."""
    allowed = _PROPERTIES.get(name)
    if allowed is None:
        raise ValueError(f"Unknown tool: {name}")
    arguments = {key: value for key, value in (arguments or {}).items() if key in allowed and value is not None}
    logger.info("[Tools] {}({})", name, ", ".join(f"{k}={v!r}" for k, v in arguments.items()))
    if name == "search_movies":
        return search_movies(api_key, history, language=language, **arguments), None
    if name == "recommend_movies":
        return recommend_movies(api_key, history, language=language, **arguments), None
    if name == "add_to_library":
        result = verify_and_add(api_key, history=history, language=language, **arguments)
    elif name == "remove_from_library":
        result = remove_movie(arguments.get("title", ""), history)
    else:
        result = view_library(history)
    return result.to_dict(), result
