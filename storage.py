import datetime
import pathlib
import sqlite3
from contextlib import contextmanager

from loguru import logger

from config import DEFAULT_DB_PATH
from tmdb_client import normalize_title
from tools import Instruction


DB_PATH = pathlib.Path(DEFAULT_DB_PATH)


def init_db(db_path=None):
    path = _resolve_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with _get_conn(path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS library_movies (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                library_id TEXT NOT NULL,
                title_key TEXT NOT NULL,
                movie TEXT NOT NULL,
                genre TEXT NOT NULL,
                plot TEXT NOT NULL,
                release_year TEXT NOT NULL,
                vote_average REAL NOT NULL,
                added_at TEXT NOT NULL,
                UNIQUE(library_id, title_key)
            )
            """
        )


def add_movie(library_id, record, db_path=None):
    if not library_id or not record or not record.get("movie"):
        return False
    path = _resolve_db_path(db_path)
    with _get_conn(path) as conn:
        try:
            conn.execute(
                """
                INSERT INTO library_movies
                    (library_id, title_key, movie, genre, plot, release_year, vote_average, added_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    library_id,
                    normalize_title(record["movie"]),
                    record["movie"],
                    record.get("genre") or "Unknown",
                    record.get("plot") or "",
                    str(record.get("releaseYear") or "Unknown"),
                    float(record.get("vote_average") or 0),
                    _now(),
                ),
            )
        except sqlite3.IntegrityError:
            logger.debug("[Storage] '{}' already in library {}", record["movie"], library_id)
            return False
    return True


def remove_movie(library_id, title, db_path=None):
    path = _resolve_db_path(db_path)
    with _get_conn(path) as conn:
        cursor = conn.execute(
            "DELETE FROM library_movies WHERE library_id = ? AND title_key = ?",
            (library_id, normalize_title(title)),
        )
    return cursor.rowcount > 0


def get_library(library_id, db_path=None):
    path = _resolve_db_path(db_path)
    with _get_conn(path) as conn:
        rows = conn.execute(
            """
            SELECT movie, genre, plot, release_year, vote_average
            FROM library_movies
            WHERE library_id = ?
            ORDER BY id
            """,
            (library_id,),
        ).fetchall()
    return [
        {
            "movie": row["movie"],
            "genre": row["genre"],
            "plot": row["plot"],
            "releaseYear": row["release_year"],
            "vote_average": row["vote_average"],
        }
        for row in rows
    ]


def clear_library(library_id, db_path=None):
    path = _resolve_db_path(db_path)
    with _get_conn(path) as conn:
        conn.execute("DELETE FROM library_movies WHERE library_id = ?", (library_id,))


def apply_tool_result(library_id, result, db_path=None):
    """Carry out the library change a tool asked for. Returns True on a change."""
    if result.instruction == Instruction.ADD_MOVIE:
        return add_movie(library_id, result.data, db_path)
    if result.instruction == Instruction.REMOVE_MOVIE:
        return remove_movie(library_id, result.data["title"], db_path)
    return False


def _resolve_db_path(db_path):
    return pathlib.Path(db_path) if db_path else DB_PATH


def _connect(path):
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def _get_conn(path):
    conn = _connect(path)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def _now():
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")
