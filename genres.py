GENRE_IDS = {
    "Action": 28,
    "Adventure": 12,
    "Animation": 16,
    "Comedy": 35,
    "Crime": 80,
    "Documentary": 99,
    "Drama": 18,
    "Family": 10751,
    "Fantasy": 14,
    "History": 36,
    "Horror": 27,
    "Music": 10402,
    "Mystery": 9648,
    "Romance": 10749,
    "Science Fiction": 878,
    "TV Movie": 10770,
    "Thriller": 53,
    "War": 10752,
    "Western": 37,
}

GENRE_NAMES = {genre_id: name for name, genre_id in GENRE_IDS.items()}

# Title-casing turns "TV Movie" into "Tv Movie".
_ALIASES = {"Tv Movie": "TV Movie"}


def normalize_genre_name(name):
    words = name.strip().split()
    titled = " ".join(word[:1].upper() + word[1:].lower() for word in words)
    return _ALIASES.get(titled, titled)


def id_for(name):
    if not name:
        return None
    return GENRE_IDS.get(normalize_genre_name(name))


def name_for(genre_id):
    return GENRE_NAMES.get(genre_id)


def resolve_genre(value):
    """Return a TMDB genre id for a name or numeric string, or None."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    return id_for(text)


def names_for(genre_ids):
    names = [name_for(genre_id) for genre_id in genre_ids or []]
    return [name for name in names if name]
