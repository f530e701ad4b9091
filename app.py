import uuid

import streamlit as st

import agent
import config
import genres
import storage
import tools
from tools import Instruction


st.set_page_config(page_title="Movie Night", page_icon="🎬", layout="centered")

try:
    settings = config.load_settings(st.secrets)
except config.ConfigurationError:
    st.error("TMDB API key is missing. Add TMDB_API_KEY to your Streamlit secrets or environment.")
    st.stop()

config.configure_logging(settings.log_level)


@st.cache_resource
def _init_storage(db_path):
    storage.init_db(db_path)
    return db_path


db_path = _init_storage(settings.library_db_path)

st.session_state.setdefault("library_id", uuid.uuid4().hex)
st.session_state.setdefault("messages", [])
st.session_state.setdefault("last_movies", [])

library_id = st.session_state.library_id


def current_library():
    return storage.get_library(library_id, db_path)


def apply_results(results):
    for result in results:
        if storage.apply_tool_result(library_id, result, db_path):
            verb = "Added" if result.instruction == Instruction.ADD_MOVIE else "Removed"
            title = result.data.get("movie") or result.data.get("title")
            st.toast(f"{verb} {title}")


def render_movies(movies):
    for movie in movies:
        st.markdown(f"**{movie['movie']}** - {movie['releaseYear']} - {movie['vote_average']:.1f}/10")
        st.caption(f"Genre: {movie['genre']}")
        st.write(movie["plot"])
        if movie.get("recommendation_reason"):
            st.caption(movie["recommendation_reason"])


st.title("🎬 Movie Night")
st.caption("Tell me what you're in the mood for.")

with st.sidebar:
    st.header("Your library")
    library = current_library()
    if not library:
        st.info("No movies yet. Add a few you've seen to get personal picks.")
    for entry in library:
        cols = st.columns([4, 1])
        cols[0].write(f"{entry['movie']} ({entry['releaseYear']})")
        if cols[1].button("✕", key=f"remove-{entry['movie']}"):
            apply_results([tools.remove_movie(entry["movie"], library)])
            st.rerun()

    with st.form("add-movie", clear_on_submit=True):
        title = st.text_input("Add a movie you've seen")
        if st.form_submit_button("Add") and title.strip():
            result = tools.verify_and_add(settings.tmdb_api_key, title.strip(), library, language=settings.tmdb_language)
            if result.instruction == Instruction.ADD_MOVIE:
                apply_results([result])
                st.rerun()
            else:
                st.warning(result.message)

    if st.button("Recommend from my library"):
        picks = tools.recommend_movies(settings.tmdb_api_key, library, language=settings.tmdb_language)
        st.session_state.last_movies = picks["movies"]
        st.session_state.messages.append({"role": "assistant", "content": picks["message"]})

    if library and st.button("Clear library"):
        storage.clear_library(library_id, db_path)
        st.toast("Library cleared")
        st.rerun()


if settings.openai_api_key:
    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    prompt = st.chat_input("Something cozy from the 90s?")
    if prompt:
        st.session_state.messages.append({"role": "user", "content": prompt})
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("Looking for movies..."):
                reply, results = agent.run_turn(st.session_state.messages, current_library(), settings)
            st.markdown(reply)
        st.session_state.messages.append({"role": "assistant", "content": reply})
        if results:
            apply_results(results)
            st.rerun()
else:
    st.warning("OpenAI key not found. Chat is off; use the search form instead.")
    with st.form("search"):
        genre = st.selectbox("Genre", [""] + list(genres.GENRE_IDS))
        keywords = st.text_input("Keywords", placeholder="friendship, space")
        decade = st.text_input("Decade or year", placeholder="1990s")
        amount = st.slider("How many", 1, 10, 5)
        if st.form_submit_button("Search"):
            found = tools.search_movies(
                settings.tmdb_api_key,
                current_library(),
                genre=genre or None,
                keywords=keywords or None,
                decade=decade or None,
                amount=amount,
                language=settings.tmdb_language,
            )
            st.session_state.last_movies = found["movies"]
            if not found["movies"]:
                st.info("No movies matched. Try loosening your filters.")
    if st.session_state.messages:
        st.write(st.session_state.messages[-1]["content"])

if st.session_state.last_movies:
    render_movies(st.session_state.last_movies)
