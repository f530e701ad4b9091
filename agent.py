import json

import openai
from openai import OpenAI
from loguru import logger

import tools
from tools import Instruction


MAX_TOOL_ROUNDS = 4

ERROR_FALLBACK = "Sorry, I couldn't come up with an answer just now. Please try rephrasing your request."

SYSTEM_PROMPT = (
    "You are a friendly assistant that helps users choose a movie to watch.\n"
    "Never answer from memory: always call a tool to find movies.\n"
    "Rules:\n"
    "- For genre, mood, theme, decade or sorting requests call search_movies. Map moods to the\n"
    "  closest TMDB genre (Action, Adventure, Animation, Comedy, Crime, Documentary, Drama,\n"
    "  Family, Fantasy, History, Horror, Music, Mystery, Romance, Science Fiction, TV Movie,\n"
    "  Thriller, War, Western). Use keywords for themes.\n"
    '- Map sorting words: "popular" -> popularity.desc, "top rated" -> vote_count.desc,\n'
    '  "new" -> release_date.desc, "box office" -> revenue.desc (use .asc for the opposite).\n'
    "- Only pass min_rating or max_rating when the user explicitly asks about ratings.\n"
    "- For recommendations based on the user's library call recommend_movies.\n"
    "- To add, remove or list library movies call add_to_library, remove_from_library or\n"
    "  view_library. Never claim a library change without calling the tool.\n"
    "- If add_to_library reports MOVIE_NOT_FOUND, ask the user which suggestion they meant.\n"
    "Format each movie as:\n"
    "1. **Title** - Year - Rating/10\n"
    "Genre: ...\n"
    "A short, engaging plot summary and one sentence on why you chose it."
)


def run_turn(messages, history, settings, client=None):
    """Answer the latest user message, calling tools as needed.

    ``messages`` is the chat transcript as role/content dicts and ``history``
    the user's library. Returns the reply text and the ToolResults produced
    by library tools, in call order, for the caller to apply.
    """
    if not messages:
        return "", []

    client = client or OpenAI(api_key=settings.openai_api_key)
    history = list(history or [])
    input_items = [{"role": m["role"], "content": m["content"]} for m in messages]
    results = []

    try:
        for _ in range(MAX_TOOL_ROUNDS + 1):
            response = client.responses.create(
                model=settings.openai_model,
                instructions=SYSTEM_PROMPT,
                input=input_items,
                tools=tools.TOOL_SCHEMAS,
            )
            calls = [item for item in response.output if item.type == "function_call"]
            if not calls:
                return response.output_text or ERROR_FALLBACK, results

            input_items += response.output
            for call in calls:
                payload, result = _call_tool(call, history, settings)
                if result is not None:
                    results.append(result)
                    history = _updated_history(history, result)
                input_items.append(
                    {
                        "type": "function_call_output",
                        "call_id": call.call_id,
                        "output": json.dumps(payload, ensure_ascii=False),
                    }
                )
        logger.warning("[Agent] Gave up after {} tool rounds", MAX_TOOL_ROUNDS)
    except openai.OpenAIError as exc:
        logger.error("[Agent] OpenAI request failed: {}", exc)
    return ERROR_FALLBACK, results


def _call_tool(call, history, settings):
    try:
        arguments = json.loads(call.arguments or "{}")
    except json.JSONDecodeError:
        return {"error": "Arguments were not valid JSON."}, None
    try:
        return tools.dispatch(call.name, arguments, settings.tmdb_api_key, history, settings.tmdb_language)
    except (TypeError, ValueError) as exc:
        logger.warning("[Agent] Tool {} rejected its arguments: {}", call.name, exc)
        return {"error": f"Invalid call to {call.name}."}, None


def _updated_history(history, result):
    # Later tool calls in the same turn see the pending library change.
    if result.instruction == Instruction.ADD_MOVIE:
        return history + [result.data]
    if result.instruction == Instruction.REMOVE_MOVIE:
        return [entry for entry in history if entry.get("movie") != result.data["title"]]
    return history
