from __future__ import annotations

import json
import re
from typing import Any, Iterator

from aipm.errors import SchemaError

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", flags=re.DOTALL | re.IGNORECASE)


def _unfenced(text: str) -> str:
    blocks = _FENCE.findall(text)
    return "\n".join(blocks) if blocks else text


def _object_starts(text: str) -> Iterator[str]:
    yield text
    for match in re.finditer(r"\{", text):
        yield text[match.start():]


def _reject_constant(name: str) -> Any:
    raise SchemaError(f"Non-finite number {name} is not valid JSON.")


def _snippet(text: str) -> str:
    snippet = text.replace("\n", " ")
    return (snippet[:200] + "...") if len(snippet) > 200 else snippet


def _decode(text: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    for candidate in _object_starts(_unfenced(text).strip()):
        try:
            parsed, _ = decoder.raw_decode(candidate)
        except json.JSONDecodeError:
            continue
        return parsed

    raise SchemaError(f"No JSON object found in response. Snippet: {_snippet(text)}")


def extract_json(raw_text: str) -> Any:
    """Pull the first JSON value out of a completion.

    Replies are tried as-is, then without markdown fences, then from each
    ``{`` onwards so that a chatty preamble does not hide the payload.
    ``NaN``/``Infinity`` and nesting too deep to decode are rejected.
    """
    text = raw_text.strip()
    try:
        return _decode(text)
    except RecursionError as exc:
        raise SchemaError(f"Response is nested too deeply. Snippet: {_snippet(text)}") from exc
