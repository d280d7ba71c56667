import json
import re
from typing import Any

_FENCED = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class MalformedResponseError(ValueError):
    """The model reply did not contain the expected JSON document."""


def parse_json_response(text: str) -> Any:
    """Decode the JSON document in a model reply, unwrapping ``` fences."""
    if not isinstance(text, str) or not text.strip():
        raise MalformedResponseError("empty model response")

    fenced = _FENCED.search(text)
    candidate = fenced.group(1).strip() if fenced else text.strip()
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"model response is not JSON: {e}") from e


def parse_json_object(text: str) -> dict:
    data = parse_json_response(text)
    if not isinstance(data, dict):
        raise MalformedResponseError(f"expected a JSON object, got {type(data).__name__}")
    return data
