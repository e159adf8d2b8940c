"""Extract a JSON value from free-form model text."""
import json
import re
from typing import Any

from leadgen.errors import EmptyResponse, UnparsableResponse

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


def parse_json_response(text: str) -> Any:
    """
    Parse the JSON the model embedded in ``text``.

    Tries, in order: the first fenced code block (tagged ``json`` or untagged),
    then the span between the first ``{`` and the last ``}``. The first
    successful parse wins.

    Raises:
        EmptyResponse: if ``text`` is empty or blank.
        UnparsableResponse: if no attempt succeeds; ``raw_text`` keeps the input.
    """
    if not text or not text.strip():
        raise EmptyResponse()

    match = _FENCED_BLOCK.search(text)
    if match and match.group(1):
        try:
            return json.loads(match.group(1))
        except ValueError:
            pass

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        try:
            return json.loads(text[first_brace:last_brace + 1])
        except ValueError:
            pass

    raise UnparsableResponse(raw_text=text)
