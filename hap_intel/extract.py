"""Locate the JSON profile inside free-text model output.

Extractors are plain callables ``(text) -> dict`` raising MalformedResponse,
so the fetcher can be handed a different one without other changes.
"""
import json
from typing import Callable

from .errors import MalformedResponse

Extractor = Callable[[str], dict]

_EXCERPT = 500


def _reject_constant(name: str):
    # NaN and Infinity are not valid JSON
    raise ValueError(f"non-standard constant {name}")


def extract_json(text: str) -> dict:
    """Parse the span from the first '{' to the last '}' of the trimmed text.

    Handles prose or markdown fences around a single object. No repair is
    attempted: a broken span fails as a whole.
    """
    text = (text or "").strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise MalformedResponse("No JSON object found in the model response", raw=text[:_EXCERPT])
    try:
        data = json.loads(text[start:end + 1], parse_constant=_reject_constant)
    except ValueError as e:
        raise MalformedResponse(f"Model response is not valid JSON: {e}", raw=text[:_EXCERPT]) from e
    if not isinstance(data, dict):
        raise MalformedResponse("Model response JSON is not an object", raw=text[:_EXCERPT])
    return data


def extract_first_object(text: str) -> dict:
    """Return the first complete, balanced JSON object found in the text.

    Stricter than extract_json when prose after the object contains braces,
    e.g. a trailing citation like "{1}".
    """
    text = (text or "").strip()
    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    pos = text.find("{")
    while pos != -1:
        try:
            data, _ = decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            pos = text.find("{", pos + 1)
            continue
        except ValueError as e:
            raise MalformedResponse(f"Model response is not valid JSON: {e}", raw=text[:_EXCERPT]) from e
        if isinstance(data, dict):
            return data
        pos = text.find("{", pos + 1)
    raise MalformedResponse("No JSON object found in the model response", raw=text[:_EXCERPT])
