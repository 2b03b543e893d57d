"""Turn free-form model output into a ``PromptRecord``.

Models rarely return clean JSON even when told to: the object arrives
wrapped in chatter or code fences, and trailing commas are common. The
extraction here is deliberately simple. Everything from the first ``{`` to
the last ``}`` is taken as the object, so two separate objects in one reply
get merged into a single (usually invalid) block.
"""

import json
import re
from dataclasses import dataclass, field

from scripts.errors import MalformedOutputError

_JSON_BLOCK_RE = re.compile(r"\{.*\}", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")
_WS_RE = re.compile(r"[ \t\n\r]*")
_DECODER = json.JSONDecoder()
_FIELD_NAMES = {
    name.lower(): name
    for name in ("title", "description", "prompt", "useCases", "tags", "example")
}


@dataclass
class PromptRecord:
    title: str = ""
    description: str = ""
    prompt: str = ""
    use_cases: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    example: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "prompt": self.prompt,
            "useCases": list(self.use_cases),
            "tags": list(self.tags),
            "example": self.example,
        }


def extract_json_block(text: str) -> str:
    """Return the cleaned JSON candidate embedded in ``text``.

    Empty string when there is no ``{...}`` region at all.
    """
    match = _JSON_BLOCK_RE.search(text or "")
    block = match.group(0) if match else ""

    block = _TRAILING_COMMA_RE.sub(r"\1", block)
    block = block.strip()
    block = block.removeprefix("```json")
    block = block.removesuffix("```")
    return block


def _skip_ws(text: str, pos: int) -> int:
    return _WS_RE.match(text, pos).end()


def _member_spans(block: str) -> list[tuple[str, str]]:
    """List each top-level member of a valid JSON object as (key, raw value
    text), in source order and keeping duplicates."""

    members: list[tuple[str, str]] = []
    pos = _skip_ws(block, 0) + 1  # '{'
    pos = _skip_ws(block, pos)
    if block[pos] == "}":
        return members
    while True:
        key, pos = _DECODER.raw_decode(block, pos)
        pos = _skip_ws(block, pos) + 1  # ':'
        start = _skip_ws(block, pos)
        _, end = _DECODER.raw_decode(block, start)
        members.append((key, block[start:end]))
        pos = _skip_ws(block, end)
        if block[pos] == "}":
            return members
        pos = _skip_ws(block, pos + 1)  # ','


def _field_spans(block: str) -> dict[str, str]:
    """Raw value text per record field.

    Keys match field names exactly or case-insensitively ("Title",
    "USECASES"); when several keys land on the same field the last one wins.
    """
    spans: dict[str, str] = {}
    for key, span in _member_spans(block):
        name = _FIELD_NAMES.get(key.lower())
        if name is not None:
            spans[name] = span
    return spans


def _loads(text: str, cleaned: str):
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise MalformedOutputError(f"could not parse model output: {exc}", cleaned) from exc


def resolve_example(span: str) -> dict:
    """Use the example as-is when it is a JSON object, else wrap the raw text."""
    if span.startswith("{"):
        try:
            value = json.loads(span)
        except (json.JSONDecodeError, RecursionError):
            value = None
        if isinstance(value, dict):
            return value
    return {"text": span}


def _string_field(spans: dict, key: str, cleaned: str) -> str:
    value = _loads(spans[key], cleaned) if key in spans else None
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedOutputError(
            f"field {key!r} must be a string, got {type(value).__name__}", cleaned
        )
    return value


def _string_list_field(spans: dict, key: str, cleaned: str) -> list[str]:
    value = _loads(spans[key], cleaned) if key in spans else None
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedOutputError(
            f"field {key!r} must be a list of strings, got {type(value).__name__}", cleaned
        )
    items = []
    for item in value:
        if item is None:
            item = ""
        if not isinstance(item, str):
            raise MalformedOutputError(
                f"field {key!r} must only contain strings, got {type(item).__name__}",
                cleaned,
            )
        items.append(item)
    return items


def parse_record(cleaned: str) -> PromptRecord:
    """Parse an already extracted JSON block into a ``PromptRecord``."""
    data = _loads(cleaned, cleaned)
    if not isinstance(data, dict):
        raise MalformedOutputError(
            f"model output is a JSON {type(data).__name__}, not an object", cleaned
        )

    # json drops the source text of values; the example needs it verbatim.
    spans = _field_spans(cleaned)

    return PromptRecord(
        title=_string_field(spans, "title", cleaned),
        description=_string_field(spans, "description", cleaned),
        prompt=_string_field(spans, "prompt", cleaned),
        use_cases=_string_list_field(spans, "useCases", cleaned),
        tags=_string_list_field(spans, "tags", cleaned),
        example=resolve_example(spans.get("example", "")),
    )


def normalize_response(raw_text: str) -> PromptRecord:
    return parse_record(extract_json_block(raw_text))
