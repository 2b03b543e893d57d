"""Chat Completions call against the Groq (OpenAI-compatible) API."""

import logging

import requests

from scripts.config import Settings
from scripts.errors import EmptyResponseError, RequestError

logger = logging.getLogger(__name__)


def _summarize_body(text: str) -> str:
    """Return a short, single-line summary of a response body."""

    text = (text or "").strip().replace("\n", " ")
    if len(text) > 240:
        text = text[:240] + "…"
    return text


def build_payload(model: str, user_prompt: str) -> dict:
    return {
        "model": model,
        "messages": [
            {"role": "user", "content": user_prompt},
        ],
    }


def request_completion(settings: Settings, user_prompt: str, *, session=None) -> str:
    """Send ``user_prompt`` as a one-message conversation and return the
    text content of the first choice.

    Raises ``RequestError`` on transport failures and unparseable bodies,
    ``EmptyResponseError`` when the API returns no choices.
    """
    headers = {
        "Authorization": f"Bearer {settings.groq_api_key}",
        "Content-Type": "application/json",
    }
    payload = build_payload(settings.groq_model, user_prompt)
    http = session or requests

    try:
        resp = http.post(
            settings.groq_endpoint,
            headers=headers,
            json=payload,
            timeout=settings.request_timeout,
        )
    except requests.RequestException as exc:
        raise RequestError(f"completion request failed: {exc}") from exc

    logger.debug("Completion API answered HTTP %s", resp.status_code)

    try:
        data = resp.json()
    except ValueError as exc:
        raise RequestError(
            f"could not parse completion API response: {_summarize_body(resp.text)}"
        ) from exc

    choices = data.get("choices") if isinstance(data, dict) else None
    if not choices:
        raise EmptyResponseError(
            f"no choices returned from completion API (HTTP {resp.status_code}): "
            f"{_summarize_body(resp.text)}"
        )

    try:
        content = choices[0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RequestError(f"completion content extraction failed: {exc!r}") from exc
    if not isinstance(content, str):
        raise RequestError("completion content is not a string")
    return content
