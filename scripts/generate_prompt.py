"""Daily AI prompt generator.

Asks Groq for a ready-to-use professional AI prompt, cleans the JSON out of
the reply and saves it through the backend API. Runs once on start, then on
the ``SCHEDULE_CRON`` trigger (default 09:00 every day) until SIGINT/SIGTERM.

Usage: python -m scripts.generate_prompt
"""

import logging
import signal
import sys

import requests

from scripts.backend import publish_record
from scripts.config import Settings, mask_secret, load_settings
from scripts.errors import ConfigError, MalformedOutputError, PipelineError
from scripts.groq_client import request_completion
from scripts.normalize import PromptRecord, extract_json_block, parse_record
from scripts.scheduler import DailyTrigger, Scheduler

logger = logging.getLogger(__name__)

# ====== Generation Prompt ======
GENERATION_PROMPT = """
Generate an AI prompt that can be used by professionals in a specific industry. Randomly choose one of the following sectors: marketing, education, finance, healthcare, e-commerce, SaaS, real estate, coaching, or content creation.

Your task is to:
- Create a practical and high-quality AI prompt relevant to the selected sector
- Wrap your response in a clean JSON object with these keys:
  - "title": Short, engaging name of the AI prompt
  - "description": A brief explanation of what the AI prompt does and who it's for
  - "tags": 3 to 5 lowercase tags (e.g. "marketing", "ecommerce", "email")
  - "prompt": The actual AI prompt (what the user will copy and use)
  - "useCases": A list of 3–5 specific use cases for this prompt
  - "example": A single realistic example of the output when this prompt is used

Output your response ONLY as a JSON object, without any extra commentary or Markdown.
""".strip()


# ====== Pipeline ======
def _run_pass(settings: Settings, session) -> PromptRecord:
    raw_response = request_completion(settings, GENERATION_PROMPT, session=session)
    logger.debug("Raw Groq response:\n%s", raw_response)

    cleaned = extract_json_block(raw_response)
    logger.debug("Cleaned JSON:\n%s", cleaned)

    record = parse_record(cleaned)
    publish_record(settings, record, session=session)
    return record


def run_prompt_generation(settings: Settings, *, session=None) -> PromptRecord | None:
    """Run one full pass. Returns the saved record, or None if the pass failed."""
    logger.info("Prompt generation pass started")
    own_session = session is None
    if own_session:
        session = requests.Session()
    try:
        record = _run_pass(settings, session)
    except MalformedOutputError as exc:
        logger.error("Failed to parse Groq response: %s\nCleaned JSON:\n%s", exc, exc.cleaned)
        return None
    except PipelineError as exc:
        logger.error("Prompt generation pass failed (%s): %s", type(exc).__name__, exc)
        return None
    finally:
        if own_session:
            session.close()

    logger.info("Prompt saved successfully: %s", record.title)
    return record


# ====== Main ======
def _install_signal_handlers(scheduler: Scheduler) -> None:
    def _handle(signum, _frame):
        logger.info("Received %s, shutting down...", signal.Signals(signum).name)
        scheduler.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _handle)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings()
        trigger = DailyTrigger.from_cron(settings.schedule_cron, settings.schedule_tz)
    except ConfigError as exc:
        logger.critical("%s", exc)
        return 1
    logging.getLogger().setLevel(settings.log_level)

    logger.info("GROQ_API_KEY loaded: %s", mask_secret(settings.groq_api_key))
    logger.info("BACKEND_API_URL: %s", settings.backend_api_url)
    logger.info("Model: %s, schedule: %r", settings.groq_model, settings.schedule_cron)

    scheduler = Scheduler(lambda: run_prompt_generation(settings), trigger)
    _install_signal_handlers(scheduler)
    logger.info("Starting prompt generation job...")
    scheduler.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
