import base64
import logging
import os
import re

from openai import APITimeoutError, OpenAI

from accident_gateway.config import Settings
from accident_gateway.services.response_parser import extract_report
from accident_gateway.services.upload_store import StoredUpload
from accident_gateway.utils.exceptions import (
    AppException,
    TransientStorageError,
    UpstreamCallError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

PROMPT_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)),
    "prompts",
    "accident_analysis.txt",
)

_API_KEY_PATTERN = re.compile(r"sk-[A-Za-z0-9_-]+")


def load_prompt(settings: Settings) -> str:
    with open(PROMPT_PATH, encoding="utf-8") as f:
        template = f.read()
    return template.format(currency=settings.repair_cost_currency)


def encode_image_base64(file_path: str) -> str:
    """Read an image file and return its base64 encoding."""
    try:
        with open(file_path, "rb") as f:
            return base64.b64encode(f.read()).decode("utf-8")
    except OSError as e:
        logger.warning("Photo file not readable: %s (%s)", file_path, e)
        raise TransientStorageError(f"Could not read uploaded image: {e.strerror or e}") from e


def build_data_uri(b64: str, content_type: str = "image/jpeg") -> str:
    if content_type in ("", "image/jpg"):
        content_type = "image/jpeg"
    return f"data:{content_type};base64,{b64}"


def mask_secrets(message: str) -> str:
    return _API_KEY_PATTERN.sub("sk-***", message)


def build_api_kwargs(settings: Settings, content: list[dict]) -> dict:
    """Build OpenAI API kwargs based on model type."""
    model = settings.openai_model
    api_kwargs: dict = {
        "model": model,
        "messages": [{"role": "user", "content": content}],
    }

    if model.startswith("o"):
        # o-series reasoning models: no sampling parameters,
        # max_completion_tokens instead of max_tokens
        api_kwargs["max_completion_tokens"] = settings.max_tokens
    else:
        api_kwargs["max_tokens"] = settings.max_tokens
        api_kwargs["temperature"] = settings.temperature
        api_kwargs["top_p"] = settings.top_p

    return api_kwargs


class ModelClient:
    """Single-shot client for the vision model. Built once per process."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: OpenAI | None = None
        if settings.openai_api_key:
            kwargs = {
                "api_key": settings.openai_api_key,
                "timeout": settings.request_timeout_seconds,
                "max_retries": 0,
            }
            if settings.openai_base_url:
                kwargs["base_url"] = settings.openai_base_url
            self._client = OpenAI(**kwargs)

    def complete(self, prompt: str, data_uri: str) -> str:
        """Send the prompt and image, return the model's raw text reply."""
        if self._client is None:
            logger.error("OPENAI_API_KEY not configured, cannot analyze image")
            raise UpstreamCallError("OPENAI_API_KEY not configured")

        content: list[dict] = [
            {"type": "text", "text": prompt},
            {
                "type": "image_url",
                "image_url": {"url": data_uri, "detail": self.settings.image_detail},
            },
        ]
        api_kwargs = build_api_kwargs(self.settings, content)
        logger.info("OpenAI request: model=%s", self.settings.openai_model)

        try:
            response = self._client.chat.completions.create(**api_kwargs)
        except APITimeoutError as e:
            logger.warning("OpenAI request timed out after %ss", self.settings.request_timeout_seconds)
            raise UpstreamTimeoutError(
                f"Model did not respond within {self.settings.request_timeout_seconds:g} seconds"
            ) from e
        except Exception as e:
            logger.exception("OpenAI request failed")
            raise UpstreamCallError(f"An error occurred: {mask_secrets(str(e))}") from e

        raw_text = response.choices[0].message.content or ""
        logger.info("OpenAI raw response (%d chars): %s", len(raw_text), raw_text[:500])
        return raw_text


def analyze_image(stored: StoredUpload, settings: Settings, client: ModelClient) -> dict:
    """Run one stored upload through the model and return the extracted report.

    Blocking; the router calls it from a worker thread.
    """
    try:
        b64 = encode_image_base64(stored.path)
        prompt = load_prompt(settings)
        raw_text = client.complete(prompt, build_data_uri(b64, stored.content_type))
    except AppException as e:
        e.filename = stored.filename
        raise

    report = extract_report(raw_text)
    logger.info("Analysis of %s finished: severity=%s", stored.filename, report.get("severity"))
    return report
