"""
Gemini generation with model fallback and retry.

Each configured model gets a small retry budget with exponential backoff for
rate-limit / overload signals. Other failures move on to the next model, and
credential problems abort immediately since no model can succeed.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from google import genai
from google.genai import types
from pydantic import BaseModel

from ..config import Settings
from ..errors import AllModelsFailedError, GenerationError, ModelConfigurationError, RateLimitError
from ..schemas.resume import UsageRecord

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"  # retry, then next model
    FATAL = "fatal"                # abort everything
    OTHER = "other"                # next model


RETRYABLE_STATUS_CODES = {429, 503}
FATAL_STATUS_CODES = {401, 403}

RETRYABLE_KEYWORDS = [
    "429",
    "quota",
    "resource exhausted",
    "resource_exhausted",
    "rate limit",
    "too many requests",
    "503",
    "overloaded",
    "unavailable",
]

FATAL_KEYWORDS = [
    "401",
    "403",
    "api key not valid",
    "invalid api key",
    "api_key_invalid",
    "permission denied",
    "permission_denied",
    "unauthenticated",
]

# Resumes routinely trip the default filters (medical history, security roles, ...)
SAFETY_SETTINGS = [
    types.SafetySetting(category=types.HarmCategory.HARM_CATEGORY_HARASSMENT, threshold=types.HarmBlockThreshold.BLOCK_NONE),
    types.SafetySetting(category=types.HarmCategory.HARM_CATEGORY_HATE_SPEECH, threshold=types.HarmBlockThreshold.BLOCK_NONE),
    types.SafetySetting(category=types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT, threshold=types.HarmBlockThreshold.BLOCK_NONE),
    types.SafetySetting(category=types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT, threshold=types.HarmBlockThreshold.BLOCK_NONE),
]


class GenerationResult(BaseModel):
    text: str
    model_name: str
    usage: UsageRecord


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Decide how the fallback loop should react to a failure.

    Uses the HTTP status code of google-genai APIError when available,
    otherwise known substrings of the error message.
    """
    if isinstance(exc, ModelConfigurationError):
        return ErrorKind.FATAL

    code = getattr(exc, "code", None)
    if isinstance(code, int):
        if code in RETRYABLE_STATUS_CODES:
            return ErrorKind.RATE_LIMITED
        if code in FATAL_STATUS_CODES:
            return ErrorKind.FATAL

    message = str(exc).lower()
    # Rate limits first: quota errors sometimes mention permissions too
    if any(keyword in message for keyword in RETRYABLE_KEYWORDS):
        return ErrorKind.RATE_LIMITED
    if any(keyword in message for keyword in FATAL_KEYWORDS):
        return ErrorKind.FATAL
    return ErrorKind.OTHER


class GenerationClient:
    """
    Calls Gemini through an ordered list of models.

    Settings are injected; the SDK client is created lazily from them
    unless one is passed in.
    """

    def __init__(
        self,
        settings: Settings,
        client=None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self._client = client
        self._sleep = sleep

    def _get_client(self):
        if self._client is None:
            if not self.settings.gemini_api_key:
                raise ModelConfigurationError("Gemini API not configured. Please set GEMINI_API_KEY.")
            self._client = genai.Client(api_key=self.settings.gemini_api_key)
        return self._client

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.settings.generation_temperature,
            max_output_tokens=self.settings.generation_max_output_tokens,
            safety_settings=SAFETY_SETTINGS,
        )

    async def _generate_once(self, client, model_name: str, prompt: str) -> GenerationResult:
        timeout = self.settings.timeout_for_model(model_name)
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=model_name,
                    contents=prompt,
                    config=self._build_config(),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Model {model_name} timed out after {timeout}s", model=model_name) from e

        text = response.text
        if not text:
            raise GenerationError(f"Model {model_name} returned an empty response", model=model_name)

        usage = getattr(response, "usage_metadata", None)
        return GenerationResult(
            text=text,
            model_name=model_name,
            usage=UsageRecord(
                input_tokens=getattr(usage, "prompt_token_count", None) or 0,
                output_tokens=getattr(usage, "candidates_token_count", None) or 0,
                model_name=model_name,
            ),
        )

    async def generate(self, prompt: str, models: Optional[List[str]] = None) -> GenerationResult:
        """
        Generate text with the first model that succeeds.

        Args:
            prompt: Full prompt text
            models: Ordered model ids (default: settings.gemini_models)

        Raises:
            ModelConfigurationError: credentials/config are invalid
            RateLimitError: a model ran out of retries on rate-limit signals
                and no later model succeeded
            AllModelsFailedError: every model failed for other reasons
        """
        client = self._get_client()
        candidates = list(models) if models else self.settings.get_gemini_models()
        max_attempts = max(1, self.settings.generation_max_attempts)
        failures: List[Tuple[str, Exception]] = []
        rate_limited = False

        for model_name in candidates:
            for attempt in range(max_attempts):
                try:
                    result = await self._generate_once(client, model_name, prompt)
                except Exception as e:
                    kind = classify_error(e)

                    if kind is ErrorKind.FATAL:
                        logger.error(f"Model {model_name} rejected configuration, aborting: {e}")
                        if isinstance(e, ModelConfigurationError):
                            raise
                        raise ModelConfigurationError(str(e), model=model_name) from e

                    if kind is ErrorKind.RATE_LIMITED and attempt < max_attempts - 1:
                        delay = self.settings.generation_backoff_base_seconds * (2 ** attempt)
                        logger.info(
                            f"Model {model_name} rate limited (attempt {attempt + 1}/{max_attempts}). "
                            f"Retrying in {delay:.1f}s"
                        )
                        await self._sleep(delay)
                        continue

                    failures.append((model_name, e))
                    rate_limited = rate_limited or kind is ErrorKind.RATE_LIMITED
                    logger.warning(f"Model {model_name} failed ({kind.value}), trying next model: {e}")
                    break
                else:
                    if failures or attempt:
                        logger.info(f"Generation succeeded with {model_name} after {len(failures)} failed model(s)")
                    return result

        summary = "; ".join(f"{model}: {error}" for model, error in failures) or "no models configured"
        logger.error(f"All AI models failed: {summary}")
        if rate_limited:
            raise RateLimitError(
                f"Rate Limited (429): Too many requests. Please slow down. ({summary})",
                failures,
            )
        raise AllModelsFailedError(f"All AI models failed: {summary}", failures)
