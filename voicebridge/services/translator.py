"""
Translation via the DeepL v2 API (httpx).

- Keys ending in ":fx" use the free API host.
- Input is sanitized before sending: control characters dropped (newline/tab kept),
  truncated to TRANSLATE_MAX_CHARS, angle brackets escaped.
- Retries only on RateLimited / TransientUnavailable, up to TRANSLATE_MAX_ATTEMPTS,
  sleeping attempt * TRANSLATE_BACKOFF_MS between attempts. QuotaExceeded and
  BadRequest fail immediately.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from voicebridge.config import Settings, get_settings

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

FREE_API_BASE = "https://api-free.deepl.com"
PRO_API_BASE = "https://api.deepl.com"

_RETRYABLE_STATUS = (500, 502, 503, 504)

_TARGET_CODES = {
    "ja": "JA",
    "japanese": "JA",
    "jp": "JA",
    "ko": "KO",
    "korean": "KO",
    "kr": "KO",
    "en": "EN-US",
    "english": "EN-US",
    "en-us": "EN-US",
    "en_us": "EN-US",
    "en-gb": "EN-GB",
    "en_gb": "EN-GB",
}


class TranslationError(Exception):
    """Base for translation failures."""

    retryable = False


class RateLimited(TranslationError):
    retryable = True


class TransientUnavailable(TranslationError):
    retryable = True


class QuotaExceeded(TranslationError):
    """Character quota exhausted (HTTP 456). Not retried."""


class BadRequest(TranslationError):
    """Unsupported language, malformed request or unexpected response. Not retried."""


def sanitize_input(text: str, max_chars: int = 2000) -> str:
    """Drop control chars except newline/tab, truncate, escape angle brackets."""
    kept = "".join(c for c in text if c in "\n\t" or (ord(c) >= 32 and not 0x7F <= ord(c) <= 0x9F))
    return kept[:max_chars].replace("<", "&lt;").replace(">", "&gt;")


def target_language_code(lang: str) -> str:
    code = _TARGET_CODES.get(lang.strip().lower())
    if code is None:
        raise BadRequest(f"Unsupported language code: {lang}")
    return code


def source_language_code(lang: str) -> str:
    # DeepL source languages carry no region variant
    return target_language_code(lang).split("-")[0]


def api_base_for_key(api_key: str) -> str:
    return FREE_API_BASE if api_key.rstrip().endswith(":fx") else PRO_API_BASE


def _error_for_status(status: int, body: str) -> TranslationError:
    msg = f"DeepL API error: {status} - {body}"
    if status == 429:
        return RateLimited(msg)
    if status in _RETRYABLE_STATUS:
        return TransientUnavailable(msg)
    if status == 456:
        return QuotaExceeded("DeepL API quota exceeded (456)")
    return BadRequest(msg)


class DeepLTranslator:
    """
    TranslationService backed by DeepL. One AsyncClient per translator; call aclose() on shutdown.
    sleep and transport are injectable for tests.
    """

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._api_key = api_key if api_key is not None else settings.DEEPL_API_KEY
        self._max_attempts = max(1, settings.TRANSLATE_MAX_ATTEMPTS)
        self._backoff_s = settings.TRANSLATE_BACKOFF_MS / 1000.0
        self._max_chars = settings.TRANSLATE_MAX_CHARS
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=api_base_for_key(self._api_key),
            timeout=settings.TRANSLATE_TIMEOUT_SECONDS,
            transport=transport,
        )

    @property
    def api_base(self) -> str:
        return str(self._client.base_url).rstrip("/")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, text: str, source: str, target: str) -> str:
        try:
            resp = await self._client.post(
                "/v2/translate",
                headers={"Authorization": f"DeepL-Auth-Key {self._api_key}"},
                data={"text": text, "source_lang": source, "target_lang": target},
            )
        except httpx.TransportError as e:
            raise TransientUnavailable(f"DeepL request failed: {e}") from e

        if resp.status_code != 200:
            raise _error_for_status(resp.status_code, resp.text)
        try:
            translations = resp.json().get("translations") or []
        except ValueError as e:
            raise BadRequest("DeepL returned invalid JSON") from e
        if not translations:
            raise BadRequest("No translation returned from DeepL API")
        return (translations[0].get("text") or "").strip()

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text. Empty (after sanitizing) input returns "" without a request."""
        sanitized = sanitize_input(text, self._max_chars)
        if not sanitized.strip():
            return ""
        source = source_language_code(source_lang)
        target = target_language_code(target_lang)

        attempt = 1
        while True:
            try:
                return await self._request(sanitized, source, target)
            except TranslationError as e:
                if not e.retryable or attempt >= self._max_attempts:
                    raise
                delay = attempt * self._backoff_s
                logger.warning(
                    "Translation attempt %s/%s failed (%s); retrying in %.0f ms",
                    attempt,
                    self._max_attempts,
                    e,
                    delay * 1000,
                )
                await self._sleep(delay)
                attempt += 1
