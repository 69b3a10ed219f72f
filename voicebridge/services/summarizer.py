"""
Meeting minutes from a full capture transcript, via an OpenAI-compatible
chat-completions endpoint (z.ai by default).
"""
from __future__ import annotations

import logging

import httpx

from voicebridge.config import Settings, get_settings

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "あなたはプロの会議議事録作成者です。"
    "与えられた文字起こしテキストから、構造化された議事録を作成してください。"
    "日本語で回答してください。"
)

_MINUTES_TEMPLATE = """以下の会議の文字起こしテキストから、議事録を作成してください。

以下の形式で出力してください:
📋 **会議概要**
[簡潔な会議の要約（3-5行）]

👥 **参加者**
[発言者一覧]

💬 **主な議論内容**
- [議題1]: [要点]
- [議題2]: [要点]

✅ **決定事項**
- [決定1]
- [決定2]

📌 **アクションアイテム**
- [担当]: [タスク内容]

---
文字起こしテキスト:
{transcript}"""


class SummarizationError(Exception):
    """Summarization failed; callers fall back to the raw transcript."""


def build_messages(transcript: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": _MINUTES_TEMPLATE.format(transcript=transcript)},
    ]


class ChatSummarizer:
    """SummarizationService over chat completions. transport is injectable for tests."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    async def summarize(self, transcript: str) -> str:
        """Return structured minutes. Raises SummarizationError on any failure."""
        s = self._settings
        if not s.SUMMARY_API_KEY:
            raise SummarizationError("SUMMARY_API_KEY is not set")
        payload = {
            "model": s.SUMMARY_MODEL,
            "messages": build_messages(transcript),
            "temperature": s.SUMMARY_TEMPERATURE,
            "max_tokens": s.SUMMARY_MAX_TOKENS,
        }
        try:
            async with httpx.AsyncClient(timeout=s.SUMMARY_TIMEOUT_SECONDS, transport=self._transport) as client:
                resp = await client.post(
                    s.SUMMARY_API_URL,
                    headers={"Authorization": f"Bearer {s.SUMMARY_API_KEY}"},
                    json=payload,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise SummarizationError(
                f"summary API error: {e.response.status_code} - {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise SummarizationError(f"summary request failed: {e}") from e

        choices = data.get("choices") or []
        content = ((choices[0].get("message") or {}).get("content") or "") if choices else ""
        if not content.strip():
            raise SummarizationError("No response from summary API")
        logger.info("Minutes generated (%s chars from %s chars of transcript)", len(content), len(transcript))
        return content
