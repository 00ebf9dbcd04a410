"""
data_engine/translator.py
──────────────────────────
Chinese translation of news items through Gemini.

Items are translated in small batches with a pause in between to stay
under the free-tier rate limit.  Translation never fails the news fetch:
a batch that cannot be translated falls back to the English text marked
with ``[英文]``.
"""

import asyncio
import json
import logging
import re
from typing import Dict, List, Optional

from core.gemini import GeminiClient, GeminiError
from schemas.news import NewsItem

logger = logging.getLogger(__name__)

UNTRANSLATED_PREFIX = "[英文] "

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


def build_translation_prompt(items: List[NewsItem]) -> str:
    """Prompt asking for one ``titleChinese`` / ``contentChinese`` pair per item."""
    blocks = "\n\n".join(
        f"新闻{i + 1}:\n标题: {item.title}\n内容: {item.content}"
        for i, item in enumerate(items)
    )
    return (
        "请将以下商业新闻的标题和内容翻译成中文，保持专业、准确、自然。\n\n"
        f"{blocks}\n\n"
        "请只返回如下JSON，translations数组长度与新闻数量一致：\n"
        '{"translations": [{"titleChinese": "...", "contentChinese": "..."}]}'
    )


def parse_translation_response(
    text: str, expected: int
) -> List[Optional[Dict[str, str]]]:
    """
    Extract translations from the model's reply.

    Markdown code fences are stripped before JSON decoding.

    Args:
        text:     Raw model output.
        expected: Number of items that were sent.

    Returns:
        ``expected`` entries; ``None`` where no usable translation exists.
    """
    cleaned = _CODE_FENCE.sub("", text.strip())
    try:
        payload = json.loads(cleaned)
        translations = payload["translations"]
        if not isinstance(translations, list):
            raise TypeError("translations is not a list")
    except (ValueError, KeyError, TypeError) as exc:
        logger.error("Could not parse translation response: %s", exc)
        logger.debug("Response text: %s", text)
        return [None] * expected

    parsed: List[Optional[Dict[str, str]]] = []
    for i in range(expected):
        entry = translations[i] if i < len(translations) else None
        if isinstance(entry, dict) and (entry.get("titleChinese") or entry.get("contentChinese")):
            parsed.append(
                {
                    "titleChinese": entry.get("titleChinese") or "",
                    "contentChinese": entry.get("contentChinese") or "",
                }
            )
        else:
            parsed.append(None)
    return parsed


def mark_untranslated(item: NewsItem) -> NewsItem:
    """Fallback: keep the English text, flagged as such."""
    return item.model_copy(
        update={
            "title_chinese": f"{UNTRANSLATED_PREFIX}{item.title}",
            "content_chinese": f"{UNTRANSLATED_PREFIX}{item.content}",
        }
    )


class NewsTranslator:
    """
    Translate news items with Gemini.

    Args:
        client:      Configured :class:`~core.gemini.GeminiClient`.
        batch_size:  Items per request.
        batch_delay: Seconds to wait between requests.
    """

    def __init__(
        self,
        client: GeminiClient,
        batch_size: int = 3,
        batch_delay: float = 1.0,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._client = client
        self._batch_size = batch_size
        self._batch_delay = batch_delay

    # ── public API ────────────────────────────────────────────────────────

    async def translate(self, items: List[NewsItem]) -> List[NewsItem]:
        """
        Return translated copies of ``items`` in the same order.

        A batch whose request fails is returned untranslated (see
        :func:`mark_untranslated`); nothing is raised.
        """
        logger.info("Translating %d news items with Gemini…", len(items))
        translated: List[NewsItem] = []
        size = self._batch_size

        for start in range(0, len(items), size):
            batch = items[start:start + size]
            try:
                translated.extend(await self._translate_batch(batch))
            except GeminiError as exc:
                logger.error("Error translating batch %d: %s", start // size + 1, exc)
                translated.extend(mark_untranslated(item) for item in batch)

            if start + size < len(items):
                await asyncio.sleep(self._batch_delay)

        logger.info("Translation completed: %d items", len(translated))
        return translated

    async def fill_missing_translations(self, items: List[NewsItem]) -> List[NewsItem]:
        """Translate only the items that lack a translation; keep the rest as-is."""
        missing = [item for item in items if not item.is_translated]
        if not missing:
            return items

        logger.info("Filling missing translations for %d items…", len(missing))
        by_id = {item.id: item for item in await self.translate(missing)}
        return [by_id.get(item.id, item) for item in items]

    async def validate_api_key(self) -> bool:
        """Send a trivial prompt; ``True`` if Gemini answers."""
        try:
            text = await self._client.generate("Hello")
        except GeminiError as exc:
            logger.warning("API key validation failed: %s", exc)
            return False
        return bool(text.strip())

    # ── private helpers ───────────────────────────────────────────────────

    async def _translate_batch(self, batch: List[NewsItem]) -> List[NewsItem]:
        text = await self._client.generate(build_translation_prompt(batch))
        translations = parse_translation_response(text, len(batch))

        result: List[NewsItem] = []
        for item, translation in zip(batch, translations):
            if translation is None:
                result.append(mark_untranslated(item))
                continue
            result.append(
                item.model_copy(
                    update={
                        "title_chinese": translation["titleChinese"] or item.title,
                        "content_chinese": translation["contentChinese"] or item.content,
                    }
                )
            )
        return result
