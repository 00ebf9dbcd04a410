"""
tests/test_translator.py
─────────────────────────
``NewsTranslator`` and ``GeminiClient`` against a mocked Gemini endpoint
(``httpx.MockTransport``), no network calls.
"""

import json

import httpx
import pytest

from conftest import gemini_reply, make_gemini_client
from core.gemini import GeminiClient, GeminiError, InvalidApiKeyError, MissingApiKeyError
from data_engine.translator import (
    NewsTranslator,
    build_translation_prompt,
    parse_translation_response,
)
from schemas.news import NewsItem


def _item(i: int, **extra) -> NewsItem:
    return NewsItem(
        id=f"tweet-{i}",
        title=f"Headline {i}",
        content=f"Body {i}",
        published_at="2025-07-14T10:00:00Z",
        **extra,
    )


def _translations(n: int, offset: int = 0) -> str:
    return json.dumps(
        {
            "translations": [
                {"titleChinese": f"标题{offset + i}", "contentChinese": f"内容{offset + i}"}
                for i in range(n)
            ]
        },
        ensure_ascii=False,
    )


# ── GeminiClient ──────────────────────────────────────────────────────────────


class TestGeminiClient:
    async def test_posts_prompt_and_returns_text(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_reply("hello"))

        client = make_gemini_client(handler)
        text = await client.generate("Say hello", temperature=0.2)

        assert text == "hello"
        assert "models/gemini-2.0-flash:generateContent" in seen["url"]
        assert "key=test-gemini-key" in seen["url"]
        assert seen["body"]["contents"][0]["parts"][0]["text"] == "Say hello"
        assert seen["body"]["generationConfig"] == {"temperature": 0.2}

    async def test_missing_key(self) -> None:
        with pytest.raises(MissingApiKeyError):
            await GeminiClient("  ").generate("hi")

    async def test_invalid_key(self) -> None:
        client = make_gemini_client(
            lambda request: httpx.Response(
                400, json={"error": {"message": "API key not valid. Please pass a valid API key."}}
            )
        )
        with pytest.raises(InvalidApiKeyError):
            await client.generate("hi")

    async def test_server_error(self) -> None:
        client = make_gemini_client(lambda request: httpx.Response(503, text="overloaded"))
        with pytest.raises(GeminiError, match="503"):
            await client.generate("hi")

    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(GeminiError, match="request failed"):
            await make_gemini_client(handler).generate("hi")

    async def test_payload_without_candidates(self) -> None:
        client = make_gemini_client(lambda request: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(GeminiError):
            await client.generate("hi")


# ── response parsing ──────────────────────────────────────────────────────────


class TestParseTranslationResponse:
    def test_strips_code_fences(self) -> None:
        text = "```json\n" + _translations(2) + "\n```"
        parsed = parse_translation_response(text, 2)
        assert parsed == [
            {"titleChinese": "标题0", "contentChinese": "内容0"},
            {"titleChinese": "标题1", "contentChinese": "内容1"},
        ]

    def test_short_array_pads_with_none(self) -> None:
        parsed = parse_translation_response(_translations(1), 3)
        assert parsed[0] is not None
        assert parsed[1:] == [None, None]

    def test_garbage_yields_all_none(self) -> None:
        assert parse_translation_response("Sorry, I cannot do that.", 2) == [None, None]

    def test_prompt_mentions_every_item(self) -> None:
        prompt = build_translation_prompt([_item(1), _item(2)])
        assert "Headline 1" in prompt and "Body 2" in prompt
        assert "translations" in prompt


# ── NewsTranslator ────────────────────────────────────────────────────────────


class TestNewsTranslator:
    async def test_translates_in_batches_of_three(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            offset = (len(calls) - 1) * 3
            return httpx.Response(200, json=gemini_reply(_translations(3, offset)))

        translator = NewsTranslator(make_gemini_client(handler), batch_delay=0)
        items = [_item(i) for i in range(5)]
        result = await translator.translate(items)

        assert len(calls) == 2
        assert [r.id for r in result] == [i.id for i in items]
        assert [r.title_chinese for r in result] == [f"标题{i}" for i in range(5)]

    async def test_failed_batch_falls_back_to_english(self) -> None:
        responses = iter(
            [
                httpx.Response(200, json=gemini_reply(_translations(3))),
                httpx.Response(500, text="internal"),
            ]
        )
        translator = NewsTranslator(
            make_gemini_client(lambda request: next(responses)), batch_delay=0
        )
        result = await translator.translate([_item(i) for i in range(4)])

        assert result[0].title_chinese == "标题0"
        assert result[3].title_chinese == "[英文] Headline 3"
        assert result[3].content_chinese == "[英文] Body 3"

    async def test_unparseable_reply_marks_items_untranslated(self) -> None:
        translator = NewsTranslator(
            make_gemini_client(lambda request: httpx.Response(200, json=gemini_reply("nope"))),
            batch_delay=0,
        )
        result = await translator.translate([_item(1)])
        assert result[0].title_chinese == "[英文] Headline 1"

    async def test_fill_missing_only_sends_untranslated_items(self) -> None:
        prompts = []

        def handler(request: httpx.Request) -> httpx.Response:
            prompts.append(json.loads(request.content)["contents"][0]["parts"][0]["text"])
            return httpx.Response(200, json=gemini_reply(_translations(1)))

        done = _item(1, title_chinese="已译", content_chinese="已译内容")
        pending = _item(2)
        translator = NewsTranslator(make_gemini_client(handler), batch_delay=0)

        result = await translator.fill_missing_translations([done, pending])

        assert len(prompts) == 1
        assert "Headline 2" in prompts[0] and "Headline 1" not in prompts[0]
        assert result[0] is done
        assert result[1].title_chinese == "标题0"

    async def test_fill_missing_with_nothing_to_do_makes_no_call(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        done = _item(1, title_chinese="已译", content_chinese="已译内容")
        translator = NewsTranslator(make_gemini_client(handler))
        assert await translator.fill_missing_translations([done]) == [done]

    async def test_validate_api_key(self) -> None:
        ok = NewsTranslator(
            make_gemini_client(lambda request: httpx.Response(200, json=gemini_reply("Hi!")))
        )
        bad = NewsTranslator(
            make_gemini_client(
                lambda request: httpx.Response(403, json={"error": {"status": "PERMISSION_DENIED"}})
            )
        )
        assert await ok.validate_api_key() is True
        assert await bad.validate_api_key() is False

    def test_batch_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            NewsTranslator(GeminiClient("k"), batch_size=0)
