"""
Word lookup for the tap-a-word panel.

Order: saved vocabulary, then the on-disk dictionary cache, then the free
dictionary + translation APIs (fetched together), then AI word analysis on
Cloudflare Workers AI. Successful remote lookups are cached per lower-cased word.
lookup() never raises: total failure returns definition "Lookup failed.".
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any

import httpx

from echolisten.config import Settings, get_settings
from echolisten.storage import dictionary_store
from echolisten.vocabulary.store import get_word

logger = logging.getLogger(__name__)

LOOKUP_FAILED = "Lookup failed."
DEFAULT_DEFINITION = "Contextual definition."
TRANSLATION_PENDING = "翻译载入中"

_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")

_ANALYZE_PROMPT = (
    'Analyze word "{word}" in context: "{sentence}". Output ONLY JSON: '
    '{{ "word": string, "phonetic": string, "definition": string, "translation": string }}.'
)


@dataclass
class WordDefinition:
    word: str
    phonetic: str = ""
    definition: str = ""
    example: str = ""
    translation: str = ""
    offline: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any], word: str = "") -> "WordDefinition":
        return cls(
            word=str(data.get("word") or word),
            phonetic=str(data.get("phonetic") or ""),
            definition=str(data.get("definition") or ""),
            example=str(data.get("example") or ""),
            translation=str(data.get("translation") or ""),
        )


def clean_word(word: str) -> str:
    """Strip punctuation from a tapped token."""
    return _PUNCTUATION.sub("", word or "").strip()


def parse_fast_dictionary(word: str, dict_data: Any, trans_data: Any) -> WordDefinition | None:
    """Merge dictionaryapi.dev and MyMemory responses. None when both are missing."""
    if dict_data is None and trans_data is None:
        return None
    entry = dict_data[0] if isinstance(dict_data, list) and dict_data and isinstance(dict_data[0], dict) else {}

    phonetic = entry.get("phonetic") or ""
    if not phonetic:
        for p in entry.get("phonetics") or []:
            if isinstance(p, dict) and p.get("text"):
                phonetic = p["text"]
                break

    first_def: dict[str, Any] = {}
    meanings = entry.get("meanings") or []
    if meanings and isinstance(meanings[0], dict):
        defs = meanings[0].get("definitions") or []
        if defs and isinstance(defs[0], dict):
            first_def = defs[0]

    translation = ""
    if isinstance(trans_data, dict):
        translation = (trans_data.get("responseData") or {}).get("translatedText") or ""

    return WordDefinition(
        word=word,
        phonetic=phonetic,
        definition=first_def.get("definition") or DEFAULT_DEFINITION,
        example=first_def.get("example") or "",
        translation=translation or TRANSLATION_PENDING,
    )


async def _get_json_or_none(client: httpx.AsyncClient, url: str, params: dict[str, str] | None = None) -> Any:
    resp = await client.get(url, params=params)
    if not resp.is_success:
        return None
    return resp.json()


async def fetch_fast_dictionary(
    word: str,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WordDefinition | None:
    """Dictionary entry and translation, requested concurrently. None on any transport error."""
    settings = settings or get_settings()
    dict_url = f"{settings.DICTIONARY_API_URL.rstrip('/')}/{word}"
    try:
        async with httpx.AsyncClient(timeout=settings.DICTIONARY_TIMEOUT_SECONDS, transport=transport) as client:
            dict_data, trans_data = await asyncio.gather(
                _get_json_or_none(client, dict_url),
                _get_json_or_none(
                    client,
                    settings.TRANSLATE_API_URL,
                    params={"q": word, "langpair": settings.TRANSLATE_LANGPAIR},
                ),
            )
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Fast dictionary lookup failed for %r: %s", word, e)
        return None
    return parse_fast_dictionary(word, dict_data, trans_data)


def _extract_json_object(raw: str) -> dict[str, Any]:
    """Parse a JSON object from model output (may be wrapped in a markdown code block)."""
    raw = raw.strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?\s*", "", raw)
        raw = re.sub(r"\s*```\s*$", "", raw)
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("AI word analysis did not return a JSON object")
    return data


async def analyze_word_with_ai(
    word: str,
    sentence: str,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WordDefinition:
    """
    Ask Workers AI for phonetic, definition and translation of word in context.
    Raises ValueError if disabled or auth missing; httpx errors on API failure.
    """
    settings = settings or get_settings()
    if not settings.DICTIONARY_AI_ENABLED:
        raise ValueError("AI word analysis is disabled (DICTIONARY_AI_ENABLED=false)")
    account_id = (settings.CLOUDFLARE_ACCOUNT_ID or "").strip()
    token = (settings.CLOUDFLARE_API_TOKEN or "").strip()
    if not account_id or not token:
        raise ValueError("CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN are required for AI word analysis")

    url = f"https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{settings.DICTIONARY_AI_MODEL}"
    payload = {
        "messages": [{"role": "user", "content": _ANALYZE_PROMPT.format(word=word, sentence=sentence)}],
        "max_tokens": 256,
        "temperature": 0.2,
    }
    async with httpx.AsyncClient(timeout=30.0, transport=transport) as client:
        resp = await client.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        )
        resp.raise_for_status()
        data = resp.json()

    # Workers AI returns { "result": { "response": "..." } } or direct { "response": "..." }
    result = data.get("result", data) if isinstance(data, dict) else data
    if isinstance(result, dict):
        content = result.get("response", "") or ""
    elif isinstance(result, str):
        content = result
    else:
        content = ""
    if isinstance(content, dict):
        parsed = content
    else:
        content = (content or "").strip()
        if not content:
            raise ValueError("Cloudflare Workers AI returned empty response")
        parsed = _extract_json_object(content)
    return WordDefinition.from_dict(parsed, word=word)


async def lookup(
    word: str,
    sentence: str = "",
    transport: httpx.AsyncBaseTransport | None = None,
) -> WordDefinition:
    """Resolve a tapped token to a definition. The example is always the tapped sentence."""
    cleaned = clean_word(word)
    if not cleaned:
        return WordDefinition(word="", definition=LOOKUP_FAILED, example=sentence)

    saved = get_word(cleaned)
    if saved is not None:
        return WordDefinition(
            word=saved.word,
            phonetic=saved.phonetic or "",
            definition=saved.definition or "",
            translation=saved.translation or "",
            example=sentence,
            offline=True,
        )

    store = dictionary_store()
    key = cleaned.lower()
    cached = store.get_json(key)
    if isinstance(cached, dict):
        entry = WordDefinition.from_dict(cached, word=cleaned)
        entry.example = sentence
        entry.offline = True
        return entry

    settings = get_settings()
    fast = await fetch_fast_dictionary(cleaned, settings=settings, transport=transport)
    if fast is not None:
        fast.example = sentence
        store.put_json(key, fast.to_dict())
        return fast

    try:
        analyzed = await analyze_word_with_ai(cleaned, sentence, settings=settings, transport=transport)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("AI word analysis failed for %r: %s", cleaned, e)
        return WordDefinition(word=cleaned, definition=LOOKUP_FAILED, example=sentence)
    analyzed.example = sentence
    store.put_json(key, analyzed.to_dict())
    return analyzed
