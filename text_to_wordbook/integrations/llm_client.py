import json
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

from text_to_wordbook.config import WordbookOptions
from text_to_wordbook.domain.words import dedupe_preserve_order, is_strict_word, tokenize
from text_to_wordbook.integrations.http_client import default_client

logger = logging.getLogger(__name__)

CANONICAL_ENDPOINT = "https://ark.cn-beijing.volces.com/api/v3"
CHAT_COMPLETIONS_PATH = "/chat/completions"
BOT_CHAT_COMPLETIONS_PATH = "/bots/chat/completions"
MAX_OUTPUT_TOKENS = 1024
NOT_CONFIGURED_BODY = "[LLM not configured]"

_LEGACY_HOST_RE = re.compile(
    r"^https?://(?:ark[-.]cn-beijing\.bytedance\.net|ark\.bytedance\.net)", re.IGNORECASE
)
_API_V3_RE = re.compile(r"/api/v3(?:/.*)?$")
_COMPLETIONS_SUFFIX_RE = re.compile(r"(?:/bots)?/chat/completions$")
_BOT_MODEL_RE = re.compile(r"^bot-", re.IGNORECASE)


@dataclass
class ExtractionOutcome:
    ok: bool
    status_code: int
    words: list[str] = field(default_factory=list)
    raw_body: Any = None
    headers: dict = field(default_factory=dict)
    duration_ms: int | None = None
    url: str = ""
    endpoint: str = ""
    model: str = ""
    error_message: str | None = None
    cancelled: bool = False


class ContentShape(Enum):
    STRING = "string"
    PARTS = "parts"
    REASONING = "reasoning"
    OUTPUT_TEXT = "output_text"
    EMPTY = "empty"


class MessageText(NamedTuple):
    shape: ContentShape
    text: str
    finish_reason: str = ""


def normalize_endpoint(endpoint):
    base = (endpoint or "").strip().rstrip("/")
    base = _COMPLETIONS_SUFFIX_RE.sub("", base)
    if not _API_V3_RE.search(base):
        base = f"{base}/v3" if base.endswith("/api") else f"{base}/api/v3"
    if _LEGACY_HOST_RE.match(base):
        logger.info("Endpoint host looks internal or legacy, rewriting to %s", CANONICAL_ENDPOINT)
        base = CANONICAL_ENDPOINT
    return base


def is_bot_model(model) -> bool:
    return bool(_BOT_MODEL_RE.match(str(model or "")))


def resolve_chat_url(base, model):
    path = BOT_CHAT_COMPLETIONS_PATH if is_bot_model(model) else CHAT_COMPLETIONS_PATH
    return base + path


def build_payload(model, system_prompt, text):
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": str(text or "")},
        ],
        "thinking": {"type": "disabled"},
        "temperature": 0,
        "max_tokens": MAX_OUTPUT_TOKENS,
        "n": 1,
    }


def build_headers(api_key):
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def _first_choice(data):
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        choice = choices[0]
        return choice if isinstance(choice, dict) else {}
    return None


def _message(choice):
    message = choice.get("message")
    return message if isinstance(message, dict) else {}


def match_string_content(data):
    choice = _first_choice(data)
    if choice is None:
        return None
    content = _message(choice).get("content")
    if isinstance(content, str) and content:
        return MessageText(ContentShape.STRING, content, choice.get("finish_reason") or "")
    return None


def match_parts_content(data):
    choice = _first_choice(data)
    if choice is None:
        return None
    content = _message(choice).get("content")
    if not isinstance(content, list):
        return None
    parts = [
        part["text"]
        for part in content
        if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str)
    ]
    text = "".join(parts)
    if not text:
        return None
    return MessageText(ContentShape.PARTS, text, choice.get("finish_reason") or "")


def match_reasoning_content(data):
    choice = _first_choice(data)
    if choice is None:
        return None
    reasoning = _message(choice).get("reasoning_content")
    if isinstance(reasoning, str) and reasoning:
        return MessageText(ContentShape.REASONING, reasoning, choice.get("finish_reason") or "")
    return None


def match_output_text(data):
    if not isinstance(data, dict) or _first_choice(data) is not None:
        return None
    output_text = data.get("output_text")
    if isinstance(output_text, str):
        return MessageText(ContentShape.OUTPUT_TEXT, output_text, data.get("finish_reason") or "")
    return None


_SHAPE_MATCHERS = (
    match_string_content,
    match_parts_content,
    match_reasoning_content,
    match_output_text,
)


def extract_message_text(data) -> MessageText:
    for matcher in _SHAPE_MATCHERS:
        matched = matcher(data)
        if matched is not None:
            return matched
    return MessageText(ContentShape.EMPTY, "")


def parse_candidates(content):
    """Candidate words from model text: a JSON array, ``{"add": [...]}`` or free text."""
    content = (content or "").strip()
    try:
        parsed = json.loads(content)
    except (ValueError, RecursionError):
        return tokenize(content)
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("add"), list):
        return parsed["add"]
    return tokenize(content)


def clean_candidates(candidates, max_words):
    cleaned = []
    for candidate in candidates:
        word = "" if candidate is None else str(candidate).strip()
        if is_strict_word(word):
            cleaned.append(word)
    return dedupe_preserve_order(cleaned)[:max_words]


def extract_vocabulary(text, options: WordbookOptions, *, cancel_token=None, http_client=None):
    """Ask the LLM for the words worth learning in ``text``.

    Always returns an :class:`ExtractionOutcome`; transport problems are
    reported through ``ok``/``error_message`` rather than raised.
    """
    start = time.monotonic()
    if not options.llm_configured:
        return ExtractionOutcome(
            ok=False,
            status_code=0,
            raw_body=NOT_CONFIGURED_BODY,
            error_message="volcano_api_key, volcano_endpoint and volcano_model are required",
        )

    client = http_client or default_client()
    base = normalize_endpoint(options.volcano_endpoint)
    model = options.volcano_model
    url = resolve_chat_url(base, model)

    response = client.request(
        "POST",
        url,
        headers=build_headers(options.volcano_api_key),
        body=build_payload(model, options.system_prompt, text),
        timeout=options.transport_timeout_s,
        cancel_token=cancel_token,
    )
    duration_ms = int((time.monotonic() - start) * 1000)

    if response.transport_failed:
        logger.warning("LLM request to %s failed after %sms: %s", url, duration_ms, response.error)
        return ExtractionOutcome(
            ok=False,
            status_code=response.status,
            raw_body=response.data,
            headers=response.headers,
            duration_ms=duration_ms,
            url=url,
            endpoint=base,
            model=model,
            error_message=response.error,
            cancelled=response.cancelled,
        )

    message = extract_message_text(response.data)
    words = clean_candidates(parse_candidates(message.text), options.llm_words_max_add)
    logger.info(
        "LLM extraction finished: status=%s shape=%s words=%s in %sms",
        response.status,
        message.shape.value,
        len(words),
        duration_ms,
    )
    return ExtractionOutcome(
        ok=200 <= response.status < 300,
        status_code=response.status,
        words=words,
        raw_body=response.data,
        headers=response.headers,
        duration_ms=duration_ms,
        url=url,
        endpoint=base,
        model=model,
    )
