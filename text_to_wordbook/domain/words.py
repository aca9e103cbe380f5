import re
from dataclasses import dataclass
from enum import Enum


MAX_WORD_LENGTH = 64

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$", re.IGNORECASE)
_URL_RE = re.compile(r"^(https?://|www\.)|://", re.IGNORECASE)
_SPACE_RE = re.compile(r"\s")
_CJK_RE = re.compile(r"[\u3040-\u30FF\u3400-\u9FFF\uAC00-\uD7AF]")
_DIGIT_OR_UNDERSCORE_RE = re.compile(r"[0-9_]")
_WORD_SHAPE_RE = re.compile(r"[A-Za-z](?:[A-Za-z'-]*[A-Za-z])?")
_DOUBLED_JOINER_RE = re.compile(r"--|''")
_PHRASE_MARK_RE = re.compile(r"[.,!?;:'\"()\-_/\\]")
_LATIN_LETTER_RE = re.compile(r"[A-Za-z]")


class InputKind(Enum):
    SINGLE_WORD = "single_word"
    MULTI_WORD = "multi_word"
    INVALID = "invalid"


@dataclass(frozen=True)
class ClassifiedInput:
    kind: InputKind
    normalized_text: str

    @property
    def is_valid(self) -> bool:
        return self.kind is not InputKind.INVALID


def normalize_word(text) -> str:
    if not isinstance(text, str):
        return ""
    return text.strip().lower()


def is_email(text: str) -> bool:
    return bool(_EMAIL_RE.match(text))


def is_url(text: str) -> bool:
    return bool(_URL_RE.search(text))


def is_strict_word(text) -> bool:
    """Letters only, with single inner hyphens or apostrophes; case-insensitive."""
    if not text or not isinstance(text, str):
        return False
    s = text.strip()
    if not s or len(s) > MAX_WORD_LENGTH:
        return False
    if is_email(s) or is_url(s):
        return False
    if _SPACE_RE.search(s) or _CJK_RE.search(s) or _DIGIT_OR_UNDERSCORE_RE.search(s):
        return False
    if not _WORD_SHAPE_RE.fullmatch(s):
        return False
    return not _DOUBLED_JOINER_RE.search(s)


def classify_input(text) -> ClassifiedInput:
    if not isinstance(text, str):
        return ClassifiedInput(InputKind.INVALID, "")
    raw = text.strip()
    if not raw:
        return ClassifiedInput(InputKind.INVALID, "")
    if is_strict_word(raw):
        return ClassifiedInput(InputKind.SINGLE_WORD, normalize_word(raw))
    # Emails and URLs are not phrases.
    if is_email(raw) or is_url(raw) or not _LATIN_LETTER_RE.search(raw):
        return ClassifiedInput(InputKind.INVALID, raw)
    if _SPACE_RE.search(raw) or _PHRASE_MARK_RE.search(raw):
        return ClassifiedInput(InputKind.MULTI_WORD, raw)
    return ClassifiedInput(InputKind.INVALID, raw)


def dedupe_preserve_order(items):
    seen = set()
    result = []
    for item in items:
        if item is None:
            continue
        if not isinstance(item, str):
            item = str(item)
        item = item.strip()
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


def tokenize(text) -> list[str]:
    """Regex fallback used when the model output is not structured JSON."""
    rough = _WORD_SHAPE_RE.findall(str(text or ""))
    words = [normalize_word(token) for token in rough]
    return dedupe_preserve_order(word for word in words if is_strict_word(word))
