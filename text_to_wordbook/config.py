import json
import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv


SETTINGS_FILENAME = "settings.json"
ENV_PREFIX = "WORDBOOK_"

DICT_YOUDAO = 1
DICT_EUDIC = 2
DICT_SHANBAY = 3

DEFAULT_WORD_CHECK_TIMEOUT_MS = 50000
DEFAULT_LLM_WORDS_MAX_ADD = 200
# Milliseconds-to-seconds divisor for the transport timeout. At the default
# word_check_timeout_ms this yields a 1 second timeout.
TIMEOUT_DIVISOR_MS = 50000
MIN_TRANSPORT_TIMEOUT_S = 1
MIN_WORDBOOK_LIST_TIMEOUT_S = 5

DEFAULT_SYSTEM_PROMPT = """ROLE: You are a vocabulary notebook manager for an English learner.
TASK: From the user's TEXT, extract DISTINCT English single WORDS only, then RANK by MEMORY VALUE and output the top {max_words}.
MEMORY VALUE (high -> low):
  - CEFR B2-C2 or academic/technical usefulness (STEM/business/legal),
  - high utility across contexts (polysemy/collocations),
  - morphological productivity (useful roots that yield many derivatives),
  - topic relevance to the input.
EXCLUDE:
  - trivial/common function words (the, is, and, to, of, etc.),
  - URLs/emails/numbers/hashtags/SKUs/codes/emojis,
  - NON-typical personal names or idiosyncratic capitalized tokens (e.g., "Licard"),
  - random strings or non-English tokens,
  - multi-word phrases.
PROPER NOUNS & BRANDS:
  - Keep only well-known proper nouns/brands/places or domain-critical names; otherwise skip.
  - For proper nouns and special names, KEEP initial capitalization (Title Case). For common words, use lowercase.
LEMMA RULES:
  - Output the BASE FORM (lemma): verbs -> infinitive (go, run), nouns -> singular (mouse), adjectives -> base (good), handle irregulars (went->go; better->good).
OUTPUT (STRICT JSON, NO explanations): Prefer {{"add":[...],"skip":[...]}}. If unsure, output just ["word1","word2",...].
CONSTRAINTS:
  - No duplicates; order by descending MEMORY VALUE.
  - Do not wrap in code fences.
"""

OPTION_KEYS = (
    "dict_type",
    "authorization",
    "wordbook_id",
    "word_only",
    "volcano_api_key",
    "volcano_endpoint",
    "volcano_model",
    "word_check_timeout_ms",
    "llm_words_max_add",
    "llm_words_system_prompt",
)


def transport_timeout_seconds(timeout_ms, *, divisor=TIMEOUT_DIVISOR_MS):
    """Whole-second transport timeout derived from a millisecond budget."""
    return max(MIN_TRANSPORT_TIMEOUT_S, math.ceil(timeout_ms / divisor))


def build_system_prompt(max_words, override=None):
    if override:
        return override
    return DEFAULT_SYSTEM_PROMPT.format(max_words=max_words)


@dataclass(frozen=True)
class WordbookOptions:
    dict_type: int = DICT_YOUDAO
    authorization: str = ""
    wordbook_id: str = ""
    word_only: bool = False
    volcano_api_key: str = ""
    volcano_endpoint: str = ""
    volcano_model: str = ""
    word_check_timeout_ms: int = DEFAULT_WORD_CHECK_TIMEOUT_MS
    llm_words_max_add: int = DEFAULT_LLM_WORDS_MAX_ADD
    llm_words_system_prompt: str | None = None

    @property
    def transport_timeout_s(self) -> int:
        return transport_timeout_seconds(self.word_check_timeout_ms)

    @property
    def wordbook_list_timeout_s(self) -> int:
        return max(MIN_WORDBOOK_LIST_TIMEOUT_S, self.transport_timeout_s)

    @property
    def llm_configured(self) -> bool:
        return bool(self.volcano_api_key and self.volcano_endpoint and self.volcano_model)

    @property
    def system_prompt(self) -> str:
        return build_system_prompt(self.llm_words_max_add, self.llm_words_system_prompt)

    @classmethod
    def from_mapping(cls, data):
        data = data if isinstance(data, dict) else {}
        return cls(
            dict_type=_coerce_int(data.get("dict_type"), DICT_YOUDAO, minimum=1),
            authorization=_coerce_str(data.get("authorization"), ""),
            wordbook_id=_coerce_str(data.get("wordbook_id"), ""),
            word_only=_coerce_bool(data.get("word_only"), False),
            volcano_api_key=_coerce_str(data.get("volcano_api_key"), ""),
            volcano_endpoint=_coerce_str(data.get("volcano_endpoint"), ""),
            volcano_model=_coerce_str(data.get("volcano_model"), ""),
            word_check_timeout_ms=_coerce_int(
                data.get("word_check_timeout_ms"), DEFAULT_WORD_CHECK_TIMEOUT_MS, minimum=1
            ),
            llm_words_max_add=_coerce_int(
                data.get("llm_words_max_add"), DEFAULT_LLM_WORDS_MAX_ADD, minimum=1
            ),
            llm_words_system_prompt=_coerce_str(data.get("llm_words_system_prompt"), None),
        )


def _coerce_str(value, default):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _coerce_int(value, default, *, minimum=None):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _coerce_bool(value, default):
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "y"}:
            return True
        if lowered in {"false", "0", "no", "n"}:
            return False
    return default


def get_default_settings_path(cwd=None):
    base = cwd or os.getcwd()
    return os.path.join(base, SETTINGS_FILENAME)


def read_environment_overrides(environ=None):
    environ = os.environ if environ is None else environ
    overrides = {}
    for key in OPTION_KEYS:
        value = environ.get(ENV_PREFIX + key.upper())
        if value is not None:
            overrides[key] = value
    return overrides


def load_options(path=None, *, environ=None, use_dotenv=True):
    """Build the options for one invocation.

    Values come from ``settings.json`` and are overridden by ``WORDBOOK_*``
    environment variables. An explicitly given path must exist; the default
    path is optional.
    """
    explicit = path is not None
    path = path or get_default_settings_path()
    if explicit and not os.path.exists(path):
        raise FileNotFoundError(
            f"Missing settings file at '{path}'. Create a JSON file with keys: "
            + ", ".join(OPTION_KEYS)
            + "."
        )

    data = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as handle:
            loaded = json.load(handle)
        if isinstance(loaded, dict):
            data.update(loaded)

    if use_dotenv:
        load_dotenv()
    data.update(read_environment_overrides(environ))
    return WordbookOptions.from_mapping(data)
