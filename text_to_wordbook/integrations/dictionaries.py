import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from urllib.parse import quote

from text_to_wordbook.config import WordbookOptions
from text_to_wordbook.errors import ConfigurationError
from text_to_wordbook.integrations.http_client import default_client

logger = logging.getLogger(__name__)

YOUDAO_ADD_WORD_URL = "https://dict.youdao.com/wordbook/webapi/v2/ajax/add?lan=en&word="
EUDIC_ADD_WORD_URL = "https://api.frdic.com/api/open/v1/studylist/words"
EUDIC_BOOK_LIST_URL = "https://api.frdic.com/api/open/v1/studylist/category?language=en"
SHANBAY_ADD_WORD_URL = "https://apiv3.shanbay.com/wordscollection/words_bulk_upload"
SHANBAY_BUSINESS_ID = 6
BROWSER_USER_AGENT = "Mozilla/5.0"
CANCELLED_REASON = "cancelled before the word was written"


class Provider(IntEnum):
    YOUDAO = 1
    EUDIC = 2
    SHANBAY = 3


@dataclass(frozen=True)
class DictionaryTarget:
    provider: Provider
    credential: str
    notebook_id: str | None = None

    @classmethod
    def from_options(cls, options: WordbookOptions) -> "DictionaryTarget":
        try:
            provider = Provider(options.dict_type)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown dictionary type: {options.dict_type}") from exc
        if not options.authorization:
            raise ConfigurationError("authorization is missing")
        if provider is Provider.EUDIC and not options.wordbook_id:
            raise ConfigurationError("wordbook_id is required for Eudic")
        return cls(provider, options.authorization, options.wordbook_id or None)


@dataclass
class WriteOutcome:
    word: str
    ok: bool
    message: str
    masked: bool = False


@dataclass
class FailedWord:
    word: str
    reason: str


@dataclass
class BatchReport:
    success: list[str] = field(default_factory=list)
    failed: list[FailedWord] = field(default_factory=list)
    batch: bool = False
    masked: bool = False
    status_code: int | None = None
    server_message: str | None = None


def success_message(word):
    return f"Word added: {word}"


def masked_message(word):
    return f"Word added (request timed out, treated as written locally): {word}"


def masked_batch_message(count):
    return f"Words added (batch request timed out, treated as written locally), requested words: {count}"


class DictionaryWriter(ABC):
    """Writes words into one provider's notebook.

    Serial providers issue one request per word and wait for it to settle
    before the next. Transport failures are reported as masked successes
    when ``mask_transport_failures`` is set.
    """

    provider: Provider
    failure_hint = "Dictionary credential is wrong or expired."
    supports_batch = False
    mask_transport_failures = True

    def __init__(self, target: DictionaryTarget, *, http_client=None, timeout=1, cancel_token=None):
        self.target = target
        self.http_client = http_client or default_client()
        self.timeout = timeout
        self.cancel_token = cancel_token

    @abstractmethod
    def _send_word(self, word):
        raise NotImplementedError

    @abstractmethod
    def _accepted(self, response) -> bool:
        raise NotImplementedError

    def add_word(self, word) -> WriteOutcome:
        response = self._send_word(word)
        if response.cancelled:
            return WriteOutcome(word, False, CANCELLED_REASON)
        if response.transport_failed:
            if self.mask_transport_failures:
                logger.warning("%s write for %r masked: %s", self.provider.name, word, response.error)
                return WriteOutcome(word, True, masked_message(word), masked=True)
            return WriteOutcome(word, False, response.error)
        if self._accepted(response):
            logger.debug("%s accepted %r", self.provider.name, word)
            return WriteOutcome(word, True, success_message(word))
        logger.debug("%s rejected %r with status %s", self.provider.name, word, response.status)
        return WriteOutcome(word, False, self.failure_hint)

    def add_words(self, words) -> BatchReport:
        report = BatchReport()
        for word in words:
            outcome = self.add_word(word)
            if outcome.ok:
                report.success.append(word)
            else:
                report.failed.append(FailedWord(word, outcome.message or "unknown reason"))
        return report

    def _request(self, method, url, **kwargs):
        return self.http_client.request(
            method, url, timeout=self.timeout, cancel_token=self.cancel_token, **kwargs
        )


class YoudaoWriter(DictionaryWriter):
    provider = Provider.YOUDAO
    failure_hint = "Youdao cookie is wrong or expired, please fill it in again."

    def _send_word(self, word):
        return self._request(
            "GET",
            YOUDAO_ADD_WORD_URL + quote(word, safe="'"),
            headers={
                "Cookie": self.target.credential,
                "Host": "dict.youdao.com",
                "Accept": "application/json, text/plain, */*",
                "Referer": "https://dict.youdao.com",
                "User-Agent": BROWSER_USER_AGENT,
            },
        )

    def _accepted(self, response):
        if not isinstance(response.data, dict):
            return False
        code = response.data.get("code")
        return code == 0 and not isinstance(code, bool)


class ShanbayWriter(DictionaryWriter):
    provider = Provider.SHANBAY
    failure_hint = "Shanbay auth_token is wrong or expired, please fill it in again."

    def _send_word(self, word):
        return self._request(
            "POST",
            SHANBAY_ADD_WORD_URL,
            headers={
                "Cookie": f"auth_token={self.target.credential}",
                "Content-Type": "application/json",
                "User-Agent": BROWSER_USER_AGENT,
            },
            body={"business_id": SHANBAY_BUSINESS_ID, "words": [word]},
        )

    def _accepted(self, response):
        return response.status == 200


class EudicWriter(DictionaryWriter):
    provider = Provider.EUDIC
    failure_hint = "Eudic token or configuration is wrong, please check."
    supports_batch = True

    def _headers(self):
        return {
            "Authorization": self.target.credential,
            "Content-Type": "application/json",
            "User-Agent": BROWSER_USER_AGENT,
        }

    def _send_word(self, word):
        return self._request(
            "POST",
            EUDIC_ADD_WORD_URL,
            headers=self._headers(),
            body={"id": self.target.notebook_id, "language": "en", "words": [word]},
        )

    def _accepted(self, response):
        return response.status == 201

    def add_words(self, words) -> BatchReport:
        """One request for the whole list; the provider deduplicates."""
        words = list(words)
        response = self._request(
            "POST",
            EUDIC_ADD_WORD_URL,
            headers=self._headers(),
            body={"category_id": self.target.notebook_id, "language": "en", "words": words},
        )
        if response.cancelled:
            return BatchReport(
                failed=[FailedWord(word, CANCELLED_REASON) for word in words], batch=True
            )
        if response.transport_failed and self.mask_transport_failures:
            logger.warning("Eudic batch write of %s words masked: %s", len(words), response.error)
            return BatchReport(
                success=words,
                batch=True,
                masked=True,
                server_message=masked_batch_message(len(words)),
            )
        if self._accepted(response):
            server_message = None
            if isinstance(response.data, dict) and response.data.get("message"):
                server_message = str(response.data["message"])
            return BatchReport(
                success=words, batch=True, status_code=response.status, server_message=server_message
            )
        reason = response.error or f"statusCode={response.status or 'n/a'}"
        return BatchReport(
            failed=[FailedWord(word, reason) for word in words],
            batch=True,
            status_code=response.status,
        )

    def check_notebook(self, probe_word="test") -> bool:
        """Health check through the single-word path; only a real 201 counts."""
        response = self._send_word(probe_word)
        return not response.transport_failed and self._accepted(response)


_WRITERS = {
    Provider.YOUDAO: YoudaoWriter,
    Provider.EUDIC: EudicWriter,
    Provider.SHANBAY: ShanbayWriter,
}


def create_writer(target: DictionaryTarget, **kwargs) -> DictionaryWriter:
    return _WRITERS[target.provider](target, **kwargs)


def write_words(target: DictionaryTarget, words, **kwargs) -> BatchReport:
    return create_writer(target, **kwargs).add_words(words)


@dataclass
class WordbookListing:
    ok: bool
    wordbooks: list = field(default_factory=list)
    status_code: int = 0
    error: str | None = None


def list_eudic_wordbooks(credential, *, http_client=None, timeout=5) -> WordbookListing:
    client = http_client or default_client()
    response = client.request(
        "GET",
        EUDIC_BOOK_LIST_URL,
        headers={
            "Authorization": credential,
            "Content-Type": "application/json",
            "User-Agent": BROWSER_USER_AGENT,
        },
        timeout=timeout,
    )
    if response.transport_failed:
        return WordbookListing(False, error=response.error)
    if response.status != 200:
        return WordbookListing(False, status_code=response.status)
    data = response.data.get("data") if isinstance(response.data, dict) else None
    return WordbookListing(True, wordbooks=data or [], status_code=response.status)
