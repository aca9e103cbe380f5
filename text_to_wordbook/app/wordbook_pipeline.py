import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

from text_to_wordbook.config import DICT_EUDIC, WordbookOptions
from text_to_wordbook.domain import results
from text_to_wordbook.domain.words import classify_input, dedupe_preserve_order
from text_to_wordbook.errors import ConfigurationError
from text_to_wordbook.integrations.dictionaries import (
    DictionaryTarget,
    EudicWriter,
    Provider,
    create_writer,
    list_eudic_wordbooks,
)
from text_to_wordbook.integrations.http_client import CancelToken
from text_to_wordbook.integrations.llm_client import extract_vocabulary

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Request cancelled, no words were added"


@dataclass
class Query:
    text: str
    detect_from: str | None = None
    cancel_token: CancelToken = field(default_factory=CancelToken)
    on_completion: Callable[[dict], None] | None = None


class Completion:
    """Delivers exactly one payload to the host callback."""

    def __init__(self, callback=None):
        self._callback = callback
        self._lock = threading.Lock()
        self.payload = None

    @property
    def delivered(self) -> bool:
        return self.payload is not None

    def deliver(self, payload) -> bool:
        with self._lock:
            if self.payload is not None:
                logger.debug("Ignoring second completion: %s", results.message_from_payload(payload))
                return False
            self.payload = payload
        if self._callback is not None:
            try:
                self._callback(payload)
            except Exception:
                logger.exception("Completion callback raised")
        return True


def translate(query: Query, options: WordbookOptions, *, http_client=None):
    """Extract vocabulary from ``query.text`` and add it to the configured word book.

    Returns the payload that was delivered to ``query.on_completion``:
    either ``{"result": ...}`` or ``{"error": ...}``.
    """
    completion = Completion(query.on_completion)
    try:
        payload = _run_pipeline(query, options, http_client)
    except Exception as exc:
        logger.exception("Adding words failed")
        payload = results.error_payload(f"Failed to add words: {results.error_to_message(exc)}")
    completion.deliver(payload)
    return completion.payload


def _run_pipeline(query, options, http_client):
    try:
        target = DictionaryTarget.from_options(options)
    except ConfigurationError as exc:
        return results.error_payload(str(exc))

    classified = classify_input(query.text)
    if not classified.is_valid:
        logger.info("Input has no English words, skipping")
        return results.result_payload(results.SKIPPED_MESSAGE)

    outcome = extract_vocabulary(
        classified.normalized_text,
        options,
        cancel_token=query.cancel_token,
        http_client=http_client,
    )
    if not outcome.ok:
        return results.error_payload(results.format_extraction_report(outcome))
    if query.cancel_token.cancelled:
        return results.error_payload(CANCELLED_MESSAGE)

    words = dedupe_preserve_order(outcome.words)[: options.llm_words_max_add]
    if not words:
        return results.result_payload(results.NO_WORDS_MESSAGE)

    writer = create_writer(
        target,
        http_client=http_client,
        timeout=options.transport_timeout_s,
        cancel_token=query.cancel_token,
    )
    report = writer.add_words(words)
    logger.info(
        "%s write finished: %s added, %s failed",
        target.provider.name,
        len(report.success),
        len(report.failed),
    )

    if writer.supports_batch:
        if report.failed and query.cancel_token.cancelled:
            return results.error_payload(CANCELLED_MESSAGE)
        if report.masked:
            return results.result_payload(report.server_message)
        if not report.failed:
            return results.result_payload(results.format_batch_report(words, report))
        return results.error_payload(results.format_batch_failure(words, report))

    if len(words) == 1 and report.failed:
        return results.error_payload(report.failed[0].reason)
    return results.result_payload(results.format_serial_report(words, report))


def add_word(word, options: WordbookOptions, *, cancel_token=None, http_client=None):
    """Add one word verbatim through the provider's single-word path."""
    try:
        target = DictionaryTarget.from_options(options)
    except ConfigurationError as exc:
        return results.error_payload(str(exc))
    writer = create_writer(
        target,
        http_client=http_client,
        timeout=options.transport_timeout_s,
        cancel_token=cancel_token,
    )
    outcome = writer.add_word(word)
    if outcome.ok:
        return results.result_payload(outcome.message)
    return results.error_payload(outcome.message)


def validate_options(options: WordbookOptions, *, http_client=None):
    """Check the credential; for Eudic, help the user pick a notebook id."""
    if not options.authorization:
        return {"result": False, "error": results.build_error("Authorization is not set.", "secretKey")}
    try:
        if options.dict_type != DICT_EUDIC:
            return {"result": True}
        if options.wordbook_id:
            target = DictionaryTarget(Provider.EUDIC, options.authorization, options.wordbook_id)
            writer = EudicWriter(
                target, http_client=http_client, timeout=options.transport_timeout_s
            )
            if writer.check_notebook():
                return {"result": True}
        return _choose_eudic_wordbook(options, http_client)
    except Exception as exc:
        logger.exception("Validation failed")
        return {"result": False, "error": results.build_error(results.error_to_message(exc))}


def _choose_eudic_wordbook(options, http_client):
    listing = list_eudic_wordbooks(
        options.authorization,
        http_client=http_client,
        timeout=options.wordbook_list_timeout_s,
    )
    if listing.ok:
        message = "Please choose a Eudic notebook id:\n" + results.safe_json_dumps(listing.wordbooks)
    elif listing.error:
        message = "Eudic notebook list lookup failed (network/timeout)."
    else:
        message = "Eudic token is wrong or expired."
    return {"result": False, "error": results.build_error(message)}
