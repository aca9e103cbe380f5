from text_to_wordbook.integrations.dictionaries import (
    BatchReport,
    DictionaryTarget,
    Provider,
    create_writer,
    list_eudic_wordbooks,
    write_words,
)
from text_to_wordbook.integrations.http_client import CancelToken, HttpClient, HttpResponse
from text_to_wordbook.integrations.llm_client import (
    ExtractionOutcome,
    extract_message_text,
    extract_vocabulary,
    normalize_endpoint,
)

__all__ = [
    "BatchReport",
    "CancelToken",
    "DictionaryTarget",
    "ExtractionOutcome",
    "HttpClient",
    "HttpResponse",
    "Provider",
    "create_writer",
    "extract_message_text",
    "extract_vocabulary",
    "list_eudic_wordbooks",
    "normalize_endpoint",
    "write_words",
]
