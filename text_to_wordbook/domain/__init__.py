from text_to_wordbook.domain.results import (
    build_error,
    build_result,
    format_extraction_report,
    supported_languages,
)
from text_to_wordbook.domain.words import (
    ClassifiedInput,
    InputKind,
    classify_input,
    dedupe_preserve_order,
    is_strict_word,
    tokenize,
)

__all__ = [
    "ClassifiedInput",
    "InputKind",
    "build_error",
    "build_result",
    "classify_input",
    "dedupe_preserve_order",
    "format_extraction_report",
    "is_strict_word",
    "supported_languages",
    "tokenize",
]
