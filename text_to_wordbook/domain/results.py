import json


SUPPORTED_LANGUAGES = ["zh-Hans", "en"]
PREVIEW_LIMIT = 30
FAILED_PREVIEW_LIMIT = 10
REQUEST_ID_HEADERS = ("x-request-id", "request-id", "x-requestid", "requestid")


def supported_languages():
    return list(SUPPORTED_LANGUAGES)


def build_result(message):
    return {
        "from": "en",
        "to": "zh-Hans",
        "toParagraphs": [message],
        "fromParagraphs": ["success add to word book"],
    }


def build_error(message, error_type="param"):
    return {"type": error_type, "message": message}


def result_payload(message):
    return {"result": build_result(message)}


def error_payload(message, error_type="param"):
    return {"error": build_error(message, error_type)}


def message_from_payload(payload) -> str:
    if not isinstance(payload, dict):
        return ""
    result = payload.get("result")
    if isinstance(result, dict) and result.get("toParagraphs"):
        return str(result["toParagraphs"][0])
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return ""


def join_preview(words, limit=PREVIEW_LIMIT):
    limit = max(0, limit)
    head = ", ".join(words[:limit])
    if len(words) > limit:
        return f"{head} … and {len(words) - limit} more"
    return head


def error_to_message(err) -> str:
    if err is None:
        return "unknown"
    if isinstance(err, str):
        return err or "unknown"
    if isinstance(err, BaseException):
        return str(err) or type(err).__name__
    return safe_json_dumps(err)


def safe_json_dumps(value) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, indent=2)
    except (TypeError, ValueError):
        try:
            return str(value)
        except Exception:
            return "[unserializable]"


def find_request_id(headers):
    if not headers:
        return None
    lowered = {str(name).lower(): value for name, value in headers.items()}
    for name in REQUEST_ID_HEADERS:
        value = lowered.get(name)
        if value:
            return str(value)
    return None


def format_extraction_report(outcome) -> str:
    """Render a failed extraction verbatim so the caller sees what the LLM returned."""

    def show(value):
        return "n/a" if value is None or value == "" else str(value)

    lines = [
        "LLM request report",
        f"ok={str(bool(outcome.ok)).lower()}",
        f"statusCode={show(outcome.status_code)}",
        f"durationMs={show(outcome.duration_ms)}",
        f"url={show(outcome.url)}",
        f"endpoint={show(outcome.endpoint)}",
        f"model={show(outcome.model)}",
    ]
    request_id = find_request_id(outcome.headers)
    if request_id:
        lines.append(f"request-id={request_id}")
    if outcome.error_message:
        lines.append(f"error={outcome.error_message}")
    lines.append(f"response.data={safe_json_dumps(outcome.raw_body)}")
    return "\n".join(lines)


def format_extracted_line(words):
    return (
        f"Agent: extracted and ranked {len(words)} English words "
        f"(simple words filtered by AI) → {join_preview(words)}"
    )


def format_serial_report(words, report):
    agent_line = format_extracted_line(words)
    add_line = f"Add: succeeded {len(report.success)}"
    if report.success:
        add_line += f" ({join_preview(report.success)})"
    if report.failed:
        failed_words = [item.word for item in report.failed]
        add_line += (
            f"\nfailed {len(report.failed)} "
            f"(e.g.: {join_preview(failed_words, FAILED_PREVIEW_LIMIT)})"
        )
    return f"{agent_line}\n{add_line}"


def format_batch_report(words, report):
    server_message = report.server_message or "batch import succeeded"
    return (
        f"{format_extracted_line(words)}\n"
        f"Add: {server_message} (requested words: {len(words)})"
    )


def format_batch_failure(words, report):
    status = report.status_code if report.status_code else "n/a"
    return (
        f"Agent: extracted {len(words)} English words\n"
        f"Add: batch failed (statusCode={status})"
    )


NO_WORDS_MESSAGE = "Agent: the model returned no English words to add (empty list)\nAdd: skipped"
SKIPPED_MESSAGE = "No English word detected, skipped"
