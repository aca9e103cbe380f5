import json

import pytest

from text_to_wordbook.domain.words import is_strict_word
from text_to_wordbook.integrations import llm_client
from text_to_wordbook.integrations.http_client import HttpResponse
from conftest import FakeHttpClient, llm_response, make_options


@pytest.mark.parametrize(
    "endpoint, expected",
    [
        ("https://ark.cn-beijing.volces.com/api/v3", "https://ark.cn-beijing.volces.com/api/v3"),
        ("https://ark.cn-beijing.volces.com/api/v3///", "https://ark.cn-beijing.volces.com/api/v3"),
        ("https://ark.cn-beijing.volces.com/api", "https://ark.cn-beijing.volces.com/api/v3"),
        ("https://ark.cn-beijing.volces.com", "https://ark.cn-beijing.volces.com/api/v3"),
        ("https://gw.example.com/api/v3/tenant", "https://gw.example.com/api/v3/tenant"),
        (
            "https://ark.cn-beijing.volces.com/api/v3/chat/completions",
            "https://ark.cn-beijing.volces.com/api/v3",
        ),
        ("https://ark.bytedance.net/api/v3", llm_client.CANONICAL_ENDPOINT),
        ("http://ark-cn-beijing.bytedance.net", llm_client.CANONICAL_ENDPOINT),
    ],
)
def test_normalize_endpoint(endpoint, expected):
    assert llm_client.normalize_endpoint(endpoint) == expected


def test_resolve_chat_url_for_bot_models():
    base = "https://ark.cn-beijing.volces.com/api/v3"
    assert llm_client.resolve_chat_url(base, "doubao-pro") == base + "/chat/completions"
    assert llm_client.resolve_chat_url(base, "bot-2024") == base + "/bots/chat/completions"
    assert llm_client.resolve_chat_url(base, "BOT-2024") == base + "/bots/chat/completions"


def test_extract_message_text_string():
    data = {"choices": [{"message": {"content": '["cat"]'}, "finish_reason": "stop"}]}
    text = llm_client.extract_message_text(data)
    assert text.shape is llm_client.ContentShape.STRING
    assert text.text == '["cat"]'
    assert text.finish_reason == "stop"


def test_extract_message_text_parts():
    data = {
        "choices": [
            {
                "message": {
                    "content": [
                        {"type": "text", "text": '["cat",'},
                        {"type": "image_url", "image_url": "x"},
                        {"type": "text", "text": ' "dog"]'},
                    ]
                }
            }
        ]
    }
    text = llm_client.extract_message_text(data)
    assert text.shape is llm_client.ContentShape.PARTS
    assert text.text == '["cat", "dog"]'


def test_extract_message_text_reasoning_fallback():
    for content in (None, ""):
        data = {"choices": [{"message": {"content": content, "reasoning_content": '["ponder"]'}}]}
        text = llm_client.extract_message_text(data)
        assert text.shape is llm_client.ContentShape.REASONING
        assert text.text == '["ponder"]'


def test_extract_message_text_output_text():
    text = llm_client.extract_message_text({"output_text": '["gateway"]'})
    assert text.shape is llm_client.ContentShape.OUTPUT_TEXT
    assert text.text == '["gateway"]'


@pytest.mark.parametrize("data", [None, "plain", {}, {"choices": []}, {"choices": [{"message": {}}]}])
def test_extract_message_text_empty(data):
    text = llm_client.extract_message_text(data)
    assert text.shape is llm_client.ContentShape.EMPTY
    assert text.text == ""


def test_parse_candidates_shapes():
    assert llm_client.parse_candidates('["a", "b"]') == ["a", "b"]
    assert llm_client.parse_candidates('{"add": ["x"], "skip": ["the"]}') == ["x"]
    assert llm_client.parse_candidates("Words: Ephemeral, ubiquitous.") == ["words", "ephemeral", "ubiquitous"]
    assert llm_client.parse_candidates('{"words": ["alpha"]}') == ["words", "alpha"]
    assert llm_client.parse_candidates("") == []


def test_clean_candidates_revalidates_dedupes_and_caps():
    candidates = [" Paris ", "run", "run", "hello world", "42", None, 7, "e-mail", "x@y.com", "ok", "more"]
    assert llm_client.clean_candidates(candidates, 4) == ["Paris", "run", "e-mail", "ok"]


def test_build_payload():
    payload = llm_client.build_payload("m", "SYSTEM", "text here")
    assert payload == {
        "model": "m",
        "messages": [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": "text here"},
        ],
        "thinking": {"type": "disabled"},
        "temperature": 0,
        "max_tokens": 1024,
        "n": 1,
    }


def test_extract_vocabulary_requires_configuration():
    client = FakeHttpClient()
    options = make_options(volcano_api_key="")

    outcome = llm_client.extract_vocabulary("hello", options, http_client=client)

    assert not outcome.ok
    assert outcome.status_code == 0
    assert outcome.words == []
    assert client.calls == []


def test_extract_vocabulary_sends_request(options):
    client = FakeHttpClient([llm_response('{"add": ["ephemeral", "Tokyo"], "skip": ["the"]}')])
    token = object()

    outcome = llm_client.extract_vocabulary("The ephemeral Tokyo night", options, cancel_token=token, http_client=client)

    call = client.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://llm.example.com/api/v3/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer key-123"
    assert call["timeout"] == 1
    assert call["cancel_token"] is token
    assert call["body"]["model"] == "doubao-pro"
    assert call["body"]["messages"][1]["content"] == "The ephemeral Tokyo night"
    assert "output the top 200." in call["body"]["messages"][0]["content"]

    assert outcome.ok
    assert outcome.status_code == 200
    assert outcome.words == ["ephemeral", "Tokyo"]
    assert outcome.endpoint == "https://llm.example.com/api/v3"
    assert outcome.model == "doubao-pro"
    assert outcome.duration_ms >= 0


def test_extract_vocabulary_falls_back_to_tokenizer(options):
    client = FakeHttpClient([llm_response("Sure! Here you go: resilient, Meticulous")])
    outcome = llm_client.extract_vocabulary("text", options, http_client=client)
    assert outcome.ok
    assert outcome.words == ["sure", "here", "you", "go", "resilient", "meticulous"]


def test_extract_vocabulary_empty_success(options):
    client = FakeHttpClient([llm_response("[]")])
    outcome = llm_client.extract_vocabulary("the a an", options, http_client=client)
    assert outcome.ok
    assert outcome.words == []


def test_extract_vocabulary_non_2xx_is_not_ok(options):
    client = FakeHttpClient([HttpResponse(status=401, data={"error": {"message": "bad key"}})])
    outcome = llm_client.extract_vocabulary("hello", options, http_client=client)
    assert not outcome.ok
    assert outcome.status_code == 401
    assert outcome.raw_body == {"error": {"message": "bad key"}}


def test_extract_vocabulary_transport_failure(options):
    client = FakeHttpClient([HttpResponse(error="Request to x failed: timed out after 1s", timed_out=True)])
    outcome = llm_client.extract_vocabulary("hello", options, http_client=client)
    assert not outcome.ok
    assert outcome.status_code == 0
    assert outcome.words == []
    assert "timed out" in outcome.error_message
    assert outcome.url == "https://llm.example.com/api/v3/chat/completions"


def test_extracted_words_satisfy_invariants():
    options = make_options(llm_words_max_add=5)
    noisy = ["alpha", "Alpha", "alpha", "beta gamma", "delta1", "epsilon", "zeta", "eta", "theta", "iota"]
    client = FakeHttpClient([llm_response(json.dumps(noisy))])

    outcome = llm_client.extract_vocabulary("text", options, http_client=client)

    assert len(outcome.words) <= 5
    assert len(set(outcome.words)) == len(outcome.words)
    assert all(is_strict_word(word) for word in outcome.words)
    assert outcome.words == ["alpha", "Alpha", "epsilon", "zeta", "eta"]


def test_deeply_nested_output_falls_back_to_tokenizer(options):
    nested = "[" * 100000 + '"alpha"' + "]" * 100000
    assert llm_client.parse_candidates(nested) == ["alpha"]

    client = FakeHttpClient([llm_response("[" * 100000 + "]" * 100000)])
    outcome = llm_client.extract_vocabulary("text", options, http_client=client)
    assert outcome.ok
    assert outcome.words == []
