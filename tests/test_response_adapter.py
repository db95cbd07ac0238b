"""Tests for the non-streaming response adapter."""

from nimbridge.adapters.response import build_chat_completion, merge_reasoning
from nimbridge.testing import completion_body


def test_echoes_caller_model_not_upstream_model():
    payload = completion_body("Hi", model="deepseek-ai/deepseek-v3.1")

    result = build_chat_completion(payload, "gpt-4o", show_reasoning=False)

    assert result["model"] == "gpt-4o"
    assert result["object"] == "chat.completion"
    assert result["id"].startswith("chatcmpl-")
    assert isinstance(result["created"], int)


def test_choice_shape():
    payload = completion_body("Answer", finish_reason="length")

    result = build_chat_completion(payload, "gpt-4", show_reasoning=False)

    assert result["choices"] == [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Answer"},
            "finish_reason": "length",
        }
    ]


def test_reasoning_wrapped_when_enabled():
    payload = completion_body("Answer", reasoning="Let me think")

    result = build_chat_completion(payload, "gpt-4", show_reasoning=True)

    assert result["choices"][0]["message"]["content"] == (
        "<think>\nLet me think\n</think>\n\nAnswer"
    )


def test_reasoning_dropped_when_disabled():
    payload = completion_body("Answer", reasoning="secret thoughts")

    result = build_chat_completion(payload, "gpt-4", show_reasoning=False)

    message = result["choices"][0]["message"]
    assert message == {"role": "assistant", "content": "Answer"}
    assert "secret thoughts" not in str(result)


def test_reasoning_only_message_with_display_enabled():
    payload = completion_body(None, reasoning="R")

    result = build_chat_completion(payload, "gpt-4", show_reasoning=True)

    assert result["choices"][0]["message"]["content"] == "<think>\nR\n</think>\n\n"


def test_null_content_becomes_empty_string():
    result = build_chat_completion(completion_body(None), "gpt-4", show_reasoning=False)

    assert result["choices"][0]["message"]["content"] == ""


def test_missing_usage_is_zeroed():
    result = build_chat_completion(completion_body("Hi"), "gpt-4", show_reasoning=False)

    assert result["usage"] == {
        "prompt_tokens": 0,
        "completion_tokens": 0,
        "total_tokens": 0,
    }


def test_upstream_usage_is_kept():
    usage = {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12}

    result = build_chat_completion(
        completion_body("Hi", usage=usage), "gpt-4", show_reasoning=False
    )

    assert result["usage"] == usage


def test_missing_choices_yields_empty_list():
    result = build_chat_completion({}, "gpt-4", show_reasoning=False)

    assert result["choices"] == []


def test_multiple_choices_keep_their_index():
    payload = {
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": "a"}, "finish_reason": "stop"},
            {"index": 1, "message": {"role": "assistant", "content": "b"}, "finish_reason": "stop"},
        ]
    }

    result = build_chat_completion(payload, "gpt-4", show_reasoning=False)

    assert [(c["index"], c["message"]["content"]) for c in result["choices"]] == [
        (0, "a"),
        (1, "b"),
    ]


def test_merge_reasoning_ignores_empty_reasoning():
    assert merge_reasoning("C", "", show_reasoning=True) == "C"
    assert merge_reasoning("C", None, show_reasoning=True) == "C"
