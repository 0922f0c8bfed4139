import json
from dataclasses import replace
from types import SimpleNamespace

import httpx
import openai
import pytest

from resume_ingest.core.config import Settings
from resume_ingest.core.errors import CompletionError
from resume_ingest.core.llm_client import (
    OpenAICompletionClient,
    build_completion_client,
    extract_json,
)


BASE_SETTINGS = Settings(
    openai_api_key="sk-test",
    openai_model="gpt-4o-mini",
    openai_base_url=None,
    openai_timeout_s=5.0,
    ai_extraction_enabled=True,
    log_level="INFO",
    max_resume_chars=50000,
)


# ===== extract_json =====

def test_extract_json_plain_object():
    assert extract_json('{"experiences": []}') == {"experiences": []}


def test_extract_json_strips_fences_and_prose():
    raw = 'Here you go:\n```json\n{"skills": [{"category": "Tools"}]}\n```\nLet me know!'
    assert extract_json(raw) == {"skills": [{"category": "Tools"}]}


def test_extract_json_rejects_non_objects():
    with pytest.raises(ValueError):
        extract_json("[1, 2]")


def test_extract_json_rejects_garbage():
    with pytest.raises(json.JSONDecodeError):
        extract_json("no json here")
    with pytest.raises(json.JSONDecodeError):
        extract_json(None)


def test_extract_json_rejects_runaway_nesting():
    with pytest.raises(ValueError):
        extract_json("[" * 100000 + "]" * 100000)


# ===== client construction =====

def test_no_client_without_api_key():
    assert build_completion_client(replace(BASE_SETTINGS, openai_api_key=None)) is None


def test_no_client_when_disabled():
    assert build_completion_client(replace(BASE_SETTINGS, ai_extraction_enabled=False)) is None


def test_openai_client_built_from_settings():
    client = build_completion_client(BASE_SETTINGS)
    assert isinstance(client, OpenAICompletionClient)


def test_missing_key_is_a_completion_error():
    with pytest.raises(CompletionError):
        OpenAICompletionClient(api_key="")


# ===== complete() =====

def _fake_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_complete_sends_json_mode_request(monkeypatch):
    client = OpenAICompletionClient(api_key="sk-test", model="gpt-test")
    seen = {}

    def fake_create(**kwargs):
        seen.update(kwargs)
        return _fake_response('{"experiences": []}')

    monkeypatch.setattr(client._client.chat.completions, "create", fake_create)

    assert client.complete("system", "user") == '{"experiences": []}'
    assert seen["model"] == "gpt-test"
    assert seen["temperature"] == 0
    assert seen["response_format"] == {"type": "json_object"}
    assert [m["role"] for m in seen["messages"]] == ["system", "user"]


def test_complete_wraps_sdk_errors(monkeypatch):
    client = OpenAICompletionClient(api_key="sk-test")

    def fake_create(**kwargs):
        raise openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))

    monkeypatch.setattr(client._client.chat.completions, "create", fake_create)
    with pytest.raises(CompletionError):
        client.complete("system", "user")


def test_complete_rejects_empty_content(monkeypatch):
    client = OpenAICompletionClient(api_key="sk-test")
    monkeypatch.setattr(client._client.chat.completions, "create", lambda **kwargs: _fake_response(None))
    with pytest.raises(CompletionError):
        client.complete("system", "user")
