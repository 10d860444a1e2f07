"""JSON-mode client behaviour with the OpenAI SDK mocked out"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from openai import OpenAIError

from config.settings import Config
from src.ai_agent.llm_client import LLMClient, create_llm_client, extract_json_object
from src.ai_agent.mock_llm_client import MockLLMClient
from src.planner.errors import GenerationError


class KeyedConfig(Config):
    OPENAI_API_KEY = "sk-test"
    LLM_PROVIDER = "openai"
    DEFAULT_MODEL = "gpt-4o"
    TEMPERATURE = None
    LLM_TIMEOUT = 30.0


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def openai_client():
    with patch("src.ai_agent.llm_client.OpenAI") as openai_cls:
        yield openai_cls


def _client(openai_client, content):
    openai_client.return_value.chat.completions.create.return_value = _completion(content)
    return LLMClient(config=KeyedConfig())


def test_client_is_built_without_retries(openai_client):
    LLMClient(config=KeyedConfig())

    kwargs = openai_client.call_args.kwargs
    assert kwargs["api_key"] == "sk-test"
    assert kwargs["max_retries"] == 0
    assert kwargs["timeout"] == 30.0


def test_request_asks_for_json_object(openai_client):
    client = _client(openai_client, '{"events": []}')

    assert client.complete_json("système", "utilisateur", request_name="calendar") == {"events": []}

    kwargs = openai_client.return_value.chat.completions.create.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["messages"][0] == {"role": "system", "content": "système"}
    assert "temperature" not in kwargs


@pytest.mark.parametrize("content", ["", "   ", None])
def test_empty_content_raises(openai_client, content):
    client = _client(openai_client, content)

    with pytest.raises(GenerationError):
        client.complete_json("s", "u")
    assert client.get_stats()["failed_requests"] == 1


@pytest.mark.parametrize("content", ["pas du JSON", "[1, 2, 3]"])
def test_non_object_content_raises(openai_client, content):
    client = _client(openai_client, content)

    with pytest.raises(GenerationError):
        client.complete_json("s", "u")


def test_fenced_json_is_extracted(openai_client):
    client = _client(openai_client, 'Voici le résultat:\n```json\n{"companyName": "Dubois"}\n```')

    assert client.complete_json("s", "u") == {"companyName": "Dubois"}


def test_sdk_error_becomes_generation_error(openai_client):
    openai_client.return_value.chat.completions.create.side_effect = OpenAIError("connection reset")
    client = LLMClient(config=KeyedConfig())

    with pytest.raises(GenerationError, match="connection reset"):
        client.complete_json("s", "u", request_name="context")
    assert client.get_stats() == {"model": "gpt-4o", "total_requests": 1, "failed_requests": 1}


def test_missing_choices_become_generation_error(openai_client):
    openai_client.return_value.chat.completions.create.return_value = SimpleNamespace(choices=[])
    client = LLMClient(config=KeyedConfig())

    with pytest.raises(GenerationError):
        client.complete_json("s", "u")


def test_extract_json_object_strategies():
    assert extract_json_object('texte {"a": {"b": 1}} suite') == {"a": {"b": 1}}
    assert extract_json_object("ligne\n{\"fin\": true}") == {"fin": True}
    assert extract_json_object("aucun objet") is None


def test_factory_uses_mock_provider(config):
    assert isinstance(create_llm_client(config), MockLLMClient)


def test_factory_falls_back_to_mock_without_key():
    class NoKeyConfig(Config):
        LLM_PROVIDER = "openai"
        OPENAI_API_KEY = ""

    assert isinstance(create_llm_client(NoKeyConfig()), MockLLMClient)


def test_factory_builds_openai_client(openai_client):
    assert isinstance(create_llm_client(KeyedConfig()), LLMClient)


def test_mock_client_refuses_unknown_requests(mock_llm):
    with pytest.raises(GenerationError):
        mock_llm.complete_json("s", "u", request_name="summary")
