"""
JSON-mode LLM client for the Objective Calendar Planner
"""
import json
import logging
import time
from typing import Dict, Any, Optional

from openai import OpenAI, OpenAIError

from config.settings import Config
from src.planner.errors import GenerationError

logger = logging.getLogger(__name__)


class LLMClient:
    """Chat-completions client that always answers with a JSON object"""

    def __init__(self, model_name: str = None, config: Config = None):
        self.config = config or Config()
        self.model_config = self.config.get_model_config(model_name)
        self.model_name = self.model_config["model"]
        self.temperature = self.model_config["temperature"]

        client_kwargs = {
            "api_key": self.config.OPENAI_API_KEY or None,
            "max_retries": self.model_config["max_retries"],
        }
        if self.model_config["base_url"]:
            client_kwargs["base_url"] = self.model_config["base_url"]
        if self.model_config["timeout"] is not None:
            client_kwargs["timeout"] = self.model_config["timeout"]
        self.client = OpenAI(**client_kwargs)

        self._total_requests = 0
        self._failed_requests = 0

        logger.info(f"Initialized LLM client: {self.model_name}")

    def complete_json(self, system_prompt: str, user_prompt: str,
                      request_name: str = "completion") -> Dict[str, Any]:
        """Send one JSON-mode request and return the decoded object.

        Raises GenerationError when the call fails or the answer is empty or
        not a JSON object. Nothing is retried here.
        """
        content = self._make_chat_request(system_prompt, user_prompt, request_name)
        return self._parse_json_content(content, request_name)

    def _make_chat_request(self, system_prompt: str, user_prompt: str,
                           request_name: str) -> str:
        self._total_requests += 1
        request_kwargs = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "response_format": {"type": "json_object"},
        }
        if self.temperature is not None:
            request_kwargs["temperature"] = self.temperature

        start_time = time.time()
        try:
            response = self.client.chat.completions.create(**request_kwargs)
            content = response.choices[0].message.content
        except OpenAIError as e:
            self._failed_requests += 1
            logger.error(f"{request_name} request failed: {e}")
            raise GenerationError(f"LLM request failed: {e}", step=request_name) from e
        except (IndexError, AttributeError) as e:
            self._failed_requests += 1
            logger.error(f"{request_name} response had no message content: {e}")
            raise GenerationError("LLM response had no message content", step=request_name) from e

        logger.info(f"{request_name} response received in {time.time() - start_time:.2f}s")

        if not content or not content.strip():
            self._failed_requests += 1
            logger.error(f"{request_name} response was empty")
            raise GenerationError("LLM returned empty content", step=request_name)
        return content

    def _parse_json_content(self, content: str, request_name: str) -> Dict[str, Any]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.warning(f"{request_name} response is not bare JSON, trying extraction")
            data = extract_json_object(content)

        if not isinstance(data, dict):
            self._failed_requests += 1
            logger.error(f"{request_name} response is not a JSON object: {content[:200]}")
            raise GenerationError("LLM returned unparsable content", step=request_name)
        return data

    def get_stats(self) -> Dict[str, Any]:
        return {
            "model": self.model_name,
            "total_requests": self._total_requests,
            "failed_requests": self._failed_requests,
        }


def extract_json_object(response: str) -> Optional[Dict[str, Any]]:
    """Extract a JSON object from a response with multiple strategies"""
    strategies = [
        # Strategy 1: JSON inside a ```json fenced block
        _extract_json_from_fence,
        # Strategy 2: first balanced {...}
        _extract_json_by_braces,
        # Strategy 3: a full JSON line near the end
        _extract_json_from_end,
    ]

    for strategy in strategies:
        try:
            result = strategy(response)
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError as e:
            logger.debug(f"JSON extraction strategy failed: {e}")
            continue

    return None


def _extract_json_from_fence(response: str) -> Optional[Dict[str, Any]]:
    if "```" not in response:
        return None
    block = response.split("```")[1]
    if block.strip().startswith("json"):
        block = block.strip()[4:]
    return json.loads(block)


def _extract_json_by_braces(response: str) -> Optional[Dict[str, Any]]:
    """Extract JSON by finding balanced braces"""
    start = response.find('{')
    if start == -1:
        return None

    brace_count = 0
    for i, char in enumerate(response[start:], start):
        if char == '{':
            brace_count += 1
        elif char == '}':
            brace_count -= 1
            if brace_count == 0:
                return json.loads(response[start:i + 1])
    return None


def _extract_json_from_end(response: str) -> Optional[Dict[str, Any]]:
    for line in reversed(response.strip().split('\n')):
        line = line.strip()
        if line.startswith('{') and line.endswith('}'):
            try:
                return json.loads(line)
            except json.JSONDecodeError:
                continue
    return None


def create_llm_client(config: Config = None, model_name: str = None):
    """Build the client selected by LLM_PROVIDER"""
    config = config or Config()
    provider = (config.LLM_PROVIDER or "openai").lower()

    if provider == "openai" and not config.OPENAI_API_KEY:
        logger.warning("⚠️  OPENAI_API_KEY not set, using mock LLM client")
        provider = "mock"

    if provider == "mock":
        from src.ai_agent.mock_llm_client import MockLLMClient
        return MockLLMClient(config=config)

    return LLMClient(model_name, config=config)
