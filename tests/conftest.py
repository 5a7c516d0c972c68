"""Shared fixtures."""

from unittest.mock import patch

import pytest

from toolstream.clients.anthropic import AnthropicConfig
from toolstream.services.llm import LLMService
from toolstream.tools.registry import ToolsRegistry


@pytest.fixture
def registry():
    """Empty tools registry."""
    return ToolsRegistry()


@pytest.fixture
def make_service(registry):
    """Factory building an LLMService over a scripted transport."""

    def factory(transport, **config):
        with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}):
            return LLMService(AnthropicConfig(**config), transport=transport, registry=registry)

    return factory
