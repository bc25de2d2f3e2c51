"""Tests for chat template capabilities."""

import pytest

from src.domain.errors import ConfigError
from src.domain.services.chat_templates import ChatTemplate


@pytest.mark.parametrize("name", ["mistral-instruct", "gemma-instruct", "phi-3-chat", "openchat"])
def test_templates_without_system_prompt(name):
    assert not ChatTemplate.parse(name).has_system_prompt


@pytest.mark.parametrize("name", ["llama-3-chat", "llama-2-chat", "chatml", "zephyr"])
def test_templates_with_system_prompt(name):
    assert ChatTemplate.parse(name).has_system_prompt


def test_parse_is_case_insensitive():
    assert ChatTemplate.parse("ChatML") == ChatTemplate.CHATML


def test_unknown_template_is_config_error():
    with pytest.raises(ConfigError, match="Unknown prompt template"):
        ChatTemplate.parse("not-a-template")
