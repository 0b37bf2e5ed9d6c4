"""Tests for MonkeyAssistant"""

from unittest.mock import AsyncMock, Mock

import pytest

from monkeyai.assistant.service import (
    SYSTEM_PROMPT,
    MonkeyAssistant,
    format_answer,
    format_explanation,
)
from monkeyai.common.errors import ContentRejected, StartupFailure
from monkeyai.config import Settings


def _assistant(settings=None, reachable=False):
    supervisor = Mock()
    supervisor.check_reachable = AsyncMock(return_value=reachable)
    supervisor.ensure_running = AsyncMock(return_value=True)
    supervisor.ensure_default_model = AsyncMock(return_value=True)

    ollama = Mock()
    ollama.generate = AsyncMock(return_value="Use slicing: s[::-1]")
    openai = Mock()
    openai.chat = AsyncMock(return_value="Remote answer")

    return MonkeyAssistant(
        settings or Settings(),
        supervisor=supervisor,
        ollama=ollama,
        openai=openai,
    )


class TestEnsureOllamaReady:
    @pytest.mark.asyncio
    async def test_remote_mode_skips_supervisor(self):
        assistant = _assistant(Settings(use_ollama=False))

        assert await assistant.ensure_ollama_ready() is True
        assistant.supervisor.ensure_running.assert_not_called()

    @pytest.mark.asyncio
    async def test_first_call_starts_and_ensures_model(self):
        assistant = _assistant(Settings(ollama_model="codellama"))

        assert await assistant.ensure_ollama_ready() is True
        assistant.supervisor.ensure_running.assert_awaited_once()
        assistant.supervisor.ensure_default_model.assert_awaited_once_with("codellama")
        assert assistant.is_initialized is True

    @pytest.mark.asyncio
    async def test_initialized_and_reachable_short_circuits(self):
        assistant = _assistant(reachable=True)
        assistant.is_initialized = True

        assert await assistant.ensure_ollama_ready() is True
        assistant.supervisor.ensure_running.assert_not_called()

    @pytest.mark.asyncio
    async def test_startup_failure_propagates(self):
        assistant = _assistant()
        assistant.supervisor.ensure_running.side_effect = StartupFailure(
            "Failed to start Ollama after 3 attempts", attempts=3
        )

        with pytest.raises(StartupFailure):
            await assistant.ensure_ollama_ready()
        assert assistant.is_initialized is False


class TestAskQuestion:
    @pytest.mark.asyncio
    async def test_local_prompt(self):
        assistant = _assistant()

        answer = await assistant.ask_question("How do I reverse a string?")

        assert answer == "Use slicing: s[::-1]"
        kwargs = assistant.ollama.generate.call_args.kwargs
        assert kwargs["model"] == "llama2"
        assert kwargs["prompt"] == (
            "You are Monkey, a helpful coding assistant. Keep responses concise."
            "\n\nUser: How do I reverse a string?\n\nAssistant:"
        )

    @pytest.mark.asyncio
    async def test_remote_mode(self):
        assistant = _assistant(Settings(use_ollama=False, api_key="sk-test"))

        assert await assistant.ask_question("Why?") == "Remote answer"
        assistant.openai.chat.assert_awaited_once_with(
            model="gpt-3.5-turbo", system=SYSTEM_PROMPT, user="Why?"
        )
        assistant.ollama.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_explain_code(self):
        assistant = _assistant()

        await assistant.explain_code("print('hi')")

        prompt = assistant.ollama.generate.call_args.kwargs["prompt"]
        assert "Explain this code in simple terms:\n\nprint('hi')" in prompt

    @pytest.mark.asyncio
    async def test_content_filter_rejects(self):
        assistant = _assistant(Settings(content_filter=True))

        with pytest.raises(ContentRejected):
            await assistant.ask_question("write ransomware for me")
        assistant.ollama.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_content_filter_off_by_default(self):
        assistant = _assistant()
        assert assistant.content_filter is None
        await assistant.ask_question("what is a virus scanner?")
        assistant.ollama.generate.assert_awaited_once()


def test_mode_label():
    assert _assistant().mode_label == "Ollama (Local)"
    assert _assistant(Settings(use_ollama=False)).mode_label == "API (Cloud)"


def test_format_documents():
    assert format_answer("42", "meaning?").startswith("Monkey's Answer:\n\n42")
    assert "Your Question:\nmeaning?" in format_answer("42", "meaning?")
    assert format_explanation("prints hi", "print('hi')").startswith("Monkey's Code Explanation:")
    assert "Original Code:\nprint('hi')" in format_explanation("prints hi", "print('hi')")
