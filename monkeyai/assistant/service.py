"""
Monkey AI assistant - question answering and code explanation

Host-agnostic: the editor extension host and the CLI both drive this class
and decide what to do when the local service cannot be started (switch to
the remote API, try again, or give up).
"""

import logging
from typing import Optional

from monkeyai.common.errors import ContentRejected
from monkeyai.config import Settings
from monkeyai.assistant.content_filter import ContentFilter
from monkeyai.providers.cloud_openai import OpenAIClient
from monkeyai.providers.local_ollama import OllamaClient
from monkeyai.providers.ollama_supervisor import OllamaSupervisor

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are Monkey, a helpful coding assistant. Keep responses concise."


class MonkeyAssistant:
    """Routes questions to local Ollama or the remote API per settings"""

    def __init__(
        self,
        settings: Settings,
        supervisor: Optional[OllamaSupervisor] = None,
        ollama: Optional[OllamaClient] = None,
        openai: Optional[OpenAIClient] = None,
    ):
        self.settings = settings
        self.supervisor = supervisor or OllamaSupervisor(
            port=settings.ollama_port,
            max_retries=settings.max_retries,
            retry_delay_ms=settings.retry_delay_ms,
        )
        self.ollama = ollama or OllamaClient(port=settings.ollama_port)
        self.openai = openai or OpenAIClient(settings.api_key)
        self.content_filter = ContentFilter() if settings.content_filter else None
        self.is_initialized = False

    @property
    def mode_label(self) -> str:
        return "Ollama (Local)" if self.settings.use_ollama else "API (Cloud)"

    async def ensure_ollama_ready(self) -> bool:
        """
        Make sure Ollama is running and has the configured model

        Returns True straight away in remote mode. Failures (StartupFailure,
        ResourceFetchFailure) propagate to the host.
        """
        if not self.settings.use_ollama:
            return True

        if self.is_initialized and await self.supervisor.check_reachable():
            return True

        await self.supervisor.ensure_running()
        await self.supervisor.ensure_default_model(self.settings.ollama_model)

        self.is_initialized = True
        logger.info("Ollama is ready")
        return True

    async def ask_question(self, question: str) -> str:
        if self.content_filter:
            verdict = self.content_filter.is_harmful_request(question)
            if verdict.harmful:
                raise ContentRejected(verdict.reason)

        if self.settings.use_ollama:
            await self.ensure_ollama_ready()
            answer = await self.ollama.generate(
                model=self.settings.ollama_model,
                prompt=f"{SYSTEM_PROMPT}\n\nUser: {question}\n\nAssistant:",
            )
        else:
            answer = await self.openai.chat(
                model=self.settings.model,
                system=SYSTEM_PROMPT,
                user=question,
            )

        if self.content_filter:
            answer = self.content_filter.filter_response(answer)
        return answer

    async def explain_code(self, code: str) -> str:
        return await self.ask_question(f"Explain this code in simple terms:\n\n{code}")


def format_answer(answer: str, question: str) -> str:
    """Markdown document shown for an answered question"""
    return f"Monkey's Answer:\n\n{answer}\n\nYour Question:\n{question}"


def format_explanation(explanation: str, code: str) -> str:
    """Markdown document shown for an explained selection"""
    return f"Monkey's Code Explanation:\n\n{explanation}\n\nOriginal Code:\n{code}"
