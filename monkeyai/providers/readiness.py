"""
Readiness checkers - one capability, two build targets

- LocalReadinessChecker: backed by OllamaSupervisor, may spawn the server
- ManualReadinessChecker: read-only, can only report how to start Ollama

The variant is chosen by build target (CLI/extension host vs. web page
backend), never by sniffing the runtime environment.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from monkeyai.common.errors import StartupFailure
from monkeyai.providers import platform_utils
from monkeyai.providers.ollama_supervisor import DEFAULT_PORT, HEALTH_PATH, OllamaSupervisor

MANUAL_START_STEPS = {
    'windows': (
        "1. Open Command Prompt or PowerShell\n"
        "2. Run: ollama serve\n"
        "3. Or start Ollama from the Start Menu"
    ),
    'macos': (
        "1. Open Terminal\n"
        "2. Run: ollama serve\n"
        "3. Or start Ollama.app from Applications"
    ),
    'linux': (
        "1. Open Terminal\n"
        "2. Run: ollama serve\n"
        "3. Make sure Ollama is installed first"
    ),
}


def manual_start_instructions(platform_type: Optional[str] = None) -> str:
    """Human-readable steps for starting Ollama by hand"""
    if platform_type is None:
        platform_type = platform_utils.get_platform()
    steps = MANUAL_START_STEPS.get(platform_type, MANUAL_START_STEPS['linux'])
    return f"To start Ollama manually:\n\n{steps}"


class ReadinessChecker(ABC):
    """Abstract readiness checker for the local Ollama service"""

    port: int = DEFAULT_PORT

    @abstractmethod
    async def is_running(self, port: Optional[int] = None) -> bool:
        """Check the health endpoint (never raises)"""
        pass

    @abstractmethod
    async def ensure_running(self) -> bool:
        """Make sure Ollama is reachable or raise StartupFailure"""
        pass

    def instructions(self) -> str:
        return manual_start_instructions()


class LocalReadinessChecker(ReadinessChecker):
    """Readiness checker that can start Ollama through the supervisor"""

    def __init__(self, supervisor: Optional[OllamaSupervisor] = None):
        self.supervisor = supervisor or OllamaSupervisor()
        self.port = self.supervisor.port

    async def is_running(self, port: Optional[int] = None) -> bool:
        return await self.supervisor.check_reachable(port)

    async def ensure_running(self) -> bool:
        return await self.supervisor.ensure_running()


class ManualReadinessChecker(ReadinessChecker):
    """Read-only readiness checker; reports instructions instead of spawning"""

    def __init__(self, port: int = DEFAULT_PORT, timeout: float = 3.0, platform_type: Optional[str] = None):
        self.port = port
        self.timeout = timeout
        self.platform_type = platform_type

    async def is_running(self, port: Optional[int] = None) -> bool:
        port = self.port if port is None else port
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"http://localhost:{port}{HEALTH_PATH}")
                return response.status_code == 200
        except Exception:
            return False

    def instructions(self) -> str:
        return manual_start_instructions(self.platform_type)

    async def ensure_running(self) -> bool:
        if await self.is_running():
            return True
        raise StartupFailure(f"Ollama not running.\n\n{self.instructions()}")


def get_readiness_checker(target: str, **kwargs) -> ReadinessChecker:
    """
    Build the readiness checker for a build target

    Args:
        target: "local"/"cli" (spawning) or "web" (read-only)
        **kwargs: Passed to the checker constructor

    Raises:
        ValueError: Unknown target
    """
    if target in ("local", "cli"):
        return LocalReadinessChecker(**kwargs)
    if target == "web":
        return ManualReadinessChecker(**kwargs)
    raise ValueError(f"Unknown readiness target: {target}")
