"""
Provider subsystem: Ollama supervision and model backends (local & cloud)
"""

from monkeyai.providers.ollama_supervisor import OllamaSupervisor, SupervisorState
from monkeyai.providers.readiness import (
    LocalReadinessChecker,
    ManualReadinessChecker,
    ReadinessChecker,
    get_readiness_checker,
)

__all__ = [
    "OllamaSupervisor",
    "SupervisorState",
    "ReadinessChecker",
    "LocalReadinessChecker",
    "ManualReadinessChecker",
    "get_readiness_checker",
]
