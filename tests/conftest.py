"""Shared fixtures: isolate config/log directories and module singletons"""

from typing import Optional

import pytest

from monkeyai.config import settings as settings_module
from monkeyai.providers import logging_utils

ENV_VARS = (
    "MONKEYAI_USE_OLLAMA",
    "MONKEYAI_OLLAMA_MODEL",
    "MONKEYAI_API_KEY",
    "MONKEYAI_OLLAMA_PORT",
    "OPENAI_API_KEY",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config dir at tmp_path and reset cached singletons"""
    config_dir = tmp_path / "monkeyai-config"
    monkeypatch.setenv("MONKEYAI_CONFIG_DIR", str(config_dir))
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(logging_utils, "_provider_logger", None)
    monkeypatch.setattr(settings_module, "_settings_manager", None)
    return config_dir


@pytest.fixture
def quiet_logger():
    return logging_utils.ProviderStructuredLogger(log_to_file=False)


class FakeProcess:
    """Stand-in for subprocess.Popen that runs until signalled"""

    def __init__(self, pid: int = 4242424, exit_code: int = 0):
        self.pid = pid
        self.returncode: Optional[int] = None
        self.terminated = False
        self.killed = False
        self._exit_code = exit_code

    def poll(self) -> Optional[int]:
        return self.returncode

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        return self.returncode

    def finish(self, code: Optional[int] = None):
        self.returncode = self._exit_code if code is None else code

    def terminate(self):
        self.terminated = True
        self.finish(-15)

    def kill(self):
        self.killed = True
        self.finish(-9)


@pytest.fixture
def fake_process_factory():
    return FakeProcess
