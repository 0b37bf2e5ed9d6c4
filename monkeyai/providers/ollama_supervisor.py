"""
Ollama Supervisor - make the local Ollama server reachable on demand

Scope:
- Health probe of GET /api/tags
- Start from a static list of candidate install paths (version probe first)
- Bounded retry loop around the start sequence
- Stop a server this supervisor spawned
- Server output goes to <log_dir>/ollama.log
- Pull a default model when none is installed

Not in scope:
- Installation of Ollama
- Stopping an Ollama instance started by someone else
- Cross-process coordination (two hosts may race to spawn)
"""

import asyncio
import logging
import subprocess
from enum import Enum
from typing import List, Optional, Set

import httpx

from monkeyai.common.errors import LaunchError, RequestFailure, ResourceFetchFailure, StartupFailure
from monkeyai.providers import platform_utils, process_utils
from monkeyai.providers.logging_utils import (
    OperationTimer,
    ProviderStructuredLogger,
    get_provider_logger,
)

logger = logging.getLogger(__name__)

PROVIDER = "ollama"
DEFAULT_PORT = 11434
DEFAULT_MODEL = "llama2"
HEALTH_PATH = "/api/tags"


class SupervisorState(str, Enum):
    """Supervisor lifecycle state"""
    IDLE = "IDLE"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    FAILED = "FAILED"


class OllamaSupervisor:
    """
    Supervisor for a locally installed Ollama server

    Holds the supervision state for one host process: the owned child
    process handle (if we spawned one), the starting flag, the target port
    and the retry parameters. The spawned server is detached and keeps
    running after the host exits unless stop() is called.
    """

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        max_retries: int = 3,
        retry_delay_ms: int = 2000,
        settle_seconds: float = 3.0,
        health_timeout: float = 3.0,
        exit_poll_interval: float = 1.0,
        candidate_paths: Optional[List[str]] = None,
        provider_logger: Optional[ProviderStructuredLogger] = None,
    ):
        self.port = port
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self.settle_seconds = settle_seconds
        self.health_timeout = health_timeout
        self.exit_poll_interval = exit_poll_interval

        self.process: Optional[subprocess.Popen] = None
        self.is_starting = False

        self._candidate_paths = candidate_paths
        self._provider_logger = provider_logger
        self._state = SupervisorState.IDLE
        self._tasks: Set[asyncio.Task] = set()

    @property
    def provider_logger(self) -> ProviderStructuredLogger:
        if self._provider_logger is None:
            self._provider_logger = get_provider_logger()
        return self._provider_logger

    @property
    def endpoint(self) -> str:
        return f"http://localhost:{self.port}"

    @property
    def state(self) -> SupervisorState:
        """Current lifecycle state (IDLE -> STARTING -> RUNNING | FAILED)"""
        if self.is_starting:
            return SupervisorState.STARTING
        return self._state

    async def check_reachable(self, port: Optional[int] = None) -> bool:
        """
        Check if Ollama answers on the health endpoint

        Returns True only on HTTP 200. Never raises: connection errors,
        timeouts and other statuses all mean "not reachable".
        """
        port = self.port if port is None else port
        try:
            async with httpx.AsyncClient(timeout=self.health_timeout) as client:
                response = await client.get(f"http://localhost:{port}{HEALTH_PATH}")
                return response.status_code == 200
        except Exception as e:
            logger.debug(f"Health check on port {port} failed: {e}")
            return False

    def resolve_candidate_paths(self) -> List[str]:
        """Candidate executable locations in priority order"""
        if self._candidate_paths is not None:
            return list(self._candidate_paths)
        return platform_utils.get_candidate_paths()

    async def start_process(self) -> bool:
        """
        Start Ollama server from the first working candidate path

        Process:
        1. If a start is already in progress -> return False (no effect)
        2. If already reachable -> return True without spawning
        3. For each candidate: probe `--version`, spawn `serve` detached,
           wait the settle interval, re-check reachability
        4. Unreachable after settle -> kill the child, try next candidate

        Raises:
            LaunchError: No candidate produced a reachable server
        """
        if self.is_starting:
            logger.info("Ollama is already starting...")
            return False

        # Set before the first await so a second caller on the same loop
        # cannot slip in between the check and the set.
        self.is_starting = True
        try:
            if await self.check_reachable():
                logger.info("Ollama is already running")
                self._state = SupervisorState.RUNNING
                return True

            logger.info("Starting Ollama server...")
            paths = self.resolve_candidate_paths()

            with OperationTimer() as timer:
                self.provider_logger.log_start(provider=PROVIDER)

                for path in paths:
                    if await self._try_candidate(path, timer):
                        return True

                self.provider_logger.log_detect(provider=PROVIDER, searched_paths=paths)
                self.provider_logger.log_start_failure(
                    provider=PROVIDER,
                    error_code="cli_not_found",
                    elapsed_ms=timer.elapsed_ms(),
                )

            self._state = SupervisorState.FAILED
            raise LaunchError("Ollama executable not found. Please install Ollama first.")
        finally:
            self.is_starting = False

    async def _try_candidate(self, path: str, timer: OperationTimer) -> bool:
        """Probe, spawn and verify one candidate path"""
        logger.info(f"Trying to start Ollama at: {path}")

        version = await platform_utils.probe_executable(path)
        if version is None:
            logger.info(f"Path {path} not found, trying next...")
            return False

        exe = platform_utils.expand_candidate(path)
        self.provider_logger.log_detect(provider=PROVIDER, resolved_exe=exe)
        logger.debug(f"Found {version} at {exe}")

        log_path = platform_utils.get_log_dir() / "ollama.log"
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            # No pipes back to this process; the server must outlive it.
            with open(log_path, "a", buffering=1, encoding="utf-8") as log_handle:
                process = subprocess.Popen(
                    [exe, "serve"],
                    stdin=subprocess.DEVNULL,
                    stdout=log_handle,
                    stderr=subprocess.STDOUT,
                    **platform_utils.popen_detach_kwargs(),
                )
        except OSError as e:
            logger.error(f"Failed to start Ollama: {e}")
            return False

        logger.info(f"Ollama process started: PID {process.pid} (output: {log_path})")
        self.process = process
        self._spawn_task(self._watch_exit(process))

        await asyncio.sleep(self.settle_seconds)

        if await self.check_reachable():
            logger.info(f"Ollama started successfully (PID: {process.pid})")
            self.provider_logger.log_start_success(
                provider=PROVIDER,
                pid=process.pid,
                resolved_exe=exe,
                elapsed_ms=timer.elapsed_ms(),
            )
            self._state = SupervisorState.RUNNING
            return True

        logger.info("Failed to start Ollama, trying next path...")
        self.provider_logger.log_start_failure(
            provider=PROVIDER,
            error_code="start_timeout",
            resolved_exe=exe,
            elapsed_ms=timer.elapsed_ms(),
            message=f"Ollama not ready after {self.settle_seconds}s",
        )
        self._signal(process, kill=True)
        if self.process is process:
            self.process = None
        return False

    async def ensure_running(self) -> bool:
        """
        Ensure Ollama is running, starting it if needed

        Raises:
            StartupFailure: max_retries attempts failed
        """
        retries = 0
        delay = self.retry_delay_ms / 1000

        while retries < self.max_retries:
            try:
                if await self.check_reachable():
                    self._state = SupervisorState.RUNNING
                    return True

                logger.info(f"Attempt {retries + 1}/{self.max_retries} to start Ollama...")
                self.provider_logger.log_start(provider=PROVIDER, attempt=retries + 1)
                await self.start_process()

                await asyncio.sleep(delay)

                if await self.check_reachable():
                    self._state = SupervisorState.RUNNING
                    return True

                retries += 1
            except Exception as e:
                logger.error(f"Start attempt {retries + 1} failed: {e}")
                retries += 1

                if retries < self.max_retries:
                    logger.info(f"Waiting {delay}s before retry...")
                    await asyncio.sleep(delay)

        self._state = SupervisorState.FAILED
        raise StartupFailure(
            f"Failed to start Ollama after {self.max_retries} attempts",
            attempts=self.max_retries,
        )

    def stop(self):
        """
        Stop Ollama if this supervisor started it

        No-op when no process is owned; safe to call repeatedly.
        """
        process = self.process
        if process is None:
            return

        logger.info("Stopping Ollama...")
        self.provider_logger.log_stop(provider=PROVIDER, pid=process.pid)
        self._signal(process, kill=False)
        self.process = None
        self._state = SupervisorState.IDLE

    async def list_models(self) -> List[str]:
        """
        List installed model names

        Raises:
            RequestFailure: Listing call failed or returned garbage
        """
        try:
            async with httpx.AsyncClient(timeout=self.health_timeout) as client:
                response = await client.get(f"{self.endpoint}{HEALTH_PATH}")
        except httpx.HTTPError as e:
            raise RequestFailure(f"Model listing failed: {e}") from e

        if response.status_code != 200:
            raise RequestFailure(f"Model listing failed: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RequestFailure("Model listing returned invalid JSON") from e

        models = data.get("models") if isinstance(data, dict) else None
        models = models or []
        return [m.get("name", "") if isinstance(m, dict) else str(m) for m in models]

    async def ensure_default_model(self, model_name: str = DEFAULT_MODEL) -> bool:
        """
        Pull `model_name` if no model is installed at all

        Returns:
            bool: True if models exist or the pull succeeded, False if the
            listing query failed

        Raises:
            ResourceFetchFailure: The pull exited non-zero or could not run
        """
        try:
            models = await self.list_models()
        except RequestFailure as e:
            logger.warning(f"Could not check/pull models: {e}")
            return False

        if models:
            return True

        logger.info(f"No models found. Pulling {model_name}...")
        await self.pull_model(model_name)
        return True

    async def pull_model(self, model_name: str):
        """Run `ollama pull <model>` with console I/O inherited"""
        exe = platform_utils.expand_candidate(self.resolve_candidate_paths()[0])

        with OperationTimer() as timer:
            try:
                proc = await asyncio.create_subprocess_exec(exe, "pull", model_name)
            except OSError as e:
                self.provider_logger.log_pull(
                    provider=PROVIDER,
                    model=model_name,
                    error_code="spawn_failed",
                    elapsed_ms=timer.elapsed_ms(),
                )
                raise ResourceFetchFailure(
                    f"Error pulling {model_name}: {e}", model=model_name
                ) from e

            exit_code = await proc.wait()

        self.provider_logger.log_pull(
            provider=PROVIDER,
            model=model_name,
            exit_code=exit_code,
            elapsed_ms=timer.elapsed_ms(),
        )

        if exit_code != 0:
            raise ResourceFetchFailure(
                f"Failed to pull {model_name}", model=model_name, exit_code=exit_code
            )

        logger.info(f"Successfully pulled {model_name}")

    def _spawn_task(self, coro):
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _watch_exit(self, process: subprocess.Popen):
        # Must not hold up loop shutdown while the server keeps running.
        while process.poll() is None:
            await asyncio.sleep(self.exit_poll_interval)

        exit_code = process.returncode
        logger.info(f"Ollama process exited with code {exit_code}")
        self.provider_logger.log_exit(provider=PROVIDER, pid=process.pid, exit_code=exit_code)

        # Only clear ownership if this is still the process we own; no restart.
        if self.process is process:
            self.process = None
            if self._state == SupervisorState.RUNNING:
                self._state = SupervisorState.IDLE

    def _signal(self, process: subprocess.Popen, kill: bool):
        process_utils.signal_children(process.pid, kill=kill)
        try:
            if kill:
                process.kill()
            else:
                process.terminate()
        except ProcessLookupError:
            logger.debug(f"Process {process.pid} already terminated")
