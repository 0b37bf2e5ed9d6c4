"""
Tests for OllamaSupervisor

Spawning is replaced by patching subprocess.Popen (serve) or
asyncio.create_subprocess_exec (pull) and the version check; health
checks are patched per test. Real spawns live in test_supervisor_spawn.py.
"""

import asyncio
import socket
import subprocess
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from monkeyai.common.errors import LaunchError, ResourceFetchFailure, StartupFailure
from monkeyai.providers.ollama_supervisor import OllamaSupervisor, SupervisorState

LINUX_PATHS = ["/usr/local/bin/ollama", "/usr/bin/ollama", "~/.local/bin/ollama", "./ollama"]


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _http_client(mock_client_class, get_response=None, get_error=None):
    mock_client = AsyncMock()
    mock_client_class.return_value = mock_client
    mock_client.__aenter__.return_value = mock_client
    if get_error is not None:
        mock_client.get.side_effect = get_error
    else:
        mock_client.get.return_value = get_response
    return mock_client


@pytest.fixture
def supervisor(quiet_logger):
    return OllamaSupervisor(
        retry_delay_ms=0,
        settle_seconds=0,
        exit_poll_interval=0.01,
        provider_logger=quiet_logger,
    )


@pytest.fixture(autouse=True)
def no_child_signals():
    with patch("monkeyai.providers.process_utils.signal_children", return_value=[]) as mock_signal:
        yield mock_signal


class TestCheckReachable:
    @pytest.mark.asyncio
    async def test_nothing_listening_returns_false(self, supervisor):
        assert await supervisor.check_reachable(_free_port()) is False

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_http_200_is_reachable(self, mock_client_class, supervisor):
        mock_client = _http_client(mock_client_class, get_response=Mock(status_code=200))

        assert await supervisor.check_reachable() is True
        mock_client.get.assert_called_once_with("http://localhost:11434/api/tags")

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_non_200_is_unreachable(self, mock_client_class, supervisor):
        _http_client(mock_client_class, get_response=Mock(status_code=500))

        assert await supervisor.check_reachable() is False

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_timeout_is_unreachable(self, mock_client_class, supervisor):
        _http_client(mock_client_class, get_error=httpx.ReadTimeout("timed out"))

        assert await supervisor.check_reachable(12345) is False

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_unexpected_error_is_swallowed(self, mock_client_class, supervisor):
        _http_client(mock_client_class, get_error=RuntimeError("boom"))

        assert await supervisor.check_reachable() is False

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_explicit_port_zero_is_not_default(self, mock_client_class, supervisor):
        mock_client = _http_client(mock_client_class, get_response=Mock(status_code=200))

        await supervisor.check_reachable(0)
        mock_client.get.assert_called_once_with("http://localhost:0/api/tags")


class TestStartProcess:
    @pytest.mark.asyncio
    async def test_already_reachable_does_not_spawn(self, supervisor):
        supervisor.check_reachable = AsyncMock(return_value=True)

        with patch("subprocess.Popen") as mock_popen:
            assert await supervisor.start_process() is True

        mock_popen.assert_not_called()
        assert supervisor.process is None
        assert supervisor.state == SupervisorState.RUNNING

    @pytest.mark.asyncio
    async def test_first_working_candidate_wins(self, quiet_logger, fake_process_factory):
        supervisor = OllamaSupervisor(
            settle_seconds=0,
            candidate_paths=["/opt/a/ollama", "/opt/b/ollama"],
            provider_logger=quiet_logger,
        )
        supervisor.check_reachable = AsyncMock(side_effect=[False, True])
        process = fake_process_factory()

        with patch(
            "monkeyai.providers.platform_utils.probe_executable",
            AsyncMock(return_value="ollama version 0.1.0"),
        ) as mock_version, patch("subprocess.Popen", return_value=process) as mock_popen:
            assert await supervisor.start_process() is True

        mock_version.assert_awaited_once_with("/opt/a/ollama")
        assert mock_popen.call_count == 1
        assert mock_popen.call_args.args == (["/opt/a/ollama", "serve"],)
        assert supervisor.process is process
        assert supervisor.is_starting is False
        assert supervisor.state == SupervisorState.RUNNING

    @pytest.mark.asyncio
    async def test_spawn_is_detached_with_output_to_log_file(
        self, supervisor, fake_process_factory, isolated_config
    ):
        supervisor.check_reachable = AsyncMock(side_effect=[False, True])

        with patch(
            "monkeyai.providers.platform_utils.probe_executable",
            AsyncMock(return_value="0.1.0"),
        ), patch(
            "monkeyai.providers.platform_utils.get_platform", return_value="linux"
        ), patch("subprocess.Popen", return_value=fake_process_factory()) as mock_popen:
            await supervisor.start_process()

        kwargs = mock_popen.call_args.kwargs
        log_path = isolated_config / "logs" / "ollama.log"
        assert kwargs["start_new_session"] is True
        assert kwargs["stdin"] == subprocess.DEVNULL
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["stdout"].name == str(log_path)
        assert kwargs["stdout"].closed is True
        assert log_path.exists()

    @pytest.mark.asyncio
    async def test_unreachable_after_settle_kills_and_moves_on(self, quiet_logger, fake_process_factory):
        supervisor = OllamaSupervisor(
            settle_seconds=0,
            candidate_paths=["/opt/a/ollama", "/opt/b/ollama"],
            provider_logger=quiet_logger,
        )
        # initial check, after first spawn, after second spawn
        supervisor.check_reachable = AsyncMock(side_effect=[False, False, True])
        first, second = fake_process_factory(pid=111), fake_process_factory(pid=222)

        with patch(
            "monkeyai.providers.platform_utils.probe_executable",
            AsyncMock(return_value="0.1.0"),
        ), patch("subprocess.Popen", side_effect=[first, second]):
            assert await supervisor.start_process() is True

        assert first.killed is True
        assert supervisor.process is second

    @pytest.mark.asyncio
    async def test_spawn_oserror_advances_to_next_candidate(self, quiet_logger, fake_process_factory):
        supervisor = OllamaSupervisor(
            settle_seconds=0,
            candidate_paths=["/opt/a/ollama", "/opt/b/ollama"],
            provider_logger=quiet_logger,
        )
        supervisor.check_reachable = AsyncMock(side_effect=[False, True])
        process = fake_process_factory()

        with patch(
            "monkeyai.providers.platform_utils.probe_executable",
            AsyncMock(return_value="0.1.0"),
        ), patch(
            "subprocess.Popen", side_effect=[PermissionError("denied"), process]
        ) as mock_popen:
            assert await supervisor.start_process() is True

        assert mock_popen.call_count == 2
        assert supervisor.process is process

    @pytest.mark.asyncio
    async def test_reentry_while_starting_returns_false(self, supervisor):
        supervisor.is_starting = True
        supervisor.check_reachable = AsyncMock(return_value=False)

        with patch("subprocess.Popen") as mock_popen:
            assert await supervisor.start_process() is False

        mock_popen.assert_not_called()
        supervisor.check_reachable.assert_not_called()
        assert supervisor.state == SupervisorState.STARTING

    @pytest.mark.asyncio
    async def test_concurrent_start_only_one_proceeds(self, supervisor):
        async def slow_reachable(port=None):
            await asyncio.sleep(0)
            return True

        supervisor.check_reachable = slow_reachable

        results = await asyncio.gather(supervisor.start_process(), supervisor.start_process())

        assert results == [True, False]
        assert supervisor.is_starting is False

    @pytest.mark.asyncio
    async def test_all_linux_candidates_fail_version_check(self, supervisor):
        supervisor.check_reachable = AsyncMock(return_value=False)

        with patch(
            "monkeyai.providers.platform_utils.get_platform", return_value="linux"
        ), patch(
            "monkeyai.providers.platform_utils.probe_executable",
            AsyncMock(return_value=None),
        ) as mock_version, patch("subprocess.Popen") as mock_popen:
            with pytest.raises(LaunchError, match="executable not found"):
                await supervisor.start_process()

        assert [c.args[0] for c in mock_version.await_args_list] == LINUX_PATHS
        mock_popen.assert_not_called()
        assert supervisor.is_starting is False
        assert supervisor.state == SupervisorState.FAILED


class TestEnsureRunning:
    @pytest.mark.asyncio
    async def test_reachable_returns_without_spawning(self, supervisor):
        supervisor.check_reachable = AsyncMock(return_value=True)

        with patch("subprocess.Popen") as mock_popen, patch(
            "monkeyai.providers.platform_utils.probe_executable", new_callable=AsyncMock
        ) as mock_version:
            assert await supervisor.ensure_running() is True

        mock_popen.assert_not_called()
        mock_version.assert_not_called()
        assert supervisor.check_reachable.await_count == 1

    @pytest.mark.asyncio
    async def test_exhausts_retries_when_every_version_check_fails(self, supervisor):
        supervisor.check_reachable = AsyncMock(return_value=False)

        with patch(
            "monkeyai.providers.platform_utils.get_platform", return_value="linux"
        ), patch(
            "monkeyai.providers.platform_utils.probe_executable",
            AsyncMock(return_value=None),
        ) as mock_version:
            with pytest.raises(StartupFailure) as exc_info:
                await supervisor.ensure_running()

        assert exc_info.value.attempts == 3
        assert "after 3 attempts" in str(exc_info.value)
        # every attempt walks all four candidates again
        assert mock_version.await_count == 3 * len(LINUX_PATHS)
        assert supervisor.process is None
        assert supervisor.state == SupervisorState.FAILED

    @pytest.mark.asyncio
    async def test_custom_retry_count(self, quiet_logger):
        supervisor = OllamaSupervisor(
            max_retries=5,
            retry_delay_ms=0,
            settle_seconds=0,
            candidate_paths=["/nowhere/ollama"],
            provider_logger=quiet_logger,
        )
        supervisor.check_reachable = AsyncMock(return_value=False)

        with patch(
            "monkeyai.providers.platform_utils.probe_executable",
            AsyncMock(return_value=None),
        ):
            with pytest.raises(StartupFailure) as exc_info:
                await supervisor.ensure_running()

        assert exc_info.value.attempts == 5

    @pytest.mark.asyncio
    async def test_succeeds_on_later_attempt(self, supervisor):
        supervisor.start_process = AsyncMock(side_effect=[LaunchError("not found"), True])
        # attempt 1: pre-check; attempt 2: pre-check, post-start check
        supervisor.check_reachable = AsyncMock(side_effect=[False, False, True])

        assert await supervisor.ensure_running() is True
        assert supervisor.start_process.await_count == 2
        assert supervisor.state == SupervisorState.RUNNING


class TestStop:
    def test_stop_without_process_is_noop(self, supervisor):
        supervisor.stop()
        supervisor.stop()
        assert supervisor.process is None

    @pytest.mark.asyncio
    async def test_stop_terminates_and_clears(self, supervisor, fake_process_factory):
        process = fake_process_factory()
        supervisor.process = process

        supervisor.stop()

        assert process.terminated is True
        assert supervisor.process is None

        supervisor.stop()
        assert supervisor.process is None

    @pytest.mark.asyncio
    async def test_unexpected_exit_clears_handle(self, supervisor, fake_process_factory):
        supervisor.check_reachable = AsyncMock(side_effect=[False, True])
        process = fake_process_factory()

        with patch(
            "monkeyai.providers.platform_utils.probe_executable",
            AsyncMock(return_value="0.1.0"),
        ), patch("subprocess.Popen", return_value=process):
            await supervisor.start_process()

        assert supervisor.state == SupervisorState.RUNNING

        process.finish(1)
        await asyncio.sleep(0.1)

        assert supervisor.process is None
        assert supervisor.state == SupervisorState.IDLE


class TestEnsureDefaultModel:
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_empty_model_list_pulls(self, mock_client_class, quiet_logger):
        supervisor = OllamaSupervisor(
            candidate_paths=["/usr/local/bin/ollama", "/usr/bin/ollama"],
            provider_logger=quiet_logger,
        )
        response = Mock(status_code=200)
        response.json.return_value = {"models": []}
        _http_client(mock_client_class, get_response=response)

        pull = Mock()
        pull.wait = AsyncMock(return_value=0)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=pull)) as mock_spawn:
            assert await supervisor.ensure_default_model("llama2") is True

        mock_spawn.assert_awaited_once_with("/usr/local/bin/ollama", "pull", "llama2")

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_pull_failure_raises(self, mock_client_class, quiet_logger):
        supervisor = OllamaSupervisor(candidate_paths=["ollama"], provider_logger=quiet_logger)
        response = Mock(status_code=200)
        response.json.return_value = {"models": []}
        _http_client(mock_client_class, get_response=response)

        pull = Mock()
        pull.wait = AsyncMock(return_value=1)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=pull)):
            with pytest.raises(ResourceFetchFailure) as exc_info:
                await supervisor.ensure_default_model("llama2")

        assert exc_info.value.exit_code == 1
        assert exc_info.value.model == "llama2"

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_pull_spawn_error_raises(self, mock_client_class, quiet_logger):
        supervisor = OllamaSupervisor(candidate_paths=["ollama"], provider_logger=quiet_logger)
        response = Mock(status_code=200)
        response.json.return_value = {}
        _http_client(mock_client_class, get_response=response)

        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("ollama"))):
            with pytest.raises(ResourceFetchFailure):
                await supervisor.ensure_default_model()

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_existing_models_skip_pull(self, mock_client_class, supervisor):
        response = Mock(status_code=200)
        response.json.return_value = {"models": [{"name": "llama2"}]}
        _http_client(mock_client_class, get_response=response)

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_spawn:
            assert await supervisor.ensure_default_model("llama2") is True

        mock_spawn.assert_not_called()

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_listing_failure_returns_false(self, mock_client_class, supervisor):
        _http_client(mock_client_class, get_error=httpx.ConnectError("refused"))

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_spawn:
            assert await supervisor.ensure_default_model() is False

        mock_spawn.assert_not_called()

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_list_models_names(self, mock_client_class, supervisor):
        response = Mock(status_code=200)
        response.json.return_value = {"models": [{"name": "llama2"}, {"name": "codellama"}]}
        _http_client(mock_client_class, get_response=response)

        assert await supervisor.list_models() == ["llama2", "codellama"]
