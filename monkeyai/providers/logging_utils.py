"""
Provider Structured Logging Utilities

Structured key=value logging for Ollama lifecycle operations (detect, start,
stop, pull) with provider, action, platform, resolved_exe, pid, exit_code,
elapsed_ms and error_code fields.

Log file: <config_dir>/logs/providers.log
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from monkeyai.providers import platform_utils


class ProviderStructuredLogger:
    """
    Structured logger for provider operations

    Features:
    - Platform detection
    - key=value log entries
    - Dedicated providers.log file
    """

    def __init__(self, logger_name: str = "monkeyai.providers", log_to_file: bool = True):
        self.logger = logging.getLogger(logger_name)
        if log_to_file:
            self._ensure_provider_log_file()

    def _ensure_provider_log_file(self):
        """Ensure providers.log exists and is attached as a handler"""
        log_dir = platform_utils.get_log_dir()
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.debug(f"Provider log directory unavailable: {e}")
            return

        providers_log_file = log_dir / "providers.log"

        has_file_handler = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == str(providers_log_file)
            for h in self.logger.handlers
        )

        if not has_file_handler:
            file_handler = logging.FileHandler(providers_log_file, mode='a', encoding='utf-8')
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)
            self.logger.addHandler(file_handler)

    @staticmethod
    def format_structured_log(
        provider: str,
        action: str,
        platform: Optional[str] = None,
        resolved_exe: Optional[str] = None,
        pid: Optional[int] = None,
        exit_code: Optional[int] = None,
        elapsed_ms: Optional[float] = None,
        error_code: Optional[str] = None,
        message: Optional[str] = None,
        **extra_fields
    ) -> str:
        """
        Format a structured log entry as key=value pairs

        Strings containing spaces are quoted. None-valued optional fields are
        omitted.
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "provider": provider,
            "action": action,
        }

        if platform:
            log_data["platform"] = platform
        if resolved_exe:
            log_data["resolved_exe"] = resolved_exe
        if pid is not None:
            log_data["pid"] = pid
        if exit_code is not None:
            log_data["exit_code"] = exit_code
        if elapsed_ms is not None:
            log_data["elapsed_ms"] = round(elapsed_ms, 2)
        if error_code:
            log_data["error_code"] = error_code
        if message:
            log_data["message"] = message

        log_data.update({k: v for k, v in extra_fields.items() if v is not None})

        log_parts = []
        for key, value in log_data.items():
            if isinstance(value, str) and ' ' in value:
                log_parts.append(f'{key}="{value}"')
            else:
                log_parts.append(f'{key}={value}')

        return ' '.join(log_parts)

    def log_operation(
        self,
        level: int,
        provider: str,
        action: str,
        platform: Optional[str] = None,
        **fields
    ):
        """Log a provider operation with structured data"""
        if platform is None:
            platform = platform_utils.get_platform()

        self.logger.log(
            level,
            self.format_structured_log(provider=provider, action=action, platform=platform, **fields),
        )

    def log_detect(self, provider: str, resolved_exe: Optional[str] = None, searched_paths: Optional[list] = None):
        """Log executable detection"""
        self.log_operation(
            level=logging.INFO if resolved_exe else logging.WARNING,
            provider=provider,
            action="detect",
            resolved_exe=resolved_exe,
            message=f"Detected {provider} executable" if resolved_exe else f"{provider} executable not found",
            searched_paths=",".join(searched_paths) if searched_paths else None,
        )

    def log_start(self, provider: str, attempt: Optional[int] = None):
        """Log provider start operation"""
        self.log_operation(
            level=logging.INFO,
            provider=provider,
            action="start",
            message=f"Starting {provider}",
            attempt=attempt,
        )

    def log_start_success(
        self,
        provider: str,
        pid: Optional[int] = None,
        resolved_exe: Optional[str] = None,
        elapsed_ms: Optional[float] = None,
        message: Optional[str] = None,
    ):
        """Log successful provider start"""
        self.log_operation(
            level=logging.INFO,
            provider=provider,
            action="start",
            resolved_exe=resolved_exe,
            pid=pid,
            elapsed_ms=elapsed_ms,
            message=message or f"Successfully started {provider}",
        )

    def log_start_failure(
        self,
        provider: str,
        error_code: str,
        resolved_exe: Optional[str] = None,
        elapsed_ms: Optional[float] = None,
        message: Optional[str] = None,
    ):
        """Log failed provider start"""
        self.log_operation(
            level=logging.ERROR,
            provider=provider,
            action="start",
            resolved_exe=resolved_exe,
            error_code=error_code,
            elapsed_ms=elapsed_ms,
            message=message or f"Failed to start {provider}",
        )

    def log_stop(self, provider: str, pid: Optional[int] = None):
        """Log provider stop operation"""
        self.log_operation(
            level=logging.INFO,
            provider=provider,
            action="stop",
            pid=pid,
            message=f"Stopping {provider}",
        )

    def log_exit(self, provider: str, pid: Optional[int], exit_code: Optional[int]):
        """Log that a managed process exited"""
        self.log_operation(
            level=logging.INFO if exit_code == 0 else logging.WARNING,
            provider=provider,
            action="exit",
            pid=pid,
            exit_code=exit_code,
            message=f"{provider} process exited",
        )

    def log_pull(
        self,
        provider: str,
        model: str,
        exit_code: Optional[int] = None,
        elapsed_ms: Optional[float] = None,
        error_code: Optional[str] = None,
    ):
        """Log a model pull"""
        failed = error_code is not None or (exit_code is not None and exit_code != 0)
        self.log_operation(
            level=logging.ERROR if failed else logging.INFO,
            provider=provider,
            action="pull",
            exit_code=exit_code,
            elapsed_ms=elapsed_ms,
            error_code=error_code,
            model=model,
        )


class OperationTimer:
    """
    Context manager for timing operations

    Usage:
        with OperationTimer() as timer:
            # perform operation
            pass

        elapsed_ms = timer.elapsed_ms()
    """

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        return False

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds"""
        if self.start_time is None:
            return 0.0

        end = self.end_time if self.end_time is not None else time.perf_counter()
        return (end - self.start_time) * 1000.0


# Global logger instance
_provider_logger: Optional[ProviderStructuredLogger] = None


def get_provider_logger() -> ProviderStructuredLogger:
    """Get the global provider structured logger instance"""
    global _provider_logger
    if _provider_logger is None:
        _provider_logger = ProviderStructuredLogger()
    return _provider_logger
