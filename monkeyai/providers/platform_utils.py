"""
Cross-platform utilities for locating and probing the Ollama executable.

Features:
- Platform detection (Windows/macOS/Linux)
- Configuration and log directory management
- Static candidate path lists (priority order)
- Executable version probe (`<exe> --version`)
"""

import asyncio
import logging
import os
import platform
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Candidate locations, most-likely-correct first. Kept as plain strings:
# `~` and `%VAR%` are expanded only when a candidate is invoked.
CANDIDATE_PATHS = {
    'windows': [
        'ollama.exe',
        'C:\\Users\\%USERNAME%\\AppData\\Local\\Programs\\Ollama\\ollama.exe',
        'C:\\Program Files\\Ollama\\ollama.exe',
        'C:\\Program Files (x86)\\Ollama\\ollama.exe',
    ],
    'macos': [
        '/usr/local/bin/ollama',
        '/opt/homebrew/bin/ollama',
        '~/Applications/Ollama.app/Contents/Resources/ollama',
    ],
    'linux': [
        '/usr/local/bin/ollama',
        '/usr/bin/ollama',
        '~/.local/bin/ollama',
        './ollama',
    ],
}


def get_platform() -> str:
    """
    Detect the current operating system platform.

    Returns:
        str: Platform identifier - 'windows', 'macos', or 'linux'

    Examples:
        >>> get_platform()
        'linux'
    """
    system = platform.system()
    if system == 'Windows':
        return 'windows'
    elif system == 'Darwin':
        return 'macos'
    else:
        return 'linux'


def get_config_dir() -> Path:
    """
    Get the Monkey AI configuration directory for the current platform.

    Returns:
        Path: Configuration directory path
            - MONKEYAI_CONFIG_DIR if set
            - Windows: %APPDATA%\\monkeyai
            - macOS/Linux: ~/.monkeyai
    """
    override = os.environ.get('MONKEYAI_CONFIG_DIR')
    if override:
        return Path(override)

    if get_platform() == 'windows':
        appdata = os.environ.get('APPDATA')
        if appdata:
            return Path(appdata) / 'monkeyai'
        return Path.home() / 'AppData' / 'Roaming' / 'monkeyai'

    return Path.home() / '.monkeyai'


def get_log_dir() -> Path:
    """Get the directory for log files (config_dir/logs)"""
    return get_config_dir() / 'logs'


def get_candidate_paths(platform_type: Optional[str] = None) -> List[str]:
    """
    Get the candidate Ollama executable locations for a platform.

    Args:
        platform_type: 'windows', 'macos' or 'linux' (default: current platform)

    Returns:
        List[str]: Candidate paths/command names in priority order.
        Unknown platforms get the Linux list.

    Note:
        No filesystem probing happens here.
    """
    if platform_type is None:
        platform_type = get_platform()
    return list(CANDIDATE_PATHS.get(platform_type, CANDIDATE_PATHS['linux']))


def expand_candidate(path_str: str) -> str:
    """
    Expand `~` and environment variables in a candidate path.

    Bare command names (e.g. 'ollama.exe') are returned unchanged so that the
    OS resolves them through PATH.

    Examples:
        >>> expand_candidate('~/.local/bin/ollama')
        '/home/user/.local/bin/ollama'
    """
    return os.path.expandvars(os.path.expanduser(path_str))


def popen_detach_kwargs() -> dict:
    """
    Keyword arguments that detach a spawned server from this process.

    - Windows: CREATE_NO_WINDOW to prevent a console window popup
    - Unix: start_new_session so the child outlives the parent's session
    """
    if get_platform() == 'windows':
        return {"creationflags": subprocess.CREATE_NO_WINDOW}
    return {"start_new_session": True}


async def probe_executable(path_str: str, timeout: float = 5.0) -> Optional[str]:
    """
    Run `<exe> --version` and return its output.

    Args:
        path_str: Candidate path (expanded before invocation)
        timeout: Seconds to wait for the probe to finish

    Returns:
        Optional[str]: Version text if the probe exited 0, None otherwise
    """
    exe = expand_candidate(path_str)
    try:
        proc = await asyncio.create_subprocess_exec(
            exe,
            "--version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.debug(f"Probe of {exe} failed to spawn: {e}")
        return None

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.debug(f"Probe of {exe} timed out after {timeout}s")
        proc.kill()
        await proc.wait()
        return None

    if proc.returncode != 0:
        return None

    version = (stdout or b"").decode(errors="replace").strip()
    if not version:
        version = (stderr or b"").decode(errors="replace").strip()
    return version
