"""
Cross-platform process helpers for the managed Ollama server.

`ollama serve` forks runner processes for loaded models; stopping only the
top-level process can leave those runners behind, so signals are delivered
to the whole tree of processes we spawned.
"""

import logging
import os
from typing import List

import psutil

logger = logging.getLogger(__name__)


def signal_children(pid: int, kill: bool = False) -> List[int]:
    """
    Send SIGTERM (or SIGKILL) to the descendants of a process we spawned.

    Only acts when `pid` is a direct child of the current process, so a
    recycled PID never leads to signalling unrelated processes.

    Args:
        pid: PID of the spawned parent process
        kill: If True, force kill instead of terminate

    Returns:
        List[int]: PIDs that were signalled
    """
    try:
        parent = psutil.Process(pid)
        if parent.ppid() != os.getpid():
            return []
        children = parent.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied, ValueError):
        return []

    signalled = []
    for child in children:
        try:
            if kill:
                child.kill()
            else:
                child.terminate()
            signalled.append(child.pid)
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.debug(f"Could not signal child {child.pid}: {e}")

    return signalled
