"""
Platform utilities for browser detection and launch bookkeeping.

Handles:
- Executable existence checks
- Throwaway user-data directories for each launch
- Reading the DevTools port a browser announces on startup
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

DEVTOOLS_PORT_FILE = "DevToolsActivePort"


def executable_exists(path: str) -> bool:
    """
    Check whether a browser executable path exists on disk.

    Only existence is checked; permissions are left to the launch itself.
    """
    return os.path.exists(path)


def get_temp_profile_dir() -> str:
    """Create and return a temporary profile directory."""
    return tempfile.mkdtemp(prefix="browser-probe-profile-")


def remove_profile_dir(profile_dir: str) -> None:
    """Delete a temporary profile directory, ignoring files still held open."""
    shutil.rmtree(profile_dir, ignore_errors=True)


def read_devtools_active_port(profile_dir: str) -> Optional[tuple[int, str]]:
    """
    Read the port and browser WebSocket path written by Chrome.

    Chrome launched with --remote-debugging-port=0 picks a free port and
    writes it to <user-data-dir>/DevToolsActivePort as two lines:
    the port, then the browser target path.

    Returns None until the file exists and is complete.
    """
    port_file = Path(profile_dir) / DEVTOOLS_PORT_FILE
    try:
        lines = port_file.read_text().splitlines()
    except OSError:
        return None

    if len(lines) < 2:
        return None

    try:
        port = int(lines[0].strip())
    except ValueError:
        return None

    if port <= 0:
        return None
    return port, lines[1].strip()
