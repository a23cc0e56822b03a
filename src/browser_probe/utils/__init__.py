"""
Utility modules for browser-probe.
"""

from .platform import (
    executable_exists,
    get_temp_profile_dir,
    remove_profile_dir,
    read_devtools_active_port,
)

__all__ = [
    "executable_exists",
    "get_temp_profile_dir",
    "remove_profile_dir",
    "read_devtools_active_port",
]
