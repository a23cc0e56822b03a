"""
Browser registry - the browsers a run knows about.

The built-in registry covers the three Chromium-family browsers at their
standard macOS install locations. Any other layout is described in a JSON
file mapping a short key to a descriptor record:

    {
        "chrome": {
            "name": "Google Chrome",
            "path": "/usr/bin/google-chrome",
            "description": "Google's commercial browser",
            "features": ["Sync Google", "Extensions Store"],
            "extra_args": []
        }
    }
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

CHROME_PATH = "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"
CHROMIUM_PATH = "/Applications/Chromium.app/Contents/MacOS/Chromium"
BRAVE_PATH = "/Applications/Brave Browser.app/Contents/MacOS/Brave Browser"


class RegistryError(Exception):
    """The registry file is missing or malformed."""
    pass


@dataclass(frozen=True)
class BrowserDescriptor:
    """Static description of one installed-or-not browser variant."""

    key: str
    name: str
    executable_path: str
    description: str
    features: tuple[str, ...] = ()
    icon: str = "🌐"
    homepage: str = ""
    extra_args: tuple[str, ...] = ()


Registry = dict[str, BrowserDescriptor]


def default_registry() -> Registry:
    """Return the built-in registry, in display order."""
    browsers = [
        BrowserDescriptor(
            key="chrome",
            name="Google Chrome",
            executable_path=CHROME_PATH,
            description="🌐 Google's commercial browser with account sync",
            features=("Sync Google", "Extensions Store", "Auto-updates", "Proprietary codecs"),
            icon="🌐",
            homepage="https://www.google.com/chrome/",
        ),
        BrowserDescriptor(
            key="chromium",
            name="Chromium",
            executable_path=CHROMIUM_PATH,
            description="🔓 Open-source browser Chrome is built on",
            features=("Open source", "No Google sync", "Manual updates", "Limited codecs"),
            icon="🔓",
            homepage="https://www.chromium.org/",
            extra_args=("--disable-features=VizDisplayCompositor",),
        ),
        BrowserDescriptor(
            key="brave",
            name="Brave Browser",
            executable_path=BRAVE_PATH,
            description="🛡️ Privacy-focused browser",
            features=("Built-in AdBlock", "Privacy shields", "Crypto rewards", "Anti-tracking"),
            icon="🛡️",
            homepage="https://brave.com/",
            extra_args=("--disable-brave-features", "--disable-extensions-except"),
        ),
    ]
    return {browser.key: browser for browser in browsers}


def _string_list(key: str, record: dict, field_name: str) -> tuple[str, ...]:
    value = record.get(field_name, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise RegistryError(f"Browser '{key}': '{field_name}' must be a list of strings")
    return tuple(value)


def _string(key: str, record: dict, field_name: str, default: str) -> str:
    value = record.get(field_name, default)
    if not isinstance(value, str):
        raise RegistryError(f"Browser '{key}': '{field_name}' must be a string")
    return value


def parse_registry(data: object) -> Registry:
    """
    Build a registry from decoded JSON.

    Raises:
        RegistryError: If the document does not describe at least one browser
    """
    if not isinstance(data, dict) or not data:
        raise RegistryError("Registry must be a non-empty object keyed by browser")

    registry: Registry = {}
    for key, record in data.items():
        if not isinstance(record, dict):
            raise RegistryError(f"Browser '{key}' must be an object")

        for required in ("name", "path"):
            if not isinstance(record.get(required), str) or not record[required]:
                raise RegistryError(f"Browser '{key}' is missing '{required}'")

        registry[key] = BrowserDescriptor(
            key=key,
            name=record["name"],
            executable_path=record["path"],
            description=_string(key, record, "description", ""),
            features=_string_list(key, record, "features"),
            icon=_string(key, record, "icon", "🌐"),
            homepage=_string(key, record, "homepage", ""),
            extra_args=_string_list(key, record, "extra_args"),
        )

    return registry


def load_registry(path: Union[str, Path]) -> Registry:
    """Load a registry from a JSON file."""
    registry_path = Path(path)
    try:
        data = json.loads(registry_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RegistryError(f"Cannot read registry {registry_path}: {e}")
    except UnicodeDecodeError as e:
        raise RegistryError(f"Registry {registry_path} is not valid UTF-8: {e}")
    except json.JSONDecodeError as e:
        raise RegistryError(f"Invalid JSON in registry {registry_path}: {e}")

    registry = parse_registry(data)
    logger.info(f"Loaded {len(registry)} browsers from {registry_path}")
    return registry
