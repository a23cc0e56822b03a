"""
browser-probe: detect installed Chromium-family browsers and check they run.

Launches each browser over the Chrome DevTools Protocol, reads a few
identity properties and optionally smoke-tests a real page load.
"""

__version__ = "0.1.0"

from .browser import BrowserError, BrowserSession, Page, launch_browser
from .cdp import CDPClient, CDPError
from .prober import ProbeOutcome, ProbeResult, probe_all, probe_browser
from .registry import BrowserDescriptor, RegistryError, default_registry, load_registry
from .scenario import ScenarioResult, run_scenario

__all__ = [
    "BrowserError",
    "BrowserSession",
    "Page",
    "launch_browser",
    "CDPClient",
    "CDPError",
    "ProbeOutcome",
    "ProbeResult",
    "probe_all",
    "probe_browser",
    "BrowserDescriptor",
    "RegistryError",
    "default_registry",
    "load_registry",
    "ScenarioResult",
    "run_scenario",
]
