"""Pytest configuration and fixtures for browser-probe tests."""

import io
from contextlib import asynccontextmanager

import pytest
from rich.console import Console

from browser_probe.registry import BrowserDescriptor

IDENTITY = {
    "userAgent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
                 "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "vendor": "Google Inc.",
    "chrome": True,
    "webkitSpeechRecognition": True,
}


class FakePage:
    """Stands in for browser_probe.browser.Page and records every call."""

    def __init__(self, launcher):
        self.launcher = launcher

    async def evaluate(self, expression):
        self.launcher.calls.append("evaluate")
        self.launcher.scripts.append(expression)
        if self.launcher.evaluate_error:
            raise self.launcher.evaluate_error
        return self.launcher.identity

    async def set_viewport(self, width, height):
        self.launcher.calls.append(("viewport", width, height))

    async def add_init_script(self, source):
        self.launcher.calls.append("init_script")
        self.launcher.scripts.append(source)

    async def goto(self, url, wait_until="load", timeout=30.0):
        self.launcher.calls.append("goto")
        self.launcher.navigations.append((url, wait_until, timeout))
        if self.launcher.goto_error:
            raise self.launcher.goto_error
        return {"frameId": "frame-1"}

    async def title(self):
        self.launcher.calls.append("title")
        return self.launcher.page_title


class FakeSession:
    def __init__(self, launcher):
        self.launcher = launcher

    async def new_page(self, url="about:blank"):
        self.launcher.calls.append("new_page")
        return FakePage(self.launcher)


class FakeLauncher:
    """
    Drop-in for launch_browser().

    Records launches and the order of driver calls so tests can check
    what a probe or scenario did without starting a real browser.
    """

    def __init__(self):
        self.calls = []
        self.launches = []
        self.navigations = []
        self.scripts = []
        self.identity = dict(IDENTITY)
        self.page_title = "WhatsApp"
        self.launch_errors = {}
        self.evaluate_error = None
        self.goto_error = None

    @asynccontextmanager
    async def __call__(self, executable_path, *, headless=True, args=(), launch_timeout=30.0):
        self.launches.append({
            "path": executable_path,
            "headless": headless,
            "args": list(args),
            "launch_timeout": launch_timeout,
        })
        self.calls.append("launch")
        if executable_path in self.launch_errors:
            raise self.launch_errors[executable_path]
        try:
            yield FakeSession(self)
        finally:
            self.calls.append("close")

    @property
    def headful_launches(self):
        return [launch for launch in self.launches if not launch["headless"]]


@pytest.fixture
def fake_launcher():
    return FakeLauncher()


@pytest.fixture
def make_registry(tmp_path):
    """Build a three-browser registry where only the named keys exist on disk."""

    def _make(*installed):
        registry = {}
        for key, name in [("chrome", "Google Chrome"), ("chromium", "Chromium"), ("brave", "Brave Browser")]:
            path = tmp_path / key / name
            if key in installed:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text("#!/bin/sh\n")
            registry[key] = BrowserDescriptor(
                key=key,
                name=name,
                executable_path=str(path),
                description=f"{name} for tests",
                features=("Feature A", "Feature B"),
            )
        return registry

    return _make


@pytest.fixture
def console():
    """A rich Console that writes plain text to a buffer."""
    return Console(file=io.StringIO(), width=200, color_system=None, emoji=False)
