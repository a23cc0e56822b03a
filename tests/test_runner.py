"""Tests for the top-level diagnostic run."""

import pytest

from browser_probe.browser import BrowserError, NavigationTimeout
from browser_probe.config import Settings
from browser_probe.prober import ProbeOutcome, ProbeResult
from browser_probe.registry import BrowserDescriptor
from browser_probe.reporter import Reporter
from browser_probe.runner import RunReport, run_diagnostics


@pytest.fixture
def settings():
    return Settings(dwell_seconds=0)


def count(console, line):
    return console.file.getvalue().splitlines().count(line)


class TestRunDiagnostics:
    """End-to-end runs over a fake launcher."""

    @pytest.mark.asyncio
    async def test_one_of_three_installed(self, make_registry, fake_launcher, settings, console):
        """One installed browser: one installed line, two not installed, count of one."""
        registry = make_registry("chrome")

        report = await run_diagnostics(registry, settings, Reporter(console), launcher=fake_launcher)

        assert count(console, "✅ Google Chrome") == 1
        assert count(console, "   💭 Not installed") == 2
        assert count(console, "💻 Browsers detected: 1") == 1
        assert len(report.detected) == 1
        assert fake_launcher.headful_launches == []

    @pytest.mark.asyncio
    async def test_one_of_three_installed_with_test_all(self, make_registry, fake_launcher, settings, console):
        """With test_all, exactly one visible navigation to the target URL."""
        registry = make_registry("chrome")

        report = await run_diagnostics(
            registry, settings, Reporter(console), test_all=True, launcher=fake_launcher
        )

        assert len(fake_launcher.headful_launches) == 1
        assert [nav[0] for nav in fake_launcher.navigations] == ["https://web.whatsapp.com"]
        assert report.scenarios[0].success is True

    @pytest.mark.asyncio
    async def test_navigation_timeout_completes_normally(self, make_registry, fake_launcher, settings, console):
        """A timed-out scenario is reported, not raised."""
        registry = make_registry("chrome")
        fake_launcher.goto_error = NavigationTimeout("Navigation to https://web.whatsapp.com timed out after 30.0s")

        report = await run_diagnostics(
            registry, settings, Reporter(console), test_all=True, launcher=fake_launcher
        )

        assert report.scenarios[0].success is False
        assert report.failures == ["Google Chrome"]

    @pytest.mark.asyncio
    async def test_scenarios_run_per_detected_browser(self, make_registry, fake_launcher, settings, console):
        """A browser whose probe failed still gets its scenario; missing ones do not."""
        registry = make_registry("chrome", "brave")
        fake_launcher.evaluate_error = BrowserError("probe broke")

        report = await run_diagnostics(
            registry, settings, Reporter(console), test_all=True, launcher=fake_launcher
        )

        assert [r.descriptor.key for r in report.scenarios] == ["chrome", "brave"]
        assert [launch["path"] for launch in fake_launcher.headful_launches] == [
            registry["chrome"].executable_path,
            registry["brave"].executable_path,
        ]

    @pytest.mark.asyncio
    async def test_no_browsers_prints_install_hints(self, make_registry, fake_launcher, settings, console):
        """Nothing detected: install hints, no comparison, no scenarios."""
        registry = make_registry()

        report = await run_diagnostics(
            registry, settings, Reporter(console), test_all=True, launcher=fake_launcher
        )

        output = console.file.getvalue()
        assert "💻 Browsers detected: 0" in output
        assert "❌ No Chromium browser found!" in output
        assert "MAIN DIFFERENCES" not in output
        assert fake_launcher.launches == []
        assert report.scenarios == []

    @pytest.mark.asyncio
    async def test_comparison_printed_when_detected(self, make_registry, fake_launcher, settings, console):
        registry = make_registry("chromium")

        await run_diagnostics(registry, settings, Reporter(console), launcher=fake_launcher)

        output = console.file.getvalue()
        assert "🎯 MAIN DIFFERENCES:" in output
        assert "💡 FOR WHATSAPP SCRAPING:" in output

    @pytest.mark.asyncio
    async def test_failures_listed_once(self, make_registry, fake_launcher, settings, console):
        """A browser failing both probe and scenario is named once."""
        registry = make_registry("chrome")
        fake_launcher.launch_errors[registry["chrome"].executable_path] = BrowserError("crash")

        report = await run_diagnostics(
            registry, settings, Reporter(console), test_all=True, launcher=fake_launcher
        )

        assert report.failures == ["Google Chrome"]


class TestRunReport:
    """Test failure bookkeeping."""

    def test_failures_keyed_by_registry_key(self):
        """Two entries sharing a display name are both reported."""
        first = BrowserDescriptor(key="chrome", name="Chrome", executable_path="/a", description="")
        second = BrowserDescriptor(key="chrome-beta", name="Chrome", executable_path="/b", description="")
        report = RunReport(probes=[
            ProbeResult(first, ProbeOutcome.FAILED, error="crash"),
            ProbeResult(second, ProbeOutcome.FAILED, error="crash"),
        ])

        assert report.failures == ["Chrome", "Chrome"]
