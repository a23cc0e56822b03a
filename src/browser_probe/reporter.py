"""
Console reporter.

Formats probe and scenario results for humans. Holds no state beyond the
console it writes to.
"""

from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape

from .prober import ProbeOutcome, ProbeResult
from .registry import BrowserDescriptor, Registry
from .scenario import ScenarioResult

USER_AGENT_DISPLAY = 80
RULE_WIDTH = 60

COMPARISON = [
    ("🌐 GOOGLE CHROME:", [
        "Full commercial browser",
        "Google account sync",
        "Proprietary codecs (H.264, AAC)",
        "Automatic updates",
        "Best site compatibility",
    ]),
    ("🔓 CHROMIUM:", [
        "Open-source build without Google services",
        "No data sync",
        "Limited codecs (open-source only)",
        "Manual updates",
        "May have trouble with some video/audio",
    ]),
    ("🛡️ BRAVE:", [
        "Built-in ad and tracker blocking",
        "Strong privacy focus",
        "Crypto rewards program",
        "Based on Chromium",
    ]),
]

RECOMMENDATIONS = [
    "🥇 Best: Google Chrome (maximum compatibility)",
    "🥈 Alternative: Brave (good privacy)",
    "🥉 Works: Chromium (may have limitations)",
]


def yes_no(value: bool) -> str:
    return "yes" if value else "no"


class Reporter:
    """Prints run progress and summaries to a rich Console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console if console is not None else Console()

    def line(self, text: str = "", style: Optional[str] = None) -> None:
        self.console.print(text, style=style, highlight=False)

    def detection_header(self) -> None:
        self.line("🔍 DETECTING AVAILABLE BROWSERS", style="bold cyan")
        self.line()

    def probe_result(self, result: ProbeResult) -> None:
        """Print the detection block for one browser."""
        descriptor = result.descriptor
        status = "✅" if result.installed else "❌"

        self.line(f"{status} {escape(descriptor.name)}", style="bold")
        self.line(f"   📍 {escape(descriptor.executable_path)}")
        if descriptor.description:
            self.line(f"   📝 {escape(descriptor.description)}")
        if descriptor.features:
            self.line(f"   🔧 Features: {escape(', '.join(descriptor.features))}")

        if result.outcome is ProbeOutcome.SUCCEEDED:
            info = result.info
            self.line(f"   🧬 User Agent: {escape(info.user_agent[:USER_AGENT_DISPLAY])}...")
            self.line(f"   🏢 Vendor: {escape(info.vendor)}")
            self.line(f"   🧩 window.chrome: {yes_no(info.has_chrome_global)}")
            self.line(f"   🎤 Speech recognition: {yes_no(info.has_speech_recognition)}")
            self.line("   ⚡ Status: Working", style="green")
        elif result.outcome is ProbeOutcome.FAILED:
            self.line(f"   ❌ Error: {escape(result.error or '')}", style="red")
        else:
            self.line("   💭 Not installed", style="dim")
        self.line()

    def summary(self, results: list[ProbeResult]) -> None:
        detected = sum(1 for r in results if r.installed)
        self.line()
        self.line("📊 SUMMARY:", style="bold")
        self.line(f"💻 Browsers detected: {detected}")

    def comparison(self) -> None:
        """Print the static comparison of the three Chromium variants."""
        self.line()
        self.line("🎯 MAIN DIFFERENCES:", style="bold")
        for title, points in COMPARISON:
            self.line()
            self.line(title, style="bold")
            for point in points:
                self.line(f"   • {point}")

    def recommendations(self) -> None:
        self.line()
        self.line("💡 FOR WHATSAPP SCRAPING:", style="bold")
        for recommendation in RECOMMENDATIONS:
            self.line(recommendation)

    def install_hints(self, registry: Registry) -> None:
        self.line("❌ No Chromium browser found!", style="bold red")
        self.line("📥 Install at least one:")
        for descriptor in registry.values():
            if descriptor.homepage:
                self.line(f"   • {escape(descriptor.name)}: {escape(descriptor.homepage)}")

    def scenarios_header(self) -> None:
        self.line()
        self.line("🧪 STARTING TESTS...", style="bold cyan")

    def scenario_start(self, descriptor: BrowserDescriptor) -> None:
        self.line()
        self.line(f"🧪 TESTING {escape(descriptor.name.upper())}", style="bold")
        self.line("=" * RULE_WIDTH)

    def scenario_result(self, result: ScenarioResult) -> None:
        name = escape(result.descriptor.name)
        if result.success:
            self.line(f"✅ Page loaded: {escape(result.title)}")
            self.line(f"✅ Test with {name} finished successfully!", style="green")
        else:
            self.line(f"❌ Error with {name}: {escape(result.error or '')}", style="red")
        self.line()
        self.line("=" * RULE_WIDTH)

    def exit_status(self, failures: Iterable[str]) -> None:
        """Print the names of browsers whose probe or scenario failed."""
        names = list(failures)
        if names:
            self.line()
            self.line(f"⚠️ Failures: {escape(', '.join(names))}", style="yellow")
