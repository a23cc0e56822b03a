"""
Availability prober.

Checks whether each registered browser is installed and, when it is,
launches it headless once to read a few navigator identity properties.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncContextManager, Callable, Optional

from .browser import BrowserError, BrowserSession, launch_browser
from .registry import BrowserDescriptor, Registry
from .utils.platform import executable_exists

logger = logging.getLogger(__name__)

Launcher = Callable[..., AsyncContextManager[BrowserSession]]

PROBE_ARGS = ("--no-sandbox",)

IDENTITY_SCRIPT = """({
    userAgent: navigator.userAgent,
    vendor: navigator.vendor,
    chrome: !!window.chrome,
    webkitSpeechRecognition: !!window.webkitSpeechRecognition
})"""


class ProbeOutcome(str, Enum):
    NOT_INSTALLED = "not_installed"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class BrowserInfo:
    """Identity properties read from a probed browser's page."""

    user_agent: str
    vendor: str
    has_chrome_global: bool
    has_speech_recognition: bool

    @classmethod
    def from_page(cls, value: object) -> "BrowserInfo":
        if not isinstance(value, dict):
            raise BrowserError(f"Unexpected identity result: {value!r}")
        return cls(
            user_agent=str(value.get("userAgent", "")),
            vendor=str(value.get("vendor", "")),
            has_chrome_global=bool(value.get("chrome")),
            has_speech_recognition=bool(value.get("webkitSpeechRecognition")),
        )


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of probing one descriptor."""

    descriptor: BrowserDescriptor
    outcome: ProbeOutcome
    info: Optional[BrowserInfo] = None
    error: Optional[str] = None

    @property
    def installed(self) -> bool:
        """True when the executable exists, whether or not the probe worked."""
        return self.outcome is not ProbeOutcome.NOT_INSTALLED

    @property
    def failed(self) -> bool:
        return self.outcome is ProbeOutcome.FAILED


async def probe_browser(
    descriptor: BrowserDescriptor,
    launcher: Launcher = launch_browser,
    launch_timeout: float = 30.0,
) -> ProbeResult:
    """
    Probe one browser.

    A missing executable is reported without launching anything. Otherwise
    the browser is launched headless, one page is opened, the identity
    script is evaluated once and the browser is closed.

    Errors never escape: they are logged and returned as a FAILED result.
    """
    if not executable_exists(descriptor.executable_path):
        logger.info(f"{descriptor.name} not installed at {descriptor.executable_path}")
        return ProbeResult(descriptor, ProbeOutcome.NOT_INSTALLED)

    try:
        async with launcher(
            descriptor.executable_path,
            headless=True,
            args=[*PROBE_ARGS, *descriptor.extra_args],
            launch_timeout=launch_timeout,
        ) as session:
            page = await session.new_page()
            value = await page.evaluate(IDENTITY_SCRIPT)
        info = BrowserInfo.from_page(value)
    except Exception as e:
        logger.error(f"Probe failed for {descriptor.name}: {e}")
        return ProbeResult(descriptor, ProbeOutcome.FAILED, error=str(e) or type(e).__name__)

    logger.info(f"{descriptor.name} probed: vendor={info.vendor!r}")
    return ProbeResult(descriptor, ProbeOutcome.SUCCEEDED, info=info)


async def probe_all(
    registry: Registry,
    launcher: Launcher = launch_browser,
    launch_timeout: float = 30.0,
    on_result: Optional[Callable[[ProbeResult], None]] = None,
) -> list[ProbeResult]:
    """
    Probe every registered browser, one after another, in registry order.

    Args:
        registry: Browsers to probe
        launcher: Async context manager factory that starts a browser
        launch_timeout: Seconds allowed for each browser to start
        on_result: Called with each result as soon as it is known
    """
    results = []
    for descriptor in registry.values():
        result = await probe_browser(descriptor, launcher, launch_timeout)
        if on_result:
            on_result(result)
        results.append(result)
    return results
