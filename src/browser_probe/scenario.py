"""
Scenario runner.

Opens the target site in a visible window of each detected browser to
check that real navigation works end to end.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .browser import launch_browser
from .config import Settings
from .prober import Launcher
from .registry import BrowserDescriptor

logger = logging.getLogger(__name__)

SCENARIO_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
)

WAIT_UNTIL = "networkidle2"


@dataclass(frozen=True)
class ScenarioResult:
    descriptor: BrowserDescriptor
    url: str
    success: bool
    title: str = ""
    error: Optional[str] = None


def marker_script(browser_name: str) -> str:
    """Script run before any page script, tagging the window with the browser name."""
    name = json.dumps(browser_name)
    return (
        f"console.log('Running in: ' + {name});\n"
        f"window.BROWSER_TYPE = {name};"
    )


async def run_scenario(
    descriptor: BrowserDescriptor,
    settings: Settings,
    launcher: Launcher = launch_browser,
) -> ScenarioResult:
    """
    Run the navigation scenario against one browser.

    Launch, navigation and title errors are logged and returned in the
    result; the browser is closed either way.
    """
    url = settings.scenario_url
    width, height = settings.viewport

    try:
        async with launcher(
            descriptor.executable_path,
            headless=False,
            args=[*SCENARIO_ARGS, f"--window-size={width},{height}", *descriptor.extra_args],
            launch_timeout=settings.launch_timeout,
        ) as session:
            page = await session.new_page()
            await page.set_viewport(width, height)
            await page.add_init_script(marker_script(descriptor.name))

            logger.info(f"Opening {url} with {descriptor.name}")
            await page.goto(url, wait_until=WAIT_UNTIL, timeout=settings.navigation_timeout)

            title = await page.title()
            logger.info(f"{descriptor.name} loaded page: {title!r}")

            await asyncio.sleep(settings.dwell_seconds)
    except Exception as e:
        logger.error(f"Scenario failed for {descriptor.name}: {e}")
        return ScenarioResult(descriptor, url, success=False, error=str(e) or type(e).__name__)

    return ScenarioResult(descriptor, url, success=True, title=title)


async def run_scenarios(
    descriptors: list[BrowserDescriptor],
    settings: Settings,
    launcher: Launcher = launch_browser,
    on_start: Optional[Callable[[BrowserDescriptor], None]] = None,
    on_result: Optional[Callable[[ScenarioResult], None]] = None,
) -> list[ScenarioResult]:
    """Run the scenario for each descriptor in turn."""
    results = []
    for descriptor in descriptors:
        if on_start:
            on_start(descriptor)
        result = await run_scenario(descriptor, settings, launcher)
        if on_result:
            on_result(result)
        results.append(result)
    return results
