"""
Browser driver - launch a Chromium-family executable and automate it over CDP.

Handles:
- Launching a given executable with CDP enabled on a free port
- Opening pages through the DevTools HTTP endpoint
- Evaluating scripts, navigating and reading the title
- Guaranteed shutdown through launch_browser()
"""

import asyncio
import logging
import subprocess
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence

import httpx

from .cdp import CDPClient
from .utils.platform import (
    get_temp_profile_dir,
    read_devtools_active_port,
    remove_profile_dir,
)

logger = logging.getLogger(__name__)

# Maximum in-flight requests allowed for each network-idle wait condition
NETWORK_IDLE_LIMITS = {"networkidle0": 0, "networkidle2": 2}
NETWORK_IDLE_TIME = 0.5

LOAD_EVENTS = {
    "load": "Page.loadEventFired",
    "domcontentloaded": "Page.domContentEventFired",
}


class BrowserError(Exception):
    """Browser-related error."""
    pass


class NavigationError(BrowserError):
    """The page failed to navigate."""
    pass


class NavigationTimeout(NavigationError):
    """Navigation did not settle within its timeout."""
    pass


class EvaluationError(BrowserError):
    """A script threw inside the page."""
    pass


class NetworkIdleWatcher:
    """
    Tracks in-flight requests of one page.

    The idle event is set once the number of in-flight requests has stayed
    at or below max_inflight for idle_time seconds. Any change in the
    request count restarts that window.
    """

    def __init__(self, max_inflight: int = 2, idle_time: float = NETWORK_IDLE_TIME):
        self.max_inflight = max_inflight
        self.idle_time = idle_time
        self._inflight: set[str] = set()
        self._idle = asyncio.Event()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._started = False

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def attach(self, cdp: CDPClient) -> None:
        cdp.on("Network.requestWillBeSent", self._on_request)
        cdp.on("Network.loadingFinished", self._on_done)
        cdp.on("Network.loadingFailed", self._on_done)

    def detach(self, cdp: CDPClient) -> None:
        cdp.off("Network.requestWillBeSent", self._on_request)
        cdp.off("Network.loadingFinished", self._on_done)
        cdp.off("Network.loadingFailed", self._on_done)
        self.cancel()

    async def _on_request(self, params: dict) -> None:
        self.request_started(params.get("requestId", ""))

    async def _on_done(self, params: dict) -> None:
        self.request_finished(params.get("requestId", ""))

    def request_started(self, request_id: str) -> None:
        self._inflight.add(request_id)
        self._reschedule()

    def request_finished(self, request_id: str) -> None:
        self._inflight.discard(request_id)
        self._reschedule()

    def start(self) -> None:
        """Begin counting the idle window; called once the page has loaded."""
        self._started = True
        self._reschedule()

    def _reschedule(self) -> None:
        if not self._started:
            return
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if len(self._inflight) <= self.max_inflight:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.idle_time, self._idle.set)
        else:
            self._idle.clear()

    async def wait(self) -> None:
        await self._idle.wait()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class Page:
    """
    One browser tab driven over its own CDP connection.

    Provides the handful of operations a probe or a scenario needs.
    """

    def __init__(self, cdp: CDPClient, target_id: str):
        self.cdp = cdp
        self.target_id = target_id
        self._enabled_domains: set[str] = set()

    async def enable_domain(self, domain: str) -> None:
        """Enable a CDP domain if not already enabled."""
        if domain not in self._enabled_domains:
            await self.cdp.send(f"{domain}.enable")
            self._enabled_domains.add(domain)

    async def evaluate(self, expression: str) -> Any:
        """
        Evaluate a JavaScript expression and return its value.

        Raises:
            EvaluationError: If the expression throws
        """
        await self.enable_domain("Runtime")
        result = await self.cdp.send(
            "Runtime.evaluate",
            {"expression": expression, "returnByValue": True, "awaitPromise": True},
        )

        if "exceptionDetails" in result:
            details = result["exceptionDetails"]
            description = details.get("exception", {}).get("description")
            raise EvaluationError(description or details.get("text", "Unknown error"))

        return result.get("result", {}).get("value")

    async def add_init_script(self, source: str) -> None:
        """Run a script in every new document before the page's own scripts."""
        await self.enable_domain("Page")
        await self.cdp.send("Page.addScriptToEvaluateOnNewDocument", {"source": source})

    async def set_viewport(self, width: int, height: int) -> None:
        """Fix the page viewport size."""
        await self.cdp.send("Emulation.setDeviceMetricsOverride", {
            "width": width,
            "height": height,
            "deviceScaleFactor": 1,
            "mobile": False,
        })

    async def goto(self, url: str, wait_until: str = "load", timeout: float = 30.0) -> dict:
        """
        Navigate to a URL and wait for it to settle.

        Args:
            url: URL to navigate to
            wait_until: "load", "domcontentloaded", "networkidle0" or "networkidle2"
            timeout: Seconds allowed for the whole navigation

        Returns:
            Navigation result with frameId

        Raises:
            NavigationError: If the browser reports a navigation error
            NavigationTimeout: If the wait condition is not met in time
        """
        await self.enable_domain("Page")

        watcher = None
        if wait_until in NETWORK_IDLE_LIMITS:
            await self.enable_domain("Network")
            watcher = NetworkIdleWatcher(NETWORK_IDLE_LIMITS[wait_until])
            watcher.attach(self.cdp)
            event_name = LOAD_EVENTS["load"]
        elif wait_until in LOAD_EVENTS:
            event_name = LOAD_EVENTS[wait_until]
        else:
            raise ValueError(f"Unknown wait condition: {wait_until}")

        try:
            return await asyncio.wait_for(
                self._navigate(url, event_name, watcher, timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise NavigationTimeout(f"Navigation to {url} timed out after {timeout}s")
        finally:
            if watcher is not None:
                watcher.detach(self.cdp)

    async def _navigate(
        self,
        url: str,
        event_name: str,
        watcher: Optional[NetworkIdleWatcher],
        timeout: float,
    ) -> dict:
        loaded = asyncio.create_task(self.cdp.wait_for_event(event_name, timeout=None))
        # Let the waiter register before the command goes out
        await asyncio.sleep(0)
        try:
            nav_result = await self.cdp.send("Page.navigate", {"url": url}, timeout=timeout)
            if nav_result.get("errorText"):
                raise NavigationError(f"{nav_result['errorText']} at {url}")
            await loaded
        finally:
            if not loaded.done():
                loaded.cancel()

        if watcher is not None:
            watcher.start()
            await watcher.wait()

        return nav_result

    async def title(self) -> str:
        """Get the current page title."""
        return await self.evaluate("document.title") or ""

    async def close(self) -> None:
        """Close the page connection."""
        await self.cdp.close()


class BrowserSession:
    """
    A launched browser process and the pages opened in it.

    Each session gets its own throwaway profile directory and debugging
    port, so sessions for different executables never collide.
    """

    def __init__(
        self,
        executable_path: str,
        headless: bool = True,
        args: Sequence[str] = (),
        launch_timeout: float = 30.0,
    ):
        self.executable_path = executable_path
        self.headless = headless
        self.extra_args = list(args)
        self.launch_timeout = launch_timeout
        self.process: Optional[subprocess.Popen] = None
        self.profile_dir: Optional[str] = None
        self.port: Optional[int] = None
        self.pages: list[Page] = []
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def endpoint(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def build_args(self) -> list[str]:
        """Build the full command line for the browser process."""
        args = [
            self.executable_path,
            "--remote-debugging-port=0",
            f"--user-data-dir={self.profile_dir}",
            "--no-first-run",
            "--no-default-browser-check",
            "--disable-default-apps",
            "--disable-sync",
            "--mute-audio",
        ]
        if self.headless:
            args.extend(["--headless=new", "--disable-gpu"])
        args.extend(self.extra_args)
        return args

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=5.0)
        return self._http_client

    async def start(self) -> "BrowserSession":
        """
        Start the browser and wait for its DevTools endpoint.

        Raises:
            BrowserError: If the process cannot start or never opens a port
        """
        self.profile_dir = get_temp_profile_dir()
        args = self.build_args()

        logger.info(f"Launching browser: {self.executable_path} (headless={self.headless})")
        logger.debug(f"Browser args: {' '.join(args)}")

        try:
            self.process = subprocess.Popen(
                args,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise BrowserError(f"Failed to launch browser: {e}")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.launch_timeout
        while loop.time() < deadline:
            returncode = self.process.poll()
            if returncode is not None:
                raise BrowserError(f"Browser exited with code {returncode} during startup")

            announced = read_devtools_active_port(self.profile_dir)
            if announced:
                self.port = announced[0]
                version = await self.version()
                logger.debug(f"DevTools ready on port {self.port}: {version.get('Browser', 'unknown')}")
                return self
            await asyncio.sleep(0.1)

        raise BrowserError(
            f"Browser did not open a DevTools port within {self.launch_timeout}s"
        )

    async def version(self) -> dict:
        """Read the /json/version document of the running browser."""
        client = await self._get_http_client()
        response = await client.get(f"{self.endpoint}/json/version")
        response.raise_for_status()
        return response.json()

    async def new_page(self, url: str = "about:blank") -> Page:
        """Open a new tab and connect to it."""
        if self.port is None:
            raise BrowserError("Browser is not running")

        client = await self._get_http_client()
        response = await client.put(f"{self.endpoint}/json/new?{url}")
        response.raise_for_status()
        target = response.json()

        ws_url = target.get("webSocketDebuggerUrl")
        if not ws_url:
            raise BrowserError(f"New target {target.get('id')} has no WebSocket URL")

        cdp = CDPClient()
        await cdp.connect(ws_url)
        page = Page(cdp, target["id"])
        self.pages.append(page)
        return page

    async def close(self) -> None:
        """Close pages, stop the process and remove the profile directory."""
        for page in self.pages:
            await page.close()
        self.pages.clear()

        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

        if self.process:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()
            self.process = None

        if self.profile_dir:
            remove_profile_dir(self.profile_dir)
            self.profile_dir = None

        self.port = None
        logger.debug(f"Browser closed: {self.executable_path}")


@asynccontextmanager
async def launch_browser(
    executable_path: str,
    *,
    headless: bool = True,
    args: Sequence[str] = (),
    launch_timeout: float = 30.0,
) -> AsyncIterator[BrowserSession]:
    """
    Launch a browser for the duration of a block.

    The session is closed on every exit path, including errors raised
    during startup or inside the block.
    """
    session = BrowserSession(
        executable_path,
        headless=headless,
        args=args,
        launch_timeout=launch_timeout,
    )
    try:
        await session.start()
        yield session
    finally:
        await session.close()
