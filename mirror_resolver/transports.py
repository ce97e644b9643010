"""Probe transports: plain HTTP via aiohttp and a headless Playwright page."""

from __future__ import annotations

import asyncio

import aiohttp
from playwright.async_api import (
    async_playwright,
    Browser,
    Page,
    Playwright,
    Error as PlaywrightError,
)

from mirror_resolver.constants import MIN_CONTENT_BYTES, PLACEHOLDER_DIMENSION
from mirror_resolver.prober import ProbeOutcome
from utils.log_utils import tprint
from utils.settings_store import deep_log

# Content types that can carry image bytes
_BINARY_TYPES = ("image/", "application/octet-stream")

_IMAGE_LOAD_JS = """
(url) => new Promise((resolve) => {
  const img = new Image();
  img.referrerPolicy = "no-referrer";
  img.onload = () => resolve({ ok: true, width: img.naturalWidth, height: img.naturalHeight });
  img.onerror = () => resolve({ ok: false, width: 0, height: 0 });
  img.src = url;
})
"""


class HttpProbeTransport:
    """GETs the candidate and checks status, content type and body size."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        min_content_bytes: int = MIN_CONTENT_BYTES,
        user_agent: str | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            session: Shared session; one is created lazily when omitted
            min_content_bytes: Bodies shorter than this are error placeholders
            user_agent: Optional User-Agent header
        """
        self._session = session
        self._owns_session = session is None
        self._min_content_bytes = min_content_bytes
        self._headers = {"User-Agent": user_agent} if user_agent else {}

    async def __aenter__(self) -> HttpProbeTransport:
        self._ensure_session()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # The prober owns the deadline, so the session itself has none.
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None),
                headers=self._headers,
            )
            self._owns_session = True
        return self._session

    async def fetch(self, url: str) -> ProbeOutcome:
        session = self._ensure_session()
        try:
            async with session.get(url, allow_redirects=True) as resp:
                if resp.status >= 400:
                    deep_log(f"[DEEP][PROBER] HTTP {resp.status} for {url}")
                    return ProbeOutcome.TRANSPORT_ERROR
                if not resp.content_type.startswith(_BINARY_TYPES):
                    return ProbeOutcome.DEGENERATE
                received = 0
                async for chunk in resp.content.iter_chunked(4096):
                    received += len(chunk)
                    if received >= self._min_content_bytes:
                        return ProbeOutcome.SUCCESS
                return ProbeOutcome.DEGENERATE
        except asyncio.TimeoutError:
            return ProbeOutcome.TIMEOUT
        except (aiohttp.ClientError, OSError) as exc:
            deep_log(f"[DEEP][PROBER] Transport error for {url}: {exc!r}")
            return ProbeOutcome.TRANSPORT_ERROR

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


class BrowserProbeTransport:
    """Loads the candidate as an image in headless Chromium and checks its size."""

    def __init__(self, headless: bool = True) -> None:
        self._headless = headless
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._page: Page | None = None
        self._start_lock = asyncio.Lock()

    async def __aenter__(self) -> BrowserProbeTransport:
        await self._ensure_page()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _ensure_page(self) -> Page:
        async with self._start_lock:
            if self._page is not None:
                return self._page
            try:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(headless=self._headless)
                self._page = await self._browser.new_page()
            except PlaywrightError as exc:
                await self.close()
                raise RuntimeError(
                    f"Failed to launch probe browser: {exc}\n"
                    "If Chromium is not installed, run: playwright install chromium"
                ) from exc
            tprint("[PROBER] Headless Playwright page initialized")
            return self._page

    async def fetch(self, url: str) -> ProbeOutcome:
        page = await self._ensure_page()
        try:
            result = await page.evaluate(_IMAGE_LOAD_JS, url)
        except PlaywrightError as exc:
            deep_log(f"[DEEP][PROBER] Browser error for {url}: {exc}")
            return ProbeOutcome.TRANSPORT_ERROR
        if not result.get("ok"):
            return ProbeOutcome.TRANSPORT_ERROR
        width = int(result.get("width") or 0)
        height = int(result.get("height") or 0)
        if width > PLACEHOLDER_DIMENSION or height > PLACEHOLDER_DIMENSION:
            return ProbeOutcome.SUCCESS
        return ProbeOutcome.DEGENERATE

    async def close(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._page = None
        self._browser = None
        self._playwright = None
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as exc:
                tprint(f"[PROBER][WARN] Browser close failed: {exc}")
        if playwright is not None:
            await playwright.stop()
