"""
Core scraping orchestration and browser management.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence

from playwright.async_api import async_playwright

from .export import export_to_csv
from .models import (
    Auction,
    RawAuctionData,
    RunError,
    SaleStatus,
    ScraperConfig,
    ScraperResult,
    ScraperStats,
)
from .scraper import collect_auction_urls, extract_auction_data
from .transformers import is_valid_auction, should_include_auction, transform_auction_data
from .utils import shorten

logger = logging.getLogger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1280, "height": 800}

# A fresh context every this many pages keeps browser memory bounded
REFRESH_EVERY_PAGES = 50

# Substrings of Playwright error messages that mean the page or its
# context died, or navigation itself failed. Matched case-insensitively.
TRANSIENT_ERROR_MARKERS = (
    "crashed",
    "page.goto",
    "target page, context or browser has been closed",
)


class ScraperError(Exception):
    """Base error for the scraper."""


class ScraperNotInitializedError(ScraperError):
    pass


class ScraperState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    RUNNING = "running"
    CLOSED = "closed"


@dataclass
class BrowserSession:
    """A browser context, its single page, and the pages visited since it was opened."""

    context: object
    page: object
    page_count: int = 0


def is_transient(error: BaseException) -> bool:
    """Whether an error looks like a crashed page or failed navigation worth one retry."""
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


CollectUrls = Callable[..., Awaitable[List[str]]]
ExtractAuction = Callable[[object, str], Awaitable[RawAuctionData]]


class BaTScraper:
    """
    Scrapes completed Bring a Trailer auctions into CSV.

    Call init() then run(); run() always closes the browser on the way out.
    The URL collector, page extractor, sleep function and exporter are
    passed in, defaulting to the Playwright handlers, asyncio.sleep and
    the CSV writer.
    """

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        collect_urls: CollectUrls = collect_auction_urls,
        extract: ExtractAuction = extract_auction_data,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        export: Callable[[List[Auction], str], str] = export_to_csv,
    ):
        self.config = config or ScraperConfig()
        self.state = ScraperState.UNINITIALIZED
        self._collect_urls = collect_urls
        self._extract = extract
        self._sleep = sleep
        self._export = export
        self._playwright = None
        self._browser = None
        self._session: Optional[BrowserSession] = None

    async def init(self, browser=None) -> None:
        """Launch Chromium (unless a browser is given) and open the first page."""
        logger.info(">>> Starting BaT scraper...")
        logger.info(f">>> Headless: {self.config.headless}")
        logger.info(f">>> Target auctions: {self.config.auction_count}")

        try:
            if browser is None:
                self._playwright = await async_playwright().start()
                browser = await self._playwright.chromium.launch(headless=self.config.headless)
            self._browser = browser
            self._session = await self._new_session()
        except Exception:
            await self.close()
            raise
        self.state = ScraperState.INITIALIZED

    async def _new_session(self) -> BrowserSession:
        context = await self._browser.new_context(
            user_agent=USER_AGENT,
            viewport=VIEWPORT,
            locale="en-US",
        )
        page = await context.new_page()
        return BrowserSession(context=context, page=page)

    async def _recreate_session(self) -> None:
        """Replace the context, page and page counter in one step."""
        old = self._session
        self._session = None
        if old is not None:
            await self._close_session(old)
        self._session = await self._new_session()

    async def _close_session(self, session: BrowserSession) -> None:
        await self._close_quietly(session.page)
        await self._close_quietly(session.context)

    async def run(self) -> ScraperResult:
        """Collect auction URLs, scrape each one, and export the results."""
        if self.state is not ScraperState.INITIALIZED or self._session is None:
            raise ScraperNotInitializedError("Scraper not initialized. Call init() first.")
        self.state = ScraperState.RUNNING

        auctions: List[Auction] = []
        stats = ScraperStats()

        try:
            urls = await self._collect_urls(
                self._session.page,
                self.config.auction_count,
                debug_screenshots=self.config.debug_screenshots,
                output_dir=self.config.output_dir,
            )

            for i, url in enumerate(urls):
                logger.info(f">>> Processing auction {i + 1}/{len(urls)}")

                if self._session.page_count > 0 and self._session.page_count % REFRESH_EVERY_PAGES == 0:
                    logger.info(">>> Refreshing browser context...")
                    await self._recreate_session()

                await self._process_with_retry(url, urls, i, auctions, stats)

            csv_path = None
            if auctions:
                csv_path = self._export(auctions, self.config.output_dir)

            return ScraperResult(auctions=auctions, stats=stats, csv_path=csv_path)
        finally:
            await self.close()

    async def _process_with_retry(
        self,
        url: str,
        urls: Sequence[str],
        index: int,
        auctions: List[Auction],
        stats: ScraperStats,
    ) -> None:
        try:
            await self._process_url(url, urls, index, auctions, stats)
            return
        except Exception as e:
            if not is_transient(e):
                logger.error(f">>> Error: {shorten(str(e), 100)}")
                stats.errors.append(RunError(url=url, error=str(e)))
                return
            logger.error(">>> Page crashed, attempting recovery...")

        await self._recreate_session()
        try:
            await self._process_url(url, urls, index, auctions, stats)
        except Exception as retry_error:
            logger.error(f">>> Retry failed: {shorten(str(retry_error), 80)}")
            stats.errors.append(RunError(url=url, error=str(retry_error)))

    async def _process_url(
        self,
        url: str,
        urls: Sequence[str],
        index: int,
        auctions: List[Auction],
        stats: ScraperStats,
    ) -> None:
        """Extract, filter, transform and record one auction."""
        raw = await self._extract(self._session.page, url)
        self._session.page_count += 1

        if not should_include_auction(raw):
            logger.info(f">>> Skipped ({raw.sale_info.status.value}): {raw.title or url}")
            stats.skipped += 1
            return

        auction = transform_auction_data(raw)
        if not is_valid_auction(auction):
            logger.info(f">>> Skipped (incomplete data): {url}")
            stats.skipped += 1
            return

        auctions.append(auction)
        if auction.status is SaleStatus.SOLD:
            stats.sold += 1
            logger.info(f">>> [SOLD] {auction.title}")
        else:
            stats.bid += 1
            logger.info(f">>> [BID] {auction.title}")

        # Rate limiting between auction pages
        if index < len(urls) - 1:
            await self._sleep(self.config.delay_between_pages / 1000)

    async def _close_quietly(self, closeable) -> None:
        try:
            await closeable.close()
        except Exception as e:
            logger.debug(f"Ignoring error during teardown: {e}")

    async def close(self) -> None:
        """Close page, context, browser and Playwright. Safe to call more than once."""
        if self.state is ScraperState.CLOSED:
            return
        if self._session is not None:
            await self._close_session(self._session)
            self._session = None
        if self._browser is not None:
            await self._close_quietly(self._browser)
            self._browser = None
            logger.info(">>> Browser closed.")
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"Ignoring error stopping Playwright: {e}")
            self._playwright = None
        self.state = ScraperState.CLOSED


async def scrape(config: Optional[ScraperConfig] = None, **kwargs) -> ScraperResult:
    """Initialize a scraper with config and run it to completion."""
    scraper = BaTScraper(config, **kwargs)
    await scraper.init()
    return await scraper.run()
