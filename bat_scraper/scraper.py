"""
Playwright-based page handling for Bring a Trailer.

Two page handlers live here: the results page, scrolled and paginated to
collect auction URLs, and the auction detail page, from which raw fields
are extracted.
"""
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from .models import (
    AuctionStats,
    ColumnGroups,
    Essentials,
    RawAuctionData,
    SaleInfo,
    SaleStatus,
)
from .utils import clean_text, now_iso

logger = logging.getLogger(__name__)


# Results page
RESULTS_URL = (
    "https://bringatrailer.com/auctions/results/"
    "?location=US&timeFrame=1Y&result=sold&bidTo=100000"
)
AUCTION_CARD_SELECTOR = ".auctions-container a.listing-card"
SHOW_MORE_BUTTON_SELECTOR = "button.auctions-footer-button"
COMPLETED_SECTION_OFFSET = 1500
MAX_COLLECT_ITERATIONS = 100
NO_GROWTH_LIMIT = 4

# Detail page
DETAIL_WAIT_SEL = ".column-groups"
MAX_LISTING_DETAILS = 5
SELLER_TYPE_LABEL = "Private Party or Dealer"
MAPS_LINK_MARKER = "google.com/maps"

# Timeouts (ms)
NAVIGATION_TIMEOUT = 60_000
FIRST_CARDS_TIMEOUT = 30_000
CARDS_TIMEOUT = 10_000
DETAIL_TIMEOUT = 10_000
SHOW_MORE_VISIBLE_TIMEOUT = 2_000
SCROLL_SETTLE_MS = 1_000
SHOW_MORE_SETTLE_MS = 1_500

PAGE_HEIGHT_JS = "document.body.scrollHeight"
SCROLL_TO_BOTTOM_JS = "window.scrollTo(0, document.body.scrollHeight)"
SCROLL_TO_COMPLETED_JS = f"window.scrollTo(0, {COMPLETED_SECTION_OFFSET})"
CARD_URLS_JS = """
(selector) => Array.from(document.querySelectorAll(selector)).map((a) => a.href)
"""

# Collects the DOM pieces the parser needs; all matching happens in Python.
AUCTION_SNAPSHOT_JS = """
(mapsMarker) => {
    const text = (el) => (el && el.textContent ? el.textContent.trim() : null);
    const essentials = document.querySelector(".essentials");
    const within = (sel) => (essentials ? Array.from(essentials.querySelectorAll(sel)) : []);

    const groups = Array.from(document.querySelectorAll(".column-groups .group-item"))
        .map((item) => ({
            label: text(item.querySelector(".group-title-label")),
            text: text(item.querySelector(".group-title")),
        }))
        .filter((g) => g.label !== null && g.text !== null);

    const mapsLink = within("a").find((a) => (a.href || "").includes(mapsMarker));

    return {
        title: text(document.querySelector("h1")),
        groups: groups,
        seller: text(essentials ? essentials.querySelector(".item-seller a") : null),
        location: text(mapsLink),
        listingDetails: within(".item ul li").map((li) => text(li) || ""),
        additional: within(".item.additional").map((el) => el.textContent || ""),
        pageText: document.body ? document.body.innerText : "",
    };
}
"""

COLUMN_GROUP_KEYS = ("make", "model", "era", "origin", "location")

SELLER_TYPE_RE = re.compile(re.escape(SELLER_TYPE_LABEL) + r"[:\s]+(\w+)", re.I)
VIEWS_RE = re.compile(r"(\d{1,3}(?:,\d{3})*)\s*views", re.I)
WATCHERS_RE = re.compile(r"(\d{1,3}(?:,\d{3})*)\s*watchers", re.I)

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"

# Evaluated top to bottom; the first match decides the status.
SALE_STATUS_RULES: List[Tuple[re.Pattern, SaleStatus]] = [
    (re.compile(r"Sold for\s+USD\s+\$(?P<amount>[\d,]+)\s+on\s+" + _DATE, re.I), SaleStatus.SOLD),
    (re.compile(r"Bid to\s+USD\s+\$(?P<amount>[\d,]+)\s+on\s+" + _DATE, re.I), SaleStatus.BID),
    (re.compile(r"Withdrawn\s+on\s+" + _DATE, re.I), SaleStatus.WITHDRAWN),
]


# ---------------------------------------------------------------------------
# Results page
# ---------------------------------------------------------------------------

async def collect_auction_urls(
    page,
    count: int,
    debug_screenshots: bool = False,
    output_dir: str = "./output",
    max_iterations: int = MAX_COLLECT_ITERATIONS,
) -> List[str]:
    """
    Navigate to the BaT results page and collect up to `count` auction URLs.

    Returns fewer URLs than requested when the page runs out of listings;
    only a results page that never shows a single card raises.
    """
    logger.info(">>> Navigating to BaT auction results...")
    await page.goto(RESULTS_URL, wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT)
    await page.wait_for_selector(AUCTION_CARD_SELECTOR, timeout=FIRST_CARDS_TIMEOUT, state="attached")

    # Completed auctions are further down the page
    await page.evaluate(SCROLL_TO_COMPLETED_JS)
    await page.wait_for_timeout(SCROLL_SETTLE_MS)

    urls: List[str] = []
    seen = set()
    no_growth = 0

    for _ in range(max_iterations):
        try:
            await page.wait_for_selector(AUCTION_CARD_SELECTOR, timeout=CARDS_TIMEOUT, state="attached")
        except PlaywrightTimeout:
            logger.warning(">>> No auction cards on the page, stopping collection")
            break

        visible = await page.evaluate(CARD_URLS_JS, AUCTION_CARD_SELECTOR)
        added = 0
        for url in visible or []:
            if len(urls) >= count:
                break
            if url and url not in seen:
                seen.add(url)
                urls.append(url)
                added += 1
                logger.debug(f"Found auction: {url}")

        if len(urls) >= count:
            break

        no_growth = no_growth + 1 if added == 0 else 0
        if no_growth >= NO_GROWTH_LIMIT:
            logger.warning(f">>> Listings stopped changing. Collected {len(urls)} URLs.")
            break

        has_more = await load_more_auctions(page, debug_screenshots=debug_screenshots, output_dir=output_dir)
        if not has_more:
            logger.warning(f">>> No more auctions to load. Collected {len(urls)} URLs.")
            break
    else:
        logger.warning(f">>> Stopped after {max_iterations} load attempts. Collected {len(urls)} URLs.")

    logger.info(f">>> Collected {len(urls)} auction URLs")
    return urls[:count]


async def load_more_auctions(page, debug_screenshots: bool = False, output_dir: str = "./output") -> bool:
    """
    Scroll, then fall back to the "Show More" button, to load more auctions.

    Returns True if more content was loaded.
    """
    try:
        previous_height = await page.evaluate(PAGE_HEIGHT_JS)
        await page.evaluate(SCROLL_TO_BOTTOM_JS)
        await page.wait_for_timeout(SCROLL_SETTLE_MS)
        new_height = await page.evaluate(PAGE_HEIGHT_JS)
    except PlaywrightError as e:
        logger.warning(f">>> Scrolling for more auctions failed: {e}")
        return False

    if new_height > previous_height:
        return True

    button = page.locator(SHOW_MORE_BUTTON_SELECTOR).first
    try:
        await button.wait_for(state="visible", timeout=SHOW_MORE_VISIBLE_TIMEOUT)
        await button.click()
    except PlaywrightTimeout:
        if debug_screenshots:
            await save_debug_screenshot(page, output_dir, "no-show-more")
        return False
    except Exception as e:
        logger.warning(f">>> Show more button error: {e}")
        if debug_screenshots:
            await save_debug_screenshot(page, output_dir, "show-more-error")
        return False

    await page.wait_for_timeout(SHOW_MORE_SETTLE_MS)
    return True


async def save_debug_screenshot(page, output_dir: str, reason: str) -> Optional[str]:
    """Save a full-page screenshot for diagnosing pagination problems."""
    stamp = re.sub(r"[:.+]", "-", now_iso())
    path = os.path.join(output_dir, f"debug-{reason}-{stamp}.png")
    try:
        os.makedirs(output_dir, exist_ok=True)
        await page.screenshot(path=path, full_page=True)
    except Exception as e:
        logger.warning(f">>> Could not save screenshot {path}: {e}")
        return None
    logger.info(f">>> Screenshot saved: {path}")
    return path


# ---------------------------------------------------------------------------
# Auction page
# ---------------------------------------------------------------------------

async def extract_auction_data(page, url: str) -> RawAuctionData:
    """Load an auction page and extract its raw fields."""
    logger.info(f">>> Extracting data from: {url}")
    await page.goto(url, wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT)
    try:
        await page.wait_for_selector(DETAIL_WAIT_SEL, timeout=DETAIL_TIMEOUT)
    except PlaywrightTimeout:
        # Extract whatever did load
        logger.debug(f"Timed out waiting for {DETAIL_WAIT_SEL} on {url}")

    snapshot = await page.evaluate(AUCTION_SNAPSHOT_JS, MAPS_LINK_MARKER)
    return parse_auction_snapshot(snapshot or {}, url)


def parse_column_groups(groups: List[Dict[str, Any]]) -> ColumnGroups:
    """Turn label/text pairs into known column-group values."""
    values: Dict[str, str] = {}
    for g in groups:
        label = (g.get("label") or "").strip()
        full_text = (g.get("text") or "").strip()
        key = label.casefold()
        if key not in COLUMN_GROUP_KEYS:
            continue
        # The label is rendered inside the title element
        values[key] = full_text.replace(label, "", 1).strip() if label else full_text
    return ColumnGroups(**values)


def parse_seller_type(additional: List[str]) -> Optional[str]:
    for text in additional:
        if SELLER_TYPE_LABEL in text:
            m = SELLER_TYPE_RE.search(text)
            return m.group(1) if m else None
    return None


def parse_sale_info(page_text: str) -> SaleInfo:
    """Classify the auction outcome from the page text."""
    for pattern, status in SALE_STATUS_RULES:
        m = pattern.search(page_text)
        if not m:
            continue
        if status is SaleStatus.WITHDRAWN:
            return SaleInfo(status=status, date_sold=m.group(1), amount="0")
        return SaleInfo(status=status, date_sold=m.group(2), amount=m.group("amount"))
    return SaleInfo()


def _first_group(pattern: re.Pattern, text: str) -> Optional[str]:
    m = pattern.search(text)
    return m.group(1) if m else None


def parse_auction_snapshot(snapshot: Dict[str, Any], url: str) -> RawAuctionData:
    """Build RawAuctionData from the values collected in the page."""
    page_text = snapshot.get("pageText") or ""
    title = snapshot.get("title")

    details = [clean_text(d) for d in (snapshot.get("listingDetails") or [])]

    return RawAuctionData(
        url=url,
        title=title.strip() if title else None,
        column_groups=parse_column_groups(snapshot.get("groups") or []),
        essentials=Essentials(
            seller=snapshot.get("seller"),
            location=snapshot.get("location"),
            listing_details=details[:MAX_LISTING_DETAILS],
            seller_type=parse_seller_type(snapshot.get("additional") or []),
        ),
        stats=AuctionStats(
            views=_first_group(VIEWS_RE, page_text),
            watchers=_first_group(WATCHERS_RE, page_text),
        ),
        sale_info=parse_sale_info(page_text),
    )
