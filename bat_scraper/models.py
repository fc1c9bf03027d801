"""
Data models for the Bring a Trailer auction scraper.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional, Tuple


UNKNOWN = "Unknown"


class SaleStatus(str, Enum):
    """Outcome of an auction as shown on its detail page."""

    SOLD = "sold"
    BID = "bid"
    WITHDRAWN = "withdrawn"
    UNKNOWN = "unknown"


@dataclass
class ColumnGroups:
    make: Optional[str] = None
    model: Optional[str] = None
    era: Optional[str] = None
    origin: Optional[str] = None
    location: Optional[str] = None


@dataclass
class Essentials:
    seller: Optional[str] = None
    location: Optional[str] = None
    listing_details: List[str] = field(default_factory=list)
    seller_type: Optional[str] = None


@dataclass
class AuctionStats:
    views: Optional[str] = None
    watchers: Optional[str] = None


@dataclass
class SaleInfo:
    status: SaleStatus = SaleStatus.UNKNOWN
    date_sold: Optional[str] = None
    amount: Optional[str] = None


@dataclass
class RawAuctionData:
    """Fields as extracted from an auction page, before any cleaning."""

    url: str
    title: Optional[str] = None
    column_groups: ColumnGroups = field(default_factory=ColumnGroups)
    essentials: Essentials = field(default_factory=Essentials)
    stats: AuctionStats = field(default_factory=AuctionStats)
    sale_info: SaleInfo = field(default_factory=SaleInfo)


@dataclass(frozen=True)
class Auction:
    """A completed auction, cleaned and ready for export."""

    # Column groups
    make: str
    model: str
    era: str
    origin: str
    vehicle_location: str

    # Essentials
    seller: str
    seller_location: str
    seller_type: str
    listing_details: Tuple[str, ...]

    # Stats
    views: int
    watchers: int

    # Sale info
    status: SaleStatus
    date_sold: str
    sale_amount: int

    # Metadata
    title: str
    auction_url: str
    scraped_at: str


@dataclass
class RunError:
    url: str
    error: str


@dataclass
class ScraperStats:
    """Counters collected over one run."""

    sold: int = 0
    bid: int = 0
    skipped: int = 0
    errors: List[RunError] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.sold + self.bid + self.skipped + len(self.errors)


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes")


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class ScraperConfig:
    """Run configuration. Immutable once the run starts."""

    # Number of auctions to scrape
    auction_count: int = 3
    # Run browser without a visible window
    headless: bool = True
    # Delay between auction page visits, in milliseconds
    delay_between_pages: int = 1500
    # Destination directory for CSV files and debug screenshots
    output_dir: str = "./output"
    # Save screenshots when pagination stops unexpectedly
    debug_screenshots: bool = False

    def __post_init__(self):
        if self.auction_count < 1:
            raise ValueError(f"auction_count must be positive, got {self.auction_count}")
        if self.delay_between_pages < 0:
            raise ValueError(f"delay_between_pages must be non-negative, got {self.delay_between_pages}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ScraperConfig":
        """
        Build a config from environment variables.

        HEADLESS=false runs a visible browser, AUCTION_COUNT sets the target,
        DELAY_MS the pause between pages, OUTPUT_DIR the export directory and
        DEBUG_SCREENSHOTS=true enables pagination screenshots.
        """
        env = os.environ if environ is None else environ
        return cls(
            auction_count=_env_int(env, "AUCTION_COUNT", 3),
            headless=env.get("HEADLESS", "").strip().lower() != "false",
            delay_between_pages=_env_int(env, "DELAY_MS", 1500),
            output_dir=env.get("OUTPUT_DIR") or "./output",
            debug_screenshots=_env_bool(env.get("DEBUG_SCREENSHOTS"), False),
        )


@dataclass
class ScraperResult:
    auctions: List[Auction]
    stats: ScraperStats
    csv_path: Optional[str] = None
