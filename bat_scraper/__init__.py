"""
Bring a Trailer Auction Scraper Package
"""
from .models import (
    Auction,
    RawAuctionData,
    RunError,
    SaleStatus,
    ScraperConfig,
    ScraperResult,
    ScraperStats,
)
from .core import BaTScraper, ScraperError, ScraperNotInitializedError, is_transient, scrape
from .scraper import collect_auction_urls, extract_auction_data
from .transformers import is_valid_auction, should_include_auction, transform_auction_data
from .export import auctions_to_frame, export_to_csv
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "Auction",
    "RawAuctionData",
    "RunError",
    "SaleStatus",
    "ScraperConfig",
    "ScraperResult",
    "ScraperStats",
    "BaTScraper",
    "ScraperError",
    "ScraperNotInitializedError",
    "is_transient",
    "scrape",
    "collect_auction_urls",
    "extract_auction_data",
    "is_valid_auction",
    "should_include_auction",
    "transform_auction_data",
    "auctions_to_frame",
    "export_to_csv",
    "init_logger",
    "now_iso"
]
