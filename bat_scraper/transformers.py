"""
Cleaning and validation of raw auction data.
"""
from typing import Optional

from .models import UNKNOWN, Auction, RawAuctionData, SaleStatus
from .utils import clean_text, clean_vehicle_location, now_iso, parse_number


INCLUDED_STATUSES = (SaleStatus.SOLD, SaleStatus.BID)


def _or_unknown(value: str) -> str:
    return value or UNKNOWN


def transform_auction_data(raw: RawAuctionData, scraped_at: Optional[str] = None) -> Auction:
    """Transform raw auction data into a clean Auction."""
    groups = raw.column_groups
    essentials = raw.essentials
    details = [clean_text(d) for d in essentials.listing_details]

    return Auction(
        make=_or_unknown(clean_text(groups.make)),
        model=_or_unknown(clean_text(groups.model)),
        era=_or_unknown(clean_text(groups.era)),
        origin=_or_unknown(clean_text(groups.origin)),
        vehicle_location=_or_unknown(clean_vehicle_location(clean_text(groups.location))),
        seller=_or_unknown(clean_text(essentials.seller)),
        seller_location=_or_unknown(clean_text(essentials.location)),
        seller_type=_or_unknown(clean_text(essentials.seller_type)),
        listing_details=tuple(d for d in details if d),
        views=parse_number(raw.stats.views),
        watchers=parse_number(raw.stats.watchers),
        status=raw.sale_info.status,
        date_sold=_or_unknown(clean_text(raw.sale_info.date_sold)),
        sale_amount=parse_number(raw.sale_info.amount),
        title=_or_unknown(clean_text(raw.title)),
        auction_url=raw.url,
        scraped_at=scraped_at or now_iso(),
    )


def should_include_auction(raw: RawAuctionData) -> bool:
    """Only sold and bid-to auctions are kept; withdrawn and unknown are skipped."""
    return raw.sale_info.status in INCLUDED_STATUSES


def is_valid_auction(auction: Auction) -> bool:
    """Check that an auction has the minimum required data."""
    return (
        auction.make != UNKNOWN
        and auction.model != UNKNOWN
        and bool(auction.auction_url)
    )
