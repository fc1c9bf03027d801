"""
CSV export for scraped auctions.
"""
import logging
import os
from typing import Dict, List, Optional

import pandas as pd

from .models import Auction
from .scraper import MAX_LISTING_DETAILS
from .utils import file_timestamp

logger = logging.getLogger(__name__)


CSV_COLUMNS = [
    "title",
    "make",
    "model",
    "era",
    "origin",
    "vehicleLocation",
    "seller",
    "sellerLocation",
    "sellerType",
    *[f"listingDetail{i}" for i in range(1, MAX_LISTING_DETAILS + 1)],
    "views",
    "watchers",
    "dateSold",
    "saleAmount",
    "auctionUrl",
    "scrapedAt",
]

NUMERIC_COLUMNS = {"views", "watchers", "saleAmount"}


def escape_csv(value: Optional[str]) -> str:
    """Quote a value if it contains a comma, quote or newline. Empty values become ""."""
    if not value:
        return '""'
    if any(c in value for c in (",", '"', "\n", "\r")):
        return '"' + value.replace('"', '""') + '"'
    return value


def auction_row(a: Auction) -> Dict[str, object]:
    """Map an auction to its export columns."""
    details = list(a.listing_details[:MAX_LISTING_DETAILS])
    details += [""] * (MAX_LISTING_DETAILS - len(details))
    row = {
        "title": a.title,
        "make": a.make,
        "model": a.model,
        "era": a.era,
        "origin": a.origin,
        "vehicleLocation": a.vehicle_location,
        "seller": a.seller,
        "sellerLocation": a.seller_location,
        "sellerType": a.seller_type,
    }
    for i, d in enumerate(details, 1):
        row[f"listingDetail{i}"] = d
    row.update({
        "views": a.views,
        "watchers": a.watchers,
        "dateSold": a.date_sold,
        "saleAmount": a.sale_amount,
        "auctionUrl": a.auction_url,
        "scrapedAt": a.scraped_at,
    })
    return row


def auctions_to_frame(auctions: List[Auction]) -> pd.DataFrame:
    """Tabular view of auctions in export column order, for analysis outside the CSV."""
    return pd.DataFrame([auction_row(a) for a in auctions], columns=CSV_COLUMNS)


def _format_cell(column: str, value) -> str:
    if column in NUMERIC_COLUMNS:
        return str(int(value))
    return escape_csv(value)


def export_to_csv(auctions: List[Auction], output_dir: str) -> str:
    """Write auctions to a timestamped CSV file in output_dir and return its path."""
    os.makedirs(output_dir, exist_ok=True)
    out_path = os.path.join(output_dir, f"bat_auctions_{file_timestamp()}.csv")

    lines = [",".join(CSV_COLUMNS)]
    for a in auctions:
        row = auction_row(a)
        lines.append(",".join(_format_cell(c, row[c]) for c in CSV_COLUMNS))

    with open(out_path, "w", encoding="utf-8", newline="") as f:
        f.write("\n".join(lines))

    logger.info(f">>> Saved {len(auctions)} rows to {out_path}")
    return out_path
