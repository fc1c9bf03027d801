"""
Utility functions for text processing, number parsing, and logging.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Optional


def init_logger(
    name: str = "bat_scraper",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "bat_scraper.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def file_timestamp(dt: Optional[datetime] = None) -> str:
    """Format a local time as YYYY-MM-DD_HH-MM-SS for use in file names."""
    return (dt or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def clean_vehicle_location(location: Optional[str]) -> str:
    """Strip the "Located in" prefix BaT puts in front of vehicle locations."""
    if not location:
        return ""
    return re.sub(r"^Located in\s*", "", location, flags=re.I).strip()


def parse_number(value: Optional[str]) -> int:
    """
    Parse a count or dollar amount with thousands separators.

    "7,227" -> 7227. Anything unparseable yields 0.
    """
    if not value:
        return 0
    m = re.match(r"\s*([+-]?\d+)", value.replace(",", ""))
    if not m:
        return 0
    return max(int(m.group(1)), 0)


def shorten(text: str, limit: int) -> str:
    """Cut text to limit characters, marking the cut with an ellipsis."""
    return text if len(text) <= limit else text[:limit] + "..."
