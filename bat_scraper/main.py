"""
Command-line entry point for the Bring a Trailer scraper.

Environment variables (flags take precedence):
    HEADLESS=false          run the browser with a visible window
    AUCTION_COUNT=10        number of auctions to scrape
    DELAY_MS=2000           delay between auction pages in ms
    OUTPUT_DIR=./output     where the CSV is written
    DEBUG_SCREENSHOTS=true  take screenshots when pagination stops
"""
import argparse
import asyncio
import dataclasses
import logging
import os
import sys
from typing import List, Optional

from .core import scrape
from .models import ScraperConfig, ScraperResult
from .utils import init_logger, now_iso

SEPARATOR = "=" * 59
RULE = "-" * 59


def parse_args(argv: Optional[List[str]] = None):
    ap = argparse.ArgumentParser(description="Bring a Trailer completed auctions scraper (CSV export)")
    ap.add_argument("--count", type=int, default=None, help="Number of auctions to scrape (env AUCTION_COUNT, default 3)")
    ap.add_argument("--headless", dest="headless", action="store_true", default=None,
                    help="Run without UI (default, env HEADLESS)")
    ap.add_argument("--headed", dest="headless", action="store_false", help="Show the browser window")
    ap.add_argument("--delay-ms", type=int, default=None,
                    help="Delay between auction pages in ms (env DELAY_MS, default 1500)")
    ap.add_argument("--output-dir", type=str, default=None, help="CSV output directory (env OUTPUT_DIR, default ./output)")
    ap.add_argument("--debug-screenshots", action="store_true", default=None,
                    help="Save screenshots when pagination stops (env DEBUG_SCREENSHOTS)")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "bat_scraper.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or bat_scraper.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")

    return ap.parse_args(argv)


def build_config(args, environ=None) -> ScraperConfig:
    """Environment first, then any flags given on the command line."""
    config = ScraperConfig.from_env(environ)
    overrides = {
        "auction_count": args.count,
        "headless": args.headless,
        "delay_between_pages": args.delay_ms,
        "output_dir": args.output_dir,
        "debug_screenshots": args.debug_screenshots,
    }
    return dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})


def short_url(url: str) -> str:
    return url if len(url) <= 60 else "..." + url[-57:]


def report_summary(result: ScraperResult, logger: logging.Logger) -> None:
    stats = result.stats
    logger.info(SEPARATOR)
    logger.info("Summary")
    logger.info(SEPARATOR)
    logger.info(f"   Sold:      {stats.sold}")
    logger.info(f"   Bid:       {stats.bid}")
    logger.info(f"   Skipped:   {stats.skipped}")
    logger.info(f"   Errors:    {len(stats.errors)}")
    logger.info(RULE)
    logger.info(f"   Total processed: {stats.sold + stats.bid}")
    if result.csv_path:
        logger.info(f"   Output: {result.csv_path}")

    if stats.errors:
        logger.info(RULE)
        logger.info("   Error details:")
        for i, err in enumerate(stats.errors, 1):
            first_line = err.error.split("\n")[0][:80]
            logger.info(f"   {i}. {short_url(err.url)}")
            logger.info(f"      -> {first_line}")
    logger.info(SEPARATOR)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    logger = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    logger.info(
            f"Logger initialized: console={eff_console}, "
            f"file={'DISABLED' if args.no_file_log else eff_file}, "
            f"path={'N/A' if args.no_file_log else args.log_file_path}"
        )

    try:
        config = build_config(args)
        logger.info(f">>> Run started at {now_iso()}")
        result = asyncio.run(scrape(config))
    except Exception:
        logger.exception("Fatal error")
        return 1

    report_summary(result, logger)
    return 0


if __name__ == "__main__":
    sys.exit(main())
