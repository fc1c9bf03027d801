#!/usr/bin/env python3
"""
Unit tests for text helpers, transformation and configuration.
This uses Python's built-in unittest framework.
"""
import unittest

from bat_scraper.models import (
    UNKNOWN,
    AuctionStats,
    ColumnGroups,
    Essentials,
    RawAuctionData,
    SaleInfo,
    SaleStatus,
    ScraperConfig,
    ScraperStats,
    RunError,
)
from bat_scraper.transformers import is_valid_auction, should_include_auction, transform_auction_data
from bat_scraper.utils import clean_text, clean_vehicle_location, file_timestamp, parse_number, shorten


def make_raw(url="https://bringatrailer.com/listing/1990-porsche-911/",
             status=SaleStatus.SOLD, make="Porsche", model="911 Carrera"):
    return RawAuctionData(
        url=url,
        title="  1990 Porsche 911\nCarrera  ",
        column_groups=ColumnGroups(make=make, model=model, era="1990s",
                                   origin="German", location="Located in  Los Angeles, CA"),
        essentials=Essentials(seller="  carguy ", location="Los Angeles, CA 90001",
                              listing_details=["  Chassis: WP0AB29 ", "", "63k Miles"],
                              seller_type="Dealer"),
        stats=AuctionStats(views="7,227", watchers="512"),
        sale_info=SaleInfo(status=status, date_sold="6/14/24", amount="71,500"),
    )


class TestTextHelpers(unittest.TestCase):

    def test_clean_text(self):
        self.assertEqual(clean_text("  Hello \t  World  \n"), "Hello World")
        self.assertEqual(clean_text(None), "")
        self.assertEqual(clean_text(""), "")

    def test_parse_number(self):
        self.assertEqual(parse_number("7,227"), 7227)
        self.assertEqual(parse_number("1,250,000"), 1250000)
        self.assertEqual(parse_number(""), 0)
        self.assertEqual(parse_number(None), 0)
        self.assertEqual(parse_number("abc"), 0)

    def test_clean_vehicle_location(self):
        self.assertEqual(clean_vehicle_location("Located in  Los Angeles, CA"), "Los Angeles, CA")
        self.assertEqual(clean_vehicle_location("located in Austin, TX"), "Austin, TX")
        self.assertEqual(clean_vehicle_location("Denver, CO"), "Denver, CO")
        self.assertEqual(clean_vehicle_location(None), "")

    def test_shorten(self):
        self.assertEqual(shorten("abc", 5), "abc")
        self.assertEqual(shorten("abcdef", 3), "abc...")

    def test_file_timestamp_format(self):
        self.assertRegex(file_timestamp(), r"^\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}$")


class TestTransform(unittest.TestCase):

    def test_transform_cleans_fields(self):
        auction = transform_auction_data(make_raw(), scraped_at="2024-06-15T00:00:00+00:00")
        self.assertEqual(auction.title, "1990 Porsche 911 Carrera")
        self.assertEqual(auction.make, "Porsche")
        self.assertEqual(auction.vehicle_location, "Los Angeles, CA")
        self.assertEqual(auction.seller, "carguy")
        self.assertEqual(auction.listing_details, ("Chassis: WP0AB29", "63k Miles"))
        self.assertEqual(auction.views, 7227)
        self.assertEqual(auction.watchers, 512)
        self.assertEqual(auction.sale_amount, 71500)
        self.assertEqual(auction.status, SaleStatus.SOLD)
        self.assertEqual(auction.date_sold, "6/14/24")
        self.assertEqual(auction.scraped_at, "2024-06-15T00:00:00+00:00")

    def test_missing_fields_default_to_unknown(self):
        auction = transform_auction_data(RawAuctionData(url="https://bringatrailer.com/listing/x/",
                                                        sale_info=SaleInfo(status=SaleStatus.BID)))
        for name in ("make", "model", "era", "origin", "vehicle_location", "seller",
                     "seller_location", "seller_type", "date_sold", "title"):
            self.assertEqual(getattr(auction, name), UNKNOWN, name)
        self.assertEqual(auction.listing_details, ())
        self.assertEqual((auction.views, auction.watchers, auction.sale_amount), (0, 0, 0))
        self.assertTrue(auction.scraped_at)

    def test_should_include(self):
        self.assertTrue(should_include_auction(make_raw(status=SaleStatus.SOLD)))
        self.assertTrue(should_include_auction(make_raw(status=SaleStatus.BID)))
        self.assertFalse(should_include_auction(make_raw(status=SaleStatus.WITHDRAWN)))
        self.assertFalse(should_include_auction(make_raw(status=SaleStatus.UNKNOWN)))

    def test_is_valid(self):
        self.assertTrue(is_valid_auction(transform_auction_data(make_raw())))
        self.assertTrue(is_valid_auction(transform_auction_data(make_raw(status=SaleStatus.BID))))
        self.assertFalse(is_valid_auction(transform_auction_data(make_raw(make=None))))
        self.assertFalse(is_valid_auction(transform_auction_data(make_raw(model="   "))))
        self.assertFalse(is_valid_auction(transform_auction_data(make_raw(url=""))))


class TestConfig(unittest.TestCase):

    def test_defaults(self):
        config = ScraperConfig.from_env({})
        self.assertEqual(config, ScraperConfig())
        self.assertEqual(config.auction_count, 3)
        self.assertTrue(config.headless)
        self.assertEqual(config.delay_between_pages, 1500)
        self.assertEqual(config.output_dir, "./output")
        self.assertFalse(config.debug_screenshots)

    def test_from_env(self):
        config = ScraperConfig.from_env({
            "HEADLESS": "false",
            "AUCTION_COUNT": "10",
            "DELAY_MS": "2000",
            "OUTPUT_DIR": "/tmp/bat",
            "DEBUG_SCREENSHOTS": "true",
        })
        self.assertFalse(config.headless)
        self.assertEqual(config.auction_count, 10)
        self.assertEqual(config.delay_between_pages, 2000)
        self.assertEqual(config.output_dir, "/tmp/bat")
        self.assertTrue(config.debug_screenshots)

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            ScraperConfig.from_env({"AUCTION_COUNT": "ten"})
        with self.assertRaises(ValueError):
            ScraperConfig(auction_count=0)
        with self.assertRaises(ValueError):
            ScraperConfig(delay_between_pages=-1)

    def test_stats_processed(self):
        stats = ScraperStats(sold=2, bid=1, skipped=3, errors=[RunError("u", "e")])
        self.assertEqual(stats.processed, 7)


if __name__ == "__main__":
    # Run the tests
    unittest.main(verbosity=2)
