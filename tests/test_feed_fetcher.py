import time
import unittest
from datetime import datetime, timezone

import requests

from feed_stubs import StubResponse, StubSession, rss, rss_item

from fundspace.ingestion.feed_fetcher import (
    FeedFetcher,
    FeedParseError,
    clean_xml,
    parse_datetime,
    parse_feed,
)


MEDIA_ITEM = rss_item(
    "Grant news",
    "https://news.example.com/grants",
    description='<p>Body <img src="https://cdn.example.com/body.jpg"></p>',
    extra=(
        '<media:content url="https://cdn.example.com/media.jpg" medium="image" />'
        '<enclosure url="https://cdn.example.com/enc.png" type="image/png" length="100" />'
    ),
)


class TestCleanXml(unittest.TestCase):
    def test_escapes_bare_ampersands_only(self):
        self.assertEqual(clean_xml("Arts & Culture &amp; &#38; &#x26;"), "Arts &amp; Culture &amp; &#38; &#x26;")

    def test_strips_control_characters(self):
        self.assertEqual(clean_xml("a\x00b\x0bc\x7fd\ne"), "abcd\ne")

    def test_empty(self):
        self.assertEqual(clean_xml(""), "")


class TestParseFeed(unittest.TestCase):
    def test_rss_items_are_normalized(self):
        feed = parse_feed(rss([MEDIA_ITEM], title="Example Wire"), "https://feed.example.com")
        self.assertEqual(feed.title, "Example Wire")
        self.assertEqual(len(feed.items), 1)
        item = feed.items[0]
        self.assertEqual(item.title, "Grant news")
        self.assertEqual(item.link, "https://news.example.com/grants")
        self.assertEqual(item.guid, "https://news.example.com/grants")
        self.assertEqual(item.pub_date, datetime(2023, 11, 14, 18, 0, tzinfo=timezone.utc))
        self.assertIn("body.jpg", item.description)
        self.assertIsInstance(item.media_content, list)
        self.assertEqual(item.media_content[0]["url"], "https://cdn.example.com/media.jpg")
        self.assertEqual(item.enclosures[0]["url"], "https://cdn.example.com/enc.png")
        self.assertEqual(item.enclosures[0]["type"], "image/png")

    def test_atom_entries(self):
        atom = (
            '<?xml version="1.0" encoding="utf-8"?>'
            '<feed xmlns="http://www.w3.org/2005/Atom"><title>Atom Feed</title>'
            '<entry><title>Entry one</title><link href="https://a.example.com/1"/>'
            "<id>urn:1</id><updated>2024-01-02T03:04:05Z</updated>"
            "<summary>Hello</summary></entry></feed>"
        )
        feed = parse_feed(atom, "https://a.example.com/feed")
        self.assertEqual(feed.items[0].title, "Entry one")
        self.assertEqual(feed.items[0].guid, "urn:1")
        self.assertEqual(feed.items[0].pub_date, datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))

    def test_bare_ampersand_in_title_survives(self):
        body = rss([rss_item("Arts & Culture grants", "https://news.example.com/arts")])
        feed = parse_feed(body, "https://feed.example.com")
        self.assertEqual(feed.items[0].title, "Arts & Culture grants")

    def test_max_items(self):
        items = [rss_item(f"Item {i}", f"https://news.example.com/{i}") for i in range(12)]
        feed = parse_feed(rss(items), "https://feed.example.com", max_items=8)
        self.assertEqual(len(feed.items), 8)
        self.assertEqual(feed.items[0].title, "Item 0")

    def test_unparseable_body_raises(self):
        with self.assertRaises(FeedParseError):
            parse_feed("this is not a feed <<<", "https://broken.example.com")

    def test_parse_datetime(self):
        self.assertEqual(
            parse_datetime("Tue, 14 Nov 2023 18:00:00 GMT"),
            datetime(2023, 11, 14, 18, 0, tzinfo=timezone.utc),
        )
        self.assertEqual(
            parse_datetime("2024-01-02T03:04:05Z"),
            datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        )
        self.assertIsNone(parse_datetime("not a date"))
        self.assertIsNone(parse_datetime(None))


class TestFeedFetcher(unittest.TestCase):
    def test_failures_are_absorbed(self):
        good = "https://good.example.com/feed"
        session = StubSession({
            "https://slow.example.com/feed": requests.Timeout("read timed out"),
            "https://down.example.com/feed": StubResponse("", status_code=503),
            "https://junk.example.com/feed": StubResponse("<html><body>oops"),
            good: StubResponse(rss([MEDIA_ITEM])),
        })
        fetcher = FeedFetcher(timeout=2, session=session)
        feeds = fetcher.fetch_all([
            "https://slow.example.com/feed",
            "https://down.example.com/feed",
            good,
            "https://junk.example.com/feed",
            "https://unrouted.example.com/feed",
        ])
        self.assertEqual([f.url for f in feeds], [good])
        self.assertEqual(len(session.calls), 5)

    def test_results_keep_input_order(self):
        urls = [f"https://f{i}.example.com/feed" for i in range(4)]
        session = StubSession({u: StubResponse(rss([rss_item(u, u)])) for u in urls})
        feeds = FeedFetcher(session=session, max_workers=2).fetch_all(urls)
        self.assertEqual([f.url for f in feeds], urls)

    def test_request_headers_and_timeout(self):
        url = "https://good.example.com/feed"
        session = StubSession({url: StubResponse(rss([MEDIA_ITEM]))})
        FeedFetcher(timeout=7, user_agent="TestAgent/1.0", session=session).fetch_one(url)
        call = session.calls[0]
        self.assertEqual(call["timeout"], 7)
        self.assertEqual(call["headers"]["User-Agent"], "TestAgent/1.0")
        self.assertIn("application/rss+xml", call["headers"]["Accept"])

    def test_items_per_feed(self):
        url = "https://big.example.com/feed"
        items = [rss_item(f"Item {i}", f"https://news.example.com/{i}") for i in range(10)]
        session = StubSession({url: StubResponse(rss(items))})
        feed = FeedFetcher(items_per_feed=3, session=session).fetch_one(url)
        self.assertEqual(len(feed.items), 3)

    def test_queued_urls_get_their_own_window(self):
        urls = [f"https://f{i}.example.com/feed" for i in range(3)]
        session = StubSession(
            {u: StubResponse(rss([rss_item(u, u)])) for u in urls},
            delays={u: 0.8 for u in urls},
        )
        feeds = FeedFetcher(timeout=1, max_workers=1, session=session).fetch_all(urls)
        self.assertEqual([f.url for f in feeds], urls)

    def test_hung_url_is_abandoned(self):
        hung = "https://hung.example.com/feed"
        good = "https://good.example.com/feed"
        session = StubSession(
            {hung: StubResponse(rss([MEDIA_ITEM])), good: StubResponse(rss([MEDIA_ITEM]))},
            delays={hung: 3.0},
        )
        started = time.monotonic()
        with self.assertLogs("fundspace.ingestion.feed_fetcher", level="WARNING") as logs:
            feeds = FeedFetcher(timeout=0.2, max_workers=2, session=session).fetch_all([hung, good])
        self.assertEqual([f.url for f in feeds], [good])
        self.assertLess(time.monotonic() - started, 2.5)
        self.assertTrue(any("Abandoning" in line and hung in line for line in logs.output))

    def test_empty_url_list(self):
        session = StubSession({})
        self.assertEqual(FeedFetcher(session=session).fetch_all([]), [])
        self.assertEqual(session.calls, [])


if __name__ == "__main__":
    unittest.main()
