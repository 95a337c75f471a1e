import unittest

from fundspace.ingestion.article_types import RawFeedItem
from fundspace.ingestion.image_resolver import (
    ImageResolver,
    extract_image_from_html,
    is_image_url,
)


class TestImageResolverCascade(unittest.TestCase):
    def setUp(self):
        self.resolver = ImageResolver()

    def test_image_field_beats_enclosure(self):
        item = RawFeedItem(
            title="x",
            image="https://cdn.example.com/direct.jpg",
            enclosures=[{"url": "https://cdn.example.com/enc.png", "type": "image/png"}],
        )
        self.assertEqual(self.resolver.resolve(item), "https://cdn.example.com/direct.jpg")

    def test_image_enclosure_only(self):
        item = RawFeedItem(
            title="x",
            enclosures=[{"url": "https://cdn.example.com/enc.png", "type": "image/png"}],
        )
        self.assertEqual(self.resolver.resolve(item), "https://cdn.example.com/enc.png")

    def test_non_image_enclosure_skipped(self):
        item = RawFeedItem(
            title="x",
            enclosures=[{"url": "https://cdn.example.com/episode.mp3", "type": "audio/mpeg"}],
            media_thumbnail=[{"url": "https://cdn.example.com/thumb.jpg"}],
        )
        self.assertEqual(self.resolver.resolve(item), "https://cdn.example.com/thumb.jpg")

    def test_media_content_prefers_explicit_image(self):
        item = RawFeedItem(
            title="x",
            media_content=[
                {"url": "https://cdn.example.com/clip.mp4", "medium": "video", "type": ""},
                {"url": "https://cdn.example.com/untyped", "medium": "", "type": ""},
                {"url": "https://cdn.example.com/photo.webp", "medium": "image", "type": ""},
            ],
        )
        self.assertEqual(self.resolver.resolve(item), "https://cdn.example.com/photo.webp")

    def test_media_content_untyped_second_pass(self):
        item = RawFeedItem(
            title="x",
            media_content=[
                {"url": "https://cdn.example.com/clip.mp4", "medium": "video", "type": ""},
                {"url": "https://cdn.example.com/untyped", "medium": "", "type": ""},
            ],
        )
        self.assertEqual(self.resolver.resolve(item), "https://cdn.example.com/untyped")

    def test_media_beats_body(self):
        item = RawFeedItem(
            title="x",
            media_thumbnail=[{"url": "https://cdn.example.com/thumb.jpg"}],
            description='<img src="https://cdn.example.com/body.jpg">',
        )
        self.assertEqual(self.resolver.resolve(item), "https://cdn.example.com/thumb.jpg")

    def test_content_body_preferred_over_description(self):
        item = RawFeedItem(
            title="x",
            content='<p><img src="https://cdn.example.com/content.jpg"></p>',
            description='<img src="https://cdn.example.com/desc.jpg">',
        )
        self.assertEqual(self.resolver.resolve(item), "https://cdn.example.com/content.jpg")

    def test_nothing_resolves_to_none(self):
        item = RawFeedItem(title="x", description="<p>No pictures here.</p>")
        self.assertIsNone(self.resolver.resolve(item, "https://example.org/feed"))


class TestExtractImageFromHtml(unittest.TestCase):
    def test_img_src(self):
        body = '<p>Lead</p><img class="wp" src="https://a.example.com/pic.JPG" alt="">'
        self.assertEqual(extract_image_from_html(body), "https://a.example.com/pic.JPG")

    def test_skips_non_image_src(self):
        body = (
            '<img src="https://a.example.com/pixel?id=1">'
            '<img src="https://a.example.com/real.png">'
        )
        self.assertEqual(extract_image_from_html(body), "https://a.example.com/real.png")

    def test_data_src(self):
        body = '<img data-src="https://a.example.com/lazy.jpeg" src="data:image/gif;base64,R0lG">'
        self.assertEqual(extract_image_from_html(body), "https://a.example.com/lazy.jpeg")

    def test_entities_are_unescaped(self):
        body = '<img src="https://a.example.com/pic.jpg?w=400&amp;h=200">'
        self.assertEqual(extract_image_from_html(body), "https://a.example.com/pic.jpg?w=400&h=200")

    def test_bare_url(self):
        body = "Photo: https://a.example.com/uploads/photo.gif (credit)"
        self.assertEqual(extract_image_from_html(body), "https://a.example.com/uploads/photo.gif")

    def test_srcset_first_candidate(self):
        body = '<img srcset="https://a.example.com/s.webp 480w, https://a.example.com/l.webp 1024w">'
        self.assertEqual(extract_image_from_html(body), "https://a.example.com/s.webp")

    def test_og_image_either_attribute_order(self):
        a = '<meta property="og:image" content="https://a.example.com/og">'
        b = '<meta content="https://a.example.com/og2" property="og:image">'
        self.assertEqual(extract_image_from_html(a), "https://a.example.com/og")
        self.assertEqual(extract_image_from_html(b), "https://a.example.com/og2")

    def test_empty_body(self):
        self.assertIsNone(extract_image_from_html(None))
        self.assertIsNone(extract_image_from_html(""))

    def test_is_image_url(self):
        self.assertTrue(is_image_url("https://x.example.com/a.avif"))
        self.assertTrue(is_image_url("https://x.example.com/a.png?v=2"))
        self.assertFalse(is_image_url("https://x.example.com/a.pdf"))
        self.assertFalse(is_image_url(None))


if __name__ == "__main__":
    unittest.main()
