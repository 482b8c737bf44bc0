import unittest

from gigradar.core.chunker import split_into_chunks
from gigradar.core.identity import Identity, extract_identity

DESCRIPTION = (
    "We need a modern landing page for our bakery with online ordering, "
    "a photo gallery and a contact form wired to our email."
)

UPWORK_CHUNK = "\n".join(
    [
        "Posted 2 hours ago",
        "Build me a website",
        "Fixed-price",
        "Intermediate",
        "Est. budget:",
        "$500",
        DESCRIPTION,
        "WordPress  Web Design",
        "Proposals: 5 to 10",
    ]
)


class PrimaryPathTests(unittest.TestCase):
    def test_title_is_line_after_posted(self):
        identity = extract_identity(UPWORK_CHUNK)
        self.assertEqual(identity.title, "Build me a website")

    def test_description_starts_after_est_value(self):
        identity = extract_identity(UPWORK_CHUNK)
        self.assertTrue(identity.desc_snippet.startswith("We need a modern landing page"))
        self.assertNotIn("$500", identity.desc_snippet)
        self.assertLessEqual(len(identity.desc_snippet), 200)

    def test_est_time_marker_and_blank_lines(self):
        chunk = "\n\n  Posted 1 day ago \n\n Automate invoices \nEst. time:\nLess than 1 month\n  Parse PDFs into rows  \n"
        self.assertEqual(
            extract_identity(chunk),
            Identity(title="Automate invoices", desc_snippet="Parse PDFs into rows"),
        )

    def test_lowercase_posted_marker(self):
        self.assertEqual(extract_identity(UPWORK_CHUNK.replace("Posted", "posted")).title, "Build me a website")

    def test_short_title_rejected(self):
        self.assertIsNone(extract_identity("Posted 1 hour ago\nHi\nEst. budget:\n$50\nSome text"))

    def test_est_marker_without_room_falls_back(self):
        chunk = "Posted 1 day ago\nDesign a logo for my brand\nEst. budget:\n$50"
        self.assertEqual(extract_identity(chunk).desc_snippet, "Est. budget: $50")


class FallbackPathTests(unittest.TestCase):
    def test_first_long_line_when_no_est_marker(self):
        long_line = "L" * 90 + " tail"
        chunk = f"Posted 3 hours ago\nScrape product prices\nshort line\n{long_line}\nanother line"
        self.assertEqual(extract_identity(chunk).desc_snippet, long_line)

    def test_long_line_truncated_to_200(self):
        chunk = "Posted 3 hours ago\nScrape product prices\n" + "x" * 500
        self.assertEqual(len(extract_identity(chunk).desc_snippet), 200)

    def test_remainder_joined_when_no_long_line(self):
        chunk = "Posted 3 hours ago\nScrape product prices\nNeed a script\nRuns daily"
        self.assertEqual(extract_identity(chunk).desc_snippet, "Need a script Runs daily")

    def test_title_only_gives_empty_snippet(self):
        self.assertEqual(
            extract_identity("Posted 5 minutes ago\nSome title here"),
            Identity(title="Some title here", desc_snippet=""),
        )

    def test_no_marker_uses_first_reasonable_line(self):
        chunk = "Hi\nLooking for a Shopify expert\nMore details follow"
        self.assertEqual(extract_identity(chunk), Identity(title="Looking for a Shopify expert", desc_snippet=""))

    def test_marker_as_last_line_uses_fallback(self):
        chunk = "Some intro line here\nPosted 3 days ago"
        self.assertEqual(extract_identity(chunk).title, "Some intro line here")

    def test_no_usable_line_returns_none(self):
        self.assertIsNone(extract_identity("ok\nyes\n" + "z" * 400))


class NeverRaisesTests(unittest.TestCase):
    def test_odd_inputs(self):
        for value in (None, "", "   ", 123, "Posted", "Posted \n", "\x00\x01", "Est. budget:\nPosted x"):
            result = extract_identity(value)
            self.assertTrue(result is None or isinstance(result, Identity))

    def test_every_chunk_of_a_messy_blob(self):
        blob = (
            "header\nPosted 1 hour ago\nOK\nPosted yesterday\n" + UPWORK_CHUNK + "\nPosted\n\n\nPosted 2 days ago\n"
        )
        for chunk in split_into_chunks(blob):
            result = extract_identity(chunk)
            self.assertTrue(result is None or len(result.title) >= 5)


if __name__ == "__main__":
    unittest.main()
