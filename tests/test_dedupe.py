import unittest

from gigradar.core.chunker import split_into_chunks
from gigradar.core.dedupe import (
    KnownFingerprints,
    KnownSetLoadError,
    load_known_fingerprints,
    postfilter_records,
    prefilter_chunks,
)
from gigradar.core.fingerprint import fingerprint
from gigradar.core.identity import extract_identity
from gigradar.core.normalize import ParsedJob

SNIPPET = (
    "We need a modern landing page for our bakery with online ordering, "
    "a photo gallery, seasonal menus and a contact form wired to email."
)


def listing(title: str, snippet: str = SNIPPET) -> str:
    return f"Posted 2 hours ago\n{title}\nFixed-price\nEst. budget:\n$500\n{snippet}\nProposals: 5 to 10\n"


def job(title: str, snippet: str = SNIPPET, verdict: str = "GO") -> ParsedJob:
    return ParsedJob(
        title=title,
        description_snippet=snippet,
        ai_score=4,
        ai_verdict=verdict,
        ai_reasoning="Landing page build.",
    )


class StaticSource:
    def __init__(self, blocked=(), postings=()):
        self.blocked = list(blocked)
        self.postings = list(postings)

    def blocklist_rows(self):
        return self.blocked

    def posting_rows(self):
        return self.postings


class BrokenSource(StaticSource):
    def posting_rows(self):
        raise ConnectionError("database unreachable")


class KnownFingerprintsTests(unittest.TestCase):
    def test_membership(self):
        known = KnownFingerprints(["abc|def"])
        self.assertIn("abc|def", known)
        self.assertNotIn("abc|xyz", known)
        known.add(None)
        known.add("")
        self.assertEqual(len(known), 1)

    def test_exact_match(self):
        known = KnownFingerprints()
        known.add(fingerprint("Bakery website", SNIPPET), SNIPPET)
        match = known.match("Bakery website", SNIPPET)
        self.assertEqual(match.kind, "exact")
        self.assertIn("Duplicate", match.reason)

    def test_near_match_on_truncated_snippet(self):
        known = KnownFingerprints()
        known.add(fingerprint("Bakery website", SNIPPET), SNIPPET)
        shorter = SNIPPET[:90].rsplit(" ", 1)[0]
        self.assertNotIn(fingerprint("Bakery website", shorter), known)
        match = known.match("Bakery website", shorter)
        self.assertEqual(match.kind, "near")
        self.assertGreaterEqual(match.overlap, 0.4)
        self.assertIn("Near-duplicate", match.reason)

    def test_near_match_requires_same_title(self):
        known = KnownFingerprints()
        known.add(fingerprint("Bakery website", SNIPPET), SNIPPET)
        self.assertIsNone(known.match("Bakery website redesign", SNIPPET[:90]))

    def test_same_title_different_listing(self):
        known = KnownFingerprints()
        known.add(fingerprint("Bakery website", SNIPPET), SNIPPET)
        other = "Migrate the existing shop from Wix to Squarespace and keep all product photos."
        self.assertIsNone(known.match("Bakery website", other))


class LoadKnownTests(unittest.TestCase):
    def test_union_of_both_sources(self):
        source = StaticSource(
            blocked=[("spam|job", "spam job text"), (None, None)],
            postings=[("bakery|site", None), ("spam|job", None)],
        )
        known = load_known_fingerprints(source)
        self.assertEqual(len(known), 2)
        self.assertIn("spam|job", known)
        self.assertIn("bakery|site", known)

    def test_failure_is_fatal(self):
        with self.assertRaises(KnownSetLoadError):
            load_known_fingerprints(BrokenSource())


class PrefilterTests(unittest.TestCase):
    def test_known_chunk_is_dropped(self):
        known_chunk = listing("Bakery landing page")
        identity = extract_identity(known_chunk)
        known = KnownFingerprints([fingerprint(identity.title, identity.desc_snippet)])

        fresh = listing("Fix my Django checkout", "Checkout crashes when a coupon code is applied.")
        result = prefilter_chunks([known_chunk, fresh], known)

        self.assertEqual(result.to_classify, [fresh])
        self.assertEqual(result.duplicates, [known_chunk])
        self.assertEqual(result.pre_filtered, 1)
        self.assertEqual(result.statuses, {0: "duplicate", 1: "new"})
        self.assertFalse(result.all_duplicates)

    def test_unknown_identity_always_kept(self):
        result = prefilter_chunks(["ok", "ok"], KnownFingerprints())
        self.assertEqual(result.to_classify, ["ok", "ok"])
        self.assertEqual(result.unknown_identity, ["ok", "ok"])
        self.assertEqual(result.pre_filtered, 0)

    def test_second_copy_in_same_paste(self):
        blob = listing("Bakery landing page") + listing("Bakery landing page")
        chunks = split_into_chunks(blob)
        self.assertEqual(len(chunks), 2)

        known = KnownFingerprints()
        result = prefilter_chunks(chunks, known)

        self.assertEqual(len(result.to_classify), 1)
        self.assertEqual(result.pre_filtered, 1)
        self.assertEqual(len(known), 0)

    def test_order_preserved(self):
        chunks = [listing(f"Listing number {i}", f"Distinct body {w}") for i, w in enumerate(["alpha", "bravo", "charlie"])]
        result = prefilter_chunks(chunks, KnownFingerprints())
        self.assertEqual(result.to_classify, chunks)

    def test_all_duplicates(self):
        chunk = listing("Bakery landing page")
        identity = extract_identity(chunk)
        known = KnownFingerprints([fingerprint(identity.title, identity.desc_snippet)])
        self.assertTrue(prefilter_chunks([chunk], known).all_duplicates)
        self.assertFalse(prefilter_chunks([], known).all_duplicates)


class PostfilterTests(unittest.TestCase):
    def test_accepts_and_grows_known_set(self):
        known = KnownFingerprints()
        result = postfilter_records([job("Bakery website")], known)
        self.assertEqual(len(result.accepted), 1)
        self.assertIn(result.accepted[0][1], known)

    def test_second_copy_in_batch_is_duplicate(self):
        known = KnownFingerprints()
        result = postfilter_records([job("Bakery website"), job("Bakery website")], known)
        self.assertEqual(len(result.accepted), 1)
        self.assertEqual(len(result.duplicates), 1)
        self.assertEqual(result.duplicates[0][1].kind, "exact")

    def test_near_duplicate_against_stored_snippet(self):
        known = KnownFingerprints()
        known.add(fingerprint("Bakery website", SNIPPET), SNIPPET)
        result = postfilter_records([job("Bakery website", SNIPPET[:100])], known)
        self.assertEqual(result.accepted, [])
        self.assertEqual(result.duplicates[0][1].kind, "near")

    def test_running_twice_accepts_nothing_new(self):
        known = KnownFingerprints()
        records = [job("Bakery website"), job("Fix my Django checkout", "Checkout crashes on coupons.")]
        self.assertEqual(len(postfilter_records(records, known).accepted), 2)
        self.assertEqual(len(postfilter_records(records, known).accepted), 0)


if __name__ == "__main__":
    unittest.main()
