from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional, Protocol, Set, Tuple

from .fingerprint import fingerprint, split_fingerprint
from .identity import extract_identity
from .normalize import ParsedJob
from .similarity import OVERLAP_THRESHOLD, description_overlap

LOGGER = logging.getLogger(__name__)

# (fingerprint, description_snippet) as stored next to a posting or blocklist row
KnownRow = Tuple[Optional[str], Optional[str]]


class KnownSetLoadError(RuntimeError):
    """The known-fingerprint set could not be loaded; the run must not continue."""


class KnownRowSource(Protocol):
    def blocklist_rows(self) -> Iterable[KnownRow]: ...
    def posting_rows(self) -> Iterable[KnownRow]: ...


@dataclass(frozen=True)
class DedupMatch:
    kind: Literal["exact", "near"]
    fingerprint: str
    overlap: float = 1.0

    @property
    def reason(self) -> str:
        if self.kind == "exact":
            return "Duplicate of an existing posting"
        return f"Near-duplicate of an existing posting (overlap {self.overlap:.2f})"


class KnownFingerprints:
    """Request-scoped set of fingerprints already seen.

    Besides exact fingerprints it keeps the description snippets it was given,
    indexed by the fingerprint's title part, so a same-title posting whose
    snippet was cut at a different point can still be recognised.
    """

    def __init__(self, fingerprints: Iterable[str] = (), *, threshold: float = OVERLAP_THRESHOLD):
        self.threshold = threshold
        self._fingerprints: Set[str] = set()
        self._snippets: Dict[str, List[str]] = defaultdict(list)
        for fp in fingerprints:
            self.add(fp)

    def __contains__(self, fp: object) -> bool:
        return fp in self._fingerprints

    def __len__(self) -> int:
        return len(self._fingerprints)

    def add(self, fp: Optional[str], description: Optional[str] = None) -> None:
        if not fp:
            return
        self._fingerprints.add(fp)
        if description:
            title_part, _ = split_fingerprint(fp)
            self._snippets[title_part].append(description)

    def match(self, title: Optional[str], description: Optional[str]) -> Optional[DedupMatch]:
        fp = fingerprint(title, description)
        if fp in self._fingerprints:
            return DedupMatch(kind="exact", fingerprint=fp)
        title_part, _ = split_fingerprint(fp)
        if not title_part:
            return None
        best = 0.0
        for known in self._snippets.get(title_part, ()):
            best = max(best, description_overlap(description, known))
        if best >= self.threshold:
            return DedupMatch(kind="near", fingerprint=fp, overlap=best)
        return None


def load_known_fingerprints(source: KnownRowSource) -> KnownFingerprints:
    """Union of blocklist and stored-posting fingerprints.

    Any failure is re-raised as KnownSetLoadError: running without the known
    set would re-insert every posting ever seen.
    """
    try:
        blocked = list(source.blocklist_rows())
        postings = list(source.posting_rows())
    except Exception as exc:
        raise KnownSetLoadError(f"could not load known fingerprints: {exc}") from exc

    known = KnownFingerprints()
    for fp, snippet in blocked + postings:
        known.add(fp, snippet)
    LOGGER.info("known-set blocklist=%s postings=%s unique=%s", len(blocked), len(postings), len(known))
    return known


@dataclass
class PrefilterResult:
    chunks: List[str]
    to_classify: List[str] = field(default_factory=list)
    unknown_identity: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    fingerprints: Dict[int, str] = field(default_factory=dict)
    statuses: Dict[int, str] = field(default_factory=dict)  # new | duplicate | unknown

    @property
    def pre_filtered(self) -> int:
        return len(self.duplicates)

    @property
    def all_duplicates(self) -> bool:
        return bool(self.chunks) and not self.to_classify


def prefilter_chunks(chunks: Iterable[str], known: KnownFingerprints) -> PrefilterResult:
    """Drop chunks whose heuristic fingerprint is already known.

    Exact matches only; the heuristic snippet is too rough for overlap
    scoring. A fingerprint kept earlier in the same paste also counts as
    known, without being added to ``known`` itself. Chunks without an
    identity are always kept. Never calls the classifier.
    """
    result = PrefilterResult(chunks=list(chunks))
    seen_here: Set[str] = set()

    for idx, chunk in enumerate(result.chunks):
        identity = extract_identity(chunk)
        if identity is None:
            result.statuses[idx] = "unknown"
            result.unknown_identity.append(chunk)
            result.to_classify.append(chunk)
            continue

        fp = fingerprint(identity.title, identity.desc_snippet)
        result.fingerprints[idx] = fp
        if fp in known or fp in seen_here:
            result.statuses[idx] = "duplicate"
            result.duplicates.append(chunk)
            continue
        result.statuses[idx] = "new"
        seen_here.add(fp)
        result.to_classify.append(chunk)

    LOGGER.info(
        "prefilter chunks=%s kept=%s unknown=%s pre_filtered=%s",
        len(result.chunks),
        len(result.to_classify),
        len(result.unknown_identity),
        result.pre_filtered,
    )
    return result


@dataclass
class PostfilterResult:
    accepted: List[Tuple[ParsedJob, str]] = field(default_factory=list)
    duplicates: List[Tuple[ParsedJob, DedupMatch]] = field(default_factory=list)


def postfilter_records(records: Iterable[ParsedJob], known: KnownFingerprints) -> PostfilterResult:
    """Re-check classifier output against ``known``, growing it as records pass.

    Fingerprints come from the classifier's own title and snippet. Adding each
    accepted record immediately catches two copies of one listing in a batch.
    """
    result = PostfilterResult()
    for job in records:
        match = known.match(job.title, job.description_snippet)
        if match is not None:
            result.duplicates.append((job, match))
            continue
        fp = fingerprint(job.title, job.description_snippet)
        known.add(fp, job.description_snippet)
        result.accepted.append((job, fp))
    return result
