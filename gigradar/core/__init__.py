from .chunker import split_into_chunks, chunk_paste, paste_to_text
from .identity import Identity, extract_identity
from .fingerprint import fingerprint, title_key, split_fingerprint
from .similarity import OVERLAP_THRESHOLD, description_overlap, is_near_duplicate
from .dedupe import KnownFingerprints, KnownSetLoadError, load_known_fingerprints, prefilter_chunks, postfilter_records
from .date_parse import resolve_relative_time
from .normalize import ParsedJob

__all__ = [
    "split_into_chunks",
    "chunk_paste",
    "paste_to_text",
    "Identity",
    "extract_identity",
    "fingerprint",
    "title_key",
    "split_fingerprint",
    "OVERLAP_THRESHOLD",
    "description_overlap",
    "is_near_duplicate",
    "KnownFingerprints",
    "KnownSetLoadError",
    "load_known_fingerprints",
    "prefilter_chunks",
    "postfilter_records",
    "resolve_relative_time",
    "ParsedJob",
]
