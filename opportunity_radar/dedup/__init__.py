"""Canonicalization and deduplication."""
from .deduplicator import Deduplicator, canonical_key, canonical_keys, normalize_text, normalize_url

__all__ = ["Deduplicator", "canonical_key", "canonical_keys", "normalize_text", "normalize_url"]
