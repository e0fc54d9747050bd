"""
Organization feature flags.

Feature flags live in an organization's free-form tag collection as
recognized `feature:*` keys. Merging is non-destructive to every other tag.
"""
from typing import Iterable, List, Optional

ORG_FEATURE_KEYS = (
    "feature:appointments",
    "feature:cases",
    "feature:encounters",
    "feature:inventory",
    "feature:donations",
)


def merge_feature_flags(existing: Optional[Iterable[str]], selected: Optional[Iterable[str]]) -> List[str]:
    """
    Return (existing - recognized keys) | selected as a sorted, de-duplicated list.

    `selected` is expected to be pre-filtered against ORG_FEATURE_KEYS by the
    form decoder.

    Unknown tags pass through untouched; unchecked feature keys are removed.
    """
    recognized = set(ORG_FEATURE_KEYS)
    kept = {tag for tag in (existing or []) if tag not in recognized}
    chosen = set(selected or [])
    return sorted(kept | chosen)


def enabled_features(tags: Optional[Iterable[str]]) -> List[str]:
    """Recognized feature keys present on a tag collection."""
    recognized = set(ORG_FEATURE_KEYS)
    return sorted({tag for tag in (tags or []) if tag in recognized})
