"""
Job posting deduplication.

Postings from different job boards describe the same opening with different
punctuation and casing, so keys are built from normalised (title, company).

Usage:
    from catalyst.common.dedupe import dedupe_key

    key = dedupe_key("Senior Engineer", "Acme, Inc.")
    # Result: "seniorengineer|acmeinc"
"""

import unicodedata
from typing import Iterable, List, Optional, Set, TypeVar

T = TypeVar("T")

_KEPT_SYMBOLS = "+#"


def normalize_for_dedupe(text: Optional[str]) -> str:
    """
    Normalize text for deduplication - keep letters, digits and the "+"/"#"
    of names like C++ and C#, in any script.

    Args:
        text: Input text to normalize

    Returns:
        Case-folded string of letters, marks, digits, "+" and "#"

    Examples:
        >>> normalize_for_dedupe("Acme & Co.")
        'acmeco'
        >>> normalize_for_dedupe("C++ Developer")
        'c++developer'
        >>> normalize_for_dedupe(None)
        ''
    """
    if not text:
        return ""
    folded = unicodedata.normalize("NFKC", text).casefold()
    # Combining marks carry the vowels of Indic scripts
    return "".join(
        ch for ch in folded
        if ch in _KEPT_SYMBOLS or unicodedata.category(ch)[0] in ("L", "M", "N")
    )


def dedupe_key(title: Optional[str], company: Optional[str]) -> str:
    """Build the "{title}|{company}" deduplication key."""
    return f"{normalize_for_dedupe(title)}|{normalize_for_dedupe(company)}"


def dedupe_postings(postings: Iterable[T]) -> List[T]:
    """
    Drop postings whose (title, company) key was already seen.

    Postings only need `title` and `company` attributes. The first
    occurrence wins, so callers control priority through the order they
    pass postings in.
    """
    seen: Set[str] = set()
    unique: List[T] = []
    for posting in postings:
        key = dedupe_key(posting.title, posting.company)
        if key in seen:
            continue
        seen.add(key)
        unique.append(posting)
    return unique
