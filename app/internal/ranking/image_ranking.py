"""
Ordering of remote image candidates by language preference and popularity.
"""
from typing import Iterable

from app.internal.models import ImageCandidate

ENGLISH = "en"


def _same_language(a: str | None, b: str | None) -> bool:
    return (a or "").lower() == (b or "").lower()


def language_score(language: str | None, preferred_language: str | None) -> int:
    """
    Score how well an image language suits the preferred language.

    - 3: exact match, or no language while English is preferred
    - 2: English while something else is preferred, or no language
    - 0: any other language
    """
    if _same_language(language, preferred_language):
        return 3

    prefers_english = _same_language(preferred_language, ENGLISH)
    if not prefers_english and _same_language(language, ENGLISH):
        return 2

    if not language:
        return 3 if prefers_english else 2

    return 0


def rank_images(
    candidates: Iterable[ImageCandidate],
    preferred_language: str | None,
) -> list[ImageCandidate]:
    """
    Order candidates best first.

    Sorted by language score, then community rating, then vote count, all
    descending with missing values counted as zero. The sort is stable, so
    candidates that tie on all three keep their input order.
    """
    return sorted(
        candidates,
        key=lambda c: (
            language_score(c.language, preferred_language),
            c.community_rating or 0,
            c.vote_count or 0,
        ),
        reverse=True,
    )
