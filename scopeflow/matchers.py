"""
Primitive match predicates shared by every filter dimension.

Both matchers follow the same contract:
- the first parameter is the entity attribute value being tested
- the second parameter is the operator supplied list of match values
- the result is True when the value matches ANY candidate

Both are total: an empty candidate list never matches and a missing (None)
attribute value is compared as an empty string.
"""

from collections.abc import Callable, Iterable

Matcher = Callable[[str | None, Iterable[str]], bool]


def exact_match(value: str | None, candidates: Iterable[str]) -> bool:
    """
    Case-insensitive equality against any candidate.

    Used for structured fields such as entity types, statuses and resource pools.

    Args:
        value (str | None): The attribute value to check
        candidates (Iterable[str]): Values to match against

    Returns:
        bool: True if value equals one of the candidates, ignoring case
    """
    folded = (value or "").casefold()
    return any(folded == candidate.casefold() for candidate in candidates)


def substring_match(value: str | None, candidates: Iterable[str]) -> bool:
    """
    Case-insensitive containment of any candidate within value.

    Used for free-text fields such as alarm names and descriptions, where
    operators supply short fragments rather than full strings.

    Args:
        value (str | None): The attribute value to check
        candidates (Iterable[str]): Substrings to look for

    Returns:
        bool: True if value contains one of the candidates, ignoring case
    """
    folded = (value or "").casefold()
    return any(candidate.casefold() in folded for candidate in candidates)
