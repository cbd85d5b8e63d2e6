from rapidfuzz.distance import Levenshtein


def distance(a: str, b: str) -> int:
    """Levenshtein distance with unit costs, compared code point by code point."""
    return Levenshtein.distance(a, b)


def within_distance(a: str, b: str, cutoff: int) -> bool:
    """True when ``distance(a, b) < cutoff``."""
    if cutoff <= 0:
        return False
    return Levenshtein.distance(a, b, score_cutoff=cutoff - 1) < cutoff


def keys_match(key: str, representative: str, cutoff: int) -> bool:
    if key in representative or representative in key:
        return True
    return within_distance(key, representative, cutoff)


def contains_name(key: str, name_key: str) -> bool:
    """One-way containment used for obligations: the description must hold the name."""
    return bool(name_key) and name_key in key
