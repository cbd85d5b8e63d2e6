import pytest

from recurring_engine.detection.matching import contains_name, distance, keys_match, within_distance
from recurring_engine.detection.text import normalize


def test_normalize_trims_and_lowercases() -> None:
    assert normalize("  NETFLIX.com ") == "netflix.com"
    assert normalize("Spotify") == "spotify"

@pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
def test_normalize_blank_is_empty(value: str | None) -> None:
    assert normalize(value) == ""

@pytest.mark.parametrize("a", ["", "a", "netflix", "hulu plus"])
def test_distance_to_self_is_zero(a: str) -> None:
    assert distance(a, a) == 0

@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("netflix", "netflx", 1),
        ("abc", "xyz", 3),
    ],
)
def test_distance_known_values_and_symmetry(a: str, b: str, expected: int) -> None:
    assert distance(a, b) == expected
    assert distance(b, a) == expected

@pytest.mark.parametrize("s", ["", "x", "comcast"])
def test_distance_from_empty_is_length(s: str) -> None:
    assert distance("", s) == len(s)
    assert distance(s, "") == len(s)

def test_within_distance_is_strictly_below_cutoff() -> None:
    assert within_distance("netflix", "netflx", 3)
    assert within_distance("hulu", "hulux", 3)
    assert not within_distance("kitten", "sitting", 3)
    assert not within_distance("same", "same", 0)

def test_keys_match_uses_containment_both_ways() -> None:
    assert keys_match("netflix", "netflix.com", cutoff=3)
    assert keys_match("netflix inc", "netflix", cutoff=3)
    assert not keys_match("spotify", "netflix", cutoff=3)

def test_contains_name_is_one_way() -> None:
    assert contains_name("netflix.com subscription", "netflix")
    assert not contains_name("netflix", "netflix.com subscription")
    assert not contains_name("anything", "")
