from __future__ import annotations

from morphlens.frequency import NounCount, build_frequency_map, dice_score, sort_noun_counts


def test_build_frequency_map_counts_in_first_seen_order() -> None:
    counts = build_frequency_map(["사과", "배", "사과", "3 사과", "사과"])

    assert counts == {"사과": 3, "배": 1, "3 사과": 1}
    assert list(counts) == ["사과", "배", "3 사과"]


def test_build_frequency_map_empty() -> None:
    assert build_frequency_map([]) == {}


def test_sort_noun_counts_descending_and_stable() -> None:
    ordered = sort_noun_counts({"배": 1, "사과": 3, "귤": 1, "감": 2})

    assert [item.noun for item in ordered] == ["사과", "감", "배", "귤"]
    assert ordered[0].to_dict() == {"noun": "사과", "count": 3}
    assert ordered[0] == NounCount(noun="사과", count=3)


def test_self_similarity_is_sum_of_squares() -> None:
    noun_map = build_frequency_map(["사과", "사과", "배", "귤", "귤", "귤"])
    assert dice_score(noun_map, noun_map) == 2 * 2 + 1 * 1 + 3 * 3


def test_disjoint_maps_score_zero() -> None:
    assert dice_score({"사과": 5}, {"배": 7}) == 0


def test_score_is_unnormalized() -> None:
    small = dice_score({"사과": 1}, {"사과": 1})
    large = dice_score({"사과": 10, "배": 40}, {"사과": 10, "귤": 40})

    assert small == 1
    assert large == 100
    assert large > small


def test_keys_only_in_b_do_not_contribute() -> None:
    assert dice_score({"사과": 2}, {"사과": 3, "배": 100}) == 6
