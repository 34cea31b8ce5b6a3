import random

from orbit.services.scoring import GENERIC_INSIGHT, build_feed, insight, score


def test_identical_vectors_score_100():
    for v in ([0], [1, 2, 3], [3, 3, 3, 3, 0, 0, 0, 0]):
        assert score(v, v) == 100


def test_penalty_per_unit_of_difference():
    a = [0, 1, 2, 3, 0, 1, 2, 3]
    b = [3, 2, 1, 0, 3, 2, 1, 0]
    # total diff 16 -> 40 points off
    assert score(a, b) == 60
    # 2.5 rounds half up
    assert score([0], [1]) == 97
    assert score([0], [3]) == 92


def test_shorter_vector_truncates_comparison():
    assert score([1, 2, 3, 3, 3], [1, 2, 3]) == 100
    assert score([1, 2], [1, 3, 0, 0]) == 97


def test_out_of_range_values_clamp_to_floor():
    assert score([0] * 8, [100] * 8) == 10
    assert score([0], [-50]) == 10


def test_non_numeric_entries_do_not_raise():
    assert score(["x", 1], [0, 1]) == 100
    assert score([None, 2], [0, 2]) == 100
    assert score([float("inf")], [0]) == 100
    assert score([float("nan"), 3], [0, 3]) == 100
    assert 10 <= score([float("-inf"), 1e308], [3, 0]) <= 100


def test_score_is_monotonic_in_total_difference():
    rng = random.Random(7)
    for _ in range(200):
        a = [rng.randrange(4) for _ in range(8)]
        b = [rng.randrange(4) for _ in range(8)]
        c = [rng.randrange(4) for _ in range(8)]
        diff_ab = sum(abs(x - y) for x, y in zip(a, b))
        diff_ac = sum(abs(x - y) for x, y in zip(a, c))
        if diff_ab <= diff_ac:
            assert score(a, b) >= score(a, c)


def test_missing_quiz_uses_seeded_fallback_range():
    rng = random.Random(3)
    values = [score([], [1, 2, 3], rng=rng) for _ in range(200)]
    values += [score(None, None, rng=rng) for _ in range(50)]
    assert all(70 <= v < 95 for v in values)

    first = [score([], [], rng=random.Random(11)) for _ in range(5)]
    second = [score([], [], rng=random.Random(11)) for _ in range(5)]
    assert first == second


def test_score_always_in_range():
    rng = random.Random(1)
    for _ in range(300):
        a = [rng.randint(-10, 10) for _ in range(rng.randint(0, 10))]
        b = [rng.randint(-10, 10) for _ in range(rng.randint(0, 10))]
        assert 10 <= score(a, b, rng=rng) <= 100


def test_insight_names_a_shared_interest(zero_rng):
    assert insight(["music", "gaming", "art"], ["gaming", "music"], rng=zero_rng) == "You both like gaming!"
    out = insight(["music", "gaming"], ["gaming", "music"], rng=random.Random(5))
    assert out in {"You both like gaming!", "You both like music!"}


def test_insight_without_overlap_is_generic():
    assert insight(["art"], ["gaming"]) == GENERIC_INSIGHT
    assert insight(None, ["gaming"]) == GENERIC_INSIGHT
    assert insight([], []) == GENERIC_INSIGHT


def test_feed_sorted_by_score_and_excludes_viewer(zero_rng):
    viewer = {"id": "me", "quiz_answers": [0, 0, 0, 0], "interests": ["gaming"]}
    candidates = [
        {"id": "far", "quiz_answers": [3, 3, 3, 3], "interests": ["art"]},
        {"id": "me", "quiz_answers": [0, 0, 0, 0], "interests": ["gaming"]},
        {"id": "close", "quiz_answers": [0, 0, 0, 1], "interests": ["gaming"]},
        {"id": "same", "quiz_answers": [0, 0, 0, 0], "interests": []},
    ]
    feed = build_feed(viewer, candidates, requested_ids={"close"}, rng=zero_rng)

    assert [e.profile["id"] for e in feed] == ["same", "close", "far"]
    assert [e.match_score for e in feed] == [100, 97, 70]
    assert feed[1].insight == "You both like gaming!"
    assert feed[1].requested is True
    assert feed[0].requested is False
