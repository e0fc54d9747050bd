import itertools

from stevi.services.feature_flags import ORG_FEATURE_KEYS, enabled_features, merge_feature_flags


def test_merge_keeps_unknown_tags_and_adds_selected():
    existing = ["food", "feature:cases", "outreach"]

    merged = merge_feature_flags(existing, ["feature:inventory"])

    assert merged == ["feature:inventory", "food", "outreach"]


def test_unchecked_feature_is_removed():
    merged = merge_feature_flags(["feature:cases", "feature:inventory"], ["feature:cases"])

    assert merged == ["feature:cases"]


def test_merge_handles_empty_inputs():
    assert merge_feature_flags(None, None) == []
    assert merge_feature_flags(None, ["feature:cases"]) == ["feature:cases"]


def test_merge_matches_set_formula_for_all_small_inputs():
    recognized = set(ORG_FEATURE_KEYS)
    universe = ["legacy", "feature:cases", "feature:inventory", "feature:appointments"]

    for t_size in range(len(universe) + 1):
        for existing in itertools.combinations(universe, t_size):
            for s_size in range(3):
                for selected in itertools.combinations(sorted(recognized)[:3], s_size):
                    expected = (set(existing) - recognized) | set(selected)
                    merged = merge_feature_flags(list(existing) * 2, list(reversed(selected)))

                    assert set(merged) == expected
                    assert len(merged) == len(set(merged))


def test_enabled_features_ignores_free_tags():
    assert enabled_features(["feature:cases", "meals"]) == ["feature:cases"]
