import unittest

import pandas as pd

from src.config import get_tier_label
from src.performance_classification import (
    CRITICAL,
    BELOW,
    EXCELLENT,
    NONE,
    WARNING,
    classify_against_target,
    classify_graded_85_97,
    classify_strict_20_100,
    classify_vs_average,
    classify_week_cells,
    tier_rank,
)


class StrictPolicyTests(unittest.TestCase):
    def test_boundaries(self):
        self.assertEqual(classify_strict_20_100(19.9, 100), CRITICAL)
        self.assertEqual(classify_strict_20_100(20, 100), BELOW)
        self.assertEqual(classify_strict_20_100(99.9, 100), BELOW)
        self.assertEqual(classify_strict_20_100(100, 100), EXCELLENT)

    def test_zero_or_missing_target_is_none(self):
        self.assertEqual(classify_strict_20_100(500, 0), NONE)
        self.assertEqual(classify_strict_20_100(500, None), NONE)

    def test_over_target(self):
        self.assertEqual(classify_strict_20_100(6000, 5 * 1000), EXCELLENT)


class GradedPolicyTests(unittest.TestCase):
    def test_boundaries(self):
        self.assertEqual(classify_graded_85_97(84.9, 100), CRITICAL)
        self.assertEqual(classify_graded_85_97(85, 100), WARNING)
        self.assertEqual(classify_graded_85_97(96.9, 100), WARNING)
        self.assertEqual(classify_graded_85_97(97, 100), EXCELLENT)
        self.assertEqual(classify_graded_85_97(10, 0), NONE)

    def test_policies_disagree_on_same_cell(self):
        self.assertEqual(classify_against_target(90, 100, "strict-20-100"), BELOW)
        self.assertEqual(classify_against_target(90, 100, "graded-85-97"), WARNING)

    def test_unknown_policy(self):
        with self.assertRaises(ValueError):
            classify_against_target(1, 1, "lenient")


class AveragePolicyTests(unittest.TestCase):
    def test_boundaries(self):
        self.assertEqual(classify_vs_average(0.5, 0.5), EXCELLENT)
        self.assertEqual(classify_vs_average(0.45, 0.5), WARNING)
        self.assertEqual(classify_vs_average(0.44, 0.5), CRITICAL)

    def test_zero_average_is_none(self):
        self.assertEqual(classify_vs_average(0.4, 0), NONE)


class TierHelperTests(unittest.TestCase):
    def test_rank_order(self):
        self.assertLess(tier_rank(CRITICAL), tier_rank(BELOW))
        self.assertEqual(tier_rank(BELOW), tier_rank(WARNING))
        self.assertLess(tier_rank(WARNING), tier_rank(EXCELLENT))

    def test_labels(self):
        self.assertEqual(get_tier_label(EXCELLENT), "On target")
        self.assertEqual(get_tier_label("unknown"), "unknown")


class WeekCellTests(unittest.TestCase):
    def test_classify_week_cells(self):
        weekly = pd.DataFrame({
            "player_name": ["Dan Levy", "Omer Atzili"],
            "week_key": ["w1", "w1"],
            "total_distance": [6000.0, 500.0],
            "intensity_ratio": [0.8, 0.4],
            "target_km": [5.0, 5.0],
            "target_intensity": [70.0, 0.0],
        })
        cohort = pd.DataFrame({"avg_intensity": [0.6]}, index=pd.Index(["w1"], name="week_key"))
        tiers = classify_week_cells(weekly, cohort).set_index("player_name")

        self.assertEqual(tiers.at["Dan Levy", "distance_tier"], EXCELLENT)
        self.assertEqual(tiers.at["Dan Levy", "intensity_tier"], EXCELLENT)
        self.assertEqual(tiers.at["Dan Levy", "intensity_vs_cohort_tier"], EXCELLENT)
        self.assertEqual(tiers.at["Omer Atzili", "distance_tier"], CRITICAL)
        self.assertEqual(tiers.at["Omer Atzili", "intensity_tier"], NONE)
        self.assertEqual(tiers.at["Omer Atzili", "intensity_vs_cohort_tier"], CRITICAL)

    def test_empty(self):
        self.assertTrue(classify_week_cells(pd.DataFrame()).empty)


if __name__ == "__main__":
    unittest.main()
