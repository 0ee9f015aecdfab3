"""Tests for weight stores, the label registry and the margin evaluator."""
import unittest

from feature_value import parse_features
from margin import MarginEvaluator, predict_label
from weight_store import DEFAULT_WEIGHT, LabelRegistry, WeightStore, WeightValue


class TestWeightStore(unittest.TestCase):
    def test_unseen_key_reads_default(self):
        store = WeightStore()
        self.assertEqual(store.get("missing"), DEFAULT_WEIGHT)
        self.assertNotIn("missing", store)
        self.assertEqual(len(store), 0)

    def test_score_and_variance(self):
        store = WeightStore()
        store.set("a", WeightValue(0.5, 0.25))
        s, var = store.score_and_variance(parse_features(["a:2", "b:3"]))
        self.assertAlmostEqual(s, 1.0)
        # 4*0.25 + 9*1.0 (b unseen)
        self.assertAlmostEqual(var, 10.0)


class TestLabelRegistry(unittest.TestCase):
    def test_lazy_creation_and_default_reads(self):
        reg = LabelRegistry()
        self.assertIsNone(reg.get("x"))
        self.assertEqual(reg.weight("x", "f"), DEFAULT_WEIGHT)
        store = reg.get_or_create("x")
        self.assertIs(reg.get_or_create("x"), store)
        self.assertEqual(reg.labels(), ["x"])

    def test_flush_emits_rows_and_tears_down(self):
        reg = LabelRegistry()
        reg.get_or_create("x").set("f", WeightValue(1.5, 0.5))
        reg.get_or_create(7).set(3, WeightValue(-1.0, 0.25))
        self.assertEqual(reg.num_features(), 2)
        self.assertEqual(reg.flush(), [("x", "f", 1.5, 0.5), (7, 3, -1.0, 0.25)])
        self.assertEqual(len(reg), 0)


class TestMarginEvaluator(unittest.TestCase):
    def setUp(self):
        self.reg = LabelRegistry()
        self.reg.get_or_create("A").set("f", WeightValue(1.0, 0.5))
        self.reg.get_or_create("B").set("f", WeightValue(3.0, 0.25))
        self.reg.get_or_create("C").set("f", WeightValue(2.0, 1.0))
        self.x = parse_features(["f:2"])

    def test_margin_against_best_incorrect(self):
        m = MarginEvaluator().evaluate(self.x, "A", self.reg)
        self.assertEqual(m.max_incorrect_label, "B")
        self.assertAlmostEqual(m.value, 2.0 - 6.0)
        self.assertAlmostEqual(m.variance, 4 * (0.5 + 0.25))

    def test_unknown_true_label_scores_with_defaults(self):
        m = MarginEvaluator().evaluate(self.x, "Z", self.reg)
        self.assertEqual(m.max_incorrect_label, "B")
        self.assertAlmostEqual(m.value, -6.0)
        self.assertAlmostEqual(m.variance, 4 * (1.0 + 0.25))
        self.assertNotIn("Z", self.reg)

    def test_empty_registry_doubles_default_variance(self):
        reg = LabelRegistry()
        m = MarginEvaluator().evaluate(self.x, "A", reg)
        self.assertIsNone(m.max_incorrect_label)
        self.assertEqual(m.value, 0.0)
        # 2^2 * (1 + 1): true label and its future competitor both unseen
        self.assertAlmostEqual(m.variance, 8.0)
        self.assertEqual(MarginEvaluator(use_covariance=False).evaluate(self.x, "A", reg).variance, 0.0)

    def test_only_true_label_known(self):
        reg = LabelRegistry()
        reg.get_or_create("A").set("f", WeightValue(1.0, 0.5))
        m = MarginEvaluator().evaluate(self.x, "A", reg)
        self.assertIsNone(m.max_incorrect_label)
        self.assertAlmostEqual(m.value, 2.0)
        self.assertAlmostEqual(m.variance, 2.0)

    def test_variance_disabled(self):
        m = MarginEvaluator(use_covariance=False).evaluate(self.x, "A", self.reg)
        self.assertEqual(m.variance, 0.0)
        self.assertAlmostEqual(m.value, -4.0)

    def test_predict_label(self):
        self.assertEqual(predict_label(self.x, self.reg), "B")
        self.assertIsNone(predict_label(self.x, LabelRegistry()))


if __name__ == "__main__":
    unittest.main()
