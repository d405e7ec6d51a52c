import unittest

import matplotlib

matplotlib.use("Agg")

from matplotlib.figure import Figure  # noqa: E402

from app_utils.plots import completion_chart  # noqa: E402
from features.habits import Habit, habit_score  # noqa: E402
from features.insights import FRAME_COLUMNS, day_summary, habits_frame  # noqa: E402


class InsightsTests(unittest.TestCase):
    def setUp(self):
        self.habits = [Habit("Water", True), Habit("Exercise"), Habit("Read", True), Habit("Read")]

    def test_habits_frame_keeps_display_order(self):
        df = habits_frame(self.habits)
        self.assertEqual(list(df.columns), FRAME_COLUMNS)
        self.assertEqual(list(df["position"]), [0, 1, 2, 3])
        self.assertEqual(list(df["name"]), ["Water", "Exercise", "Read", "Read"])
        self.assertEqual(list(df["done"]), [True, False, True, False])
        self.assertEqual(df["id"].iloc[1], str(self.habits[1].id))

    def test_day_summary_counts_duplicate_names_separately(self):
        summary = day_summary(self.habits)
        self.assertEqual(summary["total"], 4)
        self.assertEqual(summary["done"], 2)
        self.assertEqual(summary["remaining"], 2)
        self.assertAlmostEqual(summary["score"], 0.5)

    def test_day_summary_empty(self):
        self.assertEqual(day_summary([]), {"total": 0, "done": 0, "remaining": 0, "score": 0.0})
        self.assertTrue(habits_frame([]).empty)

    def test_habit_score(self):
        self.assertEqual(habit_score({}), 0.0)
        self.assertAlmostEqual(habit_score({"Drink Water": True, "Read": False, "Exercise": True}), 2 / 3)


class CompletionChartTests(unittest.TestCase):
    def test_empty_frame_has_no_chart(self):
        self.assertIsNone(completion_chart(habits_frame([])))
        self.assertIsNone(completion_chart(None))

    def test_chart_has_one_row_per_habit(self):
        fig = completion_chart(habits_frame([Habit("Water", True), Habit("Read")]))
        self.assertIsInstance(fig, Figure)
        fig.canvas.draw()
        labels = [t.get_text() for t in fig.axes[0].get_yticklabels()]
        self.assertEqual(labels, ["1. Water", "2. Read"])


if __name__ == "__main__":
    unittest.main()
