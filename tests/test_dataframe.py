import unittest
import numpy as np
from fitmh.misc.dataframe import DataFrame, ftos, format_named_vector
from fitmh.misc.param import ParameterVector


class TestDataFrame(unittest.TestCase):
    def setUp(self):
        self.df = DataFrame(np.arange(6.0).reshape(3, 2), ["a", "b"], ["1", "2", "3"])

    def test_column_access(self):
        self.assertTrue(np.array_equal(self.df["b"], [1.0, 3.0, 5.0]))
        self.assertEqual(self.df["2", "a"], 2.0)

    def test_select_and_take(self):
        sub = self.df.select(rows=["3", "1"], cols=["b"])
        self.assertEqual(sub.rownames, ["3", "1"])
        self.assertTrue(np.array_equal(sub.data, [[5.0], [1.0]]))
        rows = self.df.take([0, 2])
        self.assertEqual(rows.rownames, ["1", "3"])
        empty = self.df.take([])
        self.assertEqual(empty.shape, (0, 2))

    def test_setitem_block(self):
        cov = DataFrame(np.zeros((2, 2)), ["x", "y"], ["x", "y"])
        cov[["x", "y"], ["x", "y"]] = np.array([[1.0, 0.5], [0.5, 2.0]])
        self.assertEqual(cov["y", "x"], 0.5)
        cov["x"] = 3.0
        self.assertTrue(np.array_equal(cov["x"], [3.0, 3.0]))

    def test_copy_and_equals(self):
        c = self.df.copy()
        self.assertTrue(c.equals(self.df))
        c["a"] = 0.0
        self.assertFalse(c.equals(self.df))

    def test_repr(self):
        text = repr(self.df)
        self.assertIn("a", text.splitlines()[0])
        self.assertEqual(len(text.splitlines()), 4)


class TestFormatting(unittest.TestCase):
    def test_ftos(self):
        self.assertEqual(ftos(float("inf")), "+Inf")
        self.assertEqual(ftos(-float("inf")), "-Inf")
        self.assertEqual(ftos(0.0), "0.0")
        self.assertEqual(ftos(1.5), "1.500")

    def test_format_named_vector(self):
        self.assertEqual(format_named_vector({"a": 1.0, "b": 2.5}), "a = 1.00 | b = 2.50")
        p = ParameterVector({"R0": 3.14159})
        self.assertEqual(format_named_vector(p, fmt="%.3f"), "R0 = 3.142")


if __name__ == "__main__":
    unittest.main()
