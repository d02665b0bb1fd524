import math
import unittest

import pandas as pd

from reachflux.data.schema import (
    CELL_OPTIONAL,
    CELL_REQUIRED,
    is_blank,
    missing_required,
    parse_index,
    parse_numeric,
    parse_text,
    rows_from_table,
    unknown_columns,
)


class SchemaTests(unittest.TestCase):
    def test_parse_numeric(self):
        self.assertEqual(parse_numeric("0.069"), 0.069)
        self.assertEqual(parse_numeric(3), 3.0)
        self.assertEqual(parse_numeric("inf"), math.inf)
        self.assertIsNone(parse_numeric(""))
        self.assertIsNone(parse_numeric(float("nan")))
        with self.assertRaises(ValueError):
            parse_numeric("fast")
        with self.assertRaises(ValueError):
            parse_numeric(True)

    def test_parse_index(self):
        self.assertEqual(parse_index("4"), 4)
        self.assertEqual(parse_index(4.0), 4)
        self.assertIsNone(parse_index(None))
        with self.assertRaises(ValueError):
            parse_index(2.5)

    def test_parse_text(self):
        self.assertEqual(parse_text("  NO3 "), "NO3")
        self.assertIsNone(parse_text("   "))

    def test_rows_from_dataframe_keep_blanks_as_nan(self):
        frame = pd.DataFrame(
            [
                {"index": 1, "currency": "water", "amount": 52.5},
                {"index": 2, "currency": "NO3", "amount": 1013.25, "linked_cell": 1},
            ]
        )
        rows = rows_from_table(frame)
        self.assertEqual(len(rows), 2)
        self.assertTrue(is_blank(rows[0]["linked_cell"]))
        self.assertEqual(parse_index(rows[1]["linked_cell"]), 1)

    def test_rows_from_sequence(self):
        self.assertEqual(rows_from_table(None), [])
        self.assertEqual(rows_from_table([{"index": 1}]), [{"index": 1}])
        with self.assertRaises(TypeError):
            rows_from_table([1, 2])
        with self.assertRaises(TypeError):
            rows_from_table(42)

    def test_missing_and_unknown_columns(self):
        row = {"index": 1, "currency": "", "colour": "blue"}
        self.assertEqual(missing_required(row, CELL_REQUIRED), ["currency", "amount"])
        self.assertEqual(unknown_columns(row, CELL_REQUIRED, CELL_OPTIONAL), ["colour"])


if __name__ == "__main__":
    unittest.main()
