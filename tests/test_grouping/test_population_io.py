"""
Tests for population CSV loading and result export.
"""

import csv
import unittest
import tempfile
import shutil
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent.parent))

from grouping.data_models import Category, Group, Individual
from grouping.io_utils import (
    ColumnConfig,
    load_population_csv,
    save_groups_csv,
    save_group_summary_csv,
    has_real_ids,
)


def write_csv(path, rows):
    with open(path, 'w', newline='', encoding='utf-8') as f:
        csv.writer(f).writerows(rows)


def read_csv(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.reader(f))


class TestColumnConfig(unittest.TestCase):
    """Test column mapping."""

    def test_parse_category(self):
        """Test category values are matched case-insensitively."""
        columns = ColumnConfig()
        self.assertIs(columns.parse_category("M"), Category.PRIMARY)
        self.assertIs(columns.parse_category(" female "), Category.SECONDARY)
        self.assertIs(columns.parse_category("男"), Category.PRIMARY)
        self.assertIsNone(columns.parse_category("x"))

    def test_overlapping_values_rejected(self):
        """Test a value cannot mean both categories."""
        with self.assertRaises(ValueError):
            ColumnConfig(primary_values=["A", "B"], secondary_values=["b"])

    def test_missing_required_column_names(self):
        """Test name and category columns are required."""
        with self.assertRaises(ValueError):
            ColumnConfig(name="")
        with self.assertRaises(ValueError):
            ColumnConfig(category="")

    def test_resolve_attributes(self):
        """Test attributes default to every unmapped column."""
        columns = ColumnConfig(id="id", extra=["club"])
        self.assertEqual(columns.resolve_attributes(["id", "name", "gender", "club", "math", "art"]),
                         ["math", "art"])
        self.assertEqual(ColumnConfig(attributes=["art"]).resolve_attributes(["math", "art"]), ["art"])

    def test_category_label(self):
        """Test export label is the first configured value."""
        columns = ColumnConfig(primary_values=["boy"], secondary_values=["girl"])
        self.assertEqual(columns.category_label(Category.PRIMARY), "boy")
        self.assertEqual(columns.category_label(Category.SECONDARY), "girl")


class TestLoadPopulation(unittest.TestCase):
    """Test population CSV loading."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.csv_path = self.temp_dir / "students.csv"

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_load_basic(self):
        """Test loading with default column names."""
        write_csv(self.csv_path, [
            ["name", "gender", "math", "english"],
            ["Alice", "F", "95", "88"],
            ["Bob", "M", "70", "81.5"],
        ])
        population = load_population_csv(self.csv_path)

        self.assertEqual(len(population), 2)
        self.assertEqual(population[0].name, "Alice")
        self.assertIs(population[0].category, Category.SECONDARY)
        self.assertEqual(list(population[0].scores), ["math", "english"])
        self.assertEqual(population[1].total_score, 151.5)
        self.assertIsNone(population[0].id)

    def test_skips_unusable_rows(self):
        """Test rows with empty names or unknown categories are skipped."""
        write_csv(self.csv_path, [
            ["name", "gender", "math"],
            ["Alice", "F", "95"],
            ["", "M", "70"],
            ["Carol", "?", "80"],
            ["Dan", "M", "abc"],
        ])
        population = load_population_csv(self.csv_path)

        self.assertEqual([p.name for p in population], ["Alice", "Dan"])
        self.assertEqual(population[1].score("math"), 0.0)

    def test_custom_columns(self):
        """Test a full column mapping with id, total and extra columns."""
        write_csv(self.csv_path, [
            ["sid", "student", "sex", "club", "math", "english", "sum"],
            ["001", "Alice", "girl", "chess", "95", "88", "200"],
            ["002", "Bob", "boy", "", "70", "80", "150"],
        ])
        columns = ColumnConfig(
            name="student", category="sex", id="sid", total_score="sum",
            attributes=["math", "english"], extra=["club"],
            primary_values=["boy"], secondary_values=["girl"],
        )
        population = load_population_csv(self.csv_path, columns)

        self.assertEqual(population[0].id, "001")
        self.assertEqual(population[0].total_score, 200.0)
        self.assertEqual(population[0].extra_fields, {"club": "chess"})
        self.assertTrue(population[1].is_primary)

    def test_missing_columns(self):
        """Test missing mapped columns raise ValueError."""
        write_csv(self.csv_path, [["name", "math"], ["Alice", "95"]])
        with self.assertRaises(ValueError):
            load_population_csv(self.csv_path)

    def test_no_rows(self):
        """Test a file without usable rows raises ValueError."""
        write_csv(self.csv_path, [["name", "gender", "math"]])
        with self.assertRaises(ValueError):
            load_population_csv(self.csv_path)

    def test_missing_file(self):
        """Test a missing file raises FileNotFoundError."""
        with self.assertRaises(FileNotFoundError):
            load_population_csv(self.temp_dir / "nope.csv")


class TestSaveResults(unittest.TestCase):
    """Test result export."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.groups = [
            Group(id=0, members=[
                Individual("Alice", Category.SECONDARY, {"math": 90.0, "english": 80.0}, id="1"),
                Individual("Bob", Category.PRIMARY, {"math": 70.0, "english": 60.0}, id="2"),
            ]),
            Group(id=1, members=[
                Individual("Carol", Category.SECONDARY, {"math": 85.0, "english": 75.0}, id="3"),
            ]),
        ]

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_save_groups(self):
        """Test one row per member with 1-based group numbers."""
        path = save_groups_csv(self.groups, self.temp_dir / "out" / "groups.csv", ["math", "english"])
        rows = read_csv(path)

        self.assertEqual(rows[0], ["group", "id", "name", "category", "math", "english", "total"])
        self.assertEqual(rows[1], ["1", "1", "Alice", "F", "90.0", "80.0", "170.0"])
        self.assertEqual(rows[3][0], "2")
        self.assertEqual(len(rows), 4)

    def test_save_groups_without_ids(self):
        """Test the id column is omitted when no member has one."""
        groups = [Group(id=0, members=[Individual("Alice", Category.PRIMARY, {"math": 1.0})])]
        self.assertFalse(has_real_ids(groups))
        path = save_groups_csv(groups, self.temp_dir / "groups.csv", ["math"])
        self.assertEqual(read_csv(path)[0], ["group", "name", "category", "math", "total"])

    def test_overwrite_protection(self):
        """Test existing files are only replaced with overwrite=True."""
        path = self.temp_dir / "groups.csv"
        save_groups_csv(self.groups, path, ["math"])
        with self.assertRaises(FileExistsError):
            save_groups_csv(self.groups, path, ["math"])
        save_groups_csv(self.groups, path, ["math"], overwrite=True)

    def test_save_summary(self):
        """Test per-group summary rows."""
        path = save_group_summary_csv(self.groups, self.temp_dir / "summary.csv", ["math"])
        rows = read_csv(path)

        self.assertEqual(rows[0], ["group", "size", "primary", "secondary", "primary_ratio",
                                   "math_avg", "total_avg"])
        self.assertEqual(rows[1], ["1", "2", "1", "1", "0.500", "80.00", "150.00"])
        self.assertEqual(rows[2], ["2", "1", "0", "1", "0.000", "85.00", "160.00"])


if __name__ == "__main__":
    unittest.main()
