"""
Tests for the JSON run history.
"""

import json
import unittest
import tempfile
import shutil
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent.parent))

from grouping.history import HistoryManager, HistoryRecord, MAX_HISTORY_RECORDS
from grouping.parameters import OptimizationParameters


def make_record(timestamp, num_groups=4):
    return HistoryRecord(
        timestamp=timestamp,
        input_path="students.csv",
        output_path="output/division.csv",
        num_groups=num_groups,
        population_size=120,
    )


class TestHistoryManager(unittest.TestCase):
    """Test history persistence."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.path = self.temp_dir / "nested" / "history.json"
        self.manager = HistoryManager(self.path)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_load_missing_file(self):
        """Test a missing file yields no records."""
        self.assertEqual(self.manager.load(), [])

    def test_load_empty_file(self):
        """Test a blank file yields no records."""
        self.path.parent.mkdir(parents=True)
        self.path.write_text("   \n", encoding="utf-8")
        self.assertEqual(self.manager.load(), [])

    def test_corrupt_file_is_removed(self):
        """Test an unparsable file is discarded."""
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")
        self.assertEqual(self.manager.load(), [])
        self.assertFalse(self.path.exists())

    def test_add_newest_first(self):
        """Test records are stored newest first."""
        self.manager.add(make_record("2024-01-01 10:00:00"))
        self.manager.add(make_record("2024-01-02 10:00:00", num_groups=6))
        records = self.manager.load()

        self.assertEqual([r.timestamp for r in records], ["2024-01-02 10:00:00", "2024-01-01 10:00:00"])
        self.assertEqual(records[0].num_groups, 6)
        self.assertEqual(records[0].optimization_parameters(), OptimizationParameters())

    def test_add_is_bounded(self):
        """Test only the most recent records are kept."""
        for i in range(MAX_HISTORY_RECORDS + 5):
            self.manager.add(make_record(f"2024-01-01 00:00:{i:02d}"))
        records = self.manager.load()

        self.assertEqual(len(records), MAX_HISTORY_RECORDS)
        self.assertEqual(records[0].timestamp, f"2024-01-01 00:00:{MAX_HISTORY_RECORDS + 4:02d}")

    def test_delete(self):
        """Test deleting one record by timestamp."""
        self.manager.add(make_record("a"))
        self.manager.add(make_record("b"))
        self.manager.delete("a")
        self.assertEqual([r.timestamp for r in self.manager.load()], ["b"])

    def test_clear(self):
        """Test clearing removes the file."""
        self.manager.add(make_record("a"))
        self.manager.clear()
        self.assertFalse(self.path.exists())
        self.manager.clear()

    def test_record_create(self):
        """Test create stamps the time and stores parameters."""
        params = OptimizationParameters.strict()
        record = HistoryRecord.create("in.csv", None, 3, 90, params)
        self.manager.add(record)

        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(data[0]["num_groups"], 3)
        self.assertIsNone(data[0]["output_path"])
        self.assertEqual(len(data[0]["timestamp"]), 19)
        self.assertEqual(self.manager.load()[0].optimization_parameters(), params)


if __name__ == "__main__":
    unittest.main()
