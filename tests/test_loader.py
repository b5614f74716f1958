"""
Test suite for scanner report parsing
"""

import io
import unittest
from pathlib import Path
import sys
import tempfile

import numpy as np

sys.path.append(str(Path(__file__).parent.parent / "src"))
from beacon_registration.errors import ScannerParseError
from beacon_registration.preprocessing.loader import ScannerReportLoader, format_scanner_reports

REPORT = """--- scanner 0 ---
404,-588,-901
528,-643,409
-838,591,734

--- scanner 1 ---
686,422,578
605,423,415

--- scanner 2 ---
-1,+2,3
"""


class TestScannerReportLoader(unittest.TestCase):
    """Test cases for the ScannerReportLoader class."""

    def setUp(self):
        self.loader = ScannerReportLoader()

    def test_parse_blocks(self):
        scanners = self.loader.parse(REPORT)

        self.assertEqual(len(scanners), 3)
        self.assertEqual([s.index for s in scanners], [0, 1, 2])
        self.assertEqual([len(s) for s in scanners], [3, 2, 1])
        np.testing.assert_array_equal(scanners[0].beacons[0], [404, -588, -901])
        np.testing.assert_array_equal(scanners[2].beacons[0], [-1, 2, 3])

    def test_header_content_ignored(self):
        scanners = self.loader.parse("anything goes here\n1,2,3\n\nsecond\n4,5,6")
        self.assertEqual(len(scanners), 2)
        np.testing.assert_array_equal(scanners[1].beacons, [[4, 5, 6]])

    def test_extra_blank_lines(self):
        scanners = self.loader.parse("\n\n--- scanner 0 ---\n1,2,3\n\n\n\n--- scanner 1 ---\n4,5,6\n\n")
        self.assertEqual(len(scanners), 2)

    def test_whitespace_around_values(self):
        scanners = self.loader.parse("--- s ---\n  1 , -2 ,3  \n")
        np.testing.assert_array_equal(scanners[0].beacons, [[1, -2, 3]])

    def test_header_without_beacons(self):
        scanners = self.loader.parse("--- scanner 0 ---\n\n--- scanner 1 ---\n1,1,1\n")
        self.assertEqual([len(s) for s in scanners], [0, 1])

    def test_malformed_record(self):
        with self.assertRaises(ScannerParseError) as ctx:
            self.loader.parse("--- scanner 0 ---\n1,2,3\n4,5\n")
        self.assertEqual(ctx.exception.line_number, 3)
        self.assertIn("line 3", str(ctx.exception))

    def test_non_integer_record(self):
        with self.assertRaises(ScannerParseError):
            self.loader.parse("--- scanner 0 ---\n1.5,2,3\n")

    def test_out_of_range_record(self):
        with self.assertRaises(ScannerParseError) as ctx:
            self.loader.parse("--- scanner 0 ---\n1001,0,0\n")
        self.assertIn("sensing range", str(ctx.exception))

    def test_range_check_disabled(self):
        scanners = ScannerReportLoader(sensing_range=None).parse("--- scanner 0 ---\n5000,0,0\n")
        np.testing.assert_array_equal(scanners[0].beacons, [[5000, 0, 0]])

    def test_parse_error_is_value_error(self):
        self.assertTrue(issubclass(ScannerParseError, ValueError))

    def test_load_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scanners.txt"
            path.write_text(REPORT, encoding="utf-8")
            scanners = self.loader.load(str(path))
        self.assertEqual(len(scanners), 3)

    def test_load_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            self.loader.load("/nonexistent/scanners.txt")

    def test_load_stream(self):
        scanners = self.loader.load_stream(io.StringIO(REPORT))
        self.assertEqual(len(scanners), 3)

    def test_beacons_are_immutable(self):
        scanners = self.loader.parse(REPORT)
        with self.assertRaises(ValueError):
            scanners[0].beacons[0, 0] = 0

    def test_format_reparses(self):
        scanners = self.loader.parse(REPORT)
        again = self.loader.parse(format_scanner_reports(scanners))
        for a, b in zip(scanners, again):
            np.testing.assert_array_equal(a.beacons, b.beacons)


if __name__ == '__main__':
    unittest.main()
