import unittest

from varcforge.core.coverage import Coverage
from varcforge.core.error import UnsupportedFormat


class TestCoverage(unittest.TestCase):
    def test_format1(self):
        data = bytes([0, 1, 0, 3, 0, 5, 0, 9, 0x01, 0x00])
        coverage = Coverage.parse(data)
        self.assertEqual(coverage.glyphs, (5, 9, 256))
        self.assertEqual(coverage.index(9), 1)
        self.assertIsNone(coverage.index(6))
        self.assertIn(256, coverage)
        self.assertEqual(Coverage.parse(coverage.compile()).glyphs, coverage.glyphs)

    def test_format2(self):
        data = bytes([0, 2, 0, 2, 0, 10, 0, 12, 0, 0, 0, 20, 0, 20, 0, 3])
        coverage = Coverage.parse(data)
        self.assertEqual(coverage.glyphs, (10, 11, 12, 20))
        self.assertEqual(coverage.index(11), 1)
        self.assertEqual(coverage.index(20), 3)
        self.assertNotIn(13, coverage)

    def test_unknown_format(self):
        with self.assertRaises(UnsupportedFormat):
            Coverage.parse(bytes([0, 3, 0, 0]))
