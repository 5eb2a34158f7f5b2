import unittest

from varcforge.core.blob_index import BlobIndex, build_blob_index
from varcforge.core.component import RESERVED_MASK, encode_component, parse_component
from varcforge.core.coverage import Coverage
from varcforge.core.error import IndexOutOfRange, MalformedComponent, UnsupportedFormat
from varcforge.core.tuple_values import encode_tuple_values
from varcforge.table import AxisIndicesList, VarcTable

from .builders import build_varc, component, u16, u32


class TestVarcTable(unittest.TestCase):
    def test_parse(self):
        data = build_varc({10: [component(1), component(2, TranslateX=3)], 4: [component(1)]})
        table = VarcTable.parse(data)
        self.assertEqual(len(table), 2)
        self.assertTrue(table.is_composite(10))
        self.assertFalse(table.is_composite(1))
        self.assertIsNone(table.var_store)
        self.assertIsNone(table.composite_glyph(1))
        glyph = table.composite_glyph(10)
        self.assertEqual([c.glyph_id for c in glyph], [1, 2])
        self.assertEqual(len(table.composite_glyph(4)), 1)

    def test_records_are_cached(self):
        table = VarcTable.parse(build_varc({10: [component(1)]}))
        first = table.composite_glyph(10)
        self.assertIs(table.composite_glyph(10), first)
        stats = table.cache.stats()
        self.assertEqual(stats["misses"], 1)
        self.assertEqual(stats["hits"], 1)

    def test_cache_disabled(self):
        table = VarcTable.parse(build_varc({10: [component(1)]}), cache_size=0)
        self.assertIsNone(table.cache)
        self.assertIsNot(table.composite_glyph(10), table.composite_glyph(10))

    def test_unsupported_version(self):
        data = bytearray(build_varc({10: [component(1)]}))
        data[0:2] = u16(2)
        with self.assertRaises(UnsupportedFormat):
            VarcTable.parse(bytes(data))

    def test_empty_table(self):
        table = VarcTable.parse(u16(1) + u16(0) + u32(0) + u32(0) + u32(0))
        self.assertEqual(len(table), 0)
        self.assertIsNone(table.composite_glyph(5))

    def test_record_error_is_glyph_scoped(self):
        bad = (RESERVED_MASK | 0).to_bytes(2, "big") + u16(1)
        records = BlobIndex(build_blob_index([encode_component(component(1)), bad]))
        table = VarcTable(Coverage([10, 11]), None, records)
        self.assertEqual(len(table.composite_glyph(10)), 1)
        with self.assertRaises(MalformedComponent) as ctx:
            table.composite_glyph(11)
        self.assertEqual(ctx.exception.glyph_id, 11)

        lenient = VarcTable(Coverage([10, 11]), None, records, strict=False)
        self.assertEqual(lenient.composite_glyph(11).components[0].glyph_id, 1)

    def test_missing_record(self):
        records = BlobIndex(build_blob_index([encode_component(component(1))]))
        table = VarcTable(Coverage([10, 11]), None, records)
        with self.assertRaises(IndexOutOfRange) as ctx:
            table.composite_glyph(11)
        self.assertEqual(ctx.exception.glyph_id, 11)


class TestAxisIndicesList(unittest.TestCase):
    def setUp(self):
        self.data = build_blob_index([encode_tuple_values([0, 2]), encode_tuple_values([1])])

    def test_indices(self):
        axes = AxisIndicesList.parse(self.data)
        self.assertEqual(len(axes), 2)
        self.assertEqual(axes[0], (0, 2))
        self.assertEqual(axes[1], (1,))

    def test_axis_order(self):
        axes = AxisIndicesList.parse(self.data, axis_order=("wght", "wdth", "opsz"))
        self.assertEqual(axes[0], ("wght", "opsz"))

    def test_unknown_axis(self):
        axes = AxisIndicesList.parse(self.data, axis_order=("wght",))
        with self.assertRaises(IndexOutOfRange):
            axes[0]
        with self.assertRaises(IndexOutOfRange):
            axes[5]

    def test_unknown_axis_in_component(self):
        axes = AxisIndicesList.parse(self.data, axis_order=("wght",))
        data = encode_component(component(1, axis_indices_index=0, axis_values=(1, 2)))
        with self.assertRaises(IndexOutOfRange) as ctx:
            parse_component(data, axis_indices=axes)
        self.assertIn("beyond the 1 known axes", str(ctx.exception))

    def test_used_by_table(self):
        axes = AxisIndicesList.parse(self.data, axis_order=("wght", "wdth", "opsz"))
        data = build_varc({10: [component(1, axis_indices_index=0, axis_values=(4096, -4096))]})
        table = VarcTable.parse(data, axis_indices=axes)
        (comp,) = table.composite_glyph(10)
        self.assertEqual(comp.axis_ids, ("wght", "opsz"))
