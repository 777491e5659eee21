#!/usr/bin/env python3
# Copyright (C) 2026  Lesco Design & Mfg. Co., Inc.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""
Test suite for measurements.py
"""

import contextlib
import io
import os
import tempfile
import unittest

from measurements import (
    SheetSpec,
    check_sheet_fits,
    load_sheets,
    parse_bulk_measurements,
    parse_csv,
    parse_measurement,
    parse_sheet_line,
)

HEADER = '"NAME";"WIDTH";"HEIGHT";"QUANTITY"'


def _write(lines: list, tmp_dir: str, filename: str) -> str:
    path = os.path.join(tmp_dir, filename)
    with open(path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(lines))
    return path


class TestParseMeasurement(unittest.TestCase):

    def test_whole_number(self):
        self.assertEqual(parse_measurement("35"), 35.0)

    def test_decimal(self):
        self.assertEqual(parse_measurement("35.5"), 35.5)

    def test_fraction(self):
        self.assertAlmostEqual(parse_measurement("35 (3/4)"), 35.75)
        self.assertAlmostEqual(parse_measurement("12(1/8)"), 12.125)

    def test_surrounding_whitespace(self):
        self.assertEqual(parse_measurement("  12 "), 12.0)

    def test_zero_denominator_ignored(self):
        self.assertEqual(parse_measurement("3 (1/0)"), 3.0)

    def test_garbage_is_zero(self):
        for text in ("", "abc", "3/4", "-5", "12 in"):
            self.assertEqual(parse_measurement(text), 0.0, text)


class TestParseSheetLine(unittest.TestCase):

    def test_height_first(self):
        sheet = parse_sheet_line("35 (3/4) x 24 - Left side")
        self.assertAlmostEqual(sheet.height, 35.75)
        self.assertEqual(sheet.width, 24)
        self.assertEqual(sheet.name, "Left side")

    def test_prefix(self):
        sheet = parse_sheet_line("48 x 30 - Door", prefix="Kitchen")
        self.assertEqual(sheet.name, "Kitchen - Door")

    def test_description_keeps_dashes(self):
        sheet = parse_sheet_line("48 X 30 - Door - upper")
        self.assertEqual(sheet.name, "Door - upper")
        self.assertEqual((sheet.width, sheet.height), (30, 48))

    def test_invalid_lines(self):
        for line in ("", "   ", "48 x 30", "48 - Door", "48 x 30 x 2 - Box",
                     "48 x abc - Door", "0 x 30 - Door"):
            self.assertIsNone(parse_sheet_line(line), line)


class TestParseBulkMeasurements(unittest.TestCase):

    def test_skips_blank_and_invalid_lines(self):
        text = "35 x 24 - A\n\nnot a sheet\n48 x 30 (1/2) - B\n"
        with contextlib.redirect_stdout(io.StringIO()) as out:
            sheets = parse_bulk_measurements(text)
        self.assertEqual([s.name for s in sheets], ["A", "B"])
        self.assertAlmostEqual(sheets[1].width, 30.5)
        self.assertIn("line 3", out.getvalue())

    def test_empty_text(self):
        self.assertEqual(parse_bulk_measurements(""), [])


class TestSheetSpec(unittest.TestCase):

    def test_area(self):
        self.assertEqual(SheetSpec("A", 10, 4).area, 40)

    def test_to_requests_expands_quantity(self):
        requests = SheetSpec("Door", 30, 48, quantity=3).to_requests()
        self.assertEqual([r.id for r in requests], ["Door", "Door #2", "Door #3"])
        self.assertTrue(all((r.width, r.height) == (30, 48) for r in requests))


class TestParseCSV(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def _parse(self, rows):
        path = _write(rows, self.tmp, 'sheets.csv')
        with contextlib.redirect_stdout(io.StringIO()):
            return parse_csv(path)

    def test_basic_rows(self):
        sheets = self._parse([
            HEADER,
            '"Door";"30";"48";"2"',
            '"Side";"24";"35 (3/4)";"1"',
        ])
        self.assertEqual(len(sheets), 2)
        self.assertEqual((sheets[0].name, sheets[0].width, sheets[0].height,
                          sheets[0].quantity), ("Door", 30, 48, 2))
        self.assertAlmostEqual(sheets[1].height, 35.75)

    def test_quantity_optional(self):
        sheets = self._parse([
            '"NAME";"WIDTH";"HEIGHT"',
            '"Door";"30";"48"',
            '"Side";"24";"36"',
        ])
        self.assertEqual([s.quantity for s in sheets], [1, 1])

    def test_invalid_row_skipped(self):
        sheets = self._parse([
            HEADER,
            '"Door";"30";"48";"2"',
            '"Bad";"wide";"48";"1"',
            '"Side";"24";"36";"1"',
        ])
        self.assertEqual([s.name for s in sheets], ["Door", "Side"])

    def test_missing_required_field(self):
        self.assertEqual(self._parse(['"NAME";"WIDTH"', '"Door";"30"']), [])

    def test_empty_file(self):
        self.assertEqual(self._parse([]), [])


class TestLoadSheets(unittest.TestCase):

    def test_text_file(self):
        tmp = tempfile.mkdtemp()
        path = _write(["35 x 24 - A", "48 x 30 - B"], tmp, 'sheets.txt')
        sheets = load_sheets(path, prefix="Job")
        self.assertEqual([s.name for s in sheets], ["Job - A", "Job - B"])

    def test_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            load_sheets('/does/not/exist.txt')


class TestCheckSheetFits(unittest.TestCase):

    def test_fits(self):
        self.assertTrue(check_sheet_fits(24, 35.75, 60, 96).can_fit)

    def test_fits_only_rotated(self):
        self.assertTrue(check_sheet_fits(90, 40, 60, 96).can_fit)

    def test_both_dimensions_too_wide(self):
        check = check_sheet_fits(70, 80, 60, 96)
        self.assertFalse(check.can_fit)
        self.assertIn('70" × 80"', check.message)
        self.assertIn('60"', check.message)

    def test_longer_than_width_and_section(self):
        check = check_sheet_fits(50, 100, 60, 96)
        self.assertFalse(check.can_fit)
        self.assertIn('100"', check.message)
        self.assertIn('max section length', check.message)

    def test_long_sheet_fits_longer_section(self):
        self.assertTrue(check_sheet_fits(50, 100, 60, 120).can_fit)


if __name__ == '__main__':
    unittest.main(verbosity=2)
