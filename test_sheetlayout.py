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
Test suite for sheetlayout.py
=============================
Covers:
  - load_config     : defaults, shipped config file
  - generate_layout : end-to-end pipeline with text and CSV input
  - main()          : command-line entry point

Run with:
    python -m pytest test_sheetlayout.py -v
"""

import contextlib
import io
import os
import tempfile
import unittest

# ---------------------------------------------------------------------------
# Import module under test (suppress config-load print)
# ---------------------------------------------------------------------------
with contextlib.redirect_stdout(io.StringIO()):
    from sheetlayout import (
        CFG,
        LayoutReport,
        generate_layout,
        load_config,
        main,
        split_by_fit,
    )

from measurements import SheetSpec
from skyline_packer import PackingConfigError, RotationPolicy


def _write(lines: list, tmp_dir: str, filename: str) -> str:
    path = os.path.join(tmp_dir, filename)
    with open(path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(lines))
    return path


def _run(*args, **kwargs) -> LayoutReport:
    with contextlib.redirect_stdout(io.StringIO()):
        return generate_layout(*args, **kwargs)


_SHEETS_TXT = [
    "50 x 60 - Top",
    "50 x 60 - Bottom",
    "35 (3/4) x 24 - Left side",
    "35 (3/4) x 24 - Right side",
    "100 x 10 - Too long",
]


class TestLoadConfig(unittest.TestCase):

    def test_defaults_when_no_file(self):
        with contextlib.redirect_stdout(io.StringIO()):
            cfg = load_config("/nonexistent/path/sheetlayout.conf")
        self.assertAlmostEqual(cfg.getfloat('strip', 'width'), 60)
        self.assertAlmostEqual(cfg.getfloat('strip', 'max_section_length'), 96)
        self.assertEqual(cfg.get('packing', 'rotation'), 'trial')
        self.assertEqual(cfg.get('colors', 'cut'), '#ff0000')

    def test_all_sections_created(self):
        with contextlib.redirect_stdout(io.StringIO()):
            cfg = load_config("/nonexistent/path/sheetlayout.conf")
        for section in ('strip', 'packing', 'render', 'colors', 'font'):
            self.assertTrue(cfg.has_section(section))

    def test_file_overrides_defaults(self):
        tmp = tempfile.mkdtemp()
        path = _write(["[strip]", "width = 48"], tmp, 'custom.conf')
        with contextlib.redirect_stdout(io.StringIO()):
            cfg = load_config(path)
        self.assertAlmostEqual(cfg.getfloat('strip', 'width'), 48)
        self.assertAlmostEqual(cfg.getfloat('strip', 'max_section_length'), 96)

    def test_real_conf_file_loads(self):
        real_conf = os.path.join(os.path.dirname(__file__), 'sheetlayout.conf')
        if not os.path.exists(real_conf):
            self.skipTest("sheetlayout.conf not found")
        with contextlib.redirect_stdout(io.StringIO()):
            cfg = load_config(real_conf)
        self.assertEqual(cfg.get('colors', 'cut'), '#ff0000')
        RotationPolicy.from_name(cfg.get('packing', 'rotation'))

    def test_module_config_loaded(self):
        self.assertTrue(CFG.has_section('strip'))


class TestSplitByFit(unittest.TestCase):

    def test_partition(self):
        sheets = [SheetSpec("ok", 24, 36), SheetSpec("huge", 70, 80)]
        accepted, rejected = split_by_fit(sheets, 60, 96)
        self.assertEqual([s.name for s in accepted], ["ok"])
        self.assertEqual(rejected[0][0].name, "huge")
        self.assertFalse(rejected[0][1].can_fit)


class TestGenerateLayout(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.txt = _write(_SHEETS_TXT, self.tmp, 'sheets.txt')
        self.output = os.path.join(self.tmp, 'out', 'layout.svg')

    def test_writes_svg(self):
        report = _run(self.txt, 60, 96, output_file=self.output)
        self.assertEqual(report.output_file, self.output)
        self.assertTrue(os.path.exists(self.output))
        with open(self.output, encoding='utf-8') as fh:
            content = fh.read()
        self.assertIn('<svg', content)
        self.assertIn('id="cut_lines"', content)

    def test_places_every_accepted_sheet(self):
        report = _run(self.txt, 60, 96, output_file=self.output)
        self.assertEqual(len(report.requests), 4)
        self.assertEqual(len(report.result.placements), 4)
        self.assertEqual(report.result.unplaced, ())

    def test_rejected_sheet_reported(self):
        report = _run(self.txt, 60, 96, output_file=self.output)
        self.assertEqual(len(report.rejected), 1)
        self.assertEqual(len(report.messages), 1)
        self.assertIn("Too long", report.messages[0])
        self.assertIn('100"', report.messages[0])

    def test_longer_sections_accept_long_sheet(self):
        report = _run(self.txt, 60, 120, output_file=self.output)
        self.assertEqual(report.rejected, [])
        self.assertEqual(len(report.result.placements), 5)

    def test_engine_drop_reported(self):
        path = _write(["55 x 55 - Square"], self.tmp, 'square.txt')
        report = _run(path, 60, 50, output_file=self.output)
        self.assertEqual(report.rejected, [])
        self.assertEqual(len(report.result.unplaced), 1)
        self.assertIn("max section length", report.messages[0])
        self.assertIsNone(report.output_file)

    def test_nothing_placed_writes_no_file(self):
        path = _write(["100 x 10 - Too long"], self.tmp, 'long.txt')
        report = _run(path, 60, 96, output_file=self.output)
        self.assertIsNone(report.output_file)
        self.assertFalse(os.path.exists(self.output))

    def test_csv_input_with_quantity(self):
        path = _write(['"NAME";"WIDTH";"HEIGHT";"QUANTITY"',
                       '"Door";"30";"48";"3"'], self.tmp, 'sheets.csv')
        report = _run(path, 60, 96, output_file=self.output)
        self.assertEqual(len(report.result.placements), 3)

    def test_policy_from_config(self):
        with contextlib.redirect_stdout(io.StringIO()):
            cfg = load_config("/nonexistent/path/sheetlayout.conf")
        cfg.set('packing', 'rotation', 'none')
        report = _run(self.txt, 60, 96, output_file=self.output, cfg=cfg)
        self.assertTrue(all(not p.rotated for p in report.result.placements))

    def test_missing_input_raises(self):
        with self.assertRaises(FileNotFoundError):
            _run('/does/not/exist.txt', 60, 96, output_file=self.output)

    def test_invalid_width_raises(self):
        with self.assertRaises(PackingConfigError):
            _run(self.txt, 0, 96, output_file=self.output)

    def test_non_numeric_config_width_raises(self):
        with contextlib.redirect_stdout(io.StringIO()):
            cfg = load_config("/nonexistent/path/sheetlayout.conf")
        cfg.set('strip', 'width', 'sixty')
        with self.assertRaises(PackingConfigError):
            _run(self.txt, output_file=self.output, cfg=cfg)


class TestMain(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.txt = _write(_SHEETS_TXT, self.tmp, 'sheets.txt')
        self.output = os.path.join(self.tmp, 'cli', 'layout.svg')

    def test_success(self):
        with contextlib.redirect_stdout(io.StringIO()):
            code = main([self.txt, '--width', '60', '--max-section', '96',
                         '-o', self.output, '--rotation', 'pre-rotate'])
        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(self.output))

    def test_missing_file(self):
        with contextlib.redirect_stdout(io.StringIO()):
            code = main(['/does/not/exist.txt', '-o', self.output])
        self.assertEqual(code, 1)

    def test_invalid_width(self):
        with contextlib.redirect_stdout(io.StringIO()):
            code = main([self.txt, '--width', '-5', '-o', self.output])
        self.assertEqual(code, 1)

    def test_non_numeric_config_value(self):
        conf = _write(["[strip]", "width = sixty"], self.tmp, 'bad.conf')
        with contextlib.redirect_stdout(io.StringIO()) as out:
            code = main([self.txt, '--config', conf, '-o', self.output])
        self.assertEqual(code, 1)
        self.assertIn("Invalid config value", out.getvalue())

    def test_zero_grid_step(self):
        conf = _write(["[render]", "grid_major = 0"], self.tmp, 'grid.conf')
        with contextlib.redirect_stdout(io.StringIO()):
            code = main([self.txt, '--config', conf, '-o', self.output])
        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(self.output))


if __name__ == '__main__':
    unittest.main(verbosity=2)
