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
Sectioned Sheet Layout: Skyline Packing + SVG Output
====================================================
Lays out rectangular sheets on a fixed-width roll or strip of stock that
can only be cut into sections of limited length, and draws the result.

Architecture
------------
  measurements         Read sheet sizes from measurement text or CSV.
  skyline_packer       Greedy skyline packing into bounded sections.
  layout_svg           Render the packed strip as an SVG drawing.
  generate_layout()    Full pipeline: load → check → order → pack → render.

Usage
-----
    python sheetlayout.py sheets.txt
    python sheetlayout.py sheets.csv --width 60 --max-section 96
    python sheetlayout.py sheets.txt --rotation pre-rotate -o out/layout.svg

Input text format (height first)
--------------------------------
    35 (3/4) x 24 - Left side panel
    48 x 30 - Door

Dependencies
------------
    svgwrite, fonttools
"""

import argparse
import configparser
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from layout_svg import LayoutSVGGenerator
from measurements import FitCheck, SheetSpec, check_sheet_fits, load_sheets
from skyline_packer import (
    MAX_REQUESTS,
    PackingConfigError,
    PackResult,
    RectangleRequest,
    RotationPolicy,
    SkylineSectionPacker,
    describe_unplaced,
    prepare_requests,
)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                                   'sheetlayout.conf')

CONFIG_DEFAULTS = {
    'strip': {
        'width': '60',
        'max_section_length': '96',
    },
    'packing': {
        'rotation': RotationPolicy.PER_PLACEMENT_TRIAL.value,
        'max_requests': str(MAX_REQUESTS),
    },
    'render': {
        'margin': '10',
        'grid_major': '12',
        'color_seed': '0',
    },
    'colors': {
        'cut': '#ff0000',
        'outline': '#000000',
        'grid': '#dddddd',
        'text': '#000000',
    },
    'font': {
        'path': '',
        'size': '1.0',
    },
}


# ============================================================================
# CONFIGURATION
# ============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> configparser.ConfigParser:
    """
    Load settings from an INI file on top of the built-in defaults.

    Every section of CONFIG_DEFAULTS is always present in the returned
    parser, so callers never need fallbacks.  A missing file is not an
    error: the defaults are used and a notice is printed.

    Parameters
    ----------
    path : INI file to read.

    Returns
    -------
    Populated ConfigParser.
    """
    cfg = configparser.ConfigParser()
    for section, values in CONFIG_DEFAULTS.items():
        cfg[section] = values

    if os.path.exists(path):
        cfg.read(path, encoding='utf-8')
        print(f"  → Loaded config: {path}")
    else:
        print(f"  → Config file not found ({path}), using defaults")
    return cfg


CFG = load_config()


# ============================================================================
# PIPELINE
# ============================================================================

@dataclass
class LayoutReport:
    """
    Everything produced by one generate_layout() run.

    Attributes
    ----------
    result      : Packing result.
    requests    : Ordered requests passed to the packer.
    rejected    : Sheets refused by the fit check, with the message.
    output_file : Path of the written SVG, or None if nothing was drawn.
    """

    result: PackResult
    requests: List[RectangleRequest]
    rejected: List[tuple] = field(default_factory=list)
    output_file: Optional[str] = None

    @property
    def messages(self) -> List[str]:
        """User-facing messages for every sheet that was not placed."""
        msgs = [f"{sheet.name}: {check.message}" for sheet, check in self.rejected]
        for entry in self.result.unplaced:
            name = self.requests[entry.request_index].label
            msgs.append(describe_unplaced(entry, self.result.container_width,
                                          self.result.max_section_height, name))
        return msgs


def split_by_fit(sheets: List[SheetSpec], container_width: float,
                 max_section_length: float):
    """Partition *sheets* into (accepted, [(sheet, FitCheck), ...])."""
    accepted: List[SheetSpec] = []
    rejected: List[tuple] = []
    for sheet in sheets:
        check: FitCheck = check_sheet_fits(sheet.width, sheet.height,
                                           container_width, max_section_length)
        if check.can_fit:
            accepted.append(sheet)
        else:
            rejected.append((sheet, check))
    return accepted, rejected


def generate_layout(input_file: str,
                    container_width: Optional[float] = None,
                    max_section_length: Optional[float] = None,
                    output_file: str = "output/layout.svg",
                    policy: Optional[RotationPolicy] = None,
                    prefix: str = "",
                    cfg: Optional[configparser.ConfigParser] = None) -> LayoutReport:
    """
    Full pipeline: read sheets → fit check → order → pack → SVG.

    Parameters
    ----------
    input_file : str
        ``.csv`` file or bulk measurement text file.
    container_width : float, optional
        Strip width; defaults to ``[strip] width`` from the config.
    max_section_length : float, optional
        Maximum section length; defaults to ``[strip] max_section_length``.
    output_file : str
        SVG path to write.  Parent directories are created.
    policy : RotationPolicy, optional
        Defaults to ``[packing] rotation`` from the config.
    prefix : str
        Name prefix for sheets read from measurement text.
    cfg : ConfigParser, optional
        Configuration; the module-level CFG when omitted.

    Returns
    -------
    LayoutReport.  No file is written when nothing could be placed.

    Raises
    ------
    FileNotFoundError  : *input_file* does not exist.
    PackingConfigError : Invalid strip parameters, a non-numeric config
                         value or too many sheets.
    """
    if cfg is None:
        cfg = CFG
    try:
        if container_width is None:
            container_width = cfg.getfloat('strip', 'width')
        if max_section_length is None:
            max_section_length = cfg.getfloat('strip', 'max_section_length')
        max_requests = cfg.getint('packing', 'max_requests')
    except ValueError as e:
        raise PackingConfigError(f"Invalid config value: {e}") from e
    if policy is None:
        policy = RotationPolicy.from_name(cfg.get('packing', 'rotation'))

    print("=" * 70)
    print("SECTIONED SHEET LAYOUT")
    print("=" * 70)
    print(f"\nReading sheets from: {input_file}")
    print(f'Strip width: {container_width:g}"  Max section length: {max_section_length:g}"')
    print()

    packer = SkylineSectionPacker(container_width, max_section_length, policy,
                                  max_requests=max_requests)

    sheets = load_sheets(input_file, prefix)
    accepted, rejected = split_by_fit(sheets, container_width, max_section_length)
    for sheet, check in rejected:
        print(f"  ⚠️  {sheet.name}: {check.message}")

    requests = [r for sheet in accepted for r in sheet.to_requests()]
    print(f"\n✅ Found {len(sheets)} sheet type(s), {len(requests)} piece(s) to place")

    print(f"\n{'─' * 70}")
    print("PACKING")
    print(f"{'─' * 70}")
    print(f"Rotation: {policy.value}")

    ordered = prepare_requests(requests, container_width, policy)
    result = packer.pack(ordered)
    report = LayoutReport(result=result, requests=ordered, rejected=rejected)

    print(f"✅ Placed {len(result.placements)} of {len(ordered)} piece(s) "
          f"in {result.section_count} section(s)")
    print(f'✅ Total length: {result.total_height:g}"  '
          f"Efficiency: {result.efficiency:.1f}%")
    for entry in result.unplaced:
        name = ordered[entry.request_index].label
        print(f"  ⚠️  {describe_unplaced(entry, container_width, max_section_length, name)}")

    if not result.placements:
        print("\n❌ Nothing to draw")
        return report

    print(f"\n{'─' * 70}")
    print("GENERATING SVG")
    print(f"{'─' * 70}")

    out_dir = os.path.dirname(output_file)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    svg_content = LayoutSVGGenerator(result, ordered, cfg).generate()
    with open(output_file, 'w', encoding='utf-8') as f:
        f.write(svg_content)
    report.output_file = output_file

    print(f"\n📄 {output_file}")
    for start, end in result.sections:
        print(f'   Section {start:g}" → {end:g}"  ({end - start:g}")')
    print()

    return report


# ============================================================================
# CLI INTERFACE
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Lay out sheets on a fixed-width strip cut into sections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python sheetlayout.py sheets.txt
  python sheetlayout.py sheets.csv --width 60 --max-section 96
  python sheetlayout.py sheets.txt --rotation none -o out/layout.svg

Input text format (one sheet per line, height first):
  35 (3/4) x 24 - Left side panel
        """
    )
    parser.add_argument("input_file", help="Measurement text file or CSV file")
    parser.add_argument("--width", type=float, default=None,
                        help="Strip width (default: from config, 60)")
    parser.add_argument("--max-section", type=float, default=None,
                        help="Maximum section length (default: from config, 96)")
    parser.add_argument("-o", "--output", default="output/layout.svg",
                        help="Output SVG path (default: output/layout.svg)")
    parser.add_argument("--rotation", default=None,
                        choices=[p.value for p in RotationPolicy],
                        help="Rotation policy (default: from config, 'trial')")
    parser.add_argument("--prefix", default="",
                        help="Name prefix for sheets read from measurement text")
    parser.add_argument("--config", default=None,
                        help="Config file (default: sheetlayout.conf)")

    args = parser.parse_args(argv)

    cfg = load_config(args.config) if args.config else CFG
    policy = RotationPolicy.from_name(args.rotation) if args.rotation else None

    try:
        generate_layout(args.input_file, args.width, args.max_section,
                        args.output, policy, args.prefix, cfg)
    except FileNotFoundError:
        print(f"\n❌ Error: File '{args.input_file}' not found")
        return 1
    except PackingConfigError as e:
        print(f"\n❌ Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
