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
Sheet input: measurement text and CSV files.

Bulk measurement format (one sheet per line, height first)::

    35 (3/4) x 24 - Left side panel
    48 x 30 (1/2) - Door

CSV format (header required, delimiter auto-detected)::

    "NAME";"WIDTH";"HEIGHT";"QUANTITY"
"""

import csv
import os
import re
from dataclasses import dataclass
from typing import List, Optional

from skyline_packer import RectangleRequest

_MEASUREMENT_RE = re.compile(r'^(\d+(?:\.\d+)?)\s*(?:\((\d+)/(\d+)\))?$')


@dataclass
class SheetSpec:
    """
    One sheet definition as entered by the user.

    Attributes
    ----------
    name     : Display name.
    width    : Width in inches.
    height   : Height in inches.
    quantity : Number of identical copies.
    """

    name: str
    width: float
    height: float
    quantity: int = 1

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_requests(self) -> List[RectangleRequest]:
        """Expand the quantity into one RectangleRequest per copy."""
        requests = []
        for n in range(self.quantity):
            name = self.name if n == 0 else f"{self.name} #{n + 1}"
            requests.append(RectangleRequest(name, self.width, self.height, name))
        return requests


@dataclass(frozen=True)
class FitCheck:
    can_fit: bool
    message: str = ""


def parse_measurement(measurement: str) -> float:
    """
    Parse ``"35"``, ``"35.5"`` or ``"35 (3/4)"`` into decimal inches.

    Returns 0.0 when the text does not match.  A zero denominator drops
    the fraction.
    """
    match = _MEASUREMENT_RE.match(measurement.strip())
    if not match:
        return 0.0
    result = float(match.group(1))
    if match.group(2) and match.group(3):
        denominator = int(match.group(3))
        if denominator != 0:
            result += int(match.group(2)) / denominator
    return result


def parse_sheet_line(line: str, prefix: str = "") -> Optional[SheetSpec]:
    """
    Parse ``"HEIGHT x WIDTH - description"`` into a SheetSpec.

    Only the first dash separates the description, so descriptions may
    contain dashes themselves.  Returns None for blank or malformed lines.
    """
    line = line.strip()
    if not line or '-' not in line:
        return None

    dimensions, description = line.split('-', 1)
    description = description.strip()

    parts = re.split(r'[xX]', dimensions.strip())
    if len(parts) != 2:
        return None

    height = parse_measurement(parts[0])
    width = parse_measurement(parts[1])
    if height == 0 or width == 0:
        return None

    name = f"{prefix} - {description}" if prefix else description
    return SheetSpec(name=name, width=width, height=height)


def parse_bulk_measurements(text: str, prefix: str = "") -> List[SheetSpec]:
    """Parse every valid line of *text*; invalid lines are skipped."""
    sheets = []
    for line_num, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        sheet = parse_sheet_line(line, prefix)
        if sheet is None:
            print(f"Warning: Skipping invalid line {line_num}: {line.strip()!r}")
            continue
        sheets.append(sheet)
    return sheets


def parse_csv(filename: str) -> List[SheetSpec]:
    """
    Parse a CSV file into SheetSpec objects.

    The delimiter and quote character are detected with ``csv.Sniffer``;
    if sniffing fails the reader falls back to semicolons with
    double-quote quoting.

    Recognised columns (case-insensitive, aliases accepted):

    ========  =====================================
    Column    Aliases
    ========  =====================================
    NAME      DESCRIPTION, SHEET, LABEL
    WIDTH     WIDTH(IN), W
    HEIGHT    HEIGHT(IN), LENGTH, H
    QUANTITY  QTY, COUNT   (optional, default 1)
    ========  =====================================

    Width and height accept the fraction syntax of parse_measurement.
    Rows that cannot be parsed are skipped with a warning.

    Parameters
    ----------
    filename : Path to a UTF-8 CSV file.

    Returns
    -------
    List of SheetSpec objects; empty if the header is missing or lacks a
    required column.
    """
    sheets = []

    with open(filename, 'r', encoding='utf-8') as f:
        sample = f.read(4096)
        f.seek(0)
        delimiter = ';'
        quotechar = '"'
        try:
            detected = csv.Sniffer().sniff(sample, delimiters=',;\t|')
            delimiter = detected.delimiter
            quotechar = detected.quotechar or '"'
        except csv.Error:
            print(f"  ⚠️  Warning: CSV dialect detection failed, "
                  f"using delimiter={delimiter!r} quotechar={quotechar!r}")

        reader = csv.reader(f, delimiter=delimiter, quotechar=quotechar,
                            doublequote=True, skipinitialspace=True)

        header = next(reader, None)
        if not header:
            print("Error: Empty CSV file")
            return []

        header = [h.strip().strip('"').upper() for h in header]
        field_map = {name: i for i, name in enumerate(header)}

        fields = {
            'NAME': ['NAME', 'DESCRIPTION', 'SHEET', 'LABEL'],
            'WIDTH': ['WIDTH', 'WIDTH(IN)', 'W'],
            'HEIGHT': ['HEIGHT', 'HEIGHT(IN)', 'LENGTH', 'H'],
            'QUANTITY': ['QUANTITY', 'QTY', 'COUNT'],
        }

        indices = {}
        for key, possible_names in fields.items():
            for name in possible_names:
                if name in field_map:
                    indices[key] = field_map[name]
                    break
            if key not in indices and key != 'QUANTITY':
                print(f"Error: Required field not found. Looking for one of: {possible_names}")
                print(f"Available fields: {header}")
                return []

        row_num = 1
        for row in reader:
            row_num += 1
            if not row or all(not cell.strip() for cell in row):
                continue
            try:
                width = parse_measurement(row[indices['WIDTH']])
                height = parse_measurement(row[indices['HEIGHT']])
                if width == 0 or height == 0:
                    raise ValueError("width and height must be positive numbers")
                quantity = 1
                if 'QUANTITY' in indices and row[indices['QUANTITY']].strip():
                    quantity = int(row[indices['QUANTITY']].strip())
                name = row[indices['NAME']].strip() or f"Sheet {row_num - 1}"
                sheets.append(SheetSpec(name, width, height, quantity))
            except (ValueError, IndexError) as e:
                print(f"Warning: Skipping invalid row {row_num}: {e}")
                print(f"  Row data: {row}")
                continue

    return sheets


def load_sheets(path: str, prefix: str = "") -> List[SheetSpec]:
    """Read sheets from a ``.csv`` file or a bulk measurement text file."""
    if os.path.splitext(path)[1].lower() == '.csv':
        return parse_csv(path)
    with open(path, 'r', encoding='utf-8') as f:
        return parse_bulk_measurements(f.read(), prefix)


def check_sheet_fits(width: float, height: float, container_width: float,
                     max_section_length: float) -> FitCheck:
    """
    Quick acceptance check for a sheet, allowing rotation.

    A sheet is rejected when its smaller dimension exceeds the container
    width, or when its larger dimension exceeds both the container width
    and the max section length.
    """
    smaller = min(width, height)
    larger = max(width, height)

    if smaller > container_width:
        return FitCheck(False,
                        f'Sheet is too large! Both dimensions ({width:g}" × {height:g}") '
                        f'exceed canvas width of {container_width:g}".')

    if larger > container_width and larger > max_section_length:
        return FitCheck(False,
                        f'Sheet is too large! The dimension of {larger:g}" exceeds both '
                        f'canvas width ({container_width:g}") and max section length '
                        f'({max_section_length:g}").')

    return FitCheck(True)
