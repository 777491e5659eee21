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
SVG rendering of a packed strip layout.
"""

import configparser
import os
import random
from typing import Dict, List, Optional, Sequence, Tuple

import svgwrite
from fontTools.pens.svgPathPen import SVGPathPen
from fontTools.pens.transformPen import TransformPen
from fontTools.ttLib import TTFont, TTLibError

from skyline_packer import PackingConfigError, PackResult, Placement, RectangleRequest

FONT_SEARCH_PATHS = [
    'arial.ttf',
    '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
    '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
    '/System/Library/Fonts/Helvetica.ttc',
    'C:\\Windows\\Fonts\\arial.ttf',
]

# Fallback advance width as a fraction of the font size
FALLBACK_ADVANCE = 0.6


class LayoutSVGGenerator:
    """
    Render a PackResult as an SVG drawing of the strip.

    The document is sized container_width × (total_height + margin) in
    inches and holds four named groups, back to front:

    =========  ===================================================
    Group id   Content
    =========  ===================================================
    grid       1-unit reference grid, labelled every grid_major.
    sheets     One filled rectangle per placement, plus the merged
               sheet outlines.
    cut_lines  Dashed line and "CUT LINE" caption at every cut
               between two sections.
    labels     Sheet name centred on each sheet, dimensions near
               its bottom edge.
    =========  ===================================================

    Sheet fill colours come from a seeded random generator so that the
    same layout always renders to the same document.
    """

    def __init__(self, result: PackResult,
                 requests: Sequence[RectangleRequest],
                 cfg: configparser.ConfigParser) -> None:
        """
        Parameters
        ----------
        result   : Packed layout to draw.
        requests : The ordered requests that were passed to the packer;
                   Placement.request_index points into this list.
        cfg      : Loaded configuration (see sheetlayout.load_config).
        """
        self.result = result
        self.requests = list(requests)
        self.color_cut = cfg.get('colors', 'cut')
        self.color_outline = cfg.get('colors', 'outline')
        self.color_grid = cfg.get('colors', 'grid')
        self.color_text = cfg.get('colors', 'text')
        try:
            self.margin = cfg.getfloat('render', 'margin')
            self.grid_major = cfg.getint('render', 'grid_major')
            self.color_seed = cfg.getint('render', 'color_seed')
            self.font_size = cfg.getfloat('font', 'size')
        except ValueError as e:
            raise PackingConfigError(f"Invalid config value: {e}") from e
        if self.grid_major <= 0:
            raise PackingConfigError(
                f"render.grid_major must be positive, got {self.grid_major}")
        self._init_font(cfg.get('font', 'path', fallback=''))

    @property
    def width(self) -> float:
        return self.result.container_width

    @property
    def height(self) -> float:
        return self.result.total_height + self.margin

    def _init_font(self, preferred: str = '') -> None:
        """
        Load the first TrueType font found, preferring *preferred*.

        Sets self.font to None when no font can be loaded; text is then
        written as plain SVG <text> elements.
        """
        self.font = None
        self.font_path = None
        candidates = ([preferred] if preferred else []) + FONT_SEARCH_PATHS
        for font_path in candidates:
            if not os.path.exists(font_path):
                continue
            try:
                self.font = TTFont(font_path, fontNumber=0)
                self.font_path = font_path
                break
            except (TTLibError, OSError):
                continue
        if self.font is None:
            print("  ⚠️  Warning: No suitable font found, labels use SVG text")

    def sheet_colors(self) -> List[Tuple[int, int, int]]:
        """One (r, g, b) colour per placement."""
        rng = random.Random(self.color_seed)
        return [(rng.randint(55, 254), rng.randint(55, 254), rng.randint(55, 254))
                for _ in self.result.placements]

    def generate(self) -> str:
        """
        Render the layout to an SVG string.

        Returns
        -------
        Complete SVG document, with a metadata comment block inserted after
        the XML declaration.
        """
        dwg = svgwrite.Drawing(size=(f"{self.width:g}in", f"{self.height:g}in"),
                               viewBox=f"0 0 {self.width:g} {self.height:g}")
        dwg.defs.add(dwg.style(f"""
            .grid {{ stroke: {self.color_grid}; stroke-width: 0.02; }}
            .outline {{ fill: none; stroke: {self.color_outline}; stroke-width: 0.1; }}
            .cut {{ fill: none; stroke: {self.color_cut}; stroke-width: 0.1; stroke-dasharray: 1,0.5; }}
            .label {{ fill: {self.color_text}; stroke: none; }}
        """))

        dwg.add(self._grid_group(dwg))

        sheets_group = dwg.g(id='sheets')
        outline_edges = []
        all_labels = []
        for placement, color in zip(self.result.placements, self.sheet_colors()):
            fill, edges, labels = self._extract_placement_elements(placement, color)
            sheets_group.add(dwg.rect(insert=(fill['x'], fill['y']),
                                      size=(fill['width'], fill['height']),
                                      fill=fill['fill'], fill_opacity=0.7))
            outline_edges.extend(edges)
            all_labels.extend(labels)

        for edge in self._optimize_outline_edges(outline_edges):
            sheets_group.add(dwg.line(start=(edge['x1'], edge['y1']),
                                      end=(edge['x2'], edge['y2']),
                                      class_='outline'))
        dwg.add(sheets_group)

        cut_group = dwg.g(id='cut_lines')
        for y in self.result.cut_lines:
            cut_group.add(dwg.line(start=(0, y), end=(self.width, y), class_='cut'))
            caption = {'text': "CUT LINE", 'x': self.width / 2, 'y': y - 0.3,
                       'size': self.font_size}
            self._add_text(dwg, cut_group, caption, fill=self.color_cut)
        dwg.add(cut_group)

        label_group = dwg.g(id='labels')
        for label in all_labels:
            self._add_text(dwg, label_group, label)
        dwg.add(label_group)

        svg_string = dwg.tostring()
        metadata_comment = f"""
<!-- Sectioned Sheet Layout -->
<!-- Sheets: {len(self.result.placements)} -->
<!-- Sections: {self.result.section_count} -->
<!-- Total length: {self.result.total_height:g} -->
<!-- Efficiency: {self.result.efficiency:.1f}% -->
"""
        if svg_string.startswith('<?xml'):
            xml_decl_end = svg_string.find('?>') + 2
            return svg_string[:xml_decl_end] + metadata_comment + svg_string[xml_decl_end:]
        return metadata_comment + svg_string

    def _grid_group(self, dwg: svgwrite.Drawing):
        group = dwg.g(id='grid')
        x = 0
        while x <= self.width:
            group.add(dwg.line(start=(x, 0), end=(x, self.height), class_='grid'))
            x += 1
        y = 0
        while y <= self.height:
            group.add(dwg.line(start=(0, y), end=(self.width, y), class_='grid'))
            y += 1
        tick_size = self.font_size * 0.6
        for x in range(0, int(self.width) + 1, self.grid_major):
            group.add(dwg.text(f'{x}"', insert=(x + 0.25, tick_size),
                               font_size=tick_size, fill=self.color_grid))
        for y in range(self.grid_major, int(self.height) + 1, self.grid_major):
            group.add(dwg.text(f'{y}"', insert=(0.25, y + tick_size),
                               font_size=tick_size, fill=self.color_grid))
        return group

    def _extract_placement_elements(self, p: Placement,
                                    color: Tuple[int, int, int]) -> tuple:
        """
        Decompose one Placement into its drawing elements.

        Returns
        -------
        Tuple of (fill, outline_edges, labels):

        * fill         : dict for the coloured rectangle.
        * outline_edges: four line dicts (top, bottom, left, right).
        * labels       : name and dimension text dicts, font size already
                         shrunk to fit the placed width.
        """
        x, y, w, h = p.x, p.y, p.width, p.height
        fill = {'x': x, 'y': y, 'width': w, 'height': h,
                'fill': svgwrite.rgb(*color)}

        edges = [
            {'x1': x,     'y1': y,     'x2': x + w, 'y2': y,     'orientation': 'horizontal'},
            {'x1': x,     'y1': y + h, 'x2': x + w, 'y2': y + h, 'orientation': 'horizontal'},
            {'x1': x,     'y1': y,     'x2': x,     'y2': y + h, 'orientation': 'vertical'},
            {'x1': x + w, 'y1': y,     'x2': x + w, 'y2': y + h, 'orientation': 'vertical'},
        ]

        labels = []
        padding = min(w, h) * 0.1
        name = self.requests[p.request_index].label if p.request_index < len(self.requests) \
            else str(p.request_id)
        if name:
            size = self._fit_font_size(name, w - 2 * padding, min(self.font_size, h / 3))
            labels.append({'text': name, 'x': x + w / 2, 'y': y + h / 2 + size / 3,
                           'size': size})
        dims = f'{w:g}" × {h:g}"'
        size = self._fit_font_size(dims, w - 2 * padding, min(self.font_size * 0.8, h / 4))
        labels.append({'text': dims, 'x': x + w / 2, 'y': y + h - padding,
                       'size': size})
        return fill, edges, labels

    def _add_text(self, dwg: svgwrite.Drawing, group, label: Dict,
                  fill: Optional[str] = None) -> None:
        """Add *label* centred on its x, as a glyph path when a font is loaded."""
        d = self._create_text_path(label['text'], label['x'], label['y'], label['size'])
        if d:
            path = dwg.path(d=d, class_='label')
            if fill:
                path['style'] = f"fill: {fill}"
            group.add(path)
        else:
            group.add(dwg.text(label['text'], insert=(label['x'], label['y']),
                               font_size=label['size'], text_anchor='middle',
                               fill=fill or self.color_text))

    def _measure_text_line_width(self, text: str, size: float) -> float:
        """Advance width of *text* at *size*, in drawing units."""
        if not text:
            return 0.0
        if self.font is None:
            return len(text) * size * FALLBACK_ADVANCE
        scale = size / self.font['head'].unitsPerEm
        cmap = self.font.getBestCmap() or {}
        metrics = self.font['hmtx'].metrics
        total = 0.0
        for char in text:
            glyph_name = cmap.get(ord(char))
            if glyph_name in metrics:
                total += metrics[glyph_name][0] * scale
            else:
                total += size * FALLBACK_ADVANCE
        return total

    def _fit_font_size(self, text: str, max_width: float, size: float) -> float:
        """Largest size <= *size* at which *text* fits in *max_width*."""
        if max_width <= 0 or size <= 0:
            return max(size, 0.0)
        width = self._measure_text_line_width(text, size)
        if width <= max_width:
            return size
        return size * max_width / width

    def _create_text_path(self, text: str, x: float, y: float,
                          size: float) -> Optional[str]:
        """
        Convert one line of text to SVG path data via fontTools.

        *x* is the horizontal centre and *y* the baseline.  Returns None
        when no font is loaded or nothing was drawn.
        """
        if self.font is None or not text.strip():
            return None

        scale = size / self.font['head'].unitsPerEm
        cmap = self.font.getBestCmap()
        if not cmap:
            return None
        glyph_set = self.font.getGlyphSet()

        char_glyphs = []
        total_width = 0.0
        for char in text:
            glyph_name = cmap.get(ord(char))
            if glyph_name and glyph_name in glyph_set:
                glyph = glyph_set[glyph_name]
                advance = glyph.width * scale
            else:
                glyph = None
                advance = size * FALLBACK_ADVANCE
            char_glyphs.append((glyph, advance))
            total_width += advance

        pen = SVGPathPen(glyph_set)
        current_x = x - total_width / 2
        for glyph, advance in char_glyphs:
            if glyph is not None:
                # Font units are y-up, SVG is y-down
                glyph.draw(TransformPen(pen, (scale, 0, 0, -scale, current_x, y)))
            current_x += advance

        return pen.getCommands() or None

    def _optimize_outline_edges(self, edges: list) -> list:
        """
        Merge collinear outline edges that touch or overlap.

        Neighbouring sheets share edges; horizontal edges with the same y
        and vertical edges with the same x are joined when their ranges
        meet.  Repeats until stable.
        """
        if not edges:
            return []

        TOLERANCE = 1e-6

        lines = [dict(e) for e in edges]
        merged_any = True
        while merged_any:
            merged_any = False
            new_lines = []
            used = set()

            for i, a in enumerate(lines):
                if i in used:
                    continue
                for j in range(i + 1, len(lines)):
                    b = lines[j]
                    if j in used or a['orientation'] != b['orientation']:
                        continue
                    if a['orientation'] == 'horizontal':
                        if abs(a['y1'] - b['y1']) > TOLERANCE:
                            continue
                        a_min, a_max = min(a['x1'], a['x2']), max(a['x1'], a['x2'])
                        b_min, b_max = min(b['x1'], b['x2']), max(b['x1'], b['x2'])
                        if b_min <= a_max + TOLERANCE and b_max >= a_min - TOLERANCE:
                            a = {'x1': min(a_min, b_min), 'y1': a['y1'],
                                 'x2': max(a_max, b_max), 'y2': a['y1'],
                                 'orientation': 'horizontal'}
                            used.add(j)
                            merged_any = True
                    else:
                        if abs(a['x1'] - b['x1']) > TOLERANCE:
                            continue
                        a_min, a_max = min(a['y1'], a['y2']), max(a['y1'], a['y2'])
                        b_min, b_max = min(b['y1'], b['y2']), max(b['y1'], b['y2'])
                        if b_min <= a_max + TOLERANCE and b_max >= a_min - TOLERANCE:
                            a = {'x1': a['x1'], 'y1': min(a_min, b_min),
                                 'x2': a['x1'], 'y2': max(a_max, b_max),
                                 'orientation': 'vertical'}
                            used.add(j)
                            merged_any = True
                used.add(i)
                new_lines.append(a)

            lines = new_lines

        lines.sort(key=lambda l: (l['orientation'], l['y1'], l['x1']))
        return lines
