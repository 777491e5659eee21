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
Skyline Section Packer
======================
Greedy skyline placement of rectangular sheets inside a fixed-width strip
that is cut into stacked sections of bounded length.

Architecture
------------
  Skyline              Occupied-height profile of the current section.
  CandidateScorer      Scores every (segment, orientation) pair.
  SectionManager       Tracks the open section and records cut boundaries.
  SkylineSectionPacker Main loop: evaluate, overflow, commit, update.
  order_requests()     Input ordering policy (pre-rotation + width sort).

Coordinates: x runs across the strip width, y runs down the strip length.
Every y value is absolute, i.e. already includes the offset of the section
it belongs to.

The packer is a pure computation.  It prints nothing and never raises for
sheets that cannot be placed; those are returned in PackResult.unplaced.
"""

import enum
import functools
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Hashable, Iterable, List, Optional, Sequence, Tuple

# Scoring weights
HEIGHT_WEIGHT = 1000.0
WASTE_WEIGHT = 0.1
ROTATION_PENALTY = 0.5

# Pre-rotation heuristic thresholds
PRE_ROTATE_ASPECT = 1.5
PRE_ROTATE_MIN_SHARE = 0.3

# Widths closer than this are treated as equal when ordering requests
WIDTH_SORT_TOLERANCE = 1.0

MAX_REQUESTS = 10000

REASON_NON_POSITIVE = "non-positive dimensions"
REASON_TOO_WIDE = "too wide for container"
REASON_TOO_LONG = "taller than max section length"


class PackingConfigError(ValueError):
    """Raised for invalid strip parameters or oversized request batches."""


class RotationPolicy(enum.Enum):
    """
    How sheet orientation is chosen.

    PER_PLACEMENT_TRIAL  : both orientations scored at every placement,
                           rotated candidates carry ROTATION_PENALTY.
                           (default)
    PRE_ROTATE_HEURISTIC : orientation fixed once by pre_rotate_requests()
                           before sorting; the engine keeps it as-is.
    NONE                 : sheets are placed exactly as entered.
    """

    PER_PLACEMENT_TRIAL = "trial"
    PRE_ROTATE_HEURISTIC = "pre-rotate"
    NONE = "none"

    @property
    def allows_rotation(self) -> bool:
        return self is RotationPolicy.PER_PLACEMENT_TRIAL

    @classmethod
    def from_name(cls, name: str) -> "RotationPolicy":
        for policy in cls:
            if policy.value == name.strip().lower():
                return policy
        choices = ", ".join(p.value for p in cls)
        raise PackingConfigError(
            f"Unknown rotation policy {name!r} (expected one of: {choices})")


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class RectangleRequest:
    """
    One sheet to be laid out.

    Attributes
    ----------
    id     : Caller identifier, returned unchanged in placements.
    width  : Extent across the strip in the entered orientation.
    height : Extent along the strip in the entered orientation.
    name   : Display name; defaults to str(id).
    """

    id: Hashable
    width: float
    height: float
    name: str = ""

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def label(self) -> str:
        return self.name or str(self.id)

    def rotated(self) -> "RectangleRequest":
        """Return a copy with width and height swapped."""
        return RectangleRequest(self.id, self.height, self.width, self.name)


@dataclass
class SkylineSegment:
    """From x to x + width the topmost occupied edge is at y."""

    x: float
    y: float
    width: float

    @property
    def right(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class Placement:
    """
    Committed position of one request.

    Attributes
    ----------
    request_index : Index of the request in the ordered input list.
    request_id    : RectangleRequest.id of that request.
    x, y          : Top-left corner in absolute strip coordinates.
    width, height : Placed dimensions (swapped when rotated).
    rotated       : True if the engine swapped width and height.
    section_index : Zero-based index of the section holding the sheet.
    """

    request_index: int
    request_id: Hashable
    x: float
    y: float
    width: float
    height: float
    rotated: bool
    section_index: int

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class UnplacedRequest:
    """A request the packer had to drop, with the reason."""

    request_index: int
    request_id: Hashable
    width: float
    height: float
    reason: str


@dataclass(frozen=True)
class PackResult:
    """
    Output of one packing run.  Read-only.

    section_boundaries holds the absolute y of every section end, the last
    one included; total_height equals that last boundary (or 0 when nothing
    was placed).
    """

    placements: Tuple[Placement, ...]
    section_boundaries: Tuple[float, ...]
    total_height: float
    unplaced: Tuple[UnplacedRequest, ...] = ()
    container_width: float = 0.0
    max_section_height: float = 0.0

    @property
    def cut_lines(self) -> Tuple[float, ...]:
        """Boundaries where the strip is cut between two sections."""
        return self.section_boundaries[:-1]

    @property
    def sections(self) -> List[Tuple[float, float]]:
        """(start, end) span of every section, top to bottom."""
        spans = []
        start = 0.0
        for end in self.section_boundaries:
            spans.append((start, end))
            start = end
        return spans

    @property
    def section_count(self) -> int:
        return len(self.section_boundaries)

    @property
    def placed_area(self) -> float:
        return sum(p.area for p in self.placements)

    @property
    def efficiency(self) -> float:
        """Placed area as a percentage of the used strip area."""
        used = self.container_width * self.total_height
        return (self.placed_area / used * 100) if used > 0 else 0.0


def as_request(item, index: int) -> RectangleRequest:
    """
    Coerce *item* into a RectangleRequest.

    Accepts a RectangleRequest, a ``(width, height)`` or
    ``(width, height, id)`` sequence, or a mapping with ``width`` and
    ``height`` keys and optional ``id``/``name`` keys.  The position in the
    input list is used as id when none is given.
    """
    if isinstance(item, RectangleRequest):
        return item
    if isinstance(item, Mapping):
        return RectangleRequest(item.get('id', index),
                                float(item['width']), float(item['height']),
                                item.get('name', ''))
    values = tuple(item)
    if len(values) == 2:
        return RectangleRequest(index, float(values[0]), float(values[1]))
    if len(values) == 3:
        return RectangleRequest(values[2], float(values[0]), float(values[1]))
    raise TypeError(f"Cannot interpret {item!r} as a rectangle request")


# ============================================================================
# SKYLINE MODEL
# ============================================================================

class Skyline:
    """
    Top profile of the current section as an ordered list of segments.

    The segments always cover [0, container_width) without gaps or
    overlaps, sorted by x.
    """

    def __init__(self, container_width: float, y: float = 0.0) -> None:
        self.container_width = container_width
        self._segments: List[SkylineSegment] = []
        self.reset(y)

    def reset(self, y: float) -> None:
        """Replace the profile with one full-width segment at *y*."""
        self._segments = [SkylineSegment(0.0, y, self.container_width)]

    def segments(self) -> Tuple[SkylineSegment, ...]:
        return tuple(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index: int) -> SkylineSegment:
        return self._segments[index]

    def replace(self, index: int,
                inserted: Iterable[SkylineSegment]) -> SkylineSegment:
        """
        Remove the segment at *index* and splice *inserted* in its place.

        Returns the removed segment.
        """
        removed = self._segments[index]
        self._segments[index:index + 1] = list(inserted)
        return removed

    def merge(self) -> None:
        """
        Collapse neighbouring segments that share the same y.

        Two segments merge when their y values are exactly equal and the
        first one reaches the start of the second.
        """
        if not self._segments:
            return
        self._segments.sort(key=lambda s: s.x)
        merged = [self._segments[0]]
        for seg in self._segments[1:]:
            last = merged[-1]
            if last.y == seg.y and last.right >= seg.x:
                last.width = max(last.width, seg.right - last.x)
            else:
                merged.append(seg)
        self._segments = merged

    def place(self, index: int, width: float, height: float) -> None:
        """
        Occupy the left part of segment *index* with a width × height sheet.

        The sheet's top edge becomes a new segment; any leftover width of
        the occupied segment stays at its original y.
        """
        occupied = self._segments[index]
        inserted = [SkylineSegment(occupied.x, occupied.y + height, width)]
        leftover = occupied.width - width
        if leftover > 0:
            inserted.append(
                SkylineSegment(occupied.x + width, occupied.y, leftover))
        self.replace(index, inserted)
        self.merge()


# ============================================================================
# CANDIDATE SCORER
# ============================================================================

@dataclass(frozen=True)
class Candidate:
    """One feasible (segment, orientation) pair and its score."""

    segment_index: int
    x: float
    y: float
    width: float
    height: float
    rotated: bool
    score: float


class CandidateScorer:
    """
    Scores placements of one sheet on the current skyline.

    score = y * HEIGHT_WEIGHT + (segment width - sheet width) * WASTE_WEIGHT
            + ROTATION_PENALTY (rotated orientation only)

    Lower is better.  Ties keep the first candidate found, scanning
    segments left to right and the entered orientation before the rotated
    one.
    """

    def __init__(self, max_section_height: float,
                 height_weight: float = HEIGHT_WEIGHT,
                 waste_weight: float = WASTE_WEIGHT,
                 rotation_penalty: float = ROTATION_PENALTY) -> None:
        self.max_section_height = max_section_height
        self.height_weight = height_weight
        self.waste_weight = waste_weight
        self.rotation_penalty = rotation_penalty

    def is_feasible(self, segment: SkylineSegment, width: float,
                    height: float, section_start: float) -> bool:
        return (segment.width >= width and
                segment.y + height <= section_start + self.max_section_height)

    def score(self, segment: SkylineSegment, width: float,
              rotated: bool) -> float:
        penalty = self.rotation_penalty if rotated else 0.0
        return (segment.y * self.height_weight +
                (segment.width - width) * self.waste_weight + penalty)

    def best(self, skyline: Skyline, request: RectangleRequest,
             section_start: float,
             allow_rotation: bool) -> Optional[Candidate]:
        """
        Return the lowest-scoring feasible candidate, or None.

        With *allow_rotation* both orientations are scored against every
        segment and the global minimum is returned.
        """
        orientations = _orientations(request, allow_rotation)
        best: Optional[Candidate] = None
        for index, segment in enumerate(skyline.segments()):
            for width, height, rotated in orientations:
                if not self.is_feasible(segment, width, height, section_start):
                    continue
                score = self.score(segment, width, rotated)
                if best is None or score < best.score:
                    best = Candidate(index, segment.x, segment.y,
                                     width, height, rotated, score)
        return best


def _orientations(request: RectangleRequest,
                  allow_rotation: bool) -> List[Tuple[float, float, bool]]:
    orientations = [(request.width, request.height, False)]
    if allow_rotation and request.width != request.height:
        orientations.append((request.height, request.width, True))
    return orientations


# ============================================================================
# SECTION MANAGER
# ============================================================================

class SectionManager:
    """
    Bookkeeping for the open section.

    section_start  : Absolute y where the open section begins.
    section_height : Tallest extent placed so far, relative to section_start.
    section_index  : Zero-based index of the open section.
    boundaries     : Recorded section ends, strictly increasing.
    """

    def __init__(self, container_width: float,
                 max_section_height: float) -> None:
        self.container_width = container_width
        self.max_section_height = max_section_height
        self.section_start = 0.0
        self.section_height = 0.0
        self.section_index = 0
        self.boundaries: List[float] = []

    @property
    def section_end(self) -> float:
        return self.section_start + self.section_height

    def record(self, y: float, height: float) -> None:
        """Grow the open section to include a sheet placed at *y*."""
        self.section_height = max(self.section_height,
                                  (y - self.section_start) + height)

    def start_new_section(self, skyline: Skyline) -> None:
        """Close the open section and reset *skyline* at its end."""
        end = self.section_end
        self.boundaries.append(end)
        self.section_start = end
        self.section_height = 0.0
        self.section_index += 1
        skyline.reset(end)

    def rejection_reason(self, request: RectangleRequest,
                         allow_rotation: bool) -> Optional[str]:
        """
        Why *request* cannot fit even in an empty section, or None.

        The check mirrors CandidateScorer feasibility on a fresh
        full-width segment, so a request that passes is guaranteed to be
        placed after one new section.
        """
        # NaN fails both comparisons and lands here too
        if not (request.width > 0 and request.height > 0):
            return REASON_NON_POSITIVE
        too_wide = True
        for width, height, _ in _orientations(request, allow_rotation):
            if width > self.container_width:
                continue
            too_wide = False
            if height <= self.max_section_height:
                return None
        return REASON_TOO_WIDE if too_wide else REASON_TOO_LONG

    def finish(self) -> float:
        """Record the last boundary and return the total height."""
        if self.section_height > 0:
            self.boundaries.append(self.section_end)
        return self.section_end


# ============================================================================
# PACKING ENGINE
# ============================================================================

class SkylineSectionPacker:
    """
    Greedy skyline packer for a strip cut into bounded sections.

    Algorithm overview
    ------------------
    For each request, in the given order:

    1. Score every feasible (segment, orientation) pair in the open section.
    2. If none is feasible, close the section, open a fresh one and score
       again.  Requests that cannot fit even in an empty section are
       dropped up front, so no section is opened for them.
    3. Commit the winning candidate and grow the section.
    4. Raise the skyline over the placed sheet and merge equal segments.

    A packer instance holds only its parameters.  Each call to pack()
    builds its own Skyline and SectionManager.
    """

    def __init__(self, container_width: float, max_section_height: float,
                 policy: RotationPolicy = RotationPolicy.PER_PLACEMENT_TRIAL,
                 max_requests: int = MAX_REQUESTS) -> None:
        """
        Parameters
        ----------
        container_width    : Strip width, must be > 0.
        max_section_height : Maximum section length, must be > 0.
        policy             : Rotation policy; only PER_PLACEMENT_TRIAL lets
                             the engine rotate sheets.
        max_requests       : Upper bound on the number of requests per run.
        """
        if not container_width > 0:
            raise PackingConfigError(
                f"Container width must be positive, got {container_width}")
        if not max_section_height > 0:
            raise PackingConfigError(
                f"Max section length must be positive, got {max_section_height}")
        self.container_width = float(container_width)
        self.max_section_height = float(max_section_height)
        self.policy = policy
        self.max_requests = max_requests
        self.scorer = CandidateScorer(self.max_section_height)

    def pack(self, ordered_requests: Sequence) -> PackResult:
        """
        Lay out *ordered_requests* in the given order.

        Parameters
        ----------
        ordered_requests : RectangleRequests, (width, height[, id]) tuples
                           or mappings.  Apply order_requests() first for
                           better packing.

        Returns
        -------
        PackResult with one Placement per placed request and one
        UnplacedRequest per dropped request.
        """
        requests = [as_request(item, i) for i, item in enumerate(ordered_requests)]
        if len(requests) > self.max_requests:
            raise PackingConfigError(
                f"Too many sheets: {len(requests)} (limit {self.max_requests})")

        allow_rotation = self.policy.allows_rotation
        skyline = Skyline(self.container_width)
        sections = SectionManager(self.container_width, self.max_section_height)
        placements: List[Placement] = []
        unplaced: List[UnplacedRequest] = []

        for index, request in enumerate(requests):
            reason = sections.rejection_reason(request, allow_rotation)
            if reason is not None:
                unplaced.append(UnplacedRequest(index, request.id,
                                                request.width, request.height,
                                                reason))
                continue

            candidate = self.scorer.best(skyline, request,
                                         sections.section_start, allow_rotation)
            if candidate is None:
                sections.start_new_section(skyline)
                candidate = self.scorer.best(skyline, request,
                                             sections.section_start,
                                             allow_rotation)
            assert candidate is not None, (
                f"request {request.id!r} passed the fit check but does not "
                f"fit an empty section")

            placements.append(Placement(
                request_index=index,
                request_id=request.id,
                x=candidate.x,
                y=candidate.y,
                width=candidate.width,
                height=candidate.height,
                rotated=candidate.rotated,
                section_index=sections.section_index,
            ))
            sections.record(candidate.y, candidate.height)
            skyline.place(candidate.segment_index, candidate.width,
                          candidate.height)

        total_height = sections.finish()
        return PackResult(
            placements=tuple(placements),
            section_boundaries=tuple(sections.boundaries),
            total_height=total_height,
            unplaced=tuple(unplaced),
            container_width=self.container_width,
            max_section_height=self.max_section_height,
        )


def pack(container_width: float, max_section_height: float,
         ordered_requests: Sequence,
         policy: RotationPolicy = RotationPolicy.PER_PLACEMENT_TRIAL) -> PackResult:
    """Pack *ordered_requests* into a fresh strip.  See SkylineSectionPacker."""
    packer = SkylineSectionPacker(container_width, max_section_height, policy)
    return packer.pack(ordered_requests)


# ============================================================================
# INPUT ORDERING POLICY
# ============================================================================

def should_pre_rotate(request: RectangleRequest,
                      container_width: float) -> bool:
    """True for tall, narrow sheets that use the width better turned."""
    return (request.height > PRE_ROTATE_ASPECT * request.width and
            request.height > PRE_ROTATE_MIN_SHARE * container_width)


def pre_rotate_requests(requests: Iterable[RectangleRequest],
                        container_width: float) -> List[RectangleRequest]:
    return [r.rotated() if should_pre_rotate(r, container_width) else r
            for r in requests]


def _compare_for_packing(a: RectangleRequest, b: RectangleRequest) -> int:
    if abs(a.width - b.width) > WIDTH_SORT_TOLERANCE:
        return -1 if a.width > b.width else 1
    if a.area != b.area:
        return -1 if a.area > b.area else 1
    return 0


def sort_requests(requests: Iterable[RectangleRequest]) -> List[RectangleRequest]:
    """
    Widest first; widths within WIDTH_SORT_TOLERANCE count as equal and
    fall back to largest area first.  Stable for exact ties.
    """
    return sorted(requests, key=functools.cmp_to_key(_compare_for_packing))


def order_requests(requests: Iterable[RectangleRequest],
                   container_width: float,
                   pre_rotate: bool = True) -> List[RectangleRequest]:
    """Apply the optional pre-rotation and then sort_requests()."""
    requests = list(requests)
    if pre_rotate:
        requests = pre_rotate_requests(requests, container_width)
    return sort_requests(requests)


def prepare_requests(requests: Iterable[RectangleRequest],
                     container_width: float,
                     policy: RotationPolicy) -> List[RectangleRequest]:
    """
    Order *requests* for *policy*.

    Pre-rotation runs only for PRE_ROTATE_HEURISTIC; the other policies
    keep entered orientations and only sort.
    """
    return order_requests(requests, container_width,
                          pre_rotate=policy is RotationPolicy.PRE_ROTATE_HEURISTIC)


# ============================================================================
# REPORTING HELPERS
# ============================================================================

def describe_unplaced(entry: UnplacedRequest, container_width: float,
                      max_section_height: float, name: str = "") -> str:
    """User-facing explanation of why *entry* was dropped."""
    who = name or str(entry.request_id)
    dims = f'{entry.width:g}" × {entry.height:g}"'
    if entry.reason == REASON_NON_POSITIVE:
        return f"Sheet {who} ({dims}) has a zero or negative (or undefined) dimension."
    if entry.reason == REASON_TOO_WIDE:
        return (f"Sheet {who} is too large! {dims} is wider than the "
                f'container width of {container_width:g}".')
    return (f"Sheet {who} ({dims}) does not fit: every orientation that fits "
            f'the container width ({container_width:g}") is longer than the '
            f'max section length ({max_section_height:g}").')
