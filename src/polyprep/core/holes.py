"""Hole tree resolution for contours.

A contour's direct holes are cleaned up in three passes:
1. Dedup: holes that describe the same polygon are dropped
2. Containment and overlap: contained holes are nested, crossing holes
   are merged into their union with the shared region kept as a sub-hole
3. Constraints: boundary edges of the surviving holes are registered

The same resolution then runs on every surviving hole.
"""

import logging

from polyprep.config import ToleranceConfig, get_default_settings
from polyprep.core.boolean import BooleanOpEngine, PolyOperation, PolyUnionError
from polyprep.core.geometry import polygon_contains_polygon, polygons_are_same, polygons_intersect
from polyprep.domain import DEFAULT_WINDING_ORDER, ConstraintSet, Contour
from polyprep.exceptions import HoleResolutionError

logger = logging.getLogger(__name__)


class HoleResolver:
    """Resolves duplicate, nested and overlapping holes of a contour tree.

    Attributes:
        merge_count: Overlapping hole pairs merged so far
        nest_count: Holes moved under a containing sibling so far
        duplicate_count: Duplicate holes dropped so far
    """

    def __init__(
        self,
        tolerance: ToleranceConfig | None = None,
        engine: BooleanOpEngine | None = None,
    ) -> None:
        self._tolerance = tolerance if tolerance is not None else get_default_settings().tolerance
        self._engine = engine if engine is not None else BooleanOpEngine(self._tolerance)
        self.merge_count = 0
        self.nest_count = 0
        self.duplicate_count = 0

    def initialize_holes(self, contour: Contour, constraints: ConstraintSet) -> None:
        """Resolve the holes of a contour and recurse into them.

        Args:
            contour: Contour whose hole tree is resolved in place
            constraints: Shared constraint set receiving hole edges

        Raises:
            HoleResolutionError: If two crossing holes cannot be merged
        """
        holes = self.remove_duplicates(contour.holes)
        holes = self.resolve_overlaps(holes, contour)
        contour.set_holes(holes)

        for hole in holes:
            hole.emit_constraints(constraints)
        for hole in holes:
            self.initialize_holes(hole, constraints)

    def remove_duplicates(self, holes: list[Contour]) -> list[Contour]:
        """Drop holes identical to an earlier one (any start vertex, either direction)."""
        kept: list[Contour] = []
        eps = self._tolerance.same_polygon_epsilon
        for hole in holes:
            if any(polygons_are_same(existing, hole, eps) for existing in kept):
                self.duplicate_count += 1
                logger.debug("Dropping duplicate hole of %d points", len(hole))
                continue
            kept.append(hole)
        return kept

    def resolve_overlaps(self, holes: list[Contour], parent: Contour) -> list[Contour]:
        """Nest contained holes and merge crossing ones.

        Siblings are processed as a worklist: a hole that changed goes back
        to the front of the queue and is checked against every remaining
        sibling again. Each change removes one sibling, so this terminates.

        Args:
            holes: Sibling holes
            parent: Contour the siblings belong to

        Returns:
            Sibling holes that no longer contain, equal or cross each other
        """
        worklist = list(holes)
        settled: list[Contour] = []

        while worklist:
            current = worklist.pop(0)
            changed = False
            for other in settled + worklist:
                if polygon_contains_polygon(current, other):
                    self._detach(other, settled, worklist)
                    current.add_hole(other)
                    self.nest_count += 1
                    worklist.insert(0, current)
                    changed = True
                    break
                if polygon_contains_polygon(other, current):
                    other.add_hole(current)
                    self.nest_count += 1
                    changed = True
                    break
                if polygons_intersect(current, other):
                    merged = self._merge(current, other, parent)
                    self._detach(other, settled, worklist)
                    worklist.insert(0, merged)
                    changed = True
                    break
            if not changed:
                settled.append(current)

        return settled

    @staticmethod
    def _detach(hole: Contour, settled: list[Contour], worklist: list[Contour]) -> None:
        for group in (settled, worklist):
            for i, candidate in enumerate(group):
                if candidate is hole:
                    del group[i]
                    return

    def _merge(self, first: Contour, second: Contour, parent: Contour) -> Contour:
        """Replace two crossing holes by their union, keeping the overlap as a sub-hole.

        When the first hole turns out to lie inside the second, it is nested
        there instead and the second hole is returned.

        Raises:
            HoleResolutionError: If the operations report any other problem
        """
        context = self._engine.operate(PolyOperation.UNION | PolyOperation.INTERSECT, first, second)
        if context.error is PolyUnionError.POLY1_INSIDE_POLY2:
            second.add_hole(first)
            self.nest_count += 1
            return second
        if context.error is not PolyUnionError.NONE:
            raise HoleResolutionError(f"overlapping holes could not be combined ({context.error.value})")

        union, union_error = context.result(PolyOperation.UNION)
        intersection, intersect_error = context.result(PolyOperation.INTERSECT)
        for error in (union_error, intersect_error):
            if error is not PolyUnionError.NONE:
                raise HoleResolutionError(f"hole merge failed ({error.value})")
        if len(union) < 3:
            raise HoleResolutionError("hole merge produced an empty union")

        merged = Contour(union, parent=parent)
        merged.winding_order = DEFAULT_WINDING_ORDER
        for child in first.holes + second.holes:
            merged.add_hole(child)

        if len(intersection) >= 3:
            overlap = Contour(intersection)
            overlap.winding_order = DEFAULT_WINDING_ORDER
            merged.add_hole(overlap)

        self.merge_count += 1
        logger.debug(
            "Merged crossing holes of %d and %d points into %d points (overlap %d points)",
            len(first),
            len(second),
            len(merged),
            len(intersection),
        )
        return merged
