"""
Point classification for Contender.

Each call site found by the scanner becomes an interest point, or an
instrumentation point when the line above carries a matching
@PreemptionPoint annotation.
"""

import logging
from typing import List, Optional

from . import annotations
from .constructs import Catalogue, DEFAULT_CATALOGUE, scan_line
from .points import AnnotationParams, Point, SourceUnit


# Parameters assumed for annotation keys that are not written out
CLASSIFIER_DEFAULTS = AnnotationParams(probability=100, low=100, high=1000)


def classify_line(line: str, previous_line: str, line_number: int,
                  catalogue: Catalogue = DEFAULT_CATALOGUE,
                  defaults: AnnotationParams = CLASSIFIER_DEFAULTS) -> List[Point]:
    """
    Classify every call site on one line.

    Args:
        line: Text of the line being scanned
        previous_line: Text of the line above (empty for the first line)
        line_number: 1-based number of the line
        catalogue: Trigger catalogue to scan with
        defaults: Annotation defaults for missing keys

    Returns:
        Points in sequence order
    """
    points = []
    for occurrence in scan_line(line, catalogue):
        point = Point(line_number, occurrence.sequence, occurrence.kind, occurrence.trigger)

        params = annotations.lookup(previous_line, occurrence.sequence, defaults)
        if params is not None:
            point = point.with_noise(params.to_noise())

        points.append(point)
    return points


def find_points(unit: SourceUnit, catalogue: Optional[Catalogue] = None) -> SourceUnit:
    """
    Scan a whole source unit and store its points.

    Existing points are replaced. The catalogue used is remembered on the
    unit so the injector can re-locate occurrences the same way.

    Args:
        unit: Source unit with lines loaded
        catalogue: Trigger catalogue (defaults to the unit's own, then the built-in one)

    Returns:
        The same unit, for chaining
    """
    catalogue = catalogue or unit.catalogue or DEFAULT_CATALOGUE
    unit.catalogue = tuple(catalogue)
    unit.clear_points()

    previous_line = ''
    for index, line in enumerate(unit.lines, start=1):
        for point in classify_line(line, previous_line, index, unit.catalogue):
            unit.add_point(point)
        previous_line = line

    annotated = len(unit.instrumentation_points)
    logging.info(f"Scanned {unit.path}: {len(unit.points)} call sites, {annotated} annotated")
    return unit
