"""
Injection engine for Contender.

Splices noise statements into source lines in front of the statement that
contains each instrumentation point, then adds the import and shared random
field the noise relies on.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .codegen import MISSING_TYPE_MARKER, NoiseMaker
from .constructs import Catalogue, DEFAULT_CATALOGUE, find_offsets, scan_line
from .points import Point, SourceUnit


STATEMENT_BOUNDARIES = ';{}'

PACKAGE_PATTERN = re.compile(r'^[ \t]*package\s+[\w.]+\s*;', re.MULTILINE)
IMPORT_PATTERN = re.compile(r'^[ \t]*import\s+(?:static\s+)?[\w.]+(?:\.\*)?\s*;', re.MULTILINE)
TYPE_PATTERN = re.compile(
    r'^[ \t]*(?:@[\w.]+(?:\s*\([^)]*\))?\s+)*'
    r'(?:(?:public|protected|private|abstract|final|static|strictfp|sealed|non-sealed)\s+)*'
    r'(?P<kind>class|interface|enum|record)\s+(?P<name>\w+)[^{;]*\{',
    re.MULTILINE
)

OPENERS = '([{'
CLOSERS = ')]}'


@dataclass(frozen=True)
class Splice:
    """Noise text to insert at an offset of the unmodified line."""
    offset: int
    text: str
    order: int = 0


def locate_trigger(line: str, point: Point,
                   catalogue: Catalogue = DEFAULT_CATALOGUE) -> Optional[int]:
    """
    Recover the character offset of a point's call site.

    The line is re-scanned with the catalogue it was classified with and the
    occurrence at the point's sequence is taken. If that occurrence belongs
    to a different trigger, the point's own trigger text is searched instead,
    skipping `sequence` earlier matches.

    Args:
        line: Unmodified line text
        point: Instrumentation point on that line
        catalogue: Trigger catalogue used when scanning

    Returns:
        Offset of the trigger, or None if it is not on the line
    """
    occurrences = scan_line(line, catalogue)
    if point.sequence < len(occurrences) and occurrences[point.sequence].trigger == point.trigger:
        return occurrences[point.sequence].offset

    offsets = find_offsets(line, point.trigger)
    if point.sequence < len(offsets):
        return offsets[point.sequence]
    return None


def statement_start(line: str, offset: int) -> int:
    """
    Walk left from an offset to the start of the enclosing statement.

    Returns:
        One past the nearest ';', '{' or '}' at or before the offset, or 0
    """
    for index in range(min(offset, len(line) - 1), -1, -1):
        if line[index] in STATEMENT_BOUNDARIES:
            return index + 1
    return 0


def insertion_offset(line: str, point: Point,
                     catalogue: Catalogue = DEFAULT_CATALOGUE) -> Optional[int]:
    """Offset at which the noise for a point must be inserted."""
    offset = locate_trigger(line, point, catalogue)
    if offset is None:
        return None
    return statement_start(line, offset)


def apply_splices(line: str, splices: Iterable[Splice]) -> str:
    """
    Insert every splice into a line.

    Offsets refer to the unmodified line, so splices are applied from the
    highest offset down. Splices sharing an offset end up in their order.
    """
    for splice in sorted(splices, key=lambda s: (s.offset, s.order), reverse=True):
        line = line[:splice.offset] + splice.text + line[splice.offset:]
    return line


def instrument_line(line: str, points: List[Point], noise_maker: NoiseMaker,
                    catalogue: Catalogue = DEFAULT_CATALOGUE) -> str:
    """
    Inject noise for all points on one line.

    Args:
        line: Unmodified line text
        points: Instrumentation points on this line
        noise_maker: Code generator for the noise statements
        catalogue: Trigger catalogue used when scanning

    Returns:
        The instrumented line
    """
    splices = []
    for order, point in enumerate(points):
        offset = insertion_offset(line, point, catalogue)
        if offset is None:
            logging.warning(f"Line {point.line}: call site '{point.trigger}' #{point.sequence} "
                            f"not found, skipping")
            continue
        splices.append(Splice(offset, noise_maker.render_noise(point.noise), order))
    return apply_splices(line, splices)


def enum_constants_end(text: str, body_start: int) -> Tuple[int, bool]:
    """
    Find where the constant list of an enum body ends.

    Members may only be declared after the constants, so the shared field
    goes right after the terminating ';'. Comments and literals are
    skipped; nesting inside constant arguments and bodies is tracked.

    Args:
        text: File text
        body_start: Offset just past the enum's opening brace

    Returns:
        (offset, needs_terminator): offset just past the ';', or of the
        closing brace when the constants are not terminated
    """
    depth = 0
    index = body_start
    while index < len(text):
        char = text[index]
        if text.startswith('//', index):
            newline = text.find('\n', index)
            index = len(text) if newline == -1 else newline
            continue
        if text.startswith('/*', index):
            close = text.find('*/', index + 2)
            index = len(text) if close == -1 else close + 2
            continue
        if char in '"\'':
            index += 1
            while index < len(text) and text[index] != char:
                index += 2 if text[index] == '\\' else 1
        elif char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
            if depth < 0:
                return index, True
        elif char == ';' and depth == 0:
            return index + 1, False
        index += 1
    return len(text), True


def add_header(text: str, noise_maker: NoiseMaker) -> str:
    """
    Add the random import and shared random field to instrumented text.

    The import goes after the package statement, else after the first
    import, else at the very top. The field goes right after the opening
    brace of the first type declaration (after the constant list when that
    type is an enum); without a type declaration a marker comment is
    inserted after the import instead. Both are placed on existing lines
    so line numbers do not change.

    Args:
        text: Instrumented file text
        noise_maker: Code generator for the header statements

    Returns:
        Text with the header additions
    """
    type_match = TYPE_PATTERN.search(text)
    if type_match:
        field = ' ' + noise_maker.render_shared_random_field()
        end = type_match.end()
        if type_match.group('kind') == 'enum':
            end, needs_terminator = enum_constants_end(text, end)
            if needs_terminator:
                field = ';' + field + ' '
        text = text[:end] + field + text[end:]
        marker = ''
    else:
        logging.warning("No type declaration found, random field not added")
        marker = ' ' + MISSING_TYPE_MARKER

    anchor = PACKAGE_PATTERN.search(text) or IMPORT_PATTERN.search(text)
    if anchor:
        end = anchor.end()
        return text[:end] + ' ' + noise_maker.render_import_statement() + marker + text[end:]
    return noise_maker.render_import_statement() + marker + ' ' + text


def instrument_unit(unit: SourceUnit, points: List[Point],
                    noise_maker: Optional[NoiseMaker] = None) -> str:
    """
    Produce the instrumented text of a whole source unit.

    The shared field lives in the first type declaration, so noise refers
    to it through that type's name and stays visible from any other
    top-level type in the file.

    Args:
        unit: Scanned source unit (its lines are not modified)
        points: Instrumentation points to inject
        noise_maker: Code generator (default NoiseMaker)

    Returns:
        Full instrumented file text
    """
    noise_maker = noise_maker or NoiseMaker()
    owner = TYPE_PATTERN.search('\n'.join(unit.lines))
    if owner:
        noise_maker = noise_maker.for_owner(owner.group('name'))
    catalogue = unit.catalogue or DEFAULT_CATALOGUE

    by_line: Dict[int, List[Point]] = {}
    for point in points:
        if point.noise is None:
            continue
        by_line.setdefault(point.line, []).append(point)

    lines = []
    for number, line in enumerate(unit.lines, start=1):
        if number in by_line:
            line = instrument_line(line, by_line[number], noise_maker, catalogue)
        lines.append(line)

    text = unit.newline.join(lines)
    if unit.trailing_newline and lines:
        text += unit.newline

    if by_line:
        text = add_header(text, noise_maker)
    return text
