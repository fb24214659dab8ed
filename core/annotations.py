"""
@PreemptionPoint annotation comments.

An annotation pins down the noise for one call site on the following line:

    /* @PreemptionPoint (sequence = 1, type = "sleep", low = 10, high = 500, probability = 75) */

Keys are case-insensitive and whitespace around tokens is ignored. Keys
missing from a comment inherit the defaults passed by the caller. Unknown
keys are ignored. A comment that cannot be parsed is treated as absent;
nothing in this module raises on bad input.
"""

import logging
import re
from dataclasses import replace
from typing import Iterable, Iterator, List, Optional, Tuple

from .points import AnnotationParams, DEFAULT_ANNOTATION, NoiseKind, Point


TAG = '@PreemptionPoint'

ANNOTATION_PATTERN = re.compile(
    r'/\*\s*' + re.escape(TAG) + r'\s*(?:\((?P<params>[^)]*)\))?\s*\*/',
    re.IGNORECASE | re.DOTALL
)

INT_KEYS = ('sequence', 'low', 'high', 'probability')

DIGITS_PATTERN = re.compile(r'[0-9]+')


def _parse_int(value: str) -> Optional[int]:
    value = value.strip().strip('"\'').strip()
    # ASCII digits only: str.isdigit() also accepts superscripts int() rejects
    if not DIGITS_PATTERN.fullmatch(value):
        return None
    return int(value)


def parse_params(params: Optional[str],
                 defaults: AnnotationParams = DEFAULT_ANNOTATION) -> Optional[AnnotationParams]:
    """
    Parse the key = value list of one annotation.

    Args:
        params: Text between the parentheses (None if the comment had none)
        defaults: Values for keys the list does not set

    Returns:
        AnnotationParams, or None if the list is malformed
    """
    values = {}
    if params:
        for item in params.split(','):
            if not item.strip():
                continue
            if '=' not in item:
                return None
            key, _, value = item.partition('=')
            key = key.strip().lower()

            if key in INT_KEYS:
                number = _parse_int(value)
                if number is None:
                    return None
                values[key] = number
            elif key == 'type':
                kind = value.strip().strip('"\'').strip().lower()
                if kind == NoiseKind.SLEEP.value:
                    values['noise_kind'] = NoiseKind.SLEEP
                elif kind == NoiseKind.YIELD.value:
                    values['noise_kind'] = NoiseKind.YIELD
                else:
                    return None

    result = replace(defaults, **values)

    if result.probability > 100:
        return None
    if result.noise_kind == NoiseKind.SLEEP and result.low > result.high:
        return None
    return result


def iter_annotations(line: str,
                     defaults: AnnotationParams = DEFAULT_ANNOTATION
                     ) -> Iterator[Tuple[re.Match, Optional[AnnotationParams]]]:
    """
    Walk the annotation comments of a line left to right.

    Each comment is yielded with its parsed parameters (None when
    malformed). The search resumes right after the closing delimiter of
    the previous comment.
    """
    for match in ANNOTATION_PATTERN.finditer(line):
        yield match, parse_params(match.group('params'), defaults)


def parse(comment: str,
          defaults: AnnotationParams = DEFAULT_ANNOTATION) -> Optional[AnnotationParams]:
    """Parse the first annotation comment found in the text."""
    for _, params in iter_annotations(comment, defaults):
        return params
    return None


def exists(line: str) -> bool:
    """Check whether a line carries at least one valid annotation comment."""
    return any(params is not None for _, params in iter_annotations(line))


def lookup(line: str, sequence: int,
           defaults: AnnotationParams = DEFAULT_ANNOTATION) -> Optional[AnnotationParams]:
    """
    Find the annotation for a given sequence number on a line.

    Args:
        line: Line expected to hold annotation comments
        sequence: Sequence number of the call site being classified
        defaults: Values for keys an annotation does not set

    Returns:
        Parameters of the first comment whose sequence matches, or None
    """
    for match, params in iter_annotations(line, defaults):
        if params is None:
            logging.debug(f"Ignoring malformed annotation: {match.group(0)}")
            continue
        if params.sequence == sequence:
            return params
    return None


def render(params: AnnotationParams) -> str:
    """
    Render the canonical annotation comment for a set of parameters.

    The sleep form carries low/high; the yield form omits them.
    """
    if params.noise_kind == NoiseKind.YIELD:
        body = (f'sequence = {params.sequence}, type = "yield", '
                f'probability = {params.probability}')
    else:
        body = (f'sequence = {params.sequence}, type = "sleep", '
                f'low = {params.low}, high = {params.high}, '
                f'probability = {params.probability}')
    return f'/* {TAG} ({body}) */'


def _comment_sequence(match: re.Match, parsed: Optional[AnnotationParams]) -> Optional[int]:
    """Sequence a comment refers to, read on its own when the rest is malformed."""
    if parsed is not None:
        return parsed.sequence

    for item in (match.group('params') or '').split(','):
        key, sep, value = item.partition('=')
        if sep and key.strip().lower() == 'sequence':
            return _parse_int(value)
    return DEFAULT_ANNOTATION.sequence


def update(params: AnnotationParams, line: str) -> str:
    """
    Rewrite the annotation with a matching sequence number in place.

    Everything around the matched comment is kept verbatim. A malformed
    comment is replaced too when its own sequence key matches, so no stale
    comment is left behind. When no comment on the line carries the
    sequence, the rendered comment is appended after a single space.

    Args:
        params: New parameters (params.sequence selects the comment)
        line: Line holding zero or more annotation comments

    Returns:
        The updated line
    """
    for match, parsed in iter_annotations(line):
        if _comment_sequence(match, parsed) == params.sequence:
            return line[:match.start()] + render(params) + line[match.end():]
    return line + ' ' + render(params)


def freeze(lines: List[str], points: Iterable[Point]) -> List[str]:
    """
    Write the noise of instrumentation points back as annotation comments.

    Each point's annotation goes on the line above it. A point on the first
    line gets a new comment line inserted above it, which shifts the rest
    of the file down by one.

    Args:
        lines: Source lines
        points: Instrumentation points to record

    Returns:
        New list of lines
    """
    lines = list(lines)
    first_line = None

    for point in points:
        if point.noise is None:
            continue
        params = AnnotationParams.from_point(point)
        if point.line == 1:
            first_line = update(params, first_line) if first_line is not None else render(params)
        else:
            lines[point.line - 2] = update(params, lines[point.line - 2])

    if first_line is not None:
        lines.insert(0, first_line)
    return lines
