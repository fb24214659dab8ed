"""
Data model for Contender.
Source units, interest points and the noise attached to instrumentation points.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class ConstructKind(Enum):
    """Category of synchronization primitive a trigger text belongs to."""
    MUTUAL_EXCLUSION = 'mutual_exclusion'
    BARRIER = 'barrier'
    LATCH = 'latch'
    SEMAPHORE = 'semaphore'


class NoiseKind(Enum):
    """Kind of scheduling noise injected before a call site."""
    SLEEP = 'sleep'
    YIELD = 'yield'


# Delay range (ms) carried by every YIELD, which never sleeps
YIELD_LOW = 100
YIELD_HIGH = 1000


def _canonical_delays(params, kind: NoiseKind):
    """Pin low/high of a frozen YIELD dataclass so equal yields compare equal."""
    if kind == NoiseKind.YIELD:
        object.__setattr__(params, 'low', YIELD_LOW)
        object.__setattr__(params, 'high', YIELD_HIGH)


@dataclass(frozen=True)
class Noise:
    """
    Noise parameters carried by an instrumentation point.

    low/high are milliseconds and only meaningful for SLEEP. A YIELD always
    carries YIELD_LOW/YIELD_HIGH whatever it was built with.
    """
    kind: NoiseKind = NoiseKind.SLEEP
    probability: int = 100
    low: int = 100
    high: int = 1000

    def __post_init__(self):
        _canonical_delays(self, self.kind)


@dataclass(frozen=True)
class Point:
    """
    A located concurrency-construct call site.

    A point without noise is an interest point; a point with noise is an
    instrumentation point ready for injection.
    """
    line: int
    sequence: int
    kind: ConstructKind
    trigger: str
    noise: Optional[Noise] = None

    @property
    def is_instrumented(self) -> bool:
        """True when this point carries noise parameters."""
        return self.noise is not None

    def with_noise(self, noise: Optional[Noise]) -> 'Point':
        """Return a copy of this point carrying the given noise."""
        return replace(self, noise=noise)


@dataclass(frozen=True)
class Policy:
    """Global configuration for automatic-mode point generation."""
    per_kind_probability: Dict[ConstructKind, int]
    sleep_probability: int = 50
    delay_low: int = 100
    delay_high: int = 1000

    def probability_for(self, kind: ConstructKind) -> int:
        return self.per_kind_probability.get(kind, 0)


@dataclass(frozen=True)
class AnnotationParams:
    """Parameters of one @PreemptionPoint annotation comment."""
    sequence: int = 0
    noise_kind: NoiseKind = NoiseKind.SLEEP
    probability: int = 100
    low: int = 100
    high: int = 1000

    def __post_init__(self):
        # The yield form of the comment has no low/high to read back
        _canonical_delays(self, self.noise_kind)

    @classmethod
    def from_point(cls, point: Point) -> 'AnnotationParams':
        """Build annotation parameters from an instrumentation point."""
        if point.noise is None:
            raise ValueError(f"Point on line {point.line} carries no noise")
        return cls(point.sequence, point.noise.kind, point.noise.probability,
                   point.noise.low, point.noise.high)

    def to_noise(self) -> Noise:
        return Noise(self.noise_kind, self.probability, self.low, self.high)


# Defaults applied to keys missing from an annotation comment
DEFAULT_ANNOTATION = AnnotationParams()


@dataclass(frozen=True)
class SynchronizedMethod:
    """A synchronized method declaration found while pre-parsing."""
    name: str
    declaring_path: Path


@dataclass
class SourceUnit:
    """
    One source file moving through the pipeline.

    Attributes:
        path: Location of the file
        lines: Raw text lines without line terminators
        header: Text before the first type declaration (None if no type found)
        points: Points found by scanning, in scan order
        lower_bound: Start of the automatic-mode scope, percent of line count
        upper_bound: End of the automatic-mode scope, percent of line count
        catalogue: Trigger catalogue the unit was scanned with
    """
    path: Path
    lines: List[str] = field(default_factory=list)
    header: Optional[str] = None
    points: List[Point] = field(default_factory=list)
    lower_bound: int = 0
    upper_bound: int = 100
    catalogue: Tuple[Tuple[ConstructKind, str], ...] = ()
    newline: str = '\n'
    trailing_newline: bool = True

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def interest_points(self) -> List[Point]:
        return list(self.points)

    @property
    def instrumentation_points(self) -> List[Point]:
        """Points sourced from annotation comments (manual mode)."""
        return [p for p in self.points if p.is_instrumented]

    def add_point(self, point: Point):
        self.points.append(point)

    def clear_points(self):
        self.points.clear()

    def in_scope(self, line: int) -> bool:
        """Check whether a line lies inside the automatic-mode scope bounds."""
        lower = self.lower_bound / 100 * self.line_count
        upper = self.upper_bound / 100 * self.line_count
        return lower <= line <= upper

    def text(self) -> str:
        """Reassemble the file text from its lines."""
        body = self.newline.join(self.lines)
        if self.trailing_newline and self.lines:
            body += self.newline
        return body

    @classmethod
    def from_text(cls, path: Path, text: str, lower_bound: int = 0,
                  upper_bound: int = 100) -> 'SourceUnit':
        """
        Build a unit from file text, remembering its line ending style.

        Args:
            path: Location of the file
            text: Full file contents
            lower_bound: Automatic-mode scope start (percent)
            upper_bound: Automatic-mode scope end (percent)

        Returns:
            SourceUnit with lines populated
        """
        newline = '\r\n' if '\r\n' in text else '\n'
        trailing = text.endswith(newline)
        lines = text.split(newline)
        if trailing:
            lines.pop()
        return cls(path=path, lines=lines, lower_bound=lower_bound,
                   upper_bound=upper_bound, newline=newline,
                   trailing_newline=trailing)
