"""
Instrumentation plan output for --show-plan and --dry-run.

Collects the points each file would receive and prints them in a
structured, readable format.
"""

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from core.points import NoiseKind, Point


@dataclass
class InstrumentationPlan:
    """Tracks planned instrumentation for a run."""

    automatic: bool = False
    files: List[Tuple[Path, int, List[Point]]] = field(default_factory=list)  # (path, call_sites, points)
    skipped: List[Tuple[Path, str]] = field(default_factory=list)  # (path, reason)

    def add_file(self, path: Path, call_sites: int, points: List[Point]):
        """Record the points planned for one file."""
        self.files.append((path, call_sites, list(points)))

    def add_skip(self, path: Path, reason: str):
        """Record a file that will not be instrumented."""
        self.skipped.append((path, reason))

    @property
    def total_points(self) -> int:
        return sum(len(points) for _, _, points in self.files)

    @property
    def total_call_sites(self) -> int:
        return sum(call_sites for _, call_sites, _ in self.files)

    @staticmethod
    def describe(point: Point) -> str:
        """One-line description of a planned point."""
        noise = point.noise
        if noise is None:
            return f"line {point.line} #{point.sequence} {point.trigger} (interest point)"
        if noise.kind == NoiseKind.SLEEP:
            action = f"sleep {noise.low}-{noise.high}ms"
        else:
            action = "yield"
        return (f"line {point.line} #{point.sequence} {point.trigger} "
                f"[{point.kind.value}] {action} @ {noise.probability}%")

    def print_summary(self):
        """Print formatted plan summary."""
        mode = "AUTOMATIC" if self.automatic else "MANUAL"
        print("\n" + "=" * 80)
        print(f"INSTRUMENTATION PLAN ({mode} MODE)")
        print("=" * 80)

        for path, call_sites, points in self.files:
            print(f"\n{path} ({len(points)} of {call_sites} call sites):")
            for point in points:
                print(f"  {self.describe(point)}")

        if self.skipped:
            print(f"\nSKIPPED ({len(self.skipped)}):")
            for path, reason in self.skipped:
                print(f"  Skip: {path.name} - {reason}")

        kinds = Counter(point.kind.value for _, _, points in self.files for point in points)

        print("\n" + "-" * 80)
        print("SUMMARY:")
        print(f"  Files: {len(self.files)} planned, {len(self.skipped)} skipped")
        print(f"  Points: {self.total_points} of {self.total_call_sites} call sites")
        if kinds:
            print("  By construct: " + ", ".join(f"{count} {kind}" for kind, count in sorted(kinds.items())))
        print("=" * 80 + "\n")
