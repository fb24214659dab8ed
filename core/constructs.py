"""
Construct scanner for Contender.
Finds synchronization call sites on a line and orders them left to right.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .points import ConstructKind


Catalogue = Tuple[Tuple[ConstructKind, str], ...]


# Trigger texts per construct kind. Each text ends at the opening parenthesis
# so that no trigger is a substring of another (".acquire(" never matches
# inside ".acquireUninterruptibly(").
TRIGGERS = {
    ConstructKind.MUTUAL_EXCLUSION: (
        'synchronized (',
        'synchronized(',
        '.lock(',
        '.lockInterruptibly(',
        '.tryLock(',
        '.unlock(',
        '.newCondition(',
    ),
    ConstructKind.LATCH: (
        '.countDown(',
        '.await(',
    ),
    ConstructKind.BARRIER: (
        '.reset(',
        '.getNumberWaiting(',
    ),
    ConstructKind.SEMAPHORE: (
        '.acquire(',
        '.acquireUninterruptibly(',
        '.tryAcquire(',
        '.drainPermits(',
        '.release(',
    ),
}

DEFAULT_CATALOGUE: Catalogue = tuple(
    (kind, trigger) for kind, triggers in TRIGGERS.items() for trigger in triggers
)


@dataclass(frozen=True)
class Occurrence:
    """One trigger match on a line."""
    kind: ConstructKind
    trigger: str
    offset: int
    sequence: int = 0


def find_offsets(line: str, trigger: str) -> List[int]:
    """
    Locate non-overlapping occurrences of a trigger, left to right.

    Args:
        line: Line of source text
        trigger: Text to look for

    Returns:
        Character offsets of every match
    """
    offsets = []
    if not trigger:
        return offsets

    pos = line.find(trigger)
    while pos != -1:
        offsets.append(pos)
        pos = line.find(trigger, pos + len(trigger))
    return offsets


def scan_line(line: str, catalogue: Catalogue = DEFAULT_CATALOGUE) -> List[Occurrence]:
    """
    Find every trigger occurrence on a line and assign sequence numbers.

    Occurrences are merged across all triggers with a stable sort on
    character offset; sequence numbers are 0..N-1 in that order.

    Args:
        line: Line of source text
        catalogue: (kind, trigger) pairs to look for

    Returns:
        Occurrences in ascending offset order
    """
    found = []
    for kind, trigger in catalogue:
        for offset in find_offsets(line, trigger):
            found.append((offset, kind, trigger))

    found.sort(key=lambda item: item[0])
    return [Occurrence(kind, trigger, offset, sequence)
            for sequence, (offset, kind, trigger) in enumerate(found)]


def extend_catalogue(catalogue: Catalogue, kind: ConstructKind,
                     triggers: Iterable[str]) -> Catalogue:
    """
    Add triggers to a catalogue, skipping texts already present.

    Args:
        catalogue: Existing catalogue
        kind: Construct kind of the new triggers
        triggers: Trigger texts to add

    Returns:
        New catalogue
    """
    known = {trigger for _, trigger in catalogue}
    extra = []
    for trigger in triggers:
        if trigger and trigger not in known:
            known.add(trigger)
            extra.append((kind, trigger))
    return tuple(catalogue) + tuple(extra)


def kind_of(trigger: str, catalogue: Sequence[Tuple[ConstructKind, str]] = DEFAULT_CATALOGUE):
    """Return the construct kind owning a trigger text, or None."""
    for kind, known in catalogue:
        if known == trigger:
            return kind
    return None
