"""
Automatic noise policy.

Turns every interest point inside a unit's scope bounds into an
instrumentation point using probability-weighted random choices.
"""

import logging
import random
from typing import List, Optional

from .points import ConstructKind, Noise, NoiseKind, Point, Policy, SourceUnit


def default_policy() -> Policy:
    """Policy used when no configuration is supplied."""
    return Policy(per_kind_probability={kind: 50 for kind in ConstructKind})


def choose_noise_kind(policy: Policy, rng: random.Random) -> NoiseKind:
    """Draw SLEEP with the policy's sleep probability, YIELD otherwise."""
    if rng.randrange(100) < policy.sleep_probability:
        return NoiseKind.SLEEP
    return NoiseKind.YIELD


def generate_points(unit: SourceUnit, policy: Policy,
                    rng: Optional[random.Random] = None) -> List[Point]:
    """
    Generate automatic instrumentation points for a source unit.

    Any noise already attached to the unit's points (from annotations) is
    ignored: automatic mode replaces manual choices, it does not merge
    with them.

    Args:
        unit: Scanned source unit
        policy: Automatic-mode policy
        rng: Random generator shared across the run

    Returns:
        Instrumentation points for in-scope lines, in scan order
    """
    rng = rng or random.Random()
    generated = []

    for point in unit.interest_points:
        if not unit.in_scope(point.line):
            continue

        noise = Noise(
            kind=choose_noise_kind(policy, rng),
            probability=policy.probability_for(point.kind),
            low=policy.delay_low,
            high=policy.delay_high
        )
        generated.append(point.with_noise(noise))

    skipped = len(unit.points) - len(generated)
    logging.info(f"Automatic policy for {unit.path}: {len(generated)} points "
                 f"({skipped} outside {unit.lower_bound}%-{unit.upper_bound}%)")
    return generated
