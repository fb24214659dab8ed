"""
Java code generation for injected noise.
"""

from typing import Optional

from .points import Noise, NoiseKind


RANDOM_FIELD = '_contenderRandom'

MISSING_TYPE_MARKER = '/* NO CLASS WAS FOUND - CONTENDER */'


class NoiseMaker:
    """
    Produces the Java text spliced into instrumented files.

    Every snippet fits on one line so instrumented files keep the line
    numbers of the original.
    """

    def __init__(self, field_name: str = RANDOM_FIELD, owner: Optional[str] = None):
        """
        Args:
            field_name: Name of the shared random field
            owner: Type declaring the field; noise then refers to it as
                Owner.field so other top-level types in the file can reach it
        """
        self.field_name = field_name
        self.owner = owner

    @property
    def reference(self) -> str:
        """How noise statements refer to the shared field."""
        if self.owner:
            return f'{self.owner}.{self.field_name}'
        return self.field_name

    def for_owner(self, owner: Optional[str]) -> 'NoiseMaker':
        """Same generator, referring to the field through its declaring type."""
        return NoiseMaker(self.field_name, owner)

    def render_import_statement(self) -> str:
        """Import of the randomness facility used by the noise."""
        return 'import java.util.Random;'

    def render_shared_random_field(self) -> str:
        """Declaration of the shared random number generator."""
        # No access modifier: the same text is legal in classes and interfaces
        return f'static final Random {self.field_name} = new Random();'

    def render_noise(self, noise: Noise) -> str:
        """
        Render a probability-gated sleep or yield statement.

        Args:
            noise: Noise parameters of an instrumentation point

        Returns:
            A free-standing Java statement followed by a space
        """
        if noise.kind == NoiseKind.YIELD:
            action = 'Thread.yield();'
        else:
            if noise.high > noise.low:
                delay = f'{noise.low} + {self.reference}.nextInt({noise.high - noise.low})'
            else:
                delay = f'{noise.low}'
            action = (f'try {{ Thread.sleep({delay}); }} '
                      f'catch (InterruptedException e) {{ Thread.currentThread().interrupt(); }}')

        return f'if ({self.reference}.nextInt(100) < {noise.probability}) {{ {action} }} '
