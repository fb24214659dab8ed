"""
Pre-parse pass over a batch of source units.

Captures each unit's header (package and import block) and collects the
synchronized methods declared anywhere in the batch, so that calls to them
can be scanned as mutual-exclusion call sites.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from .call_validator import is_method_imported
from .constructs import Catalogue, DEFAULT_CATALOGUE, extend_catalogue
from .injector import TYPE_PATTERN
from .points import ConstructKind, SourceUnit, SynchronizedMethod


METHOD_PATTERN = re.compile(r'\bsynchronized\s+(?:[\w<>\[\],.?]+\s+)*?(\w+)\s*\(')

# Words the method pattern can pick up that are never method names
RESERVED = {'if', 'for', 'while', 'switch', 'catch', 'synchronized', 'return', 'new'}


class PreParser:
    """Collects headers and synchronized methods for a batch of units."""

    def __init__(self, project_root: Optional[Path] = None):
        self.project_root = project_root
        self.synchronized_methods: List[SynchronizedMethod] = []

    def clear(self):
        self.synchronized_methods.clear()

    def capture_header(self, unit: SourceUnit) -> Optional[str]:
        """
        Store the text before the unit's first type declaration.

        Returns:
            The header, or None when the unit declares no type
        """
        text = unit.text()
        match = TYPE_PATTERN.search(text)
        unit.header = text[:match.start()] if match else None
        return unit.header

    def find_synchronized_methods(self, unit: SourceUnit) -> List[SynchronizedMethod]:
        """Record every synchronized method declared in a unit."""
        found = []
        for match in METHOD_PATTERN.finditer(unit.text()):
            name = match.group(1)
            if name in RESERVED:
                continue
            found.append(SynchronizedMethod(name, unit.path))
        self.synchronized_methods.extend(found)
        return found

    def preparse(self, units: Sequence[SourceUnit]) -> List[SynchronizedMethod]:
        """
        Run the pre-parse over a whole batch.

        Args:
            units: Source units with their lines loaded

        Returns:
            All synchronized methods found
        """
        self.clear()
        for unit in units:
            self.capture_header(unit)
            self.find_synchronized_methods(unit)

        logging.info(f"Pre-parse: {len(units)} files, "
                     f"{len(self.synchronized_methods)} synchronized methods")
        return list(self.synchronized_methods)

    def catalogue_for(self, unit: SourceUnit,
                      base: Catalogue = DEFAULT_CATALOGUE) -> Catalogue:
        """
        Build the trigger catalogue for one unit.

        Calls to synchronized methods are added when the declaring file is
        the unit itself or is visible from the unit's header.
        """
        triggers = []
        for method in self.synchronized_methods:
            visible = (method.declaring_path == unit.path or
                       is_method_imported(method.declaring_path, unit.header, self.project_root))
            if visible:
                triggers.append(f'.{method.name}(')
        return extend_catalogue(base, ConstructKind.MUTUAL_EXCLUSION, triggers)
