"""
Advisory check that a synchronized method call refers to a visible type.

This is a textual heuristic over package and import statements, not a
resolver: it can accept call sites whose receiver is a different type.
"""

import re
from pathlib import Path
from typing import Optional, Union

from .injector import IMPORT_PATTERN, PACKAGE_PATTERN


def to_dotted(path: Union[str, Path]) -> str:
    """Strip the extension and turn path separators into dots."""
    text = str(path)
    text = re.sub(r'\.[^./\\]*$', '', text)
    return text.replace('\\', '.').replace('/', '.')


def _statement_name(statement: str, keyword: str) -> str:
    name = statement.strip()
    name = re.sub(r'^' + keyword + r'\s+', '', name)
    name = re.sub(r'^static\s+', '', name)
    name = name.rstrip(';').strip()
    if name.endswith('.*'):
        name = name[:-2]
    return re.sub(r'\s+', '', name)


def is_method_imported(declaring_path: Union[str, Path], header: Optional[str],
                       project_root: Optional[Union[str, Path]] = None) -> bool:
    """
    Check whether a method's declaring file is visible from a caller's header.

    Args:
        declaring_path: File that declares the synchronized method
        header: Caller's text before its first type declaration
        project_root: Prefix stripped from the declaring path

    Returns:
        True if the package matches, there is no package statement at all,
        or one of the imports matches
    """
    candidate = to_dotted(declaring_path)
    if project_root:
        root = str(project_root).replace('\\', '.').replace('/', '.')
        if candidate.startswith(root):
            candidate = candidate[len(root):]

    header = header or ''

    package = PACKAGE_PATTERN.search(header)
    if package is None:
        # Default package: accept rather than miss a real call site
        return True

    if _statement_name(package.group(), 'package') in candidate:
        return True

    for statement in IMPORT_PATTERN.finditer(header):
        if _statement_name(statement.group(), 'import') in candidate:
            return True
    return False
