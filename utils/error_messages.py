"""
Clear, actionable error message formatting.

All error messages follow the pattern:
  ERROR: [What failed]
    Reason: [Why it failed]
    Action: [What user should do]
    Location: [Where the problem is]
"""

from pathlib import Path
from typing import Optional


def format_error(
    what_failed: str,
    reason: str,
    action: str,
    location: Optional[Path] = None,
    details: Optional[str] = None
) -> str:
    """
    Format a clear, actionable error message.

    Args:
        what_failed: What operation failed (e.g., "Failed to back up Worker.java")
        reason: Why it failed (e.g., "Permission denied")
        action: What user should do (e.g., "Make the folder writable")
        location: Where the problem occurred (file path, directory, etc.)
        details: Optional additional details

    Returns:
        Formatted error message
    """
    lines = [f"ERROR: {what_failed}"]
    lines.append(f"  Reason: {reason}")
    lines.append(f"  Action: {action}")

    if location:
        lines.append(f"  Location: {location}")

    if details:
        lines.append(f"  Details: {details}")

    return "\n".join(lines)


def format_unreadable_source_error(source: Path, reason: str) -> str:
    """Format error for a source file that could not be read."""
    return format_error(
        what_failed=f"Cannot read {source.name}",
        reason=reason,
        action="File was skipped; check it exists, is UTF-8 text and is readable",
        location=source.parent
    )


def format_backup_error(source: Path, backup: Path, reason: str) -> str:
    """Format error for a backup copy that could not be made."""
    return format_error(
        what_failed=f"Failed to back up {source.name}",
        reason=reason,
        action="File was left untouched; make the folder writable and run again",
        location=source.parent,
        details=f"Backup path: {backup}"
    )


def format_restore_error(source: Path, backup: Path, reason: str) -> str:
    """Format error for a revert that could not restore the original."""
    return format_error(
        what_failed=f"Failed to restore {source.name}",
        reason=reason,
        action=f"Original content is still in {backup.name}; copy it back by hand",
        location=source.parent
    )
