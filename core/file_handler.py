"""
File handling operations for Contender.
Source discovery, backup/restore of originals, and rewriting of instrumented files.
"""

import os
import logging
import time
import psutil
from pathlib import Path
from typing import List, Optional

from utils.defensive import ErrorRecovery, InputValidator, StateValidator, ValidationError


class BackupError(Exception):
    """Raised when the original of a file cannot be copied aside."""
    pass


class RestoreError(Exception):
    """Raised when a backup exists but cannot be copied back."""
    pass


class FileHandler:
    """Handles source file discovery, backups and rewrites."""

    def __init__(self, config):
        """
        Initialize the file handler.

        Args:
            config: Config instance with source extensions and backup suffix
        """
        # Defensive: validate config
        if config is None:
            raise ValidationError("Config cannot be None")

        self.config = config

        # Defensive: verify config has required attributes
        required_attrs = ['source_extensions', 'backup_suffix']
        for attr in required_attrs:
            if not hasattr(config, attr):
                raise ValidationError(f"Config missing required attribute: {attr}")

    def find_source_files(self, root: Path) -> List[Path]:
        """
        Recursively find source files under a root folder.

        Args:
            root: Folder (or single file) to search

        Returns:
            Sorted, duplicate-free list of source paths (empty list if error)
        """
        try:
            root = InputValidator.validate_path(root, must_exist=True)
        except ValidationError as e:
            logging.error(f"Invalid source root: {e}")
            return []

        extensions = [ext.lower() for ext in self.config.source_extensions]

        if root.is_file():
            return [root] if root.suffix.lower() in extensions else []

        found = []
        seen = set()
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if path.suffix.lower() not in extensions:
                    continue
                key = os.path.normcase(str(path.resolve()))
                if key in seen:
                    continue
                seen.add(key)
                found.append(path)

        logging.info(f"Found {len(found)} source files under {root}")
        return found

    def find_backed_up_files(self, root: Path) -> List[Path]:
        """
        Find every file under a root that still has a backup copy.

        Returns:
            Original paths (without the backup suffix), sorted
        """
        try:
            root = InputValidator.validate_path(root, must_exist=True)
        except ValidationError as e:
            logging.error(f"Invalid source root: {e}")
            return []

        suffix = self.config.backup_suffix
        if root.is_file():
            return [root] if self.has_backup(root) else []

        return sorted(backup.with_name(backup.name[:-len(suffix)])
                      for backup in root.rglob('*' + suffix) if backup.is_file())

    def backup_path(self, source: Path) -> Path:
        """Path of the backup copy for a source file."""
        return source.with_name(source.name + self.config.backup_suffix)

    def has_backup(self, source: Path) -> bool:
        return self.backup_path(source).exists()

    def backup(self, source: Path) -> Path:
        """
        Copy a source file aside before it is rewritten.

        An existing backup is never overwritten: it holds the original of a
        file that is still instrumented.

        Args:
            source: File about to be instrumented

        Returns:
            Path of the backup copy

        Raises:
            BackupError: If the copy cannot be made
        """
        backup = self.backup_path(source)

        if backup.exists():
            raise BackupError(f"Backup already exists (file still instrumented?): {backup}")

        if not StateValidator.check_file_accessible(source):
            raise BackupError(f"Source file not accessible: {source}")

        if not StateValidator.check_dir_writable(source.parent):
            raise BackupError(f"Folder not writable: {source.parent}")

        if not ErrorRecovery.safe_copy(source, backup):
            # Never leave a partial backup behind
            if backup.exists():
                try:
                    backup.unlink()
                except OSError as e:
                    logging.warning(f"Could not remove partial backup {backup}: {e}")
            raise BackupError(f"Could not copy {source} to {backup}")

        logging.info(f"Backed up {source} -> {backup.name}")
        return backup

    def restore(self, source: Path) -> bool:
        """
        Put the original content back and delete the backup.

        Args:
            source: Previously instrumented file

        Returns:
            True if a backup was restored, False if there was nothing to do

        Raises:
            RestoreError: If the backup exists but could not be copied back
        """
        backup = self.backup_path(source)
        if not backup.exists():
            logging.debug(f"No backup for {source}, nothing to revert")
            return False

        if not ErrorRecovery.safe_copy(backup, source):
            raise RestoreError(f"Could not copy {backup} back to {source}")

        backup.unlink()
        logging.info(f"Reverted {source}")
        return True

    def read_source(self, source: Path) -> Optional[str]:
        """Read a source file, keeping its line endings. None if unreadable."""
        return ErrorRecovery.safe_read_text(source)

    def write_source(self, source: Path, text: str):
        """
        Replace a source file's content.

        The text is written to a temporary sibling first and renamed over
        the original, so the file is never left half written.
        """
        temp = source.with_name(f".tmp_{source.name}_{int(time.time())}")
        try:
            with open(temp, 'w', encoding='utf-8', newline='') as f:
                f.write(text)
            temp.replace(source)
        finally:
            if temp.exists():
                temp.unlink()

    def wait_for_file_release(self, source: Path, max_attempts: int = 3,
                              delay: float = 0.5) -> bool:
        """
        Wait for other processes to close a file before it is rewritten.

        Args:
            source: Path to the file
            max_attempts: Maximum wait attempts
            delay: Delay between checks in seconds

        Returns:
            True if no other process holds the file, False if timeout
        """
        target = os.path.normcase(str(source.resolve()))
        own_pid = os.getpid()

        for attempt in range(max_attempts):
            is_locked = False

            for proc in psutil.process_iter(attrs=['pid', 'name']):
                try:
                    if proc.pid == own_pid:
                        continue
                    if any(os.path.normcase(f.path) == target for f in proc.open_files()):
                        logging.info(f"{source.name} is open in {proc.info.get('name')} "
                                     f"(PID {proc.pid})")
                        is_locked = True
                        break
                except (psutil.AccessDenied, psutil.NoSuchProcess, psutil.ZombieProcess):
                    continue

            if not is_locked:
                return True

            if attempt < max_attempts - 1:
                time.sleep(delay)

        return False
