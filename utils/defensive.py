"""
Defensive programming utilities for Contender.
Input validation, state verification, and error recovery.
"""

import logging
import shutil
import time
from pathlib import Path
from typing import Optional, Union, Any


class ValidationError(Exception):
    """Raised when validation fails."""
    pass


class InputValidator:
    """Validates all inputs defensively."""

    @staticmethod
    def validate_path(path: Union[str, Path, None], must_exist: bool = False,
                      must_be_dir: bool = False, must_be_file: bool = False,
                      allow_none: bool = False) -> Optional[Path]:
        """
        Validate and normalize path input.

        Args:
            path: Path to validate
            must_exist: Path must exist
            must_be_dir: Path must be a directory
            must_be_file: Path must be a file
            allow_none: Allow None values

        Returns:
            Validated, resolved Path object or None

        Raises:
            ValidationError: If validation fails
        """
        # Handle None
        if path is None:
            if allow_none:
                return None
            raise ValidationError("Path cannot be None")

        # Convert to Path object
        if isinstance(path, str):
            # Remove null bytes (security)
            path_obj = Path(path.replace('\x00', ''))
        elif isinstance(path, Path):
            path_obj = path
        else:
            raise ValidationError(f"Invalid path type: {type(path)}")

        # Check if path is absolute (recommended)
        if not path_obj.is_absolute():
            logging.debug(f"Relative path detected: {path_obj} - converting to absolute")
            try:
                path_obj = path_obj.resolve()
            except (OSError, RuntimeError) as e:
                raise ValidationError(f"Cannot resolve path: {e}")

        # Existence checks
        if must_exist and not path_obj.exists():
            raise ValidationError(f"Path does not exist: {path_obj}")

        if must_be_dir and path_obj.exists() and not path_obj.is_dir():
            raise ValidationError(f"Path is not a directory: {path_obj}")

        if must_be_file and path_obj.exists() and not path_obj.is_file():
            raise ValidationError(f"Path is not a file: {path_obj}")

        return path_obj

    @staticmethod
    def validate_int(value: Any, min_val: Optional[int] = None,
                     max_val: Optional[int] = None, allow_none: bool = False) -> Optional[int]:
        """
        Validate integer input.

        Args:
            value: Value to validate
            min_val: Minimum value
            max_val: Maximum value
            allow_none: Allow None values

        Returns:
            Validated integer or None

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            if allow_none:
                return None
            raise ValidationError("Integer cannot be None")

        if not isinstance(value, int) or isinstance(value, bool):
            try:
                value = int(value)
            except (ValueError, TypeError):
                raise ValidationError(f"Cannot convert to integer: {value}")

        if min_val is not None and value < min_val:
            raise ValidationError(f"Value too small: {value} < {min_val}")

        if max_val is not None and value > max_val:
            raise ValidationError(f"Value too large: {value} > {max_val}")

        return value


class StateValidator:
    """Validates file system state."""

    @staticmethod
    def check_file_accessible(file_path: Path) -> bool:
        """
        Check if file is accessible for reading.

        Args:
            file_path: Path to file

        Returns:
            True if accessible, False otherwise
        """
        try:
            if not file_path.exists():
                return False

            if not file_path.is_file():
                return False

            # Try to open for reading
            with open(file_path, 'rb') as f:
                f.read(1)

            return True
        except (PermissionError, OSError, IOError):
            return False

    @staticmethod
    def check_dir_writable(dir_path: Path) -> bool:
        """
        Check if directory is writable.

        Args:
            dir_path: Path to directory

        Returns:
            True if writable, False otherwise
        """
        try:
            if not dir_path.exists():
                return False

            if not dir_path.is_dir():
                return False

            # Try to create a temporary file
            test_file = dir_path / '.contender_write_test'
            test_file.touch()
            test_file.unlink()

            return True
        except (PermissionError, OSError, IOError):
            return False


class ErrorRecovery:
    """Graceful error recovery and fallbacks."""

    @staticmethod
    def safe_copy(src: Path, dst: Path, max_attempts: int = 3, retry_delay: float = 1) -> bool:
        """
        Copy a file with retries and size verification.

        Args:
            src: Source path
            dst: Destination path
            max_attempts: Maximum attempts
            retry_delay: Seconds to wait between attempts

        Returns:
            True if the copy matches the source size, False otherwise
        """
        try:
            source_size = src.stat().st_size
        except OSError as e:
            logging.error(f"Cannot stat source file {src}: {e}")
            return False

        for attempt in range(max_attempts):
            try:
                shutil.copy2(str(src), str(dst))

                dest_size = dst.stat().st_size
                if dest_size == source_size:
                    return True
                logging.error(f"Size mismatch after copy: {source_size} != {dest_size}")
            except OSError as e:
                logging.warning(f"Copy attempt {attempt + 1}/{max_attempts} failed: {e}")

            if attempt < max_attempts - 1:
                time.sleep(retry_delay)

        return False

    @staticmethod
    def safe_read_text(path: Path, default: Optional[str] = None,
                       max_size_mb: int = 10) -> Optional[str]:
        """
        Safely read text file with size limit.

        Args:
            path: File path
            default: Value returned if the read fails
            max_size_mb: Maximum file size in MB

        Returns:
            File contents or default
        """
        try:
            # Check size first
            size_mb = path.stat().st_size / (1024 * 1024)
            if size_mb > max_size_mb:
                logging.error(f"File too large to read: {size_mb:.1f}MB > {max_size_mb}MB")
                return default

            with open(path, 'r', encoding='utf-8', newline='') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logging.error(f"Cannot read file {path}: {e}")
            return default
