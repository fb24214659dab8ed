"""
Progress display for Contender runs.
"""

from tqdm import tqdm
from typing import Optional


class ProgressTracker:
    """Wraps a tqdm bar over the files of a run."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.pbar: Optional[tqdm] = None

    def start(self, total: int, desc: str = "Instrumenting", unit: str = "file"):
        """
        Start a new progress bar.

        Args:
            total: Total number of files
            desc: Description to display
            unit: Unit name for progress
        """
        self.close()
        self.pbar = tqdm(total=total, desc=desc, unit=unit, disable=not self.enabled, leave=False)

    def update(self, n: int = 1, current: Optional[str] = None):
        """Advance the bar, showing the file just handled."""
        if self.pbar:
            if current:
                self.pbar.set_postfix_str(current)
            self.pbar.update(n)

    def close(self):
        if self.pbar:
            self.pbar.close()
            self.pbar = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
