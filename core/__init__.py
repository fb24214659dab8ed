"""
Contender Core Module
Finds concurrency call sites in Java sources and injects scheduling noise.
"""

from .config import Config
from .file_handler import FileHandler
from .logger import setup_logging
from .points import ConstructKind, NoiseKind, Noise, Point, Policy, SourceUnit

__all__ = [
    'Config',
    'FileHandler',
    'setup_logging',
    'ConstructKind',
    'NoiseKind',
    'Noise',
    'Point',
    'Policy',
    'SourceUnit'
]
