"""
Contender: scheduling noise for concurrency testing.

Scans Java sources for synchronization call sites (locks, latches, barriers,
semaphores) and injects probability-gated sleeps and yields in front of
them, so that thread interleavings vary from run to run. Every rewritten
file is backed up first and can be reverted byte for byte.
"""

import sys
import argparse
import logging
import random
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from colorama import init, Fore, Style

from core import Config, setup_logging
from core.annotations import freeze
from core.classifier import find_points
from core.file_handler import BackupError, FileHandler, RestoreError
from core.injector import instrument_unit
from core.noise_policy import generate_points
from core.points import Point, SourceUnit
from core.preparser import PreParser
from core.structured_events import EventBuilder, EventEmitter
from utils.defensive import InputValidator, ValidationError
from utils.error_messages import (format_backup_error, format_restore_error,
                                  format_unreadable_source_error)
from utils.plan_summary import InstrumentationPlan
from utils.progress import ProgressTracker


ASCII_ART = r"""
                  _                 _
   ___ ___  _ __ | |_ ___ _ __   __| | ___ _ __
  / __/ _ \| '_ \| __/ _ \ '_ \ / _` |/ _ \ '__|
 | (_| (_) | | | | ||  __/ | | | (_| |  __/ |
  \___\___/|_| |_|\__\___|_| |_|\__,_|\___|_|

"""


class ContenderApp:
    """Drives one run over a source tree: scan, plan, instrument or revert."""

    def __init__(self, config: Config, automatic: bool = False, seed: Optional[int] = None,
                 lower_bound: Optional[int] = None, upper_bound: Optional[int] = None,
                 emitter: Optional[EventEmitter] = None, show_progress: bool = True):
        """
        Initialize the application.

        Args:
            config: Loaded configuration
            automatic: Generate points from the policy instead of annotations
            seed: Seed for the run's random generator (None for a random seed)
            lower_bound: Override of the configured scope start (percent)
            upper_bound: Override of the configured scope end (percent)
            emitter: Structured event sink
            show_progress: Display a progress bar while rewriting files
        """
        self.config = config
        self.automatic = automatic
        self.seed = seed
        self.rng = random.Random(seed)
        self.lower_bound = config.lower_bound if lower_bound is None else lower_bound
        self.upper_bound = config.upper_bound if upper_bound is None else upper_bound
        self.file_handler = FileHandler(config)
        self.project_root: Optional[Path] = None
        self.preparser = PreParser()
        self.emitter = emitter or EventEmitter(enable_file=False)
        self.events = EventBuilder(self.emitter)
        self.progress = ProgressTracker(enabled=show_progress)
        self.dry_run = False
        self.stats = {
            'files_scanned': 0,
            'files_instrumented': 0,
            'files_annotated': 0,
            'files_reverted': 0,
            'files_skipped': 0,
            'points_injected': 0,
            'errors': 0
        }

    def load_units(self, paths: List[Path], plan: Optional[InstrumentationPlan] = None) -> List[SourceUnit]:
        """
        Read source files into units, skipping unreadable or still-instrumented files.

        Args:
            paths: Source files
            plan: Plan to record skipped files in

        Returns:
            Loaded units
        """
        units = []
        for path in paths:
            if self.file_handler.has_backup(path):
                self._skip(path, "still instrumented, revert it first", plan)
                continue

            text = self.file_handler.read_source(path)
            if text is None:
                logging.warning(format_unreadable_source_error(path, "could not be read as text"))
                self._skip(path, "unreadable", plan)
                continue

            units.append(SourceUnit.from_text(path, text, self.lower_bound, self.upper_bound))
        return units

    def scan(self, units: List[SourceUnit]):
        """Pre-parse the batch, then find the points of every unit."""
        self.preparser.project_root = self.project_root
        self.preparser.preparse(units)
        for unit in units:
            find_points(unit, self.preparser.catalogue_for(unit))
            self.stats['files_scanned'] += 1
            self.events.file_scanned(unit.path, len(unit.points), len(unit.instrumentation_points))

    def select_points(self, unit: SourceUnit) -> List[Point]:
        """Points to inject: policy-generated in automatic mode, annotated otherwise."""
        if self.automatic:
            return generate_points(unit, self.config.policy, self.rng)
        return unit.instrumentation_points

    def instrument_file(self, unit: SourceUnit, points: List[Point]) -> bool:
        """
        Back up one file and rewrite it with noise.

        The file is never written unless its backup was made.

        Returns:
            True if the file was rewritten
        """
        path = unit.path
        if not self.file_handler.wait_for_file_release(path):
            self._skip(path, "held open by another process")
            return False

        try:
            backup = self.file_handler.backup(path)
        except BackupError as e:
            logging.error(format_backup_error(path, self.file_handler.backup_path(path), str(e)))
            self.events.backup_failed(path, str(e))
            self.stats['errors'] += 1
            return False
        self.events.file_backed_up(path, backup)

        try:
            self.file_handler.write_source(path, instrument_unit(unit, points))
        except OSError as e:
            logging.error(f"Could not write instrumented {path}: {e}")
            self.stats['errors'] += 1
            self._revert_file(path)
            return False

        self.stats['files_instrumented'] += 1
        self.stats['points_injected'] += len(points)
        self.events.file_instrumented(path, len(points))
        return True

    def freeze_file(self, unit: SourceUnit, points: List[Point]) -> bool:
        """
        Write points into a file as @PreemptionPoint annotations.

        Annotations are meant to be kept, so no backup is made.
        """
        text_lines = freeze(unit.lines, points)
        frozen = SourceUnit(path=unit.path, lines=text_lines, newline=unit.newline,
                            trailing_newline=unit.trailing_newline)
        try:
            self.file_handler.write_source(unit.path, frozen.text())
        except OSError as e:
            logging.error(f"Could not write annotations into {unit.path}: {e}")
            self.stats['errors'] += 1
            return False

        self.stats['files_annotated'] += 1
        self.events.file_annotated(unit.path, len(points))
        return True

    def build_plan(self, root: Path) -> Tuple[List[SourceUnit], InstrumentationPlan, Dict[Path, List[Point]]]:
        """
        Discover, load and scan every source file under a root.

        Returns:
            (units, plan, points per unit path)
        """
        self.project_root = root if root.is_dir() else root.parent
        plan = InstrumentationPlan(automatic=self.automatic)

        paths = self.file_handler.find_source_files(root)
        units = self.load_units(paths, plan)
        self.scan(units)

        selected = {}
        for unit in units:
            points = self.select_points(unit)
            selected[unit.path] = points
            plan.add_file(unit.path, len(unit.points), points)
        return units, plan, selected

    def run(self, root: Path, freeze_points: bool = False) -> InstrumentationPlan:
        """
        Instrument (or annotate) every source file under a root.

        Args:
            root: Source folder or single file
            freeze_points: Write annotations instead of injecting noise

        Returns:
            The plan that was carried out
        """
        self.events.session_started(root, self.automatic, self.seed)
        units, plan, selected = self.build_plan(root)

        if self.dry_run:
            return plan

        targets = [unit for unit in units if selected[unit.path]]
        self.progress.start(len(targets), desc="Annotating" if freeze_points else "Instrumenting")
        try:
            for unit in targets:
                if freeze_points:
                    self.freeze_file(unit, selected[unit.path])
                else:
                    self.instrument_file(unit, selected[unit.path])
                self.progress.update(current=unit.name)
        finally:
            self.progress.close()

        self.events.session_completed(len(targets), self.stats['points_injected'],
                                      self.stats['files_skipped'])
        return plan

    def revert(self, root: Path) -> int:
        """
        Restore every instrumented file under a root from its backup.

        Returns:
            Number of files reverted
        """
        reverted = 0
        for path in self.file_handler.find_backed_up_files(root):
            if self._revert_file(path):
                reverted += 1
        return reverted

    def _revert_file(self, path: Path) -> bool:
        try:
            restored = self.file_handler.restore(path)
        except RestoreError as e:
            logging.error(format_restore_error(path, self.file_handler.backup_path(path), str(e)))
            self.events.restore_failed(path, str(e))
            self.stats['errors'] += 1
            return False

        if restored:
            self.stats['files_reverted'] += 1
            self.events.file_reverted(path)
        return restored

    def _skip(self, path: Path, reason: str, plan: Optional[InstrumentationPlan] = None):
        self.stats['files_skipped'] += 1
        self.events.file_skipped(path, reason)
        if plan is not None:
            plan.add_skip(path, reason)

    def display_summary(self):
        """Display final statistics."""
        print(f"\n{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
        print(f"  scanned:      {self.stats['files_scanned']} files")
        if self.stats['files_instrumented']:
            print(f"  {Fore.GREEN}instrumented: {self.stats['files_instrumented']} files, "
                  f"{self.stats['points_injected']} points{Style.RESET_ALL}")
        if self.stats['files_annotated']:
            print(f"  {Fore.GREEN}annotated:    {self.stats['files_annotated']} files{Style.RESET_ALL}")
        if self.stats['files_reverted']:
            print(f"  {Fore.GREEN}reverted:     {self.stats['files_reverted']} files{Style.RESET_ALL}")
        if self.stats['files_skipped']:
            print(f"  {Fore.YELLOW}[!] skipped: {self.stats['files_skipped']} files{Style.RESET_ALL}")
        if self.stats['errors']:
            print(f"  {Fore.RED}[!] errors: {self.stats['errors']} (see log){Style.RESET_ALL}")
        print(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}\n")


def clean_path(path_str: str) -> str:
    """
    Clean path string by removing quotes and extra whitespace.

    Args:
        path_str: Raw path string

    Returns:
        Cleaned path string
    """
    cleaned = path_str.strip()
    # Remove surrounding quotes (single or double)
    if (cleaned.startswith('"') and cleaned.endswith('"')) or \
       (cleaned.startswith("'") and cleaned.endswith("'")):
        cleaned = cleaned[1:-1]
    return cleaned.strip()


def get_user_input(prompt: str) -> Path:
    """Prompt user for a source folder until an existing path is given."""
    while True:
        path = Path(clean_path(input(prompt)))
        if path.exists():
            return path
        print(Fore.RED + "Invalid path. Please enter an existing folder or file." + Style.RESET_ALL)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inject scheduling noise in front of Java synchronization call sites.",
        epilog="Examples:\n"
               "  contender src/                     (manual mode: annotated call sites only)\n"
               "  contender src/ --auto --seed 42    (policy-driven noise, reproducible)\n"
               "  contender src/ --auto --freeze     (write the policy's choices as annotations)\n"
               "  contender src/ --revert            (restore the originals)",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('source_pos', nargs='?', help='Source folder or file (positional)')
    parser.add_argument('--source', '-s', help='Source folder or file')
    parser.add_argument('--config', '-c', help='Path to config.json file')
    parser.add_argument('--auto', action='store_true', help='Generate noise from the policy (ignores annotations)')
    parser.add_argument('--seed', type=int, help='Seed for the random choices of --auto')
    parser.add_argument('--lower', type=int, help='Automatic scope start, percent of each file (overrides config)')
    parser.add_argument('--upper', type=int, help='Automatic scope end, percent of each file (overrides config)')
    parser.add_argument('--revert', action='store_true', help='Restore instrumented files from their backups')
    parser.add_argument('--freeze', action='store_true', help='Write points as @PreemptionPoint annotations instead of noise')
    parser.add_argument('--dry-run', action='store_true', help='Show what would be done without making changes')
    parser.add_argument('--show-plan', action='store_true', help='Show the detailed plan and exit (no changes)')
    parser.add_argument('--no-progress', action='store_true', help='Hide the progress bar')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with defensive error handling."""
    init()  # Initialize colorama

    args = build_parser().parse_args(argv)
    if args.source_pos:
        args.source = args.source_pos

    print(Fore.YELLOW + ASCII_ART + Style.RESET_ALL)

    try:
        config_path = Path(args.config) if args.config else Path('config_files/config.json')
        config = Config(config_path if config_path.exists() else None)

        try:
            log_file = setup_logging(config.log_folder, config.max_log_files)
            logging.info("=" * 70)
            logging.info("Contender started")
            logging.info(f"Log file: {log_file}")
        except OSError as e:
            print(Fore.RED + f"Error setting up logging: {e}" + Style.RESET_ALL)
            return 1

        try:
            if args.source:
                root = InputValidator.validate_path(clean_path(args.source), must_exist=True)
            else:
                root = InputValidator.validate_path(
                    get_user_input("Enter the path to your Java sources: "), must_exist=True)
            lower = InputValidator.validate_int(args.lower, 0, 100, allow_none=True)
            upper = InputValidator.validate_int(args.upper, 0, 100, allow_none=True)
        except ValidationError as e:
            print(Fore.RED + f"Invalid argument: {e}" + Style.RESET_ALL)
            logging.error(f"Argument validation: {e}")
            return 1

        emitter = EventEmitter(log_file=Path(config.log_folder) / 'events.jsonl', enable_console=False)
        app = ContenderApp(config, automatic=args.auto, seed=args.seed,
                           lower_bound=lower, upper_bound=upper, emitter=emitter,
                           show_progress=not args.no_progress)
        if app.lower_bound > app.upper_bound:
            print(Fore.RED + f"Invalid scope: lower {app.lower_bound}% > upper {app.upper_bound}%"
                  + Style.RESET_ALL)
            return 1

        if args.revert:
            reverted = app.revert(root)
            print(f"[REVERT] {Fore.GREEN}{reverted}{Style.RESET_ALL} files restored under {root}")
            app.display_summary()
            return 1 if app.stats['errors'] else 0

        app.dry_run = args.dry_run or args.show_plan
        if app.dry_run:
            print(f"{Fore.YELLOW}[DRY-RUN MODE] No files will be modified{Style.RESET_ALL}")
            logging.info("Dry-run mode enabled - no modifications will be made")

        plan = app.run(root, freeze_points=args.freeze)

        if app.dry_run:
            plan.print_summary()
            return 0

        app.display_summary()
        if app.stats['files_instrumented']:
            print(f"[INFO] Run {Fore.CYAN}contender {root} --revert{Style.RESET_ALL} to restore the originals")
        logging.info("Contender completed")
        return 1 if app.stats['errors'] else 0

    except KeyboardInterrupt:
        print(Fore.YELLOW + "\n\nOperation interrupted by user" + Style.RESET_ALL)
        logging.info("User interrupted operation")
        return 130
    except Exception as e:
        print(Fore.RED + f"\nUnexpected error: {e}" + Style.RESET_ALL)
        logging.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
