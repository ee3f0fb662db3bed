import argparse
import logging
import signal
import threading
from typing import List, Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from .config import SorterConfig, load_config
from .errors import ConfigError, FatalRunError
from .log import setup_logging
from .pipeline import run
from .utils import COLLISION_POLICIES

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CANCELLED = 130


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="fitsort",
        description="Copy manually tagged single-sport FIT activities into a year-sharded archive.",
    )
    p.add_argument("-i", "--in", dest="input_root", help="Input directory (default: .)")
    p.add_argument("-o", "--out", dest="output_root", help="Output directory (default: out/)")
    p.add_argument("--config", help="Path to a JSON config file; command line flags win.")
    p.add_argument("--ext", dest="suffix", help="Suffix of candidate files (default: .fit)")
    p.add_argument("--workers", type=int, help="Number of files processed in parallel (default: 1)")
    p.add_argument("--dry-run", action="store_true", default=None, help="Show planned copies, write nothing.")
    p.add_argument("--collisions", choices=COLLISION_POLICIES,
                   help="What to do when two files get the same name in one run.")
    p.add_argument("--journal", action="store_true", default=None,
                   help="Record the run under <out>/.fitsort/.")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    p.add_argument("--no-progress", action="store_true", help="Hide the progress counter.")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> SorterConfig:
    base = load_config(args.config) if args.config else SorterConfig()
    return base.replace(
        input_root=args.input_root,
        output_root=args.output_root,
        suffix=args.suffix,
        workers=args.workers,
        dry_run=args.dry_run,
        collisions=args.collisions,
        journal=args.journal,
        log_level=args.log_level,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
    except ConfigError as e:
        setup_logging()
        log.error("invalid configuration: %s", e)
        return EXIT_FATAL

    setup_logging(config.log_level)

    # Ctrl-C stops between files instead of in the middle of a copy
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())
    try:
        with logging_redirect_tqdm(), tqdm(unit=" files", disable=args.no_progress) as bar:
            summary = run(config, cancel=cancel, on_outcome=lambda outcome: bar.update(1))
    except FatalRunError as e:
        log.error("%s", e)
        return EXIT_FATAL
    finally:
        signal.signal(signal.SIGINT, previous)

    return EXIT_CANCELLED if summary.cancelled else EXIT_OK
