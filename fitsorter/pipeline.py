"""Drive source files through decode, classify, name and copy.

``process_file`` handles exactly one file and never raises for per-file
problems, including unexpected decoder exceptions; every such problem ends
up in the returned Outcome. ``run`` walks the input tree and feeds
``process_file`` either in a loop or through a bounded thread pool.
Only FatalRunError escapes from ``run``.
"""
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from functools import partial
from typing import Callable, Iterator, List, Optional
import logging
import threading

from .classifier import ActivityClassifier
from .config import SorterConfig, ensure_output_root
from .decoder import FitRecordDecoder, RecordDecoder, decode_file
from .errors import CopyError, NotQualifyingError, RecordError
from .journal import RunJournal
from .models import Outcome, OutcomeKind, RunSummary, SourceFile
from .naming import compute_name
from .placer import SafeCopier
from .scanner import FolderScanner
from .utils import DestinationRegistry

log = logging.getLogger(__name__)

OutcomeCallback = Callable[[Outcome], None]


def process_file(
    source: SourceFile,
    config: SorterConfig,
    *,
    decoder: Optional[RecordDecoder] = None,
    classifier: Optional[ActivityClassifier] = None,
    registry: Optional[DestinationRegistry] = None,
    copier: Optional[SafeCopier] = None,
) -> Outcome:
    path = source.path
    if not source.is_regular:
        log.info("skipping %s (not a regular file)", path)
        return Outcome.skipped(path, "not a regular file")
    if not path.name.endswith(config.suffix):
        log.info("skipping %s", path)
        return Outcome.skipped(path, f"does not end with {config.suffix}")

    try:
        activity = decode_file(path, decoder or FitRecordDecoder())
    except RecordError as exc:
        log.warning("not an activity file '%s': %s", path, exc)
        return Outcome.decode_failed(path, str(exc))
    except Exception as exc:
        # Injected decoders may fail outside the RecordError family
        log.exception("decoder failed on '%s'", path)
        return Outcome.decode_failed(path, f"unexpected decoder error: {exc}")

    try:
        session = (classifier or ActivityClassifier()).classify(activity)
    except NotQualifyingError as exc:
        log.warning("failed to name '%s': %s", path, exc)
        return Outcome.not_qualifying(path, str(exc))

    relative = compute_name(session.start, session.sport, session.duration_millis, config.extension)
    if registry is not None:
        relative = registry.claim(relative, path)

    copier = copier or SafeCopier(config.output_root, dry_run=config.dry_run)
    try:
        result = copier.copy_one(path, relative)
    except CopyError as exc:
        log.warning("copy failed for '%s': %s", path, exc)
        return Outcome.copy_failed(path, str(exc))

    if result.performed:
        log.info("copied %s -> %s", path, result.dst)
    else:
        log.info("would copy %s -> %s (%s)", path, result.dst, result.reason)
    return Outcome.copied(path, result.dst, performed=result.performed, reason=result.reason)


def _run_sequential(task, sources: Iterator[SourceFile], cancel: threading.Event, collect) -> bool:
    for source in sources:
        if cancel.is_set():
            return True
        collect(task(source))
    return False


def _run_pooled(task, sources: Iterator[SourceFile], cancel: threading.Event, collect, workers: int) -> bool:
    cancelled = False
    limit = workers * 2
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fitsort") as pool:
        pending = set()
        try:
            for source in sources:
                if cancel.is_set():
                    cancelled = True
                    break
                pending.add(pool.submit(task, source))
                if len(pending) >= limit:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        collect(future.result())
        except BaseException:
            pool.shutdown(wait=True, cancel_futures=True)
            raise

        # In-flight files always finish, even after a cancel
        for future in wait(pending).done:
            collect(future.result())
    return cancelled


def run(
    config: SorterConfig,
    *,
    decoder: Optional[RecordDecoder] = None,
    cancel: Optional[threading.Event] = None,
    on_outcome: Optional[OutcomeCallback] = None,
) -> RunSummary:
    log.info("input directory %s", config.input_root)
    log.info("output directory %s", config.output_root)
    ensure_output_root(config)

    cancel = cancel or threading.Event()
    decoder = decoder or FitRecordDecoder()
    registry = DestinationRegistry(config.collisions)
    copier = SafeCopier(config.output_root, dry_run=config.dry_run)
    scanner = FolderScanner(config.input_root, exclude=[config.output_root])

    summary = RunSummary()
    outcomes: List[Outcome] = []

    def collect(outcome: Outcome) -> None:
        summary.add(outcome)
        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    task = partial(
        process_file,
        config=config,
        decoder=decoder,
        classifier=ActivityClassifier(),
        registry=registry,
        copier=copier,
    )

    if config.workers <= 1:
        summary.cancelled = _run_sequential(task, scanner.scan(), cancel, collect)
    else:
        summary.cancelled = _run_pooled(task, scanner.scan(), cancel, collect, config.workers)
    summary.collisions = registry.collisions

    if config.journal and not config.dry_run:
        try:
            run_file = RunJournal(config.output_root).write_run(RunJournal.new_run_id(), outcomes, summary)
        except OSError as exc:
            log.error("could not write run journal: %s", exc)
        else:
            log.info("run journaled in %s", run_file)

    log_summary(summary)
    return summary


def log_summary(summary: RunSummary) -> None:
    if summary.cancelled:
        log.warning("run cancelled, remaining files were not processed")
    log.info(
        "processed %d entries: %d copied, %d skipped, %d failed",
        summary.total, summary.copied, summary.skipped, summary.failed,
    )
    if summary.collisions:
        log.warning("%d destination name collisions", summary.collisions)
    for kind in (OutcomeKind.DECODE_FAILED, OutcomeKind.NOT_QUALIFYING, OutcomeKind.COPY_FAILED):
        for outcome in summary.failures:
            if outcome.kind is kind:
                log.info("  %s %s: %s", kind.value, outcome.source, outcome.reason)
