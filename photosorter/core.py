"""
Core photo sorting functionality: one validated, sequential pass from a
source tree into date-named folders under a destination.
"""

import queue
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from .collector import collect_media
from .constants import PROGRAM, PROGRESS_INTERVAL, get_logger
from .errors import (ConfigurationError, DestinationInsideSourceError, SameFolderError,
                     SkipLogError, SourceInsideDestinationError, SourceNotDirectoryError,
                     SourceNotFoundError, SourceUnreadableError, describe_error)
from .file_operations import FileOperations
from .models import (MediaEntry, Placed, ProgressUpdated, RunEvent, RunFailed, RunFinished,
                     RunResult, ScanCompleted, SkipEntry, Skipped, SortOptions, StatusChanged,
                     TransferOutcome)
from .skiplog import write_skip_log
from .stats import RunStats
from .timestamps import resolve_date


EventListener = Callable[[RunEvent], None]


class RunState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SCANNING = "scanning"
    SORTING = "sorting"
    FINALIZING = "finalizing"


_STATE_ORDER = [RunState.IDLE, RunState.VALIDATING, RunState.SCANNING,
                RunState.SORTING, RunState.FINALIZING]


class SortRun:
    """Runs one sort pass: validate, scan, sort, finalize.

    Counters and the skipped files list belong to the current run and are
    reset when it starts. Progress is reported by calling listener with
    RunEvent objects; the listener must not block.
    """

    def __init__(self, source: Union[str, Path], dest: Union[str, Path],
                 options: Optional[SortOptions] = None,
                 listener: Optional[EventListener] = None):
        self.source = Path(source).expanduser()
        self.dest = Path(dest).expanduser()
        self.options = options or SortOptions()
        self.listener = listener
        self.file_ops = FileOperations(mode=self.options.transfer_mode)
        self.stats = RunStats()
        self.skipped_entries: List[SkipEntry] = []
        self.state = RunState.IDLE
        self.status = "Choose a source and destination to begin."
        self.started_at: Optional[datetime] = None
        self.logger = get_logger()

    # State and event plumbing

    def _transition(self, state: RunState) -> None:
        if _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise RuntimeError(f"Invalid run transition: {self.state.value} -> {state.value}")
        self.logger.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state

    def _emit(self, event: RunEvent) -> None:
        if self.listener is not None:
            self.listener(event)

    def _set_status(self, message: str) -> None:
        self.status = message
        self._emit(StatusChanged(message))

    # Phases

    def validate(self) -> None:
        """Reject unusable source/destination pairs before touching anything.

        The only filesystem change is the write probe in the destination.
        """
        source = self.source.resolve()
        dest = self.dest.resolve()

        if not source.exists():
            raise SourceNotFoundError(f"Source directory does not exist: {source}")
        if not source.is_dir():
            raise SourceNotDirectoryError(f"Source is not a directory: {source}")
        if source in dest.parents:
            raise DestinationInsideSourceError(
                "Destination is inside Source. Choose a different destination "
                "(not within the source tree)."
            )
        if source == dest:
            raise SameFolderError("Source and Destination are the same folder.")
        if dest in source.parents:
            raise SourceInsideDestinationError(
                "Source is inside Destination. Choose a source folder outside the destination tree."
            )

        self.file_ops.preflight_write_test(dest)
        self.source = source
        self.dest = dest

    def scan(self) -> List[MediaEntry]:
        """Materialize the candidate list for this run."""
        self._set_status("Scanning…")
        try:
            entries = list(collect_media(self.source, self.options.include_subfolders, self.dest))
        except OSError as e:
            raise SourceUnreadableError(f"Could not read source folder: {describe_error(e)}") from e

        message = f"Found {len(entries)} files. Sorting…"
        self.status = message
        self._emit(ScanCompleted(total=len(entries), message=message))
        self.logger.info(f"Found {len(entries)} media files in {self.source}")
        return entries

    def sort(self, entries: List[MediaEntry]) -> None:
        """Place every entry; a failure only ever affects its own file."""
        total = len(entries)
        for index, entry in enumerate(entries, start=1):
            try:
                outcome = self._process_entry(entry)
            except Exception as e:
                outcome = Skipped(describe_error(e))

            if isinstance(outcome, Skipped):
                self.stats.record_skipped()
                self.skipped_entries.append(SkipEntry(entry.name, outcome.reason))
                self.logger.warning(f"Skipped {entry.path}: {outcome.reason}")

            if index % PROGRESS_INTERVAL == 0 or index == total:
                message = f"{index}/{total} files processed…"
                self.status = message
                self._emit(ProgressUpdated(completed=index, total=total,
                                           processed=self.stats.processed,
                                           skipped=self.stats.skipped, message=message))

    def _process_entry(self, entry: MediaEntry) -> TransferOutcome:
        file_size = entry.path.stat().st_size
        capture_date = resolve_date(entry.path, fallback=self.started_at, kind=entry.kind)
        folder = self.dest / self.options.scheme.path(capture_date)
        outcome = self.file_ops.place(entry.path, folder)
        if isinstance(outcome, Placed):
            self.stats.record_placed(entry, file_size)
        return outcome

    def finalize(self) -> RunResult:
        """Write the skipped files log if wanted and build the final summary."""
        status = (f"Done. Moved/Copied {self.stats.processed} file(s); "
                  f"Skipped {self.stats.skipped}.")
        log_path = None

        if self.options.write_skip_log and self.skipped_entries:
            try:
                log_path = write_skip_log(self.dest, self.skipped_entries)
                status += f" Saved log to: {log_path.name}"
            except SkipLogError as e:
                self.logger.warning(f"Could not write skipped files log: {e}")
                status += f" (Failed to save skipped log: {e})"

        self._set_status(status)
        return RunResult(
            processed=self.stats.processed,
            skipped=self.stats.skipped,
            skipped_entries=tuple(self.skipped_entries),
            skip_log_path=log_path,
            status=status,
        )

    # Entry points

    def run(self) -> RunResult:
        """Run a full pass on the calling thread.

        Raises ConfigurationError (after emitting RunFailed) when the
        source/destination pair is rejected.
        """
        if self.state is not RunState.IDLE:
            raise RuntimeError("A sort run is already in progress")

        self.stats.reset()
        self.skipped_entries = []
        self.started_at = datetime.now(timezone.utc)
        mode = self.options.transfer_mode.value.upper()
        self.logger.info(f"Starting sort run: {self.source} -> {self.dest} ({mode})")

        try:
            self._transition(RunState.VALIDATING)
            self.validate()
            self._transition(RunState.SCANNING)
            entries = self.scan()
            self._transition(RunState.SORTING)
            self.sort(entries)
            self._transition(RunState.FINALIZING)
            result = self.finalize()
        except Exception as e:
            self.state = RunState.IDLE
            if isinstance(e, ConfigurationError):
                self.status = f"Error: {e}"
                self.logger.error(f"Run rejected: {e}")
            self._emit(RunFailed(e))
            raise

        self.state = RunState.IDLE
        self.logger.info(result.status)
        self._emit(RunFinished(result))
        return result

    def start(self) -> "RunHandle":
        """Run a full pass on a background worker thread."""
        handle = RunHandle(self)
        handle.start()
        return handle


class RunHandle:
    """A run executing on its own worker thread, with its events queued for the caller."""

    def __init__(self, sorter: SortRun):
        self.sorter = sorter
        self._events: "queue.SimpleQueue[RunEvent]" = queue.SimpleQueue()
        self._forward = sorter.listener
        self._result: Optional[RunResult] = None
        self._error: Optional[Exception] = None
        self._thread = threading.Thread(target=self._work, name=f"{PROGRAM}-worker", daemon=True)
        sorter.listener = self._publish

    def _publish(self, event: RunEvent) -> None:
        self._events.put(event)
        if self._forward is not None:
            self._forward(event)

    def _work(self) -> None:
        try:
            self._result = self.sorter.run()
        except Exception as e:
            self._error = e
            # run() reports its own failures; only a refused start is left unreported
            if not isinstance(e, ConfigurationError) and self.sorter.state is not RunState.IDLE:
                self._events.put(RunFailed(e))

    def start(self) -> None:
        self._thread.start()

    def events(self) -> Iterator[RunEvent]:
        """Yield events as the worker produces them, ending with RunFinished or RunFailed."""
        while True:
            event = self._events.get()
            yield event
            if isinstance(event, (RunFinished, RunFailed)):
                return

    def wait(self, timeout: Optional[float] = None) -> RunResult:
        """Join the worker and return its result, re-raising any run error."""
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError("Sort run is still in progress")
        if self._error is not None:
            raise self._error
        return self._result
