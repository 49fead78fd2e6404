"""
Parallel search over the mixed-radix index space.
- One task per work range on a thread pool; each walks its range in ascending order.
- A shared Event broadcasts cancellation (match found or Ctrl+C).
- A background thread saves the checkpoint and prints progress on a fixed interval.
- A final checkpoint is written on every shutdown path.
"""

import enum
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_COMPLETED, Future
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from seed_recovery import console
from seed_recovery.candidates import CandidateBuilder
from seed_recovery.checkpoint import CheckpointStore, Progress, RangeCursor
from seed_recovery.config import RunOptions, SearchConfig
from seed_recovery.index_space import decode, search_size
from seed_recovery.oracle import DerivationOracle
from seed_recovery.partition import WorkerRange, partition

POLL_INTERVAL = 0.2  # seconds the supervisor blocks before re-checking for Ctrl+C


class WorkerState(enum.Enum):
    RUNNING = "running"
    EXHAUSTED = "exhausted"
    MATCH_FOUND = "match_found"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Match:
    index: int
    words: Tuple[str, ...]
    address: bytes

    @property
    def phrase(self) -> str:
        return " ".join(self.words)


@dataclass
class WorkerOutcome:
    range_id: int
    state: WorkerState
    tested: int = 0
    skipped: int = 0
    cursor: int = 0
    match: Optional[Match] = None


@dataclass
class SearchResult:
    total: int
    tested: int
    skipped: int
    elapsed: float
    match: Optional[Match] = None
    cancelled: bool = False
    failed_ranges: List[int] = field(default_factory=list)
    outcomes: List[WorkerOutcome] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.match is None and not self.cancelled and not self.failed_ranges


# ---------------- worker ----------------
def run_worker(range_id: int, work: WorkerRange, builder: CandidateBuilder,
               oracle: DerivationOracle, target: bytes, progress: Progress,
               cancel: threading.Event, flush_every: int) -> WorkerOutcome:
    """
    Enumerate one half-open range in ascending order.
    Counts are buffered locally and added to progress every flush_every
    candidates, together with the cursor (first index not yet tested).
    """
    config = builder.config
    wordlist_size, missing_count = config.wordlist_size, config.missing_count
    outcome = WorkerOutcome(range_id, WorkerState.RUNNING, cursor=work.start)
    buf_tested = buf_skipped = 0

    try:
        for index in range(work.start, work.end):
            if cancel.is_set():
                outcome.state = WorkerState.CANCELLED
                break

            words = builder.build(decode(index, wordlist_size, missing_count))
            if words is None:
                buf_skipped += 1
            else:
                address, ok = oracle.derive(words)
                buf_tested += 1
                if ok and address == target:
                    # cursor stays on the match so a rerun finds it again
                    outcome.match = Match(index, tuple(words), address)
                    outcome.state = WorkerState.MATCH_FOUND
                    cancel.set()
                    break
            outcome.cursor = index + 1

            if buf_tested + buf_skipped >= flush_every:
                progress.add(range_id, outcome.cursor, buf_tested, buf_skipped)
                outcome.tested += buf_tested
                outcome.skipped += buf_skipped
                buf_tested = buf_skipped = 0
        else:
            outcome.state = WorkerState.EXHAUSTED
    finally:
        progress.add(range_id, outcome.cursor, buf_tested, buf_skipped)
        outcome.tested += buf_tested
        outcome.skipped += buf_skipped

    return outcome


# ---------------- checkpoint flusher ----------------
class CheckpointFlusher(threading.Thread):
    """Saves progress and prints the progress line every `interval` seconds until stopped."""

    def __init__(self, store: CheckpointStore, progress: Progress, total: int, interval: float):
        super().__init__(name="checkpoint-flusher", daemon=True)
        self.store = store
        self.progress = progress
        self.total = total
        self.interval = interval
        self._halt = threading.Event()
        self._start_time = time.time()
        self._start_checked = self._checked()

    def _checked(self) -> int:
        return self.progress.tested_combinations + self.progress.skipped_combinations

    def run(self):
        while not self._halt.wait(self.interval):
            self.store.save(self.progress)
            self.report()

    def report(self):
        checked = self._checked()
        elapsed = time.time() - self._start_time
        rate = (checked - self._start_checked) / elapsed if elapsed > 0 else 0.0
        remaining = max(0, self.total - checked)
        eta = remaining / rate if rate > 0 else float("inf")
        console.print_progress_inline(checked, self.total, rate, elapsed, eta)

    def stop(self):
        self._halt.set()
        if self.is_alive():
            self.join()


# ---------------- supervisor ----------------
class SearchSupervisor:
    def __init__(self, config: SearchConfig, oracle: DerivationOracle, target: bytes,
                 options: Optional[RunOptions] = None, store: Optional[CheckpointStore] = None):
        self.config = config
        self.oracle = oracle
        self.target = target
        self.options = options or RunOptions()
        self.store = store or CheckpointStore(self.options.checkpoint_path, self.options.save_checkpoints)
        self.total = search_size(config.wordlist_size, config.missing_count)
        self.cancel = threading.Event()
        self.progress: Optional[Progress] = None

    def load_progress(self) -> Progress:
        """Resume a compatible checkpoint or start fresh ranges."""
        ranges = partition(self.total, self.options.workers)
        saved = self.store.load() if self.store.enabled else None

        if saved is None:
            return Progress.fresh(self.config, ranges)
        if not saved.is_compatible(self.config):
            console.warn("Checkpoint was made for different known words/positions, starting over")
            return Progress.fresh(self.config, ranges)

        if saved.spans(self.total):
            console.info(f"Resuming checkpoint: {saved.tested_combinations:,} tested, "
                         f"{len(saved.pending())} ranges with work left")
            return saved

        if not saved.ranges and 0 <= saved.last_index < self.total:
            # sequential checkpoint: [0, last_index] is done, spread the rest over the workers
            done_upto = saved.last_index + 1
            rest = partition(self.total - done_upto, self.options.workers)
            saved.ranges = [RangeCursor(0, done_upto, done_upto)] + [
                RangeCursor(r.start + done_upto, r.end + done_upto, r.start + done_upto) for r in rest
            ]
            console.info(f"Resuming sequential checkpoint after index {saved.last_index:,}")
            return saved

        console.warn("Checkpoint ranges do not match this search space, starting over")
        return Progress.fresh(self.config, ranges)

    def run(self) -> SearchResult:
        progress = self.progress = self.load_progress()
        work = progress.pending()
        builder = CandidateBuilder(self.config, skip_repeated=self.options.skip_repeated)

        start = time.time()
        flusher = CheckpointFlusher(self.store, progress, self.total, self.options.save_interval)
        flusher.start()

        futures: Dict[Future, int] = {}
        match: Optional[Match] = None
        interrupted = False
        executor = ThreadPoolExecutor(max_workers=self.options.workers, thread_name_prefix="seed-worker")
        try:
            for range_id, r in work:
                fut = executor.submit(run_worker, range_id, r, builder, self.oracle, self.target,
                                      progress, self.cancel, self.options.flush_every)
                futures[fut] = range_id

            pending = set(futures)
            while pending and match is None:
                done, pending = wait(pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
                match = self._first_match(done)
            if match is not None:
                self.cancel.set()
                console.found("Seed phrase found!")
        except KeyboardInterrupt:
            interrupted = True
            console.warn("Interrupted, shutting down gracefully...")
            self.cancel.set()
        finally:
            try:
                executor.shutdown(wait=True, cancel_futures=True)
            except KeyboardInterrupt:
                # second Ctrl+C while draining: workers see the event and stop soon
                interrupted = True
                self.cancel.set()
                console.warn("Interrupted again, saving checkpoint before exit...")
            flusher.stop()
            self.store.save(progress)

        outcomes, failed = self._collect(futures)
        if match is None:
            # a worker may have matched while the loop was stopping
            match = next((o.match for o in outcomes if o.match is not None), None)
        cancelled = interrupted or (match is None and self.cancel.is_set())

        return SearchResult(
            total=self.total,
            tested=progress.tested_combinations,
            skipped=progress.skipped_combinations,
            elapsed=time.time() - start,
            match=match,
            cancelled=cancelled,
            failed_ranges=failed,
            outcomes=outcomes,
        )

    def stop(self):
        """Ask all workers to stop after their current candidate."""
        self.cancel.set()

    @staticmethod
    def _first_match(done) -> Optional[Match]:
        for fut in done:
            if fut.exception() is None and fut.result().match is not None:
                return fut.result().match
        return None

    @staticmethod
    def _collect(futures: Dict[Future, int]) -> Tuple[List[WorkerOutcome], List[int]]:
        outcomes, failed = [], []
        for fut, range_id in futures.items():
            if fut.cancelled():
                continue
            exc = fut.exception()
            if exc is not None:
                console.warn(f"Worker for range {range_id} failed with exception: {exc}")
                failed.append(range_id)
                continue
            outcomes.append(fut.result())
        return outcomes, failed
