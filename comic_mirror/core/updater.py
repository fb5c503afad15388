"""
Incremental updater: brings the on-disk archive up to date with the remote.

The id space [0, latest) is split into stripes, one per worker thread.
Worker ``w`` of ``k`` owns ids ``w, w + k, w + 2k, ...``, so no two workers
ever write the same file and nothing is shared during the fetch phase.
Failures are recorded per id and never stop a worker.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional

from .archive import Archive
from .errors import AssetFetchFailed, MirrorError
from .record import Entry
from .remote_client import RemoteClient, RemoteSource
from ..utils.file_manager import ArchiveStore


ProgressCallback = Callable[[Dict[str, Any]], None]


@dataclass
class UpdateFailure:
    entry_id: int
    stage: str  # entry|asset
    error_type: str
    message: str


@dataclass
class StripeResult:
    worker: int
    processed: int = 0
    skipped: int = 0
    fetched_entries: int = 0
    fetched_assets: int = 0
    failures: List[UpdateFailure] = field(default_factory=list)


@dataclass
class UpdateReport:
    latest_remote_count: int = 0
    worker_count: int = 0
    processed: int = 0
    skipped: int = 0
    fetched_entries: int = 0
    fetched_assets: int = 0
    failures: List[UpdateFailure] = field(default_factory=list)
    started_at: float = 0.0
    finished_at: float = 0.0

    @property
    def failed_ids(self) -> List[int]:
        return sorted({f.entry_id for f in self.failures})

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def duration(self) -> float:
        return max(self.finished_at - self.started_at, 0.0)

    def merge(self, result: StripeResult):
        self.processed += result.processed
        self.skipped += result.skipped
        self.fetched_entries += result.fetched_entries
        self.fetched_assets += result.fetched_assets
        self.failures.extend(result.failures)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["failed_ids"] = self.failed_ids
        data["duration"] = self.duration
        return data


def stripe(worker: int, worker_count: int, total: int) -> range:
    """Ids owned by ``worker`` out of ``worker_count`` over [0, total)."""
    return range(worker, total, worker_count)


def partition(worker_count: int, total: int) -> List[range]:
    """All stripes of [0, total) for ``worker_count`` workers."""
    if worker_count < 1:
        raise ValueError(f"worker_count must be positive, got {worker_count}")
    return [stripe(w, worker_count, total) for w in range(worker_count)]


class Updater:
    def __init__(self,
                 archive: Archive,
                 remote: RemoteSource,
                 store: ArchiveStore,
                 logger: Optional[logging.Logger] = None):
        self.archive = archive
        self.remote = remote
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def run(self, worker_count: int, progress: Optional[ProgressCallback] = None) -> UpdateReport:
        """
        Fetch every missing entry and asset, blocking until all workers finish.

        Args:
            worker_count: Number of worker threads (one stripe each)
            progress: Optional callback, invoked from worker threads

        Returns:
            UpdateReport summarizing the run

        Raises:
            ValueError: If worker_count is not positive
            RemoteUnavailable: If the latest descriptor cannot be fetched
        """
        if worker_count < 1:
            raise ValueError(f"worker_count must be positive, got {worker_count}")
        report = UpdateReport(worker_count=worker_count, started_at=time.time())
        self.logger.info("Updating archive")

        # Root must exist before any worker writes into it
        self.store.ensure_root()

        latest = self.remote.fetch_latest()
        report.latest_remote_count = latest.remote_number
        stripes = partition(worker_count, latest.remote_number)
        if progress:
            progress({"type": "latest", "count": latest.remote_number})

        with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="updater") as ex:
            futures = [ex.submit(self._process_stripe, w, ids, progress)
                       for w, ids in enumerate(stripes)]
            for fut in futures:
                report.merge(fut.result())

        report.failures.sort(key=lambda f: (f.entry_id, f.stage))
        report.finished_at = time.time()
        self.logger.info(
            f"Update finished: {report.processed} ids processed, {report.skipped} up to date, "
            f"{report.fetched_entries} entries and {report.fetched_assets} assets fetched, "
            f"{len(report.failed_ids)} failed"
        )
        if report.failures:
            self.logger.warning(f"Failed ids: {report.failed_ids}")
        if progress:
            progress({"type": "counters", "report": report})
        return report

    def _process_stripe(self, worker: int, ids: range, progress: Optional[ProgressCallback]) -> StripeResult:
        result = StripeResult(worker=worker)
        for entry_id in ids:
            result.processed += 1
            stage = "entry"
            try:
                entry = self.archive.get(entry_id)
                if entry is not None and self.store.asset_exists(entry.asset_file_name):
                    result.skipped += 1
                    if progress:
                        progress({"type": "id", "id": entry_id, "stage": "skipped"})
                    continue

                if entry is None:
                    self.logger.debug(f"Downloading entry {entry_id}")
                    entry = self.remote.fetch_entry(entry_id)
                    self.store.save_metadata(entry_id, entry.to_json())
                    result.fetched_entries += 1

                stage = "asset"
                self._download_asset(entry)
                result.fetched_assets += 1
                if progress:
                    progress({"type": "id", "id": entry_id, "stage": "completed"})
            except (MirrorError, OSError, ValueError) as e:
                self.logger.warning(f"Entry {entry_id} failed at {stage} stage: {e}")
                result.failures.append(UpdateFailure(
                    entry_id=entry_id,
                    stage=stage,
                    error_type=type(e).__name__,
                    message=str(e),
                ))
                if progress:
                    progress({"type": "id", "id": entry_id, "stage": "failed", "reason": stage})
        return result

    def _download_asset(self, entry: Entry):
        self.logger.debug(f"Downloading asset for {entry.id}: {entry.img}")
        content = self.remote.fetch_asset(entry)
        try:
            self.store.save_asset(entry.asset_file_name, content)
        except (OSError, ValueError) as e:
            raise AssetFetchFailed(entry.id, entry.img, f"could not store asset: {e}") from e


def update(worker_count: int,
           archive: Archive,
           remote: RemoteSource,
           store: ArchiveStore,
           progress: Optional[ProgressCallback] = None) -> UpdateReport:
    return Updater(archive, remote, store).run(worker_count, progress)


def run_update(worker_count: int,
               archive: Archive,
               root: str,
               config=None,
               progress: Optional[ProgressCallback] = None) -> UpdateReport:
    """
    Update the archive under ``root`` from the configured remote source.

    Args:
        worker_count: Number of worker threads
        archive: Archive as currently loaded from ``root``
        root: Archive root directory
        config: Optional MirrorConfig for remote client settings
        progress: Optional progress callback

    Returns:
        UpdateReport for the run
    """
    if config is None:
        remote = RemoteClient()
    else:
        remote = RemoteClient(
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            user_agent=config.user_agent,
        )
    try:
        return update(worker_count, archive, remote, ArchiveStore(root), progress)
    finally:
        remote.close()
