"""
dvdrip Job Runner
Runs rip jobs in the background, one at a time per drive
"""

import queue
import threading
import time
from datetime import datetime
from typing import Dict, List, Optional

from . import activity
from .errors import RipError, ErrorCategory, ErrorCode, WorkflowError
from .ripper import RipEngine, RipJob, RipStatus


class JobRunner:
    """Background execution of rip jobs.

    submit() returns as soon as the job is recorded. Each device gets its own
    FIFO queue and worker thread, so two jobs never drive the same drive at
    once while different drives rip in parallel. A worker exits after
    idle_timeout seconds with an empty queue. Jobs stay in the status table,
    keyed by id, for polling; only the newest max_finished finished jobs
    are kept.
    """

    def __init__(self, engine: RipEngine, idle_timeout: float = 30.0, max_finished: int = 100):
        self.engine = engine
        self.idle_timeout = idle_timeout
        self.max_finished = max_finished
        self._jobs: Dict[str, RipJob] = {}
        self._queues: Dict[str, queue.Queue] = {}
        self._workers: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

    def submit(self, job: RipJob) -> str:
        """Queue a job and return its id immediately"""
        with self._lock:
            job.status = RipStatus.QUEUED
            self._jobs[job.id] = job
            device_queue = self._queues.get(job.device)
            if device_queue is None:
                device_queue = queue.Queue()
                self._queues[job.device] = device_queue
            device_queue.put(job.id)

            worker = self._workers.get(job.device)
            if worker is None or not worker.is_alive():
                worker = threading.Thread(target=self._worker, args=(job.device, device_queue),
                                          name=f"rip-{job.device}")
                worker.daemon = True
                self._workers[job.device] = worker
                worker.start()

        activity.job_queued(job.id, job.title, job.device)
        return job.id

    def get(self, job_id: str) -> Optional[RipJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> List[RipJob]:
        """All known jobs, oldest first"""
        with self._lock:
            return sorted(self._jobs.values(), key=lambda j: j.created_at)

    def cancel(self, job_id: str) -> bool:
        """Cancel a job.

        A queued job never starts. A running job stops at its next step; an
        extraction already in progress is not interrupted. Returns False for
        unknown or finished jobs.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.finished:
                return False
            job.cancel_requested = True
            if job.status == RipStatus.QUEUED:
                job.status = RipStatus.CANCELLED
                job.completed_at = datetime.now().isoformat()
        activity.job_cancelled(job_id)
        return True

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for j in self._jobs.values() if not j.finished)

    def wait(self, timeout: float = None) -> bool:
        """Block until every job has finished. Returns False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.active_count():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(0.05)
        return True

    def worker_count(self) -> int:
        """Number of device workers currently registered"""
        with self._lock:
            return len(self._workers)

    def _worker(self, device: str, device_queue: queue.Queue):
        while True:
            try:
                job_id = device_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                # submit() enqueues under this lock
                with self._lock:
                    if device_queue.empty():
                        self._queues.pop(device, None)
                        self._workers.pop(device, None)
                        return
                continue
            try:
                job = self.get(job_id)
                if job is not None and job.status != RipStatus.CANCELLED:
                    self._execute(job)
            finally:
                device_queue.task_done()
                with self._lock:
                    self._prune_finished()

    def _prune_finished(self):
        """Drop the oldest finished jobs beyond max_finished. Caller holds the lock."""
        finished = sorted((j for j in self._jobs.values() if j.finished),
                          key=lambda j: j.created_at)
        for job in finished[:max(0, len(finished) - self.max_finished)]:
            del self._jobs[job.id]

    def _execute(self, job: RipJob):
        activity.log_info(f"Starting rip job {job.id}: device={job.device}, "
                          f"category={job.category}, title={job.title}")
        try:
            self.engine.run(job)
        except WorkflowError:
            # Already recorded on the job and logged by the engine
            pass
        except Exception as e:
            job.status = RipStatus.ERROR
            job.completed_at = datetime.now().isoformat()
            job.error = RipError(category=ErrorCategory.UNKNOWN, code=ErrorCode.UNKNOWN,
                                 message=f"Unexpected error: {e}")
            activity.log_error(f"Rip job {job.id} crashed: {e}")
