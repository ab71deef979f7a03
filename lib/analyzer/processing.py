# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

"""
Background analysis runners.

Each request is wrapped in an AnalysisTask and queued for a pool of
AnalysisRunner threads. A runner handles one task at a time, so the
stages of a request run sequentially and away from the caller's thread.

Every task owns a channel carrying typed messages::

    ProgressMessage*  then exactly one of  ResultMessage | ErrorMessage

The caller reads the channel through the AnalysisHandle returned by
AnalysisManager.submit(). A cancelled task emits nothing further, not
even a terminal message.
"""

import itertools
import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import ClassVar, Iterator, Optional

from ai_detection.detectors.base import DetectionResult
from ai_detection.detectors.orchestrator import ImageAnalyzer, is_fatal
from lib.exceptions import AnalysisFailed, AnalysisTimeout
from synthscan import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressMessage:
    step: str
    progress: int

    kind: ClassVar[str] = "progress"
    is_terminal: ClassVar[bool] = False

    def to_dict(self):
        return {"step": self.step, "progress": self.progress}


@dataclass(frozen=True)
class ResultMessage:
    result: DetectionResult

    kind: ClassVar[str] = "result"
    is_terminal: ClassVar[bool] = True

    def to_dict(self):
        return self.result.to_dict()


@dataclass(frozen=True)
class ErrorMessage:
    error: str

    kind: ClassVar[str] = "error"
    is_terminal: ClassVar[bool] = True

    def to_dict(self):
        return {"error": self.error}


# Wakes up readers of a cancelled task. Never handed to the caller.
_CANCELLED = object()


class AnalysisTask:
    """One analysis request and its message channel.

    States: W (waiting), P (processing), C (completed), F (failed),
    A (abandoned by the caller).
    """

    _ids = itertools.count(1)

    def __init__(self, payload):
        self.id = next(self._ids)
        self.payload = payload
        self.state = "W"
        self.channel = queue.Queue()
        self.created_at = time.time()
        self.completed_at = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def cancelled(self):
        return self.state == "A"

    def start(self):
        """Mark the task as processing.
        @return: False if the task was abandoned meanwhile
        """
        with self._lock:
            if self._closed:
                return False
            self.state = "P"
            return True

    def emit_progress(self, step, progress):
        """Queue a progress message unless the task is already closed."""
        with self._lock:
            if self._closed:
                return
            self.channel.put(ProgressMessage(step=step, progress=int(progress)))

    def finish(self, message, state):
        """Queue the terminal message. Only the first call has any effect.
        @return: True if the message was queued
        """
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            self.state = state
            self.completed_at = time.time()
            self.channel.put(message)
            return True

    def cancel(self):
        """Abandon the task.
        @return: True if the task was still open
        """
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            self.state = "A"
            self.completed_at = time.time()
            self.channel.put(_CANCELLED)
            return True


class AnalysisHandle:
    """Caller side of a submitted task."""

    def __init__(self, task):
        self._task = task
        self._terminal = None

    @property
    def id(self):
        return self._task.id

    @property
    def state(self):
        return self._task.state

    def done(self):
        return self._task.state in ("C", "F", "A")

    def cancel(self):
        """Abandon the request. Its eventual outcome is dropped."""
        cancelled = self._task.cancel()
        if cancelled:
            logger.debug("Task %s cancelled by caller", self._task.id)
        return cancelled

    def messages(self, timeout=None) -> Iterator:
        """Yield messages in order, ending with the terminal one.

        Stops without a terminal message if the task is cancelled.
        @param timeout: max seconds to wait for each message
        @raise AnalysisTimeout: if a message does not arrive in time
        """
        if self._terminal is not None:
            return
        while True:
            if self._task.cancelled and self._task.channel.empty():
                return
            try:
                message = self._task.channel.get(timeout=timeout)
            except queue.Empty:
                raise AnalysisTimeout(
                    "No message from task {0} within {1}s".format(self._task.id, timeout))
            if message is _CANCELLED:
                return
            if message.is_terminal:
                self._terminal = message
            yield message
            if message.is_terminal:
                return

    def result(self, timeout=None) -> DetectionResult:
        """Block until the task finishes.
        @return: DetectionResult
        @raise AnalysisFailed: on a terminal error or if cancelled
        @raise AnalysisTimeout: if timeout elapses between messages
        """
        for _ in self.messages(timeout=timeout):
            pass
        if isinstance(self._terminal, ResultMessage):
            return self._terminal.result
        if isinstance(self._terminal, ErrorMessage):
            raise AnalysisFailed(self._terminal.error)
        raise AnalysisFailed("Analysis cancelled")


class AnalysisRunner(threading.Thread):
    """Run analysis tasks one at a time."""

    def __init__(self, tasks, analyzer):
        threading.Thread.__init__(self, daemon=True)
        self.tasks = tasks
        self.analyzer = analyzer
        logger.debug("AnalysisRunner started")

    def run(self):
        """Start processing."""
        while True:
            task = self.tasks.get()
            try:
                if task is None:
                    break
                self._process_task(task)
            finally:
                self.tasks.task_done()

    def _process_task(self, task):
        """Process a task.
        @param task: AnalysisTask
        """
        if not task.start():
            logger.debug("Task %s abandoned before start, skipping", task.id)
            return

        try:
            result = self.analyzer.analyze(task.payload, progress=task.emit_progress)
        except Exception as e:
            if is_fatal(e):
                logger.warning("Task %s failed: %s", task.id, e)
            else:
                logger.exception("Critical error processing task %s: %s", task.id, e)
            task.finish(ErrorMessage(error=str(e) or e.__class__.__name__), "F")
            return

        if task.finish(ResultMessage(result=result), "C"):
            logger.info("Processed task %s with success", task.id)
        else:
            logger.debug("Task %s finished after being abandoned, result dropped", task.id)


class AnalysisManager():
    """Manage the analysis runner pool."""

    def __init__(self, analyzer: Optional[ImageAnalyzer] = None, workers=None, model_path=None):
        self.analyzer = analyzer or ImageAnalyzer(model_path=model_path)
        self.parallelism = workers or settings.WORKER_COUNT
        logger.debug("Using pool of %i runners", self.parallelism)
        self.workers = []
        self.tasks = queue.Queue()
        self.workers_start()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()

    def workers_start(self):
        """Start workers pool."""
        for _ in range(self.parallelism):
            runner = AnalysisRunner(self.tasks, self.analyzer)
            runner.start()
            self.workers.append(runner)

    def submit(self, payload) -> AnalysisHandle:
        """Queue one image for analysis.
        @param payload: encoded bytes, data URI or image source
        @return: AnalysisHandle
        """
        if not self.workers:
            raise RuntimeError("AnalysisManager has been shut down")
        task = AnalysisTask(payload)
        self.tasks.put(task)
        logger.debug("Queued task %s", task.id)
        return AnalysisHandle(task)

    def analyze(self, payload, progress=None, timeout=None) -> DetectionResult:
        """Submit and wait, forwarding progress to a callback.
        @param progress: optional callable(step, percent)
        """
        handle = self.submit(payload)
        for message in handle.messages(timeout=timeout):
            if isinstance(message, ProgressMessage) and progress is not None:
                progress(message.step, message.progress)
        return handle.result()

    def shutdown(self, wait=True):
        """Stop workers pool once queued tasks are done."""
        for _ in self.workers:
            self.tasks.put(None)
        if wait:
            for worker in self.workers:
                worker.join()
        self.workers = []
