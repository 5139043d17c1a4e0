"""
Node Scheduler

Runs the engine's work off the caller's thread:
- per-node dispatch on a bounded worker pool (at-most-once, never awaited)
- one-shot delayed callbacks (one timer per trigger, never cancelled)
- a periodic poll that never runs two iterations at once
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from pgm_state_gateway.core.interfaces import INodeSink, IScheduler
from pgm_state_gateway.core.nodes import NodeAssertion, NodeBatch

logger = logging.getLogger("pgm_state.scheduler")

DEFAULT_WORKERS = 4
DEFAULT_POLL_INTERVAL = 0.1


class NodeScheduler(IScheduler):
    def __init__(self, sink: INodeSink, workers: int = DEFAULT_WORKERS):
        self.sink = sink
        self.workers = workers
        self._pool_lock = threading.Lock()
        self._executor = self._new_pool()
        self._closed = False

        # Poll state
        self._poll_lock = threading.Lock()
        self._poll_timer: Optional[threading.Timer] = None
        self._polling = False
        # Bumped on every start/stop; a tick only re-arms its own chain
        self._poll_generation = 0
        self._sample_lock = threading.Lock()

    def _new_pool(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="node-dispatch")

    def start(self) -> None:
        """
        Reopen the worker pool after shutdown(). No-op while open.
        """
        with self._pool_lock:
            if self._closed:
                self._executor = self._new_pool()
                self._closed = False

    # ============================================================
    # DISPATCH
    # ============================================================

    def dispatch(self, batch: NodeBatch) -> None:
        """
        Submit each update of the batch independently, assertions first.
        """
        executor = self._executor
        for assertion in batch:
            try:
                executor.submit(self._send, assertion)
            except RuntimeError as e:
                # Pool already shut down
                logger.warning(f"Dropped update {assertion.name}={assertion.value!r}: {e}")

    def _send(self, assertion: NodeAssertion) -> None:
        try:
            self.sink.send(assertion)
        except Exception as e:
            logger.error(f"Node dispatch failed for {assertion.name}: {e}")

    # ============================================================
    # DELAYED CALLS
    # ============================================================

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        timer = threading.Timer(delay, self._run_delayed, args=(callback,))
        timer.daemon = True
        timer.start()

    def _run_delayed(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Delayed callback {getattr(callback, '__name__', callback)} failed: {e}")

    # ============================================================
    # PERIODIC POLL
    # ============================================================

    def start_polling(self, sample: Callable[[], Any], on_sample: Callable[[Any], None],
                      interval: float = DEFAULT_POLL_INTERVAL) -> None:
        """
        Every `interval` seconds: stop timer -> sample -> store -> re-arm.
        """
        with self._poll_lock:
            if self._polling:
                return
            self._polling = True
            self._poll_generation += 1
            self._poll_sample = sample
            self._poll_store = on_sample
            self._poll_interval = interval
            self._arm()

    def stop_polling(self) -> None:
        with self._poll_lock:
            self._polling = False
            self._poll_generation += 1
            if self._poll_timer is not None:
                self._poll_timer.cancel()
                self._poll_timer = None

    def _arm(self) -> None:
        self._poll_timer = threading.Timer(self._poll_interval, self._poll_tick, args=(self._poll_generation,))
        self._poll_timer.daemon = True
        self._poll_timer.start()

    def _poll_tick(self, generation: int) -> None:
        with self._poll_lock:
            if not self._polling or generation != self._poll_generation:
                return
            self._poll_timer = None
            sample, store = self._poll_sample, self._poll_store
        try:
            with self._sample_lock:
                store(sample())
        except Exception as e:
            logger.error(f"Mode poll failed: {e}")
        with self._poll_lock:
            if self._polling and generation == self._poll_generation:
                self._arm()

    @property
    def polling(self) -> bool:
        return self._polling

    def shutdown(self, wait: bool = False) -> None:
        self.stop_polling()
        with self._pool_lock:
            if self._closed:
                return
            self._closed = True
            executor = self._executor
        executor.shutdown(wait=wait)
