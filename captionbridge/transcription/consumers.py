"""Worker pool that runs sealed utterances through the async pipeline."""

import asyncio
import logging
import queue
import threading
import time
from typing import Awaitable, Callable, List, NamedTuple, Optional

from ..models.audio import Utterance

logger = logging.getLogger(__name__)


class UtteranceTask(NamedTuple):
    """A task to be processed by a worker thread."""
    utterance: Utterance
    generation: int


class UtteranceConsumer:
    """Manages a pool of worker threads, each with its own asyncio loop.

    Utterances are independent, so several can be in flight at once: a long
    clip can still be transcribing while the next one is being recorded.
    """

    def __init__(self,
                 name: str,
                 processor: Callable[[Utterance, int], Awaitable[None]],
                 max_concurrent_threads: int = 4):
        self.name = name
        self.processor = processor
        self.max_concurrent_threads = max_concurrent_threads

        self.task_queue: "queue.Queue[Optional[UtteranceTask]]" = queue.Queue()
        self.worker_threads: List[threading.Thread] = []
        self.shutdown_event = threading.Event()
        self.tasks_completed = 0

    def start(self) -> None:
        """Create and start the pool of worker threads."""
        if self.worker_threads:
            return
        self.shutdown_event.clear()
        # Fresh queue per run so sentinels for a previous pool never reach this one
        self.task_queue = queue.Queue()
        for i in range(self.max_concurrent_threads):
            thread = threading.Thread(target=self._worker_loop, args=(self.task_queue,))
            thread.name = f"worker_{self.name}_{i}"
            thread.daemon = True
            thread.start()
            self.worker_threads.append(thread)
        logger.info(f"Started {len(self.worker_threads)} {self.name} consumer workers")

    def _worker_loop(self, task_queue: queue.Queue) -> None:
        thread_name = threading.current_thread().name
        logger.debug(f"Worker thread {thread_name} starting")

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        try:
            while True:
                task = task_queue.get()

                if task is None:
                    logger.debug(f"Worker {thread_name} received sentinel, exiting.")
                    task_queue.task_done()
                    break

                logger.debug(f"Worker {thread_name} got {task.utterance.id} (generation {task.generation})")
                try:
                    loop.run_until_complete(self.processor(task.utterance, task.generation))
                except Exception as e:
                    logger.error(f"Unhandled exception processing {task.utterance.id} in {thread_name}: {e}",
                                 exc_info=True)
                finally:
                    self.tasks_completed += 1
                    task_queue.task_done()
        finally:
            loop.close()
            logger.debug(f"Worker thread {thread_name} exiting and closing its event loop.")

    def submit(self, utterance: Utterance, generation: int) -> bool:
        """Queue an utterance. Returns False once shutdown has begun."""
        if self.shutdown_event.is_set():
            logger.debug(f"Dropping {utterance.id}: {self.name} consumer is shutting down")
            return False
        self.task_queue.put(UtteranceTask(utterance, generation))
        return True

    def _drop_pending(self) -> int:
        dropped = 0
        while True:
            try:
                task = self.task_queue.get_nowait()
            except queue.Empty:
                return dropped
            self.task_queue.task_done()
            if task is not None:
                dropped += 1

    def shutdown(self, drain: bool = False, timeout: float = 30.0) -> None:
        """Stop the worker threads.

        Args:
            drain: Wait for queued utterances to finish instead of abandoning them
            timeout: Upper bound for draining, in seconds
        """
        logger.info(f"Shutting down {self.name} consumer (drain={drain})")
        self.shutdown_event.set()

        if drain:
            start_time = time.time()
            while time.time() - start_time < timeout:
                if self.task_queue.unfinished_tasks == 0:
                    break
                time.sleep(0.05)
            else:
                logger.warning(f"[{self.name}] Timeout reached while waiting for queue. "
                               f"{self.task_queue.unfinished_tasks} tasks remain.")
        else:
            dropped = self._drop_pending()
            if dropped:
                logger.info(f"[{self.name}] Abandoned {dropped} queued utterances")

        for _ in self.worker_threads:
            self.task_queue.put(None)

        # In-flight tasks are left to finish on their own; their results are discarded by generation
        for thread in self.worker_threads:
            thread.join(0.5)
            if thread.is_alive():
                logger.debug(f"Worker thread {thread.name} still busy, leaving it to exit on its own")

        self.worker_threads = []
        logger.info(f"{self.name} consumer shutdown complete.")

    def get_pending_task_count(self) -> int:
        """Number of utterances waiting for a worker."""
        return self.task_queue.qsize()
