"""Background training thread with cooperative stop and pause."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from .trainer import Trainer

logger = logging.getLogger(__name__)


class TrainingWorker:
    """Drive :meth:`Trainer.run` on a daemon thread until stopped."""

    def __init__(self, trainer: Trainer) -> None:
        self.trainer = trainer
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def error(self) -> BaseException | None:
        """Exception that ended the last training run, if any."""

        return self._error

    def start(self) -> None:
        if self.is_running:
            self.stop()
        self._stop = threading.Event()
        self._error = None
        self._thread = threading.Thread(
            target=self._loop, args=(self._stop,), name="sketchnet-trainer", daemon=True
        )
        self._thread.start()
        logger.debug("Training worker started")

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                # handle kept so start() waits for this run before launching another
                logger.warning("Training worker still running after %.3gs", timeout)
                return
        self._thread = None
        logger.debug("Training worker stopped after %d steps", self.trainer.steps)

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Suspend training for the duration of the block."""

        was_running = self.is_running
        if was_running:
            self.stop()
        try:
            yield
        finally:
            if was_running:
                self.start()

    def _loop(self, stop_event: threading.Event) -> None:
        try:
            self.trainer.run(stop_event=stop_event)
        except Exception as exc:
            self._error = exc
            logger.exception("Training worker failed")


__all__ = ["TrainingWorker"]
