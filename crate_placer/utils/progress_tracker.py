"""
Crate Placer - Progress Tracker
Weighted stage progress for a placement run
"""

import time
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ProgressStage(Enum):
    """Stages of a placement run; the value is the stage's share of the run"""
    LOADING_REGISTRY = 0.05
    PARSING_SCENE = 0.25
    REANCHORING = 0.70

    @property
    def weight(self) -> float:
        return self.value

    def completed_before(self) -> float:
        """Summed weight of the stages that run before this one"""
        total = 0.0
        for stage in ProgressStage:
            if stage is self:
                break
            total += stage.weight
        return total


@dataclass(frozen=True)
class ProgressUpdate:
    """Snapshot sent to callbacks whenever a stage starts, advances or ends"""
    stage: ProgressStage
    done: int
    total: int
    detail: str = ""
    finished: bool = False

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0 if self.finished else 0.0
        return min(1.0, self.done / self.total)

    @property
    def percentage(self) -> float:
        return self.fraction * 100

    @property
    def overall(self) -> float:
        """Progress of the whole run (0-1)"""
        return self.stage.completed_before() + self.stage.weight * self.fraction


ProgressCallback = Callable[[ProgressUpdate], None]


class LoggingProgressCallback:
    """Logs stage start and end, and every ``step`` percent in between"""

    def __init__(self, level: int = logging.DEBUG, step: int = 10):
        self.level = level
        self.step = step
        self._last_bucket = -1

    def __call__(self, update: ProgressUpdate) -> None:
        bucket = int(update.percentage // self.step) if self.step > 0 else 0
        if update.done == 0 or update.finished:
            self._last_bucket = -1
        elif bucket == self._last_bucket:
            return
        self._last_bucket = bucket

        state = "done" if update.finished else f"{update.done}/{update.total}"
        message = f"[{update.stage.name}] {state} ({update.overall * 100:.0f}% overall)"
        if update.detail:
            message += f" - {update.detail}"
        logger.log(self.level, message)


class ProgressTracker:
    """Runs stages in order and reports per-item progress inside a stage"""

    def __init__(self):
        self._callbacks: List[ProgressCallback] = []
        self._stage: Optional[ProgressStage] = None
        self._done = 0
        self._total = 0
        self._started = 0.0
        self._last: Optional[ProgressUpdate] = None

    def add_callback(self, callback: ProgressCallback) -> None:
        self._callbacks.append(callback)

    def begin_stage(self, stage: ProgressStage, total: int = 1, detail: str = "") -> None:
        self._stage = stage
        self._done = 0
        self._total = total
        self._started = time.time()
        self._notify(detail)

    def advance(self, count: int = 1, detail: str = "") -> None:
        """Mark ``count`` more items of the current stage as done"""
        if self._stage is None:
            raise RuntimeError("No stage in progress")
        self._done += count
        self._notify(detail)

    def end_stage(self, detail: str = "") -> None:
        if self._stage is None:
            raise RuntimeError("No stage in progress")
        self._done = max(self._done, self._total)
        self._notify(detail, finished=True)
        logger.debug(f"{self._stage.name} took {time.time() - self._started:.2f} seconds")
        self._stage = None

    def _notify(self, detail: str, finished: bool = False) -> None:
        update = ProgressUpdate(self._stage, self._done, self._total, detail, finished)
        self._last = update
        for callback in self._callbacks:
            try:
                callback(update)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

    @property
    def current_stage(self) -> Optional[ProgressStage]:
        return self._stage

    @property
    def overall_progress(self) -> float:
        """Progress of the whole run (0-1) as of the last update"""
        return self._last.overall if self._last else 0.0
