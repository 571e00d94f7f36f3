"""
Progress simulation for Rice Blast Detector.

PURPOSE: Drive the three-step "analyzing" indicator on a fixed schedule.
AI CONTEXT: Pure UI timing - has no bearing on whether analysis succeeded.

STATE MACHINE:
    IDLE
      -> STEP1_ACTIVE                      (step1 active)
      -> STEP2_ACTIVE                      (step1 completed, step2 active)
      -> STEP3_ACTIVE                      (step2 completed, step3 active)
      -> STEP3_COMPLETED                   (step3 completed)
      -> DONE                              (after the final delay)

TIMING:
Each step stays active for Config.PROGRESS_STEP_DELAY_MS (800ms); after
the last step completes, Config.PROGRESS_FINAL_DELAY_MS (500ms) elapses
before run() returns. Total: 2900ms.

USAGE:
    simulator = ProgressSimulator()
    simulator.add_listener(lambda state, steps: print(state, steps))
    await simulator.run()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from .config import Config
from .errors import Busy

__all__ = ["ProgressState", "StepStatus", "ProgressSimulator", "ProgressListener"]

logger = logging.getLogger(__name__)


class ProgressState(str, Enum):
    """Overall state of the progress sequence."""

    IDLE = "idle"
    STEP1_ACTIVE = "step1_active"
    STEP2_ACTIVE = "step2_active"
    STEP3_ACTIVE = "step3_active"
    STEP3_COMPLETED = "step3_completed"
    DONE = "done"


class StepStatus(str, Enum):
    """Visual status of a single step."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


_ACTIVE_STATES = (
    ProgressState.STEP1_ACTIVE,
    ProgressState.STEP2_ACTIVE,
    ProgressState.STEP3_ACTIVE,
)

ProgressListener = Callable[[ProgressState, dict[str, StepStatus]], None]
SleepFunc = Callable[[float], Awaitable[object]]


class ProgressSimulator:
    """
    Timed finite-state machine for the analysis progress indicator.

    Transitions are driven by sequential awaited delays. Listeners are
    notified after every transition with the new state and a snapshot
    of per-step statuses.

    CONCURRENCY:
    Runs must not overlap; run() raises Busy if called while another
    run is in progress. Each run starts from IDLE and reaches DONE
    exactly once.
    """

    def __init__(
        self,
        step_delay_ms: int | None = None,
        final_delay_ms: int | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        """
        Initialize the simulator in the IDLE state.

        Args:
            step_delay_ms: Time each step stays active.
                Default: Config.PROGRESS_STEP_DELAY_MS
            final_delay_ms: Delay after the last step completes.
                Default: Config.PROGRESS_FINAL_DELAY_MS
            sleep: Coroutine function taking seconds. Default asyncio.sleep.
                Tests inject a recorder to avoid real waiting.
        """
        self.step_delay_ms = (
            Config.PROGRESS_STEP_DELAY_MS if step_delay_ms is None else step_delay_ms
        )
        self.final_delay_ms = (
            Config.PROGRESS_FINAL_DELAY_MS if final_delay_ms is None else final_delay_ms
        )
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._listeners: list[ProgressListener] = []
        self._running = False
        self.state = ProgressState.IDLE
        self.steps: dict[str, StepStatus] = {}
        self.reset()

    @property
    def is_running(self) -> bool:
        """True while a run() is in progress."""
        return self._running

    @property
    def total_duration_ms(self) -> int:
        """Time from run() start to DONE."""
        return len(Config.PROGRESS_STEPS) * self.step_delay_ms + self.final_delay_ms

    def add_listener(self, listener: ProgressListener) -> None:
        """
        Subscribe to state transitions.

        Args:
            listener: Called with (state, step_statuses) after each
                transition. Exceptions it raises are logged and ignored.
        """
        self._listeners.append(listener)

    def reset(self) -> None:
        """
        Return to IDLE with step 1 highlighted and the rest pending.

        Raises:
            Busy: If a run is in progress.
        """
        if self._running:
            raise Busy("Cannot reset progress while it is running")
        self.state = ProgressState.IDLE
        self.steps = {name: StepStatus.PENDING for name in Config.PROGRESS_STEPS}
        self.steps[Config.PROGRESS_STEPS[0]] = StepStatus.ACTIVE

    async def run(self) -> None:
        """
        Play the full progress sequence.

        Raises:
            Busy: If another run is already in progress.
        """
        if self._running:
            raise Busy("Progress simulation already running")
        self._running = True
        try:
            self.state = ProgressState.IDLE
            self.steps = {name: StepStatus.PENDING for name in Config.PROGRESS_STEPS}
            self._notify()

            for index, name in enumerate(Config.PROGRESS_STEPS):
                if index > 0:
                    self.steps[Config.PROGRESS_STEPS[index - 1]] = StepStatus.COMPLETED
                self.steps[name] = StepStatus.ACTIVE
                self.state = _ACTIVE_STATES[index]
                self._notify()
                await self._sleep(self.step_delay_ms / 1000)

            self.steps[Config.PROGRESS_STEPS[-1]] = StepStatus.COMPLETED
            self.state = ProgressState.STEP3_COMPLETED
            self._notify()
            await self._sleep(self.final_delay_ms / 1000)

            self.state = ProgressState.DONE
            self._notify()
        finally:
            self._running = False

    def _notify(self) -> None:
        """Send the current state to every listener."""
        snapshot = dict(self.steps)
        for listener in self._listeners:
            try:
                listener(self.state, snapshot)
            except Exception as e:  # noqa: BLE001
                logger.error(f"Progress listener failed: {e}")
