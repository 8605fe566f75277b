"""
Detection loop controller.

Each feature owns one controller. While Active, a repeating timer calls
tick() at the feature's cadence: capture a frame, classify it, let the
policy decide, and append to the feature log when the decision records.

Concurrency rules:
- at most one tick is in flight; a tick that fires while the previous one
  is still classifying is skipped, not queued
- a result that completes after stop() (or after a stop/start cycle) is
  discarded and never reaches the log
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from camera.base import CaptureDevice
from errors import ClassificationError, DeviceUnavailable
from models.event import DetectionResult
from models.snapshot import Snapshot
from storage.log_store import LogStore

from .policies import DetectionPolicy, TickOutcome
from .timer import RepeatingTimer

ResultCallback = Callable[[TickOutcome], None]


@dataclass
class LoopStats:
    ticks: int = 0
    skipped_busy: int = 0
    skipped_no_frame: int = 0
    classifier_errors: int = 0
    events_logged: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class LoopState:
    active: bool = False
    cadence_ms: Optional[int] = None
    timer: Any = None


class DetectionLoopController:
    def __init__(
        self,
        name: str,
        device: CaptureDevice,
        policy: DetectionPolicy,
        log_store: LogStore,
        timer_factory: Callable[..., Any] = RepeatingTimer,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.name = name
        self.device = device
        self.policy = policy
        self.log_store = log_store
        self.stats = LoopStats()
        self._timer_factory = timer_factory
        self._clock = clock
        self._state = LoopState()
        self._state_lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._generation = 0
        self._on_result: Optional[ResultCallback] = None
        self._current: Optional[DetectionResult] = None

    @property
    def is_active(self) -> bool:
        with self._state_lock:
            return self._state.active

    @property
    def cadence_ms(self) -> Optional[int]:
        with self._state_lock:
            return self._state.cadence_ms

    @property
    def current_result(self) -> Optional[DetectionResult]:
        with self._state_lock:
            return self._current

    @property
    def current_label(self) -> Optional[str]:
        result = self.current_result
        return result.label if result else None

    def start(self, cadence_ms: int, on_result: Optional[ResultCallback] = None) -> bool:
        """
        Enter Active and begin ticking every cadence_ms.

        Returns False (and changes nothing) if the loop is already Active.
        Raises DeviceUnavailable if the camera is not streaming, and
        RegistrationRequired if the policy is missing reference data.
        """
        if cadence_ms <= 0:
            raise ValueError("cadence_ms must be positive")

        with self._state_lock:
            if self._state.active:
                logging.info(f"[{self.name}] start ignored: loop already active")
                return False
            if not self.device.is_active:
                raise DeviceUnavailable("Camera is not active. Please start the camera first.")
            self.policy.check_ready()

            self._generation += 1
            self._on_result = on_result
            timer = self._timer_factory(cadence_ms / 1000.0, self.tick, f"{self.name}-loop")
            self._state = LoopState(active=True, cadence_ms=cadence_ms, timer=timer)
            timer.start()

        logging.info(f"[{self.name}] detection started (every {cadence_ms} ms)")
        return True

    def stop(self) -> None:
        """Return to Idle. Safe to call when already Idle."""
        with self._state_lock:
            if not self._state.active:
                return
            timer = self._state.timer
            self._state = LoopState()
            self._on_result = None
            self._current = None
            # Reset display state while holding the lock so an in-flight
            # result cannot repaint it after stop returns
            self.policy.reset()

        if timer is not None:
            timer.cancel()
        logging.info(f"[{self.name}] detection stopped")

    def close(self) -> None:
        self.stop()

    def tick(self) -> Optional[TickOutcome]:
        """Run one capture/classify/decide cycle. Returns None if nothing resolved."""
        if not self._tick_lock.acquire(blocking=False):
            self.stats.skipped_busy += 1
            logging.debug(f"[{self.name}] tick skipped: previous tick still running")
            return None
        try:
            return self._run_tick()
        finally:
            self._tick_lock.release()

    def resolve(self, result: DetectionResult, image: Optional[Snapshot] = None) -> TickOutcome:
        """
        Feed a result through the policy as if a tick produced it.

        Used for operator-injected results; it runs whether or not the loop
        is Active.
        """
        outcome = self._resolve(result, image, generation=None)
        if outcome is None:
            raise RuntimeError(f"[{self.name}] result was not resolved")
        return outcome

    def _run_tick(self) -> Optional[TickOutcome]:
        with self._state_lock:
            if not self._state.active:
                return None
            generation = self._generation

        self.stats.ticks += 1
        image = self.device.capture() if self.device.is_active else None
        if image is None:
            self.stats.skipped_no_frame += 1
            logging.debug(f"[{self.name}] tick skipped: no frame available")
            return None

        try:
            result = self.policy.classify(image)
        except ClassificationError as e:
            self.stats.classifier_errors += 1
            logging.error(f"[{self.name}] classification failed: {e}")
            return None

        return self._resolve(result, image, generation)

    def _is_live(self, generation: Optional[int]) -> bool:
        if generation is None:
            return True
        return self._state.active and self._generation == generation

    def _resolve(
        self,
        result: DetectionResult,
        image: Optional[Snapshot],
        generation: Optional[int],
    ) -> Optional[TickOutcome]:
        with self._state_lock:
            if not self._is_live(generation):
                logging.debug(f"[{self.name}] discarding result from a stopped loop")
                return None

        decision = self.policy.decide(result)
        event = None
        if decision.records:
            try:
                event = self.policy.build_event(result, self._clock(), image)
            except ClassificationError as e:
                self.stats.classifier_errors += 1
                logging.error(f"[{self.name}] could not build log entry for {result.label}, nothing logged: {e}")

        with self._state_lock:
            if not self._is_live(generation):
                logging.debug(f"[{self.name}] discarding result from a stopped loop")
                return None
            outcome = self.policy.admit(TickOutcome(result=result, decision=decision, event=event))
            if outcome.event is not None:
                self.log_store.record(outcome.event)
                self.stats.events_logged += 1
            self._current = result
            self.policy.on_result(outcome)
            callback = self._on_result

        # Listeners (auto-export) may write files; keep them off the state lock
        if outcome.event is not None:
            self.log_store.notify(outcome.event)

        if callback is not None:
            try:
                callback(outcome)
            except Exception as e:
                logging.warning(f"[{self.name}] result callback error: {e}")
        return outcome
