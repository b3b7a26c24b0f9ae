"""
Recompute Controller for the ARV Comp Engine

Re-runs the valuation whenever the comp set changes or a subject field
read by scoring or adjustment changes, and notifies observers only when
the ARV actually moves. The equality guard is what stops an observer
that writes the ARV back into its host from triggering recomputation
forever.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from .models import ARVResult, ComparableSale, SubjectProperty
from .valuation import ARVValuationEngine


logger = logging.getLogger(__name__)

ARVObserver = Callable[[ARVResult], None]


class ControllerState(Enum):
    """Recompute lifecycle."""
    IDLE = "idle"
    COMPUTING = "computing"
    PUBLISHING = "publishing"


class RecomputeController:
    """
    Stores the last published ARV and publishes only on change.

    Triggers arriving while a pass is in progress are queued and drained
    against the latest snapshot before returning to IDLE.
    """

    def __init__(self, engine: ARVValuationEngine = None, initial_arv: int = 0):
        """
        Initialize controller.

        Args:
            engine: Valuation engine (default: engine measuring from today)
            initial_arv: ARV the host currently holds
        """
        self._engine = engine or ARVValuationEngine()
        self._published_arv = initial_arv
        self._last_result: Optional[ARVResult] = None
        self._last_subject_key: Optional[Tuple] = None
        self._observers: List[ARVObserver] = []
        self._state = ControllerState.IDLE
        self._pending: Optional[Tuple[Tuple[ComparableSale, ...], Optional[SubjectProperty]]] = None

    @property
    def engine(self) -> ARVValuationEngine:
        return self._engine

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def published_arv(self) -> int:
        """Last ARV value emitted to observers (or the initial value)."""
        return self._published_arv

    @property
    def last_result(self) -> Optional[ARVResult]:
        """Result of the most recent pass, published or not."""
        return self._last_result

    def subscribe(self, observer: ARVObserver) -> Callable[[], None]:
        """
        Register an observer for ARV changes.

        Returns:
            Callable that removes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def comps_changed(
        self,
        comps: Sequence[ComparableSale],
        subject: Optional[SubjectProperty],
    ) -> Optional[ARVResult]:
        """Comp set was mutated: always recompute."""
        return self.recompute(comps, subject)

    def subject_changed(
        self,
        comps: Sequence[ComparableSale],
        subject: Optional[SubjectProperty],
    ) -> Optional[ARVResult]:
        """
        Subject was edited: recompute only if a relevant field changed.

        Returns:
            Fresh result, or the previous result when nothing relevant changed
        """
        key = subject.recompute_key if subject is not None else None
        if self._last_result is not None and key == self._last_subject_key:
            logger.debug("Subject edit does not affect ARV, skipping recompute")
            return self._last_result
        return self.recompute(comps, subject)

    def recompute(
        self,
        comps: Sequence[ComparableSale],
        subject: Optional[SubjectProperty],
    ) -> Optional[ARVResult]:
        """
        Run a full pass and publish if the ARV changed.

        When called during an in-progress pass the snapshot is queued and
        the current result is returned; the queued pass runs before the
        controller returns to IDLE.
        """
        snapshot = (tuple(comps), subject)

        if self._state != ControllerState.IDLE:
            self._pending = snapshot
            return self._last_result

        try:
            while snapshot is not None:
                self._run_pass(*snapshot)
                snapshot, self._pending = self._pending, None
        finally:
            self._pending = None
            self._state = ControllerState.IDLE

        return self._last_result

    def _run_pass(
        self,
        comps: Tuple[ComparableSale, ...],
        subject: Optional[SubjectProperty],
    ) -> None:
        self._state = ControllerState.COMPUTING
        result = self._engine.valuate(subject, comps)
        self._last_result = result
        self._last_subject_key = subject.recompute_key if subject is not None else None

        if result.arv == self._published_arv:
            logger.debug("ARV unchanged at %d, not publishing", result.arv)
            return

        self._state = ControllerState.PUBLISHING
        logger.info(
            "ARV changed %d -> %d (%s, %d comps)",
            self._published_arv, result.arv, result.method.value, result.comps_used,
        )
        self._published_arv = result.arv

        for observer in list(self._observers):
            try:
                observer(result)
            except Exception:
                logger.exception("ARV observer failed")
