"""
Comp Set - Mutable Comp List and Subject Snapshot

The ingestion boundary in front of the engine. Admits comps (rejecting
invalid records and case-insensitive duplicate addresses), removes and
edits them by id, and drives the RecomputeController once per mutation
batch.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import fields, replace
from datetime import date
from typing import Any, Iterator, Optional

from .controller import RecomputeController
from .errors import CompNotFoundError, InvalidCompError
from .models import (
    UNKNOWN_ADDRESS,
    ARVResult,
    ComparableSale,
    CompStats,
    ScoreBreakdown,
    SubjectProperty,
)
from .valuation import ARVValuationEngine


logger = logging.getLogger(__name__)

_COMP_FIELDS = frozenset(f.name for f in fields(ComparableSale))
_SUBJECT_FIELDS = frozenset(f.name for f in fields(SubjectProperty))


class CompSet:
    """
    Ordered collection of comps for one subject property.

    Comps are appended, never merged, and keep their identity through edits.
    """

    def __init__(
        self,
        subject: Optional[SubjectProperty] = None,
        controller: Optional[RecomputeController] = None,
        reference_date: Optional[date] = None,
    ):
        """
        Initialize comp set.

        Args:
            subject: Subject property being valued
            controller: Recompute controller (default: new controller)
            reference_date: Reference date for a default controller's engine
        """
        self._comps: list[ComparableSale] = []
        self._subject = subject
        self._controller = controller or RecomputeController(
            engine=ARVValuationEngine(reference_date=reference_date)
        )
        self._batch_depth = 0
        self._comps_dirty = False
        self._subject_dirty = False

    # === Snapshot access ===

    @property
    def controller(self) -> RecomputeController:
        return self._controller

    @property
    def subject(self) -> Optional[SubjectProperty]:
        return self._subject

    @property
    def comps(self) -> tuple[ComparableSale, ...]:
        """Immutable snapshot of the current comps."""
        return tuple(self._comps)

    @property
    def arv(self) -> int:
        """Last published ARV."""
        return self._controller.published_arv

    @property
    def result(self) -> ARVResult:
        """Current result, computing one if no pass has run yet."""
        if self._controller.last_result is None:
            return self._controller.recompute(self._comps, self._subject)
        return self._controller.last_result

    def __len__(self) -> int:
        return len(self._comps)

    def __iter__(self) -> Iterator[ComparableSale]:
        return iter(self.comps)

    def get(self, comp_id: str) -> Optional[ComparableSale]:
        """Find a comp by id."""
        for comp in self._comps:
            if comp.id == comp_id:
                return comp
        return None

    def contains_address(self, address: str) -> bool:
        """Case-insensitive address membership check."""
        key = address.lower().strip()
        return any(c.address_key == key for c in self._comps)

    # === Mutations ===

    def add(self, comp: ComparableSale) -> bool:
        """
        Append a comp.

        Args:
            comp: Comp to admit

        Returns:
            True if added, False if an existing comp has the same address

        Raises:
            InvalidCompError: sale price not positive or address blank
        """
        self._check_record(comp)
        if self.get(comp.id) is not None:
            raise InvalidCompError(f"Comp id already present: {comp.id}")

        if self._address_taken(comp):
            logger.warning("Comp %s has already been added, ignoring", comp.address)
            return False

        self._comps.append(comp)
        logger.debug("Added comp %s (%s)", comp.id, comp.address)
        self._comps_changed()
        return True

    def remove(self, comp_id: str) -> bool:
        """
        Remove a comp by id.

        Returns:
            True if removed, False if no comp has that id
        """
        comp = self.get(comp_id)
        if comp is None:
            return False

        self._comps.remove(comp)
        logger.debug("Removed comp %s", comp_id)
        self._comps_changed()
        return True

    def update(self, comp_id: str, **changes: Any) -> ComparableSale:
        """
        Edit comp fields in place.

        Raises:
            CompNotFoundError: no comp has that id
            InvalidCompError: unknown field, id change, invalid value, or
                an address already used by another comp
        """
        comp = self.get(comp_id)
        if comp is None:
            raise CompNotFoundError(f"No comp with id {comp_id}")

        unknown = set(changes) - _COMP_FIELDS
        if unknown:
            raise InvalidCompError(f"Unknown comp fields: {', '.join(sorted(unknown))}")
        if "id" in changes and changes["id"] != comp.id:
            raise InvalidCompError("Comp id cannot be changed")

        # Validate on a copy so a bad edit leaves the comp untouched
        try:
            candidate = replace(comp, **changes)
        except ValueError as e:
            raise InvalidCompError(str(e)) from e

        self._check_record(candidate)
        if self._address_taken(candidate):
            raise InvalidCompError(f"Another comp already has address {candidate.address}")

        for name, value in changes.items():
            setattr(comp, name, value)

        self._comps_changed()
        return comp

    def set_subject(self, subject: Optional[SubjectProperty]) -> None:
        """Replace the subject property."""
        self._subject = subject
        self._subject_changed()

    def update_subject(self, **changes: Any) -> SubjectProperty:
        """
        Edit subject fields.

        Raises:
            InvalidCompError: no subject set, unknown field, or invalid value
        """
        if self._subject is None:
            raise InvalidCompError("No subject property set")

        unknown = set(changes) - _SUBJECT_FIELDS
        if unknown:
            raise InvalidCompError(f"Unknown subject fields: {', '.join(sorted(unknown))}")

        try:
            self._subject = replace(self._subject, **changes)
        except ValueError as e:
            raise InvalidCompError(str(e)) from e

        self._subject_changed()
        return self._subject

    @contextmanager
    def batch(self) -> Iterator["CompSet"]:
        """Group mutations into a single recompute pass."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._flush()

    # === Diagnostics ===

    def breakdown(self, comp_id: str) -> Optional[ScoreBreakdown]:
        """Score breakdown for a comp, or None on the median fallback path."""
        comp = self.get(comp_id)
        if comp is None:
            raise CompNotFoundError(f"No comp with id {comp_id}")
        return self._controller.engine.breakdown(comp, self._subject)

    def stats(self) -> Optional[CompStats]:
        return self._controller.engine.summarize(self._comps)

    # === Admission rules ===

    @staticmethod
    def _check_record(comp: ComparableSale) -> None:
        if comp.sold_price <= 0:
            raise InvalidCompError("sold_price must be positive")
        if not comp.address or not comp.address.strip():
            raise InvalidCompError("address is required")

    def _address_taken(self, comp: ComparableSale) -> bool:
        """Whether another comp shares this comp's address."""
        if comp.address_key == UNKNOWN_ADDRESS:
            return False
        return any(
            c.address_key == comp.address_key and c.id != comp.id
            for c in self._comps
        )

    # === Recompute triggers ===

    def _comps_changed(self) -> None:
        self._comps_dirty = True
        if self._batch_depth == 0:
            self._flush()

    def _subject_changed(self) -> None:
        self._subject_dirty = True
        if self._batch_depth == 0:
            self._flush()

    def _flush(self) -> None:
        comps_dirty, subject_dirty = self._comps_dirty, self._subject_dirty
        self._comps_dirty = self._subject_dirty = False

        if comps_dirty:
            self._controller.comps_changed(self._comps, self._subject)
        elif subject_dirty:
            self._controller.subject_changed(self._comps, self._subject)
