"""Classification record model with correction-state tracking."""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class WasteLabel(Enum):
    """Waste category assigned by the classifier."""
    ORGANIC = "Organic"
    INORGANIC = "Inorganic"


class RecordStatus(Enum):
    """Pipeline outcome for a single classification."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Verdict(Enum):
    """Human feedback on a classification."""
    CORRECT = "correct"
    INCORRECT = "incorrect"


class CorrectionStatus(Enum):
    """
    Tagged correction state.

    Transitions:
        UNRATED -> PENDING_CORRECT -> CORRECT
        UNRATED -> PENDING_INCORRECT -> INCORRECT
        PENDING_* -> UNRATED (request failed)
    """
    UNRATED = "unrated"
    PENDING_CORRECT = "pendingCorrect"
    PENDING_INCORRECT = "pendingIncorrect"
    CORRECT = "correct"
    INCORRECT = "incorrect"

    @property
    def is_pending(self) -> bool:
        return self in (CorrectionStatus.PENDING_CORRECT, CorrectionStatus.PENDING_INCORRECT)

    @classmethod
    def pending_for(cls, verdict: Verdict) -> "CorrectionStatus":
        if verdict is Verdict.CORRECT:
            return cls.PENDING_CORRECT
        return cls.PENDING_INCORRECT

    @classmethod
    def resolved_for(cls, verdict: Verdict) -> "CorrectionStatus":
        if verdict is Verdict.CORRECT:
            return cls.CORRECT
        return cls.INCORRECT


@dataclass(frozen=True, slots=True)
class ClassificationRecord:
    """
    One classified item as reported by the backend.

    Identity is `id`; every other field is replaced wholesale when a newer
    delivery for the same id arrives.
    """

    id: int
    image_ref: str
    label: WasteLabel
    confidence: float
    date_text: str
    time_text: str
    captured_at: datetime
    processing_time_ms: float
    model_version: str
    status: RecordStatus
    correction_status: CorrectionStatus = CorrectionStatus.UNRATED

    def sort_key(self) -> tuple:
        """Key for most-recent-first ordering (use with reverse=True)."""
        return (self.captured_at, self.id)

    def with_correction(self, status: CorrectionStatus) -> "ClassificationRecord":
        return replace(self, correction_status=status)

    @property
    def is_organic(self) -> bool:
        return self.label is WasteLabel.ORGANIC
