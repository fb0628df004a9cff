"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta
from typing import Any, Callable, Dict

import pytest

from smartbin.models.record import (
    ClassificationRecord,
    CorrectionStatus,
    RecordStatus,
    WasteLabel,
)

BASE_URL = "http://bin.local:5000"
BASE_TIME = datetime(2025, 10, 13, 9, 0, 0)  # A Monday


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def make_record() -> Callable[..., ClassificationRecord]:
    """Factory for domain records; `minute` offsets the capture time."""

    def _make(
        record_id: int,
        label: WasteLabel = WasteLabel.ORGANIC,
        minute: int = 0,
        correction_status: CorrectionStatus = CorrectionStatus.UNRATED,
        confidence: float = 90.0,
        captured_at: datetime | None = None,
    ) -> ClassificationRecord:
        captured = captured_at or BASE_TIME + timedelta(minutes=minute)
        return ClassificationRecord(
            id=record_id,
            image_ref=f"{BASE_URL}/uploads/{record_id}.jpg",
            label=label,
            confidence=confidence,
            date_text=captured.strftime("%d/%m/%Y"),
            time_text=captured.strftime("%H:%M:%S"),
            captured_at=captured,
            processing_time_ms=120.0,
            model_version="v1.0",
            status=RecordStatus.SUCCESS,
            correction_status=correction_status,
        )

    return _make


@pytest.fixture
def record_payload() -> Callable[..., Dict[str, Any]]:
    """Factory for wire-format records as the backend sends them."""

    def _make(record_id: int, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "id": record_id,
            "image_path": f"uploads\\2025\\{record_id}.jpg",
            "label": "Organik",
            "confidence": 91.5,
            "date": "13/10/2025",
            "timestamp": "09:00:00",
            "processing_time": 120,
            "model_version": "v1.0",
            "status": "success",
            "koreksi_status": "belum_dinilai",
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def stats_payload() -> Dict[str, Any]:
    """Wire-format stats body with a 60/40 split."""
    return {
        "stats": {
            "total": 10,
            "organik": 6,
            "anorganik": 4,
            "percentage": {"organik": 55, "anorganik": 45},
        },
        "weeklyActivity": [
            {"day": "Mon", "amount": 3},
            {"day": "Tue", "amount": 7},
        ],
        "lastUpdated": "2025-10-13T09:30:00",
    }
