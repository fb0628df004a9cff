"""
Wire payload validation and normalization.

The backend speaks a mixed vocabulary (Indonesian labels and correction
states, snake_case keys, browser-oriented date strings). These pydantic
models accept that vocabulary plus English aliases and convert it into the
engine's immutable models. Every parse failure surfaces as a
MalformedPayloadError; callers decide whether to raise (pull) or drop (push).
"""

from __future__ import annotations

from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ...domain.errors import MalformedPayloadError
from ...domain.services.stats_projector import build_stats
from ...models.record import ClassificationRecord, CorrectionStatus, RecordStatus, WasteLabel
from ...models.stats import AggregateStats, DayActivity, DeviceStatus, WEEKDAY_LABELS

DATE_FORMATS = ("%d/%m/%Y", "%Y-%m-%d", "%d-%m-%Y")
TIME_FORMATS = ("%H:%M:%S", "%H.%M.%S", "%H:%M", "%H.%M")

LABEL_ALIASES = {
    "organik": WasteLabel.ORGANIC,
    "organic": WasteLabel.ORGANIC,
    "anorganik": WasteLabel.INORGANIC,
    "inorganic": WasteLabel.INORGANIC,
}

CORRECTION_ALIASES = {
    "belum_dinilai": CorrectionStatus.UNRATED,
    "unrated": CorrectionStatus.UNRATED,
    "benar": CorrectionStatus.CORRECT,
    "correct": CorrectionStatus.CORRECT,
    "salah": CorrectionStatus.INCORRECT,
    "incorrect": CorrectionStatus.INCORRECT,
}

# English and Indonesian weekday names, full and abbreviated
_DAY_NAMES = (
    ("monday", "senin", "sen"),
    ("tuesday", "selasa", "sel"),
    ("wednesday", "rabu", "rab"),
    ("thursday", "kamis", "kam"),
    ("friday", "jumat", "jum'at", "jum"),
    ("saturday", "sabtu", "sab"),
    ("sunday", "minggu", "min"),
)

DAY_ALIASES = {
    name: label
    for label, names in zip(WEEKDAY_LABELS, _DAY_NAMES)
    for name in (label.lower(),) + names
}


def normalize_image_ref(locator: str, base_url: str) -> str:
    """
    Canonicalize a backend-local image path into an absolute URL.

    `uploads\\2024\\a.jpg` with base `http://host:5000` becomes
    `http://host:5000/uploads/2024/a.jpg`. Absolute URLs pass through.
    """
    if locator.startswith(("http://", "https://")):
        return locator
    path = locator.replace("\\", "/").lstrip("/")
    return f"{base_url.rstrip('/')}/{path}"


def parse_captured_at(date_text: str, time_text: str) -> datetime:
    """Combine the backend's date and time-of-day strings into one instant."""
    day = None
    for fmt in DATE_FORMATS:
        try:
            day = datetime.strptime(date_text.strip(), fmt).date()
            break
        except ValueError:
            continue
    if day is None:
        raise ValueError(f"Unrecognized date: {date_text!r}")

    for fmt in TIME_FORMATS:
        try:
            moment = datetime.strptime(time_text.strip(), fmt).time()
            return datetime.combine(day, moment)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized time: {time_text!r}")


class RecordPayload(BaseModel):
    """One entry of `GET /history`, a `new_log` push, or a correction response."""

    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    id: int = Field(gt=0)
    image_path: str = Field(validation_alias=AliasChoices("image_path", "imageRef", "image_ref"))
    label: WasteLabel
    confidence: float = Field(ge=0, le=100, allow_inf_nan=False)
    date_text: str = Field(validation_alias=AliasChoices("date", "date_text"))
    time_text: str = Field(validation_alias=AliasChoices("timestamp", "time", "time_text"))
    processing_time: float = Field(
        default=0.0,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("processing_time", "processingTimeMs", "processing_time_ms"),
    )
    model_version: str = Field(default="", validation_alias=AliasChoices("model_version", "modelVersion"))
    status: RecordStatus = RecordStatus.SUCCESS
    correction_status: CorrectionStatus = Field(
        default=CorrectionStatus.UNRATED,
        validation_alias=AliasChoices("koreksi_status", "correctionStatus", "correction_status"),
    )
    captured_at: Optional[datetime] = None

    @field_validator("label", mode="before")
    @classmethod
    def _map_label(cls, value: Any) -> WasteLabel:
        if isinstance(value, WasteLabel):
            return value
        label = LABEL_ALIASES.get(str(value).strip().lower())
        if label is None:
            raise ValueError(f"Unknown label: {value!r}")
        return label

    @field_validator("status", mode="before")
    @classmethod
    def _map_status(cls, value: Any) -> Any:
        return str(value).strip().lower() if isinstance(value, str) else value

    @field_validator("correction_status", mode="before")
    @classmethod
    def _map_correction(cls, value: Any) -> CorrectionStatus:
        if isinstance(value, CorrectionStatus):
            return value
        status = CORRECTION_ALIASES.get(str(value).strip().lower())
        if status is None:
            raise ValueError(f"Unknown correction status: {value!r}")
        return status

    @model_validator(mode="after")
    def _derive_captured_at(self) -> "RecordPayload":
        if self.captured_at is None:
            self.captured_at = parse_captured_at(self.date_text, self.time_text)
        return self

    def to_record(self, base_url: str) -> ClassificationRecord:
        return ClassificationRecord(
            id=self.id,
            image_ref=normalize_image_ref(self.image_path, base_url),
            label=self.label,
            confidence=self.confidence,
            date_text=self.date_text,
            time_text=self.time_text,
            captured_at=self.captured_at,
            processing_time_ms=self.processing_time,
            model_version=self.model_version,
            status=self.status,
            correction_status=self.correction_status,
        )


class StatsBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    organic: float = Field(
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("organik", "organic", "organicWeight"),
    )
    inorganic: float = Field(
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("anorganik", "inorganic", "inorganicWeight"),
    )


class DayPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    day: str
    amount: float = Field(default=0.0, ge=0, allow_inf_nan=False)

    @field_validator("day", mode="before")
    @classmethod
    def _map_day(cls, value: Any) -> str:
        label = DAY_ALIASES.get(str(value).strip().lower())
        if label is None:
            raise ValueError(f"Unknown weekday: {value!r}")
        return label


class StatsPayload(BaseModel):
    """Body of `GET /stats` and of the `update_stats` push."""

    model_config = ConfigDict(extra="ignore")

    stats: StatsBlock
    weekly_activity: List[DayPayload] = Field(
        default_factory=list,
        max_length=7,
        validation_alias=AliasChoices("weeklyActivity", "weekly_activity"),
    )
    last_updated: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("lastUpdated", "last_updated"),
    )

    @field_validator("last_updated", mode="before")
    @classmethod
    def _parse_http_date(cls, value: Any) -> Any:
        # Flask serializes datetimes as RFC 1123 ("Sun, 19 Oct 2025 10:00:00 GMT")
        if isinstance(value, str) and "," in value:
            try:
                return parsedate_to_datetime(value)
            except (TypeError, ValueError):
                return value
        return value

    def to_stats(self) -> AggregateStats:
        return build_stats(
            organic=self.stats.organic,
            inorganic=self.stats.inorganic,
            weekly=[DayActivity(day=d.day, amount=d.amount) for d in self.weekly_activity],
            total=self.stats.total,
            last_updated=self.last_updated,
        )


class DeviceStatusPayload(BaseModel):
    """Body of the `device_status_update` push."""

    model_config = ConfigDict(extra="ignore")

    device_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("device_id", "deviceId"))
    online: Optional[bool] = None
    status: Optional[str] = None

    @model_validator(mode="after")
    def _require_liveness(self) -> "DeviceStatusPayload":
        if self.online is None:
            if self.status is None or self.status.strip().lower() not in ("online", "offline"):
                raise ValueError("device status needs 'online' or status 'online'/'offline'")
        return self

    def to_status(self, default_device_id: str) -> DeviceStatus:
        online = self.online
        if online is None:
            online = self.status.strip().lower() == "online"
        return DeviceStatus(device_id=self.device_id or default_device_id, online=online)


# =============================================================================
# Parse helpers (raise MalformedPayloadError)
# =============================================================================

def parse_record(data: Any, base_url: str, source: str = "record") -> ClassificationRecord:
    try:
        return RecordPayload.model_validate(data).to_record(base_url)
    except ValidationError as e:
        raise MalformedPayloadError(f"Invalid {source} payload: {e}", source=source) from e


def parse_history(data: Any, base_url: str) -> List[ClassificationRecord]:
    if not isinstance(data, list):
        raise MalformedPayloadError(
            f"History payload must be a list, got {type(data).__name__}", source="history"
        )
    return [parse_record(item, base_url, source="history") for item in data]


def parse_stats(data: Any, source: str = "stats") -> AggregateStats:
    try:
        return StatsPayload.model_validate(data).to_stats()
    except ValidationError as e:
        raise MalformedPayloadError(f"Invalid {source} payload: {e}", source=source) from e


def parse_device_status(data: Any, default_device_id: str) -> DeviceStatus:
    try:
        return DeviceStatusPayload.model_validate(data).to_status(default_device_id)
    except ValidationError as e:
        raise MalformedPayloadError(f"Invalid device status payload: {e}", source="device_status") from e
