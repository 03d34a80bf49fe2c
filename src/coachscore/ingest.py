"""Ingestion boundary: validate a daily biometrics payload, score it, store it.

:func:`handle_ingest` is framework-free: it takes the request method,
headers and raw body and returns an :class:`IngestResponse` carrying the
HTTP status and JSON body.  :mod:`coachscore.api` mounts it on FastAPI.

Payload::

    {"user_id"?: str, "sleep_minutes": num, "resting_hr": num, "hrv": num,
     "respiratory_rate"?: num, "date"?: "YYYY-MM-DD"}
"""

from __future__ import annotations

import datetime as dt
import hmac
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictStr,
    ValidationError,
    field_validator,
)

from coachscore.models import DailyMetric, DailyReading
from coachscore.scoring.baseline import DEFAULT_WINDOW_DAYS
from coachscore.scoring.recovery import score_recovery
from coachscore.scoring.stats import round_half_up
from coachscore.store import MetricStore, StorageError

logger = logging.getLogger(__name__)


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, x-client-info, apikey, x-api-key",
}

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

RHR_RANGE = (30.0, 200.0)  # 0 is also accepted and means "no reading"
HRV_MAX = 300.0

REQUIRED_FIELDS = ("sleep_minutes", "resting_hr", "hrv")
REQUIRED_MESSAGE = (
    "Invalid payload. Required fields: sleep_minutes (number), "
    "resting_hr (number), hrv (number)"
)


class PayloadError(ValueError):
    """A request body field is missing, mistyped or out of range."""

    def __init__(self, field_name: str, message: str):
        super().__init__(message)
        self.field = field_name
        self.message = message


@dataclass
class IngestResponse:
    """Status code and JSON body returned to the client."""

    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _error(status: int, error: str, message: str | None = None) -> IngestResponse:
    body: dict[str, Any] = {"error": error}
    if message:
        body["message"] = message
    return IngestResponse(status=status, body=body)


# ---------------------------------------------------------------------------
# Payload validation
# ---------------------------------------------------------------------------


class IngestPayload(BaseModel):
    """Ingestion request body."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    # Strict types: booleans and numeric strings are rejected
    sleep_minutes: StrictFloat = Field(..., ge=0, description="Minutes asleep")
    resting_hr: StrictFloat = Field(..., description="bpm, 0 when the device had no reading")
    hrv: StrictFloat = Field(..., ge=0, le=HRV_MAX, description="HRV in ms")
    respiratory_rate: Optional[StrictFloat] = Field(None, gt=0, description="Breaths/min")
    date: Optional[dt.date] = Field(None, description="YYYY-MM-DD, default today")
    user_id: Optional[StrictStr] = Field(None, min_length=1)

    @field_validator("resting_hr")
    @classmethod
    def _resting_hr_range(cls, v: float) -> float:
        if v != 0 and not (RHR_RANGE[0] <= v <= RHR_RANGE[1]):
            raise ValueError("must be 0 (no data) or between 30 and 200")
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _calendar_date(cls, v: Any) -> Any:
        if v is None:
            return None
        if not isinstance(v, str) or not DATE_RE.match(v):
            raise ValueError("Invalid date format. Use YYYY-MM-DD")
        try:
            return dt.date.fromisoformat(v)
        except ValueError:
            raise ValueError(f"Invalid date: {v}") from None

    @field_validator("user_id")
    @classmethod
    def _user_id_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must be a non-empty string")
        return v

    @classmethod
    def from_dict(cls, data: Any) -> IngestPayload:
        """Validate a decoded JSON body.

        Raises:
            PayloadError: With a field-level message for the first problem.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise _payload_error(e) from e

    def reading(self) -> DailyReading:
        """Today's values as the recovery scorer expects them."""
        return DailyReading(
            sleep_minutes=self.sleep_minutes,
            hrv=self.hrv,
            resting_hr=self.resting_hr or None,
            respiratory_rate=self.respiratory_rate,
        )


def _payload_error(exc: ValidationError) -> PayloadError:
    """First pydantic error as a single field-level PayloadError."""
    err = exc.errors()[0]
    if not err["loc"]:
        return PayloadError("body", "Request body must be a JSON object")

    name = str(err["loc"][0])
    if name in REQUIRED_FIELDS and (err["type"] == "missing" or err["type"].endswith("_type")):
        return PayloadError(name, REQUIRED_MESSAGE)

    msg = err["msg"]
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return PayloadError(name, f"{name}: {msg}")


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def authenticate(
    headers: Mapping[str, str],
    store: MetricStore,
    api_key: str | None,
) -> str | None:
    """Check the request's credential.

    Returns:
        The user id for a bearer token, or None for a valid ``x-api-key``
        (the user id then has to come from the body).

    Raises:
        AuthError: 401 when no usable credential is present, 403 when it is
            not recognised.
        StorageError: If the token lookup fails.
    """
    supplied_key = _header(headers, "x-api-key")
    if supplied_key:
        if not api_key or not hmac.compare_digest(supplied_key, api_key):
            raise AuthError(403, "Invalid API key")
        return None

    auth = _header(headers, "authorization")
    if not auth:
        raise AuthError(401, "Missing credentials: send x-api-key or Authorization: Bearer <token>")

    parts = auth.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthError(401, 'Invalid Authorization header format. Expected "Bearer <token>"')

    user_id = store.resolve_ingest_key(parts[1])
    if not user_id:
        raise AuthError(403, "Invalid ingest token")
    return user_id


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------


def _decode_body(body: bytes | str | Mapping | None) -> Any:
    if body is None or isinstance(body, Mapping):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    return json.loads(body)


def handle_ingest(
    method: str,
    headers: Mapping[str, str],
    body: bytes | str | Mapping | None,
    store: MetricStore,
    api_key: str | None = None,
    today: date | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> IngestResponse:
    """Validate, score and upsert one day of biometrics.

    Args:
        method: HTTP method of the request.
        headers: Request headers (any case).
        body: Raw JSON body, or an already-decoded object.
        store: Where history is read from and the new row is written to.
        api_key: Shared secret accepted in the ``x-api-key`` header.
        today: Date used when the payload has none (default: local today).
        window_days: Trailing history used for the baselines.

    Returns:
        IngestResponse with status 200/400/401/403/405/500.
    """
    method = method.upper()
    if method == "OPTIONS":
        return IngestResponse(status=200)
    if method != "POST":
        return _error(405, "Method not allowed. Use POST.")

    try:
        user_id = authenticate(headers, store, api_key)
    except AuthError as e:
        logger.warning("ingest auth rejected (%d): %s", e.status, e.message)
        return _error(e.status, "Unauthorized" if e.status == 401 else "Forbidden", e.message)
    except StorageError as e:
        logger.error("ingest token lookup failed: %s", e)
        return _error(500, "Credential lookup failed", str(e))

    try:
        payload = IngestPayload.from_dict(_decode_body(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(400, "Invalid JSON body")
    except PayloadError as e:
        return _error(400, e.message)

    if user_id is None:
        if payload.user_id is None:
            return _error(400, "user_id is required when authenticating with x-api-key")
        user_id = payload.user_id

    day = payload.date or today or date.today()

    try:
        history = store.fetch_history(user_id, day - timedelta(days=window_days), day)
    except StorageError as e:
        logger.error("history fetch failed for %s: %s", user_id, e)
        return _error(500, "Database read failed", str(e))

    result = score_recovery(payload.reading(), history)

    metric = DailyMetric(
        user_id=user_id,
        date=day,
        sleep_minutes=round_half_up(payload.sleep_minutes),
        resting_hr=payload.resting_hr or None,
        hrv=payload.hrv,
        respiratory_rate=payload.respiratory_rate,
        recovery_score=result.score,
        source="ingest",
    )

    try:
        stored = store.upsert(metric)
    except StorageError as e:
        logger.error("upsert failed for %s on %s: %s", user_id, day, e)
        return _error(500, "Database upsert failed", str(e))

    logger.info("ingested %s for %s: recovery %d", day.isoformat(), user_id, result.score)
    return IngestResponse(
        status=200,
        body={
            "success": True,
            "message": "Health metrics synced successfully",
            "data": stored.to_dict(),
            "debug": {
                "history_count": len(history),
                "calculated_score": result.score,
                "authenticated_as": user_id,
            },
        },
    )
