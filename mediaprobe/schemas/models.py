# mediaprobe/schemas/models.py

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# =========================
# Directory rows
# =========================


def _cell_to_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


class RowSet(BaseModel):
    """
    Materialized result of one catalog query.

    Column order is the order declared by the directory service, followed by
    any row keys it did not declare. Rows are kept as name → value mappings
    with every value coerced to an optional string, mirroring what a cursor's
    `getString` would return.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    columns: tuple[str, ...] = Field(default_factory=tuple, description="Column names in declared order.")
    rows: tuple[dict[str, str | None], ...] = Field(default_factory=tuple, description="Rows keyed by column name.")
    count: int = Field(0, ge=0, description="Declared row count. Defaults to the number of materialized rows.")

    @field_validator("rows", mode="before")
    @classmethod
    def _coerce_cells(cls, v: Any) -> Any:
        if v is None:
            return ()
        return tuple({str(k): _cell_to_str(val) for k, val in dict(row).items()} for row in v)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        # count defaults to the materialized rows; row keys missing from the
        # declared columns are appended in first-seen order
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        rows = list(data.get("rows") or ())
        data["rows"] = rows
        if data.get("count") is None:
            data["count"] = len(rows)
        columns = [str(c) for c in data.get("columns") or ()]
        for row in rows:
            if not isinstance(row, Mapping):
                continue
            for key in map(str, row):
                if key not in columns:
                    columns.append(key)
        data["columns"] = tuple(columns)
        return data

    def row_at(self, index: int) -> dict[str, str | None]:
        """Row at `index`; positions past the materialized rows read as all-absent."""
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return {}

    @classmethod
    def from_payload(cls, payload: Any) -> RowSet:
        """
        Build a RowSet from a decoded JSON payload.

        Accepted shapes:
          - {"columns": [...], "rows": [[...], ...], "count": N}
          - {"columns": [...], "rows": [{...}, ...]}
          - [{...}, {...}]                  (columns inferred in first-seen order)
        """
        if isinstance(payload, Sequence) and not isinstance(payload, (str, bytes)):
            payload = {"rows": list(payload)}
        if not isinstance(payload, Mapping):
            raise ValueError(f"Unsupported row set payload: {type(payload).__name__}")

        raw_rows = list(payload.get("rows") or [])
        columns: list[str] = [str(c) for c in payload.get("columns") or []]

        rows: list[dict[str, Any]] = []
        for raw in raw_rows:
            if isinstance(raw, Mapping):
                row = dict(raw)
                for key in row:
                    if str(key) not in columns:
                        columns.append(str(key))
            elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
                if len(raw) > len(columns):
                    raise ValueError(f"Row has {len(raw)} cells but only {len(columns)} columns are declared")
                row = dict(zip(columns, raw))
            else:
                raise ValueError(f"Unsupported row payload: {type(raw).__name__}")
            rows.append(row)

        data: dict[str, Any] = {"columns": tuple(columns), "rows": tuple(rows)}
        if payload.get("count") is not None:
            data["count"] = int(payload["count"])
        return cls.model_validate(data)


class SampledEntry(BaseModel):
    """Fields extracted from exactly one randomly chosen row."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    locator: str = Field("", description="Locator of the media item (http(s) URL or content:// reference). Empty if none found.")
    local_path_hint: str | None = Field(None, description="Value of the `_data` column, if present.")
    content_type_hint: str | None = Field(None, description="Value of the `mime_type` column, if present.")


class ResolvedMetadata(BaseModel):
    """Secondary lookup results for an indirect locator. All-absent when skipped or failed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    display_name: str | None = Field(None, description="Human-readable name from the `_display_name` field.")
    content_type: str | None = Field(None, description="Content type reported by the directory service.")


class MediaKind(str, Enum):
    image = "image"
    video = "video"
    unknown = "unknown"


class DirectoryInfo(BaseModel):
    """Diagnostic description of a registered directory service."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    authority: str
    package_name: str | None = None
    exported: bool = False


# =========================
# Query outcome
# =========================


class QuerySuccess(BaseModel):
    """Terminal result of a query stage that reached the directory service."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    status: Literal["success"] = "success"
    count: int = Field(..., ge=0, description="Declared number of rows in the catalog.")
    columns: tuple[str, ...] = Field(default_factory=tuple, description="Catalog column names in declared order.")
    uri: str = Field(..., description="Catalog URI that was queried.")
    entry: SampledEntry | None = Field(None, description="Randomly sampled entry; None when the catalog is empty.")
    metadata: ResolvedMetadata = Field(default_factory=ResolvedMetadata, description="Resolved name/type of the entry.")
    media_kind: MediaKind | None = Field(None, description="Kind used to pick a validator track.")
    warnings: list[str] = Field(default_factory=list, description="Non-fatal issues (e.g., malformed_row).")

    @property
    def sample_url(self) -> str | None:
        if self.entry is None or not self.entry.locator:
            return None
        return self.entry.locator

    @property
    def sample_path(self) -> str | None:
        return self.entry.local_path_hint if self.entry else None

    @property
    def mime_type(self) -> str | None:
        hint = self.entry.content_type_hint if self.entry else None
        return hint or self.metadata.content_type

    @property
    def resolved_filename(self) -> str | None:
        return self.metadata.display_name


QueryErrorReason = Literal["unreachable", "permission_denied", "empty_response", "error"]


class QueryError(BaseModel):
    """Terminal failure of the query stage, carried as data."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    status: Literal["error"] = "error"
    reason: QueryErrorReason = Field("error", description="Coarse failure category.")
    message: str = Field(..., description="Human-readable error message.")


QueryOutcome = QuerySuccess | QueryError


# =========================
# Validation status
# =========================


class InvalidTransitionError(ValueError):
    """A validation track was asked to make a move its state machine forbids."""


class ValidationState(str, Enum):
    idle = "idle"
    loading = "loading"
    success = "success"
    error = "error"


_ALLOWED: dict[ValidationState, set[ValidationState]] = {
    ValidationState.idle: {ValidationState.idle, ValidationState.loading},
    ValidationState.loading: {ValidationState.success, ValidationState.error, ValidationState.idle},
    ValidationState.success: {ValidationState.idle},
    ValidationState.error: {ValidationState.idle},
}


class ValidationStatus(BaseModel):
    """Load status of one media track: Idle → Loading → Success(locator) | Error(message)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    state: ValidationState = ValidationState.idle
    locator: str | None = None
    message: str | None = None

    @classmethod
    def idle(cls) -> ValidationStatus:
        return cls(state=ValidationState.idle)

    @classmethod
    def loading(cls) -> ValidationStatus:
        return cls(state=ValidationState.loading)

    @classmethod
    def success(cls, locator: str) -> ValidationStatus:
        return cls(state=ValidationState.success, locator=locator)

    @classmethod
    def error(cls, message: str) -> ValidationStatus:
        return cls(state=ValidationState.error, message=message)

    @property
    def is_terminal(self) -> bool:
        return self.state in (ValidationState.success, ValidationState.error)

    def transition(self, new: ValidationStatus) -> ValidationStatus:
        if new.state not in _ALLOWED[self.state]:
            raise InvalidTransitionError(f"{self.state.value} -> {new.state.value} is not a valid transition")
        return new

    def describe(self) -> str:
        if self.state is ValidationState.success:
            return f"OK ({self.locator})"
        if self.state is ValidationState.error:
            return f"FAILED: {self.message}"
        return self.state.value.capitalize()


class ProbeState(BaseModel):
    """Snapshot handed to the presentation collaborator on every transition."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    is_loading: bool = False
    outcome: QuerySuccess | QueryError | None = None
    image_status: ValidationStatus = Field(default_factory=ValidationStatus.idle)
    video_status: ValidationStatus = Field(default_factory=ValidationStatus.idle)
    show_result: bool = False


# =========================
# Configuration
# =========================


class ProbePolicy(BaseModel):
    """
    Runtime knobs for the probe: where the HTTP backend lives and how long each
    suspension point may take. The directory identity itself is fixed and is
    intentionally not part of this policy.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    base_url: str = Field("http://127.0.0.1:8765", description="Endpoint of the HTTP directory backend.")
    timeout_s: float = Field(15.0, gt=0, description="HTTP timeout in seconds for directory and media requests.")
    user_agent: str = Field("MediaProbe/0.1 (+directory-probe)", description="User-Agent string used in HTTP requests.")
    decode_timeout_s: float = Field(20.0, gt=0, description="Upper bound for a full image decode.")
    ready_timeout_s: float = Field(20.0, gt=0, description="Upper bound for a video session to report ready.")
    max_image_bytes: int = Field(64 * 1024 * 1024, ge=1, description="Largest image payload accepted for decoding.")

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")
