"""
Pydantic v2 models shared by the coordinator, the collection client and the API.

Items: inventory entries and habits as the collection service returns them
Verdict: ParsedIntent produced by the classifier
Views: SearchView, MealPlan, SessionSnapshot
Wire: capture bridge messages and API request bodies
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class CaptureState(StrEnum):
    """Lifecycle of a capture session."""

    idle = "idle"
    recording = "recording"
    finalizing = "finalizing"


class CaptureMode(StrEnum):
    """Which input buffer receives live transcript updates."""

    main = "main"
    secondary = "secondary"


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


class Target(StrEnum):
    """Collection an utterance refers to."""

    inventory = "INVENTORY"
    habit = "HABIT"
    suggestion = "SUGGESTION"

    @classmethod
    def parse(cls, value: Any) -> "Target":
        """Case-insensitive lookup; unknown values fall back to inventory."""
        if isinstance(value, Target):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.inventory


class InventoryItem(BaseModel):
    """A stock ledger entry. ``action`` is advisory and passed through untouched."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    name: str = ""
    quantity: float | None = None
    unit: str | None = None
    category: str | None = None
    location: str | None = None
    expire_date: str | None = Field(default=None, alias="expireDate")
    status: str | None = None
    action: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    def payload(self) -> dict:
        """Serialize in the collection service's field naming."""
        return self.model_dump(by_alias=True, exclude_none=True)


class HabitItem(BaseModel):
    """A recurring habit (or shopping-list / suggestion entry)."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    type: str | None = None
    details: str | None = None
    frequency: str | None = None
    comment: str | None = None

    def payload(self) -> dict:
        return self.model_dump(exclude_none=True)


AnyItem = InventoryItem | HabitItem


def item_class_for(target: Target) -> type[InventoryItem] | type[HabitItem]:
    """Return the item model used by a target's collection."""
    return HabitItem if target is Target.habit else InventoryItem


class ChangeRecord(BaseModel):
    """One line of the human-readable change list returned by an update."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    name: str = ""
    desc: str = ""
    expire_date: str | None = None


# ---------------------------------------------------------------------------
# Verdict
# ---------------------------------------------------------------------------


class ParsedIntent(BaseModel):
    """Classifier's structured interpretation of one finalized utterance."""

    model_config = ConfigDict(frozen=True)

    target: Target
    retrieval: bool = False
    items: tuple[AnyItem, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _coerce_items(cls, data: Any) -> Any:
        # Item shape depends on target, so resolve it before union validation.
        if not isinstance(data, dict):
            return data
        target = Target.parse(data.get("target"))
        item_cls = item_class_for(target)
        items = [
            item if isinstance(item, item_cls) else item_cls.model_validate(
                item.model_dump(by_alias=True) if isinstance(item, BaseModel) else item
            )
            for item in data.get("items") or []
        ]
        return {**data, "target": target, "items": items}

    def item_payloads(self) -> list[dict]:
        return [item.payload() for item in self.items]


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class SearchViewKind(StrEnum):
    """Why the search view is showing."""

    lookup = "lookup"
    commit_result = "commit_result"


class SearchView(BaseModel):
    """Transient result list shown instead of the default collection view."""

    kind: SearchViewKind
    target: Target
    items: list[AnyItem] = Field(default_factory=list)
    changes: list[ChangeRecord] = Field(default_factory=list)
    message: str = ""


class MealSuggestion(BaseModel):
    """One recommended dish."""

    model_config = ConfigDict(extra="allow")

    title: str
    rationale: str = ""
    description: str = ""


class MealPlan(BaseModel):
    """Meal recommendations derived from the current inventory and habits."""

    suggestions: list[MealSuggestion] = Field(default_factory=list)
    summary: str = ""


class SessionSnapshot(BaseModel):
    """Read-only projection of all coordinator state, consumed by presentation."""

    state: CaptureState
    mode: CaptureMode
    buffers: dict[CaptureMode, str]
    status: str
    error: str | None = None
    capture_available: bool
    language: str
    verdict: ParsedIntent | None = None
    countdown: int | None = None
    commit_in_flight: bool = False
    search_view: SearchView | None = None
    inventory: list[InventoryItem] = Field(default_factory=list)
    habits: list[HabitItem] = Field(default_factory=list)
    meal_plan: MealPlan | None = None


# ---------------------------------------------------------------------------
# Capture bridge (WebSocket)
# ---------------------------------------------------------------------------


class CaptureMessageType(StrEnum):
    """Discriminator for messages sent from the service to the capture client."""

    connected = "connected"
    command = "command"
    state = "state"
    error = "error"


class CaptureMessage(BaseModel):
    """JSON message sent from server to client over WebSocket."""

    type: CaptureMessageType
    data: dict = Field(default_factory=dict)


class EngineNotification(BaseModel):
    """JSON message sent by the capture client (the speech engine's host)."""

    event: Literal["start", "result", "end", "error", "unavailable"]
    text: str = ""
    code: str = ""


# ---------------------------------------------------------------------------
# API request bodies
# ---------------------------------------------------------------------------


class CaptureStartRequest(BaseModel):
    """POST /session/capture body."""

    mode: CaptureMode = CaptureMode.main


class CaptureStopRequest(BaseModel):
    """POST /session/capture/stop body."""

    reason: str | None = None


class TextRequest(BaseModel):
    """PUT / POST /session/text body."""

    text: str
    mode: CaptureMode = CaptureMode.main


class ConfirmRequest(BaseModel):
    """POST /session/confirm body; ``items`` replaces the held verdict's items."""

    items: list[dict] | None = None


class LanguageRequest(BaseModel):
    """PUT /session/language body."""

    language: Literal["zh", "en"]
