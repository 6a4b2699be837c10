from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from context_relay.core.errors import ErrorKind, RelayError


class ConversationTurn(BaseModel):
    """One message unit of a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"]
    content: str


class Coordinates(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class PlaceContext(BaseModel):
    """
    Place descriptor injected into conversations.

    `details` holds the optional fields (info, history, events,
    operating_hours, ...) rendered after name and description.
    """

    id: str
    name: str
    description: str
    location: Coordinates
    details: Dict[str, str] = Field(default_factory=dict)
    services: List[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


class PlaceSummary(BaseModel):
    id: str
    name: str
    description: str
    location: Coordinates


class NearbyPlace(PlaceContext):
    distance_m: int = Field(description="Distance to the search point, rounded to meters")


class TemplateSpec(BaseModel):
    """Pre-approved WhatsApp template used to reopen an expired conversation."""

    name: str
    language: str = "pt_BR"
    components: List[Dict[str, Any]] = Field(default_factory=list)


class SendResult(BaseModel):
    """Result of a single channel send."""

    success: bool
    message_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[Any] = None
    error_code: Optional[int] = None


class DeliveryAttempt(BaseModel):
    target: str
    kind: Literal["direct", "template"]
    payload: Dict[str, Any]
    outcome: Literal["success", "failed"]
    error_code: Optional[int] = None


class DeliveryOutcome(BaseModel):
    """Final outcome of one delivery-with-fallback invocation."""

    success: bool
    target: str
    channel: Optional[Literal["direct", "template"]] = None
    message_id: Optional[str] = None
    error: Optional[Any] = None
    attempts: List[DeliveryAttempt] = Field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return any(attempt.kind == "template" for attempt in self.attempts)


class ProcessResult(BaseModel):
    """Tagged orchestrator result, mapped by the API layer to HTTP responses."""

    success: bool
    error_kind: Optional[ErrorKind] = None
    detail: Optional[str] = None
    ai_response: Optional[str] = None

    @classmethod
    def ok(cls, ai_response: Optional[str] = None, detail: Optional[str] = None) -> "ProcessResult":
        return cls(success=True, ai_response=ai_response, detail=detail)

    @classmethod
    def failed(cls, error: RelayError, ai_response: Optional[str] = None) -> "ProcessResult":
        return cls(success=False, error_kind=error.kind, detail=error.message, ai_response=ai_response)


class InboundMessage(BaseModel):
    """Text message extracted from a webhook envelope."""

    sender: str = Field(alias="from")
    id: Optional[str] = None
    timestamp: Optional[str] = None
    text: str
    type: Literal["text"] = "text"

    model_config = ConfigDict(populate_by_name=True)
