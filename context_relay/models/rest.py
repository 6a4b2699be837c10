from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from context_relay.models.schemas import Coordinates


class HealthResponse(BaseModel):
    success: bool = True
    status: str
    service: str
    version: str
    timestamp: Optional[datetime] = None


class SendMessageRequest(BaseModel):
    to: str
    message: str
    use_fallback: bool = Field(default=True, alias="useFallback")

    model_config = {"populate_by_name": True}


class SendTemplateRequest(BaseModel):
    to: str
    template_name: str = Field(alias="templateName")
    language: str = "pt_BR"
    components: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class StartConversationRequest(BaseModel):
    user_id: str = Field(alias="userId")
    template_name: str = Field(alias="templateName")
    language: str = "pt_BR"
    components: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class UserRequest(BaseModel):
    user_id: str = Field(alias="userId")

    model_config = {"populate_by_name": True}


class ApplyContextRequest(BaseModel):
    user_id: str = Field(alias="userId")
    context_id: str = Field(alias="contextId")

    model_config = {"populate_by_name": True}


class AddContextRequest(BaseModel):
    id: str
    name: str
    description: str
    location: Coordinates
    details: Dict[str, str] = Field(default_factory=dict)
    services: List[str] = Field(default_factory=list)


class NearbyRequest(BaseModel):
    location: Coordinates
    radius: float = Field(default=500, gt=0, description="Search radius in meters")


class OperationResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
