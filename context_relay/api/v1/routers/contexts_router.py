"""
Contexts роутер.

CRUD контекстов о местах, поиск рядом с точкой и применение
контекста к диалогу.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ....core.dependencies import get_context_store, get_orchestrator
from ....core.errors import NotFoundError, OutOfRegionError
from ....models.rest import AddContextRequest, ApplyContextRequest, NearbyRequest, OperationResponse
from ....models.schemas import NearbyPlace, PlaceContext, PlaceSummary
from ....services.context_store import PlaceContextStore
from ....services.orchestrator import ConversationOrchestrator
from ...errors import process_result_response

logger = logging.getLogger("context-relay.api.contexts")

router = APIRouter(prefix="/api", tags=["contexts"])


@router.post("/context", response_model=OperationResponse, status_code=201)
async def add_context(
    request: AddContextRequest,
    store: PlaceContextStore = Depends(get_context_store),
) -> OperationResponse:
    """
    Добавить или заменить контекст.

    Raises:
        OutOfRegionError (422): координаты вне региона
    """
    place = PlaceContext(**request.model_dump())
    if not store.add(request.id, place):
        raise OutOfRegionError(request.id, request.location.latitude, request.location.longitude)
    return OperationResponse(success=True, message=f"Contexto '{request.id}' adicionado com sucesso")


@router.get("/context/{context_id}", response_model=PlaceContext)
async def get_context(
    context_id: str,
    store: PlaceContextStore = Depends(get_context_store),
) -> PlaceContext:
    place = store.get(context_id)
    if place is None:
        raise NotFoundError("context", context_id)
    return place


@router.get("/contexts", response_model=List[PlaceSummary])
async def list_contexts(store: PlaceContextStore = Depends(get_context_store)) -> List[PlaceSummary]:
    return store.list()


@router.post("/contexts/nearby", response_model=List[NearbyPlace])
async def find_nearby(
    request: NearbyRequest,
    store: PlaceContextStore = Depends(get_context_store),
) -> List[NearbyPlace]:
    return store.find_nearby(request.location, request.radius)


@router.delete("/context/{context_id}", response_model=OperationResponse)
async def remove_context(
    context_id: str,
    store: PlaceContextStore = Depends(get_context_store),
) -> OperationResponse:
    if not store.remove(context_id):
        raise NotFoundError("context", context_id)
    return OperationResponse(success=True, message=f"Contexto '{context_id}' removido")


@router.post("/apply-context")
async def apply_context(
    request: ApplyContextRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    result = await orchestrator.apply_saved_context(request.user_id, request.context_id)
    return process_result_response(result)
