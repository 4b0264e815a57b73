"""Peer descriptor CRUD endpoints."""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..errors import (
    CorruptRecordError,
    DecodeError,
    MalformedBodyError,
    MissingIdentifierError,
    PeerNotFoundError,
    StorageError,
    ValidationError,
)
from ..redis_client import get_store
from ..registry import PeerRegistry
from ..resolver import PeerRequest
from ..store import Store
from ..types import Descriptor

peers_router = APIRouter(tags=["peers"])


class PeerListResponse(BaseModel):
    """Response from GET /peers."""

    count: int
    values: list[Descriptor]


class PeerStatusResponse(BaseModel):
    """Response from register and delete."""

    peerId: str
    status: str  # "created" or "deleted"


async def get_registry(store: Store = Depends(get_store)) -> PeerRegistry:
    """Dependency to get PeerRegistry instance."""
    return PeerRegistry.from_settings(store)


async def _peer_request(request: Request) -> PeerRequest:
    """Build the resolver's view of a request.

    Only the part of the path below /peer is passed on, so the route's own
    segment is never mistaken for a peer identifier. A repeated query
    parameter resolves to its first value.
    """
    query: dict[str, str] = {}
    for name, value in request.query_params.multi_items():
        query.setdefault(name, value)
    return PeerRequest(
        path=request.path_params.get("tail", ""),
        query=query,
        body=await request.body(),
    )


@peers_router.get("/peers", response_model=PeerListResponse, response_model_exclude_none=True)
async def list_peers(registry: PeerRegistry = Depends(get_registry)) -> PeerListResponse:
    """Return all registered peers."""
    descriptors = await registry.list_peers()
    return PeerListResponse(count=len(descriptors), values=descriptors)


@peers_router.post("/peers", response_model=PeerStatusResponse)
async def register_peer(
    request: Request,
    registry: PeerRegistry = Depends(get_registry),
) -> PeerStatusResponse:
    """Register (or fully replace) a peer descriptor."""
    descriptor = await registry.register(await request.body())
    return PeerStatusResponse(peerId=descriptor.peer_id, status="created")


@peers_router.post("/peer/delete", response_model=PeerStatusResponse)
async def delete_peer_by_body(
    request: Request,
    registry: PeerRegistry = Depends(get_registry),
) -> PeerStatusResponse:
    """Delete a peer named by query parameter or JSON body."""
    peer_id = await registry.delete(await _peer_request(request))
    return PeerStatusResponse(peerId=peer_id, status="deleted")


@peers_router.get("/peer", response_model=Descriptor, response_model_exclude_none=True)
@peers_router.get("/peer/{tail:path}", response_model=Descriptor, response_model_exclude_none=True)
async def get_peer(
    request: Request,
    registry: PeerRegistry = Depends(get_registry),
) -> Descriptor:
    """Return one peer descriptor."""
    return await registry.get(await _peer_request(request))


@peers_router.delete("/peer", response_model=PeerStatusResponse)
@peers_router.delete("/peer/{tail:path}", response_model=PeerStatusResponse)
async def delete_peer(
    request: Request,
    registry: PeerRegistry = Depends(get_registry),
) -> PeerStatusResponse:
    """Delete one peer descriptor."""
    peer_id = await registry.delete(await _peer_request(request))
    return PeerStatusResponse(peerId=peer_id, status="deleted")


# Client errors map to 4xx, anything the client cannot fix to 500
_STATUS_CODES: dict[type[Exception], int] = {
    DecodeError: 400,
    ValidationError: 400,
    MissingIdentifierError: 400,
    MalformedBodyError: 400,
    PeerNotFoundError: 404,
    CorruptRecordError: 500,
    StorageError: 500,
}


async def _registry_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = 500
    for exc_type, code in _STATUS_CODES.items():
        if isinstance(exc, exc_type):
            status_code = code
            break
    return JSONResponse({"detail": str(exc)}, status_code=status_code)


def register_exception_handlers(app: FastAPI) -> None:
    """Install JSON error responses for registry exceptions."""
    for exc_type in _STATUS_CODES:
        app.add_exception_handler(exc_type, _registry_error_handler)
