#!/usr/bin/env python3
"""
Poker Planning - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the API server and the background reaper

All business logic is in the modules, following black box principles.
"""

import asyncio
import json
import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import redis.asyncio as redis
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from poker_planning import __version__
from poker_planning.logging_config import get_logging_config
from poker_planning.modules.api import (
    CreateRoomResponse,
    ErrorResponse,
    HealthResponse,
    JoinRoomRequest,
    JoinRoomResponse,
    RoomInfoResponse,
    StatsResponse,
    SuccessResponse,
    VoteRequest,
    VoteSummaryResponse,
)
from poker_planning.modules.broadcast import BroadcastHub
from poker_planning.modules.config import get_config
from poker_planning.modules.engine import SessionEngine
from poker_planning.modules.middleware import create_request_gate
from poker_planning.modules.reaper import Reaper
from poker_planning.modules.room import RoomError
from poker_planning.modules.stats import StatsModule, summarize_votes
from poker_planning.modules.storage import RoomStore, StorageModule

# Get configuration
config = get_config()

# Configure logging with health check suppression
log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger("poker_planning.main")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    logger.info("Starting Poker Planning API...")

    storage = StorageModule.from_config(config)
    redis_client = await storage.connect()

    store = RoomStore(redis_client, default_ttl=config.get("room_ttl"))
    hub = BroadcastHub(store)
    stats = StatsModule(redis_client, store)
    engine = SessionEngine(
        store,
        hub,
        stats=stats,
        room_ttl=config.get("room_ttl"),
        keepalive_interval=config.get("keepalive_interval"),
    )
    reaper = Reaper(
        store,
        hub,
        inactivity_timeout=config.get("inactivity_timeout"),
        grace_period=config.get("empty_room_grace_period"),
        interval=config.get("cleanup_interval"),
    )

    app.state.redis_client = redis_client
    app.state.hub = hub
    app.state.stats = stats
    app.state.engine = engine
    app.state.reaper = reaper

    reaper.start()
    logger.info("Poker Planning API started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Poker Planning API...")
    await reaper.stop()
    await storage.disconnect()
    logger.info("Poker Planning API shutdown complete")


# Dependency injection helpers


def get_engine(request: Request) -> SessionEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(503, "Service not initialized")
    return engine


def get_stats(request: Request) -> StatsModule:
    stats = getattr(request.app.state, "stats", None)
    if stats is None:
        raise HTTPException(503, "Service not initialized")
    return stats


def room_code(code: str) -> str:
    """Room codes are case-insensitive in URLs."""
    return code.upper()


def session_id(request: Request) -> Optional[str]:
    return request.cookies.get(config.get("session_cookie_name"))


router = APIRouter(prefix="/api")


# Health/Monitoring Endpoints


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health():
    """
    Minimal liveness check, unauthenticated.

    Returns:
        200: Service is running
    """
    return {"status": "ok"}


@router.get("/ready", tags=["health"])
async def ready(request: Request):
    """
    Readiness check including the room store.

    Returns:
        200: Store reachable
        503: Store unreachable or not initialized
    """
    redis_client = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        return JSONResponse(status_code=503, content={"status": "unhealthy", "redis": "disconnected"})
    try:
        await redis_client.ping()
    except redis.RedisError as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "redis": "unreachable"})
    return {"status": "ready", "redis": "connected", "version": __version__}


@router.get("/stats", response_model=StatsResponse, tags=["stats"])
async def global_stats(stats: StatsModule = Depends(get_stats)):
    """Cumulative and live usage figures."""
    return await stats.get_stats()


# Room Endpoints


@router.post("/rooms", response_model=CreateRoomResponse, tags=["rooms"])
async def create_room(engine: SessionEngine = Depends(get_engine)):
    """
    Create a new room with a unique 6-character code.

    Returns:
        200: Room created
        503: Store unavailable
    """
    room = await engine.create_room()
    return {"code": room.code}


@router.get(
    "/rooms/{code}",
    response_model=RoomInfoResponse,
    responses=ERROR_RESPONSES,
    tags=["rooms"],
)
async def get_room(
    code: str = Depends(room_code),
    session: Optional[str] = Depends(session_id),
    engine: SessionEngine = Depends(get_engine),
):
    """
    Basic room information, including the caller if they are a member.

    Returns:
        200: Room information
        404: Room not found
    """
    return await engine.room_info(code, session)


@router.post(
    "/rooms/{code}/join",
    response_model=JoinRoomResponse,
    responses=ERROR_RESPONSES,
    tags=["rooms", "members"],
)
async def join_room(
    payload: JoinRoomRequest,
    response: Response,
    code: str = Depends(room_code),
    session: Optional[str] = Depends(session_id),
    engine: SessionEngine = Depends(get_engine),
):
    """
    Join a room with a unique name. Sets the session cookie.

    Returns:
        200: Joined
        400: Invalid room code or name
        404: Room not found
        409: Name already taken
    """
    member = await engine.join(code, payload.name, session)

    response.set_cookie(
        key=config.get("session_cookie_name"),
        value=member.id,
        max_age=config.get("session_max_age"),
        httponly=True,
        samesite="lax",
        secure=config.is_production,
        path="/",
    )
    return {"success": True, "memberId": member.id, "name": member.name}


@router.post(
    "/rooms/{code}/vote",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    tags=["voting"],
)
async def vote(
    payload: VoteRequest,
    code: str = Depends(room_code),
    session: Optional[str] = Depends(session_id),
    engine: SessionEngine = Depends(get_engine),
):
    """
    Submit, change or clear your vote.

    Returns:
        200: Vote recorded
        400: Invalid vote value
        401: No session
        403: Not a member of this room
        404: Room not found
    """
    await engine.vote(code, session, payload.value)
    return {"success": True}


@router.post(
    "/rooms/{code}/reveal",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    tags=["voting"],
)
async def reveal(
    code: str = Depends(room_code),
    session: Optional[str] = Depends(session_id),
    engine: SessionEngine = Depends(get_engine),
):
    """Reveal all votes. Any member can trigger this."""
    await engine.reveal(code, session)
    return {"success": True}


@router.post(
    "/rooms/{code}/reset",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    tags=["voting"],
)
async def reset(
    code: str = Depends(room_code),
    session: Optional[str] = Depends(session_id),
    engine: SessionEngine = Depends(get_engine),
):
    """Clear all votes and hide results. Membership is unchanged."""
    await engine.reset(code, session)
    return {"success": True}


@router.delete(
    "/rooms/{code}/members/{member_id}",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    tags=["members"],
)
async def remove_member(
    member_id: str,
    code: str = Depends(room_code),
    session: Optional[str] = Depends(session_id),
    engine: SessionEngine = Depends(get_engine),
):
    """Remove a member from the room. Any member can remove others."""
    await engine.remove_member(code, session, member_id)
    return {"success": True}


@router.get(
    "/rooms/{code}/summary",
    response_model=VoteSummaryResponse,
    responses=ERROR_RESPONSES,
    tags=["voting"],
)
async def vote_summary(
    code: str = Depends(room_code),
    engine: SessionEngine = Depends(get_engine),
):
    """Average and distribution of the votes visible to everyone."""
    return summarize_votes(await engine.visible_state(code))


@router.get("/rooms/{code}/events", responses=ERROR_RESPONSES, tags=["rooms"])
async def room_events(
    code: str = Depends(room_code),
    session: Optional[str] = Depends(session_id),
    engine: SessionEngine = Depends(get_engine),
):
    """
    SSE endpoint streaming room state.

    Emits an ``update`` event with the visible room state on connect and after
    every change, and a ``ping`` event after each quiet keep-alive interval.

    Returns:
        SSE stream
        404: Room not found
    """
    stream = await engine.open_stream(code, session)
    logger.info(f"Subscriber connected to room {code}")

    async def event_generator() -> AsyncGenerator:
        try:
            async for event, state in stream.events():
                if event == "update":
                    yield {"event": "update", "data": json.dumps(state, ensure_ascii=False)}
                else:
                    yield {"event": "ping", "data": "ping"}
        except asyncio.CancelledError:
            logger.info(f"Subscriber disconnected from room {code}")
            raise

    return EventSourceResponse(event_generator())


# Error handlers


async def room_error_handler(request: Request, exc: RoomError):
    """Handle room input and state errors."""
    logger.debug(f"{exc.kind} on {request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def redis_error_handler(request: Request, exc: redis.RedisError):
    """Handle store failures on the critical path."""
    logger.error(f"Room store error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503, content={"error": "Room store unavailable", "retryable": True}
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle request body validation errors."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.debug(f"Validation error on {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content={"error": message})


def create_app() -> FastAPI:
    """Build the FastAPI application with routes, gate and error handlers."""
    app = FastAPI(
        title="Poker Planning API",
        description="Collaborative planning poker: hidden votes, collective reveal, live updates",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )
    app.middleware("http")(create_request_gate(config))
    app.include_router(router)

    app.add_exception_handler(RoomError, room_error_handler)
    app.add_exception_handler(redis.RedisError, redis_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    return app


app = create_app()


def run():
    """Console entry point."""
    uvicorn.run(
        "poker_planning.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    run()
