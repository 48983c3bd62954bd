"""
FastAPI API layer for the navigation prediction engine.

Provides REST endpoints for:
- Recording navigation events
- Triggering training
- Fetching blended suggestions
- Managing user shortcuts
- Engine statistics
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from . import __version__
from .config import EngineConfig
from .engine import PredictionEngine, create_engine
from .exceptions import InvalidInputError
from .menu import UserMenuBuilder
from .models import NavigationEvent


# Pydantic models for API
class EventInput(BaseModel):
    """Input model for a navigation event."""

    user_id: str
    current_page_or_feature: str
    previous_page_or_feature: Optional[str] = None
    timestamp: Optional[str] = None
    session_id: Optional[str] = None
    context_data: Optional[dict[str, str]] = None


class RecordResponse(BaseModel):
    status: str
    event_id: str


class TrainResponse(BaseModel):
    trained: bool
    training_cycles_completed: int


class SuggestionItem(BaseModel):
    name: str
    score: float
    reason: str


class SuggestionsResponse(BaseModel):
    user_id: str
    context: Optional[str] = None
    suggestions: list[SuggestionItem]


class NavigateRequest(BaseModel):
    user_id: str
    item_name: str


class MenuItemInput(BaseModel):
    item_name: str
    order: int = 0


class MenuItem(BaseModel):
    item_name: str
    order: int


class MenuResponse(BaseModel):
    user_id: str
    items: list[MenuItem]


def create_app(
    config: Optional[EngineConfig] = None,
    engine: Optional[PredictionEngine] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration used when the engine is created lazily
        engine: Pre-built engine (created on first request if None)

    Returns:
        Configured FastAPI app
    """
    config = config or EngineConfig()

    _engine: Optional[PredictionEngine] = engine

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if _engine is not None and _engine.running:
            await _engine.close()

    app = FastAPI(
        title="NextNav API",
        description="Blended next-navigation suggestions",
        version=__version__,
        lifespan=lifespan,
    )

    async def get_engine() -> PredictionEngine:
        nonlocal _engine
        if _engine is None:
            _engine = await create_engine(config)
        return _engine

    def get_menu_builder(current: PredictionEngine) -> UserMenuBuilder:
        return UserMenuBuilder(current.preferences_store)

    # Health check
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    # =========================================================================
    # Events & training
    # =========================================================================

    @app.post("/events", response_model=RecordResponse)
    async def record_event(request: EventInput):
        """Record a navigation event (may trigger background training)."""
        try:
            event = NavigationEvent.from_dict(request.model_dump(exclude_none=True))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid event: {e}")

        current = await get_engine()
        try:
            await current.record_navigation(event)
        except InvalidInputError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return RecordResponse(status="recorded", event_id=event.event_id)

    @app.post("/train", response_model=TrainResponse)
    async def train():
        """Run a training cycle now and wait for it."""
        current = await get_engine()
        trained = await current.train_algorithms()
        return TrainResponse(
            trained=trained,
            training_cycles_completed=current.training_cycles_completed,
        )

    # =========================================================================
    # Suggestions & navigation
    # =========================================================================

    @app.get("/suggestions/{user_id}", response_model=SuggestionsResponse)
    async def get_suggestions(
        user_id: str,
        context: Optional[str] = Query(default=None),
        count: int = Query(default=5, ge=0, le=100),
        previous_page: Optional[str] = Query(default=None),
    ):
        """Blended suggestions for a user on a given page."""
        current = await get_engine()
        context_data = {"PreviousPage": previous_page} if previous_page else None
        suggestions = await current.get_suggestions(user_id, context, count, context_data)

        return SuggestionsResponse(
            user_id=user_id,
            context=context,
            suggestions=[SuggestionItem(**s.to_dict()) for s in suggestions],
        )

    @app.post("/navigate")
    async def navigate(request: NavigateRequest):
        """Ask the host's action handler to perform a suggested navigation."""
        current = await get_engine()
        performed = current.perform_suggested_navigation(request.user_id, request.item_name)
        return {"performed": performed}

    # =========================================================================
    # User shortcuts
    # =========================================================================

    @app.get("/users/{user_id}/menu", response_model=MenuResponse)
    async def get_menu(user_id: str):
        builder = get_menu_builder(await get_engine())
        items = await builder.get_menu(user_id)
        return MenuResponse(
            user_id=user_id,
            items=[MenuItem(item_name=i.item_name, order=i.order) for i in items],
        )

    @app.put("/users/{user_id}/menu", response_model=MenuResponse)
    async def put_menu_item(user_id: str, request: MenuItemInput):
        builder = get_menu_builder(await get_engine())
        try:
            await builder.add_item(user_id, request.item_name, request.order)
        except InvalidInputError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return await get_menu(user_id)

    @app.delete("/users/{user_id}/menu/{item_name}", response_model=MenuResponse)
    async def delete_menu_item(user_id: str, item_name: str):
        builder = get_menu_builder(await get_engine())
        await builder.remove_item(user_id, item_name)
        return await get_menu(user_id)

    @app.delete("/users/{user_id}/menu", response_model=MenuResponse)
    async def clear_menu(user_id: str):
        builder = get_menu_builder(await get_engine())
        await builder.clear_menu(user_id)
        return MenuResponse(user_id=user_id, items=[])

    # =========================================================================
    # Stats & Diagnostics
    # =========================================================================

    @app.get("/stats")
    async def get_stats():
        """Get engine and algorithm statistics."""
        current = await get_engine()
        return current.get_stats()

    return app


# Create default app instance
app = create_app()
