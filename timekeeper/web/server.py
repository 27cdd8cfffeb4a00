"""FastAPI server exposing campaign timelines, story arcs and events."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..config import AppConfig, get_config
from ..database.repository import TimelineStore
from ..database.session import close_db, init_db
from ..timeline.calendar_math import parse_moment
from ..timeline.errors import ConflictError, NotFoundError, TimelineError, ValidationError
from ..timeline.service import TimelineService
from .timing import configure_tracker, get_tracker, timed_sync, timing_middleware

# Configure logging
logging.basicConfig(level=get_config().server.log_level)
logger = logging.getLogger(__name__)


def _status_for(error: TimelineError) -> int:
    if isinstance(error, ConflictError):
        return 409
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ValidationError):
        return 400
    return 500


def _optional_moment(value: Optional[str]):
    return parse_moment(value) if value else None


class CamelModel(BaseModel):
    """Request body accepting camelCase keys as well as field names."""

    model_config = ConfigDict(populate_by_name=True)


class AdvanceRequest(CamelModel):
    """Advance command. Fields are checked by TimelineService, not coerced here."""

    unit: Any = None
    direction: Any = None
    expected_version: Any = Field(default=None, alias="expectedVersion")


class CampaignCreate(CamelModel):
    name: str = ""
    summary: str = ""
    world_id: str = Field(default="", alias="worldId")
    start: Optional[str] = None


class StoryArcCreate(CamelModel):
    name: str = ""
    summary: str = ""
    beginning: Optional[str] = None
    ending: Optional[str] = None


class EventCreate(CamelModel):
    name: str = ""
    description: str = ""
    beginning: Optional[str] = None
    ending: Optional[str] = None
    story_arc_id: Optional[str] = Field(default=None, alias="storyArcId")


class AttachEvent(CamelModel):
    event_id: str = Field(default="", alias="eventId")


def create_app(
    config: AppConfig | None = None,
    store: TimelineStore | None = None,
    db_path: Path | str | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application config. Defaults to the global config
        store: Timeline store. Defaults to a SQLAlchemy-backed TimelineStore
        db_path: SQLite file initialised at startup. Defaults to paths.database

    Returns:
        Configured FastAPI app
    """
    config = config or get_config()
    store = store or TimelineStore()
    service = TimelineService(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the database on startup and dispose of it on shutdown."""
        init_db(db_path or config.paths.database)
        configure_tracker(config.timing.window_size, config.timing.slow_request_ms)
        logger.info("Database initialized")
        yield
        logger.info("Shutting down...")
        close_db()

    app = FastAPI(title="Timekeeper", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(timing_middleware)

    @app.exception_handler(TimelineError)
    async def timeline_error_handler(request: Request, exc: TimelineError) -> JSONResponse:
        body = {"error": exc.message}
        if isinstance(exc, ConflictError):
            body["expectedVersion"] = exc.expected_version
            body["actualVersion"] = exc.actual_version
        return JSONResponse(status_code=_status_for(exc), content=body)

    @app.get("/api/status")
    def status():
        """Service status."""
        return {"status": "ok", "version": __version__}

    @app.get("/api/timing")
    def timing():
        """Rolling request latency statistics."""
        return get_tracker().get_all_stats()

    # Campaigns
    @app.post("/campaigns", status_code=201)
    def create_campaign(body: CampaignCreate):
        campaign, timeline = store.create_campaign(
            body.name,
            summary=body.summary,
            world_id=body.world_id,
            start=_optional_moment(body.start),
        )
        return {
            "campaign": {
                "id": campaign.id,
                "name": campaign.name,
                "summary": campaign.summary,
                "worldId": campaign.world_id,
            },
            "timeline": timeline.to_dict(),
        }

    # Timeline
    @app.get("/campaigns/{campaign_id}/timeline")
    def get_timeline(campaign_id: str):
        return service.get_timeline(campaign_id).to_dict()

    @app.get("/campaigns/{campaign_id}/timeline/overview")
    def get_timeline_overview(campaign_id: str):
        return service.overview(campaign_id).to_dict()

    @app.post("/campaigns/{campaign_id}/timeline/advance")
    def advance_timeline(campaign_id: str, body: AdvanceRequest):
        with timed_sync("timeline.advance", campaign=campaign_id):
            result = service.advance_timeline(
                campaign_id, body.unit, body.direction, body.expected_version
            )
        return result.to_dict()

    # Story arcs within a campaign
    @app.get("/campaigns/{campaign_id}/story-arcs")
    def list_story_arcs(campaign_id: str, active: bool = False):
        if active:
            arcs = service.active_story_arcs(campaign_id)
        else:
            service.get_timeline(campaign_id)
            arcs = store.list_story_arcs(campaign_id)
        return {"storyArcs": [arc.to_dict() for arc in arcs]}

    @app.post("/campaigns/{campaign_id}/story-arcs", status_code=201)
    def create_story_arc(campaign_id: str, body: StoryArcCreate):
        arc = store.add_story_arc(
            campaign_id,
            body.name,
            summary=body.summary,
            beginning=_optional_moment(body.beginning),
            ending=_optional_moment(body.ending),
        )
        return {"storyArc": arc.to_dict()}

    # Events within a campaign
    @app.get("/campaigns/{campaign_id}/events")
    def list_events(campaign_id: str, active: bool = False):
        if active:
            events = service.active_events(campaign_id)
        else:
            service.get_timeline(campaign_id)
            events = store.list_events(campaign_id)
        return {"events": [event.to_dict() for event in events]}

    @app.post("/campaigns/{campaign_id}/events", status_code=201)
    def create_event(campaign_id: str, body: EventCreate):
        event = store.add_event(
            campaign_id,
            body.name,
            description=body.description,
            beginning=_optional_moment(body.beginning),
            ending=_optional_moment(body.ending),
            story_arc_id=body.story_arc_id,
        )
        return {"event": event.to_dict()}

    # Events within a story arc
    @app.get("/story-arcs/{story_arc_id}/events")
    def list_story_arc_events(story_arc_id: str):
        events = store.list_story_arc_events(story_arc_id)
        return {"events": [event.to_dict() for event in events]}

    @app.post("/story-arcs/{story_arc_id}/events", status_code=201)
    def attach_story_arc_event(story_arc_id: str, body: AttachEvent):
        if not body.event_id.strip():
            raise ValidationError("eventId is required")
        store.attach_event(story_arc_id, body.event_id)
        return {"eventId": body.event_id}

    return app


app = create_app()
