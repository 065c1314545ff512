from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from . import queries
from .db import Database, get_db
from .errors import GENERIC_ERROR, DatabaseNotConnected, InvalidParameter, error_boundary
from .export import EXPORT_FILENAME, posts_to_csv
from .middleware.access_log import AccessLogMiddleware
from .middleware.request_id import RequestIDMiddleware
from .params import (
    DateRange,
    GroupBy,
    PostFilter,
    date_range_params,
    export_filter_params,
    post_filter_params,
)
from .settings import Settings

log = structlog.get_logger(__name__)

MAX_LIMIT = 1000


def now_utc() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.database
    database.connect()
    log.info("api_ready")
    yield
    database.close()
    log.info("api_shutdown")


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    if settings is None:
        settings = Settings()
    if database is None:
        database = Database.from_settings(settings)

    app = FastAPI(title="BVI Social Listening Dashboard API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    ### Middleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)

    ### Errors

    @app.exception_handler(InvalidParameter)
    async def invalid_parameter_handler(request: Request, exc: InvalidParameter):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        name = first.get("loc", ["", "request"])[-1]
        return JSONResponse(status_code=400, content={"error": f"Invalid {name}: {first.get('msg', 'bad value')}"})

    @app.exception_handler(DatabaseNotConnected)
    async def database_unavailable_handler(request: Request, exc: DatabaseNotConnected):
        log.error("database_unavailable", path=request.url.path)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    ### Routes

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "database": "connected" if app.state.database.connected else "disconnected",
        }

    @app.get("/api/stats/overview")
    @error_boundary("overview_stats")
    def overview_stats(db: Session = Depends(get_db)):
        return queries.overview_stats(db)

    @app.get("/api/posts")
    @error_boundary("list_posts")
    def list_posts(
        f: PostFilter = Depends(post_filter_params),
        limit: int = Query(50, ge=1, le=MAX_LIMIT),
        skip: int = Query(0, ge=0),
        db: Session = Depends(get_db),
    ):
        return queries.list_posts(db, f, limit=limit, skip=skip)

    @app.get("/api/posts/export")
    @error_boundary("export_posts", message="Export failed")
    def export_posts(
        f: PostFilter = Depends(export_filter_params),
        db: Session = Depends(get_db),
    ):
        posts = queries.export_posts(db, f)
        log.info("posts_exported", rows=len(posts))
        return PlainTextResponse(
            posts_to_csv(posts),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
        )

    @app.get("/api/sentiment/distribution")
    @error_boundary("sentiment_distribution")
    def sentiment_distribution(
        date_range: DateRange = Depends(date_range_params),
        group_by: GroupBy = Query(GroupBy.sentiment, alias="groupBy"),
        db: Session = Depends(get_db),
    ):
        return queries.sentiment_distribution(db, date_range, group_by)

    @app.get("/api/topics/distribution")
    @error_boundary("topic_distribution")
    def topic_distribution(
        date_range: DateRange = Depends(date_range_params),
        db: Session = Depends(get_db),
    ):
        return queries.topic_distribution(db, date_range)

    @app.get("/api/influencers")
    @error_boundary("influencer_ranking")
    def influencers(
        date_range: DateRange = Depends(date_range_params),
        limit: int = Query(10, ge=1, le=MAX_LIMIT),
        db: Session = Depends(get_db),
    ):
        return queries.influencer_ranking(db, date_range, limit=limit)

    @app.get("/api/virality/early-signals")
    @error_boundary("virality_signals")
    def virality_signals(db: Session = Depends(get_db)):
        return queries.virality_signals(db, now_utc())

    @app.get("/api/trends/timeline")
    @error_boundary("timeline")
    def trends_timeline(
        date_range: DateRange = Depends(date_range_params),
        platform: str | None = None,
        topic: str | None = None,
        db: Session = Depends(get_db),
    ):
        return queries.timeline(db, date_range, platform=platform or None, topic=topic or None)

    @app.get("/api/keywords/frequency")
    @error_boundary("keyword_frequency")
    def keywords_frequency(
        date_range: DateRange = Depends(date_range_params),
        limit: int = Query(20, ge=1, le=MAX_LIMIT),
        db: Session = Depends(get_db),
    ):
        return queries.keyword_frequency(db, date_range, limit=limit)

    @app.get("/api/filters/options")
    @error_boundary("filter_options")
    def filter_options(db: Session = Depends(get_db)):
        return queries.filter_options(db)

    return app
