import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api.routes import auth, classes, reservations, users, prs, box, stats
from .db.session import Base, engine, SessionLocal
from .config import get_settings
from .core.logging_config import configure_logging
from .services.admin import ensure_admin_exists
from .workers.scheduler import get_scheduler

logger = logging.getLogger(__name__)

app = FastAPI(title="Classbook API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(classes.router, prefix="/api/v1")
app.include_router(reservations.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(prs.router, prefix="/api/v1")
app.include_router(box.router, prefix="/api/v1")
app.include_router(stats.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event() -> None:
    configure_logging()
    Base.metadata.create_all(bind=engine)
    settings = get_settings()
    with SessionLocal() as session:
        ensure_admin_exists(
            session,
            settings.default_admin_email,
            settings.default_admin_password,
            settings.box_name,
        )
    if settings.sweeper_enabled:
        scheduler = get_scheduler()
        scheduler.start()
        app.state.scheduler = scheduler
        logger.info("No-show sweeper scheduled every %s min", settings.no_show_sweep_interval_min)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)
