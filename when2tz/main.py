import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from when2tz.config import get_settings
from when2tz.controllers.health import router as health_router
from when2tz.controllers.schedules import router as schedules_router
from when2tz.errors import register_exception_handlers
from when2tz.lifespan import lifespan
from when2tz.middleware import HTTPLogMiddleware

settings = get_settings()

app = FastAPI(title="when2tz API", version="1.0.0", lifespan=lifespan)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("when2tz.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)

if settings.debug.store:
    logging.getLogger("when2tz.store").setLevel(logging.DEBUG)
    logging.getLogger("when2tz.grid").setLevel(logging.DEBUG)

app.include_router(health_router)
app.include_router(schedules_router, prefix="/api")

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
