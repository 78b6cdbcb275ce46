import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .catalogue import load_catalogue
from .core.config import settings
from .deps import prepare_sqlite_dir
from .routers import export, items, lists

LOGGER = logging.getLogger("inventory-api")


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(level=level.upper(), format="%(asctime)s %(levelname)s %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    prepare_sqlite_dir(settings.DATABASE_URL)
    # Loaded once; restart the service to pick up a new item list
    app.state.catalogue = load_catalogue(settings.CATALOGUE_PATH)
    LOGGER.info("Inventory Counts API ready with %d catalogue items", len(app.state.catalogue))
    yield


app = FastAPI(title="Inventory Counts API", version="0.1.0", lifespan=lifespan)

# CORS for the scanning front end (configurable via API_CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(items.router)
app.include_router(lists.router)
app.include_router(export.router)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}
