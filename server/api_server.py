"""FastAPI application entry point for the annotation cross-reference bridge."""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.library.LibraryClientManager import LibraryClientManager
from shared.clients.search.SearchClientManager import SearchClientManager
from server.routers.CrossrefRouter import router as crossref_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    library_client = LibraryClientManager(helper_config=app.state.helper_config).get_client()
    app.state.search_manager = SearchClientManager(helper_config=app.state.helper_config)
    app.state.crossref_lock = asyncio.Lock()

    logging.info("Booting library client...")
    await library_client.boot()
    app.state.library_client = library_client

    # an unreachable library is not fatal: requests then report unreadable items
    await library_client.do_healthcheck()

    # while the app is running...
    yield

    # when the app shuts down, close the client connection
    logging.info("Shutting down, closing library client...")
    await library_client.close()
    logging.info("Library client closed.")


app = FastAPI(
    title="annotation_crossref_bridge",
    description=(
        "Cross-references annotation keys of reference-library items (e.g. Zotero) "
        "against full-text search in a note vault (e.g. Obsidian) via POST /crossref. "
        "Returns a plain-text report and tags the library items with the outcome."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(crossref_router)


@app.get("/health", tags=["health"])
async def health() -> dict:
    return {"status": "ok", "version": app_version}


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting annotation_crossref_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
