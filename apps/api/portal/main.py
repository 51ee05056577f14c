from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os

from portal.application.preferences import PreferenceStore
from portal.application.user_directory import UserDirectory
from portal.infrastructure.db import connection as db
from portal.infrastructure.store.factory import build_store
from portal.interfaces.api.routers import directory, preferences, session


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = build_store()
    user_directory = UserDirectory(store)
    user_directory.seed()
    app.state.directory = user_directory
    app.state.preferences = PreferenceStore(store)
    try:
        yield
    finally:
        db.close_pool()


app = FastAPI(title="Portal Session API", version="0.1.0", lifespan=lifespan)

frontend_origin = os.environ.get("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


app.include_router(session.router)
app.include_router(directory.router)
app.include_router(preferences.router)
