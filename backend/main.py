from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from infra.database.connection import init_db, close_db
from api.routers import (
    callbacks,
    mantras,
    options,
    playlists,
    settings as settings_router,
    songs,
    system,
    users
)

from config import settings

# Lifespan event to handle startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()  # DuckDBの初期化 (Raw SQLによるTable作成 + 初期データ)
    yield
    close_db()

app = FastAPI(title="Mantra Backend API", lifespan=lifespan)

# CORS Configuration
origins = [
    f"http://localhost:{settings.FRONTEND_PORT}", # Web Dev Server
    f"http://127.0.0.1:{settings.FRONTEND_PORT}", # Web Dev Server (IP)
    f"http://localhost:{settings.MANTRA_PORT}",
    f"http://127.0.0.1:{settings.MANTRA_PORT}",
    "http://localhost:8081",                      # Expo (mobile) dev server
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Root endpoint for health check
@app.get("/")
async def root():
    return {"message": "Mantra Backend API is running"}

# Include Routers
app.include_router(callbacks.router)
app.include_router(mantras.router)
app.include_router(options.router)
app.include_router(playlists.router)
app.include_router(settings_router.router)
app.include_router(songs.router)
app.include_router(system.router)
app.include_router(users.router)
