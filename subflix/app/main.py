# subflix/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from subflix.app.config import get_settings
from subflix.app.deps import get_store, init_store
from subflix.app.routers.admin import router as admin_router
from subflix.app.routers.auth import router as auth_router
from subflix.app.routers.subtitles import router as subtitles_router

# Plain stdout logging (fine for dev and containers)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

app = FastAPI(title="Subflix API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(subtitles_router)
app.include_router(admin_router)


@app.on_event("startup")
async def startup() -> None:
    await init_store(get_store())


@app.get("/health")
def health():
    return {"ok": True}
