# gatehouse/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gatehouse.config import settings
from gatehouse.core.db import init_db, close_db
from gatehouse.core.errors import register_error_handlers

from gatehouse.api.v1.routers import auth, admin, chat, site, waiting_list
from gatehouse.api.v1.routers.ws_chat import router as ws_chat_router

from gatehouse.core.bootstrap import check_credentials, ensure_site_settings
logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

@app.on_event("startup")
async def on_startup():
    check_credentials()
    await init_db()
    # First run: the site switch starts out enabled
    await ensure_site_settings()
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(site.router, prefix="/api/v1")
app.include_router(waiting_list.router, prefix="/api/v1")
app.include_router(chat.router, prefix="/api/v1")

# WebSocket
app.include_router(ws_chat_router)

@app.get("/healthz")
def healthz():
    return {"ok": True}
