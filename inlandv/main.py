# inlandv/main.py
# FastAPI application: public REST API + CMS API
# Run: uvicorn inlandv.main:app --reload

from datetime import datetime
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inlandv.config import AUTO_MIGRATE, CORS_ORIGINS, ENV, IS_DEV
from inlandv.db import ping
from inlandv.errors import register_error_handlers
from inlandv.migrate import run_migrations
from inlandv.rate_limit import rate_limit_middleware

from inlandv import (
    routes_cms_assets,
    routes_cms_auth,
    routes_cms_catalog,
    routes_cms_leads,
    routes_cms_menus,
    routes_cms_news,
    routes_cms_pages,
    routes_cms_settings,
    routes_industrial_parks,
    routes_leads,
    routes_lookup,
    routes_menus,
    routes_pages,
    routes_posts,
    routes_products,
    routes_properties,
    routes_settings,
    routes_uploads,
)

app = FastAPI(title="Inland Vietnam API", version="0.1")

# CORS configuration from config module
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if IS_DEV else CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
app.middleware("http")(rate_limit_middleware)

register_error_handlers(app)

# Public API
app.include_router(routes_industrial_parks.router)
app.include_router(routes_properties.router)
app.include_router(routes_products.router)
app.include_router(routes_lookup.router)
app.include_router(routes_posts.router)
app.include_router(routes_leads.router)
app.include_router(routes_pages.router)
app.include_router(routes_settings.router)
app.include_router(routes_menus.router)
app.include_router(routes_uploads.router)

# CMS API
app.include_router(routes_cms_auth.router)
app.include_router(routes_cms_news.router)
app.include_router(routes_cms_pages.router)
app.include_router(routes_cms_menus.router)
app.include_router(routes_cms_leads.router)
app.include_router(routes_cms_assets.router)
app.include_router(routes_cms_catalog.router)
app.include_router(routes_cms_settings.router)


@app.on_event("startup")
def startup() -> None:
    print(f"[STARTUP] Inland Vietnam API starting (ENV={ENV})")
    if AUTO_MIGRATE:
        run_migrations()


@app.get("/health")
def health() -> Any:
    timestamp = datetime.utcnow().isoformat() + "Z"
    if not ping():
        return JSONResponse(
            status_code=503,
            content={"status": "error", "timestamp": timestamp, "database": "disconnected"},
        )
    body: Dict[str, Any] = {"status": "ok", "timestamp": timestamp, "database": "connected"}
    return body
