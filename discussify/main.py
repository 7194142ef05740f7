# discussify/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import CORS_ORIGINS, LOG_LEVEL
from .db.mongo import init_db_indexes
from .utils.responses import fail

# Routers
from .routes.community import router as community_router
from .routes.notification import router as notification_router
from .routes.admin import router as admin_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# ---------------------------
# Build FastAPI app
# ---------------------------
app = FastAPI(title="Discussify API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------
# Error envelope: {"success": false, "message": ...}
# ---------------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=fail(str(exc.detail)), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = ", ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(status_code=422, content=fail(message or "Invalid request."))


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    # Full detail goes to the log only
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=fail("Server error. Please try again later."))


@app.get("/health")
async def health_check():
    return {"success": True, "status": "ok", "message": "Discussify backend is running."}


@app.get("/")
async def root():
    return {"success": True, "message": "Welcome to the Discussify API."}


# ---------------------------
# Routers
# ---------------------------
app.include_router(community_router, prefix=API_PREFIX)
app.include_router(notification_router, prefix=API_PREFIX)
app.include_router(admin_router, prefix=API_PREFIX)


# ---------------------------
# Startup tasks
# ---------------------------
@app.on_event("startup")
async def on_startup():
    try:
        await init_db_indexes()
    except Exception:
        # Don't crash the app if indexes fail; just log it
        logger.exception("Index init error")
