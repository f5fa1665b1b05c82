import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.database import init_db
from .core.errors import CurioCodexError
from .routers import admin as admin_router
from .routers import auth as auth_router
from .routers import discover as discover_router
from .routers import hobbies as hobbies_router
from .routers import items as items_router

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("curiocodex")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.app_name} started ({settings.environment})")
    yield


app = FastAPI(title=settings.app_name, version=settings.api_version, lifespan=lifespan)

# CORS
origins = [o.strip() for o in settings.allowed_origins.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CurioCodexError)
async def curiocodex_error_handler(request: Request, exc: CurioCodexError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(auth_router.router)
app.include_router(hobbies_router.router)
app.include_router(items_router.router)
app.include_router(discover_router.router)
app.include_router(admin_router.router)

@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name, "env": settings.environment}

@app.get("/")
async def root():
    return {"message": "CurioCodex backend online", "version": settings.api_version}
