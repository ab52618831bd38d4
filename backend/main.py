import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from auth.gate import get_token_codec, require_admin_token, require_site_token
from auth.tokens import TokenCodec
from config import DEFAULT_ADMIN_PASSWORD, Settings, get_settings, settings
from db.store import JourneyStepStore, build_store
from errors import JourneyError, MissingInputError, PayloadTooLargeError
from interface.models import (
    JourneyStepIn,
    PasswordRequest,
    TokenResponse,
    UploadImageRequest,
    UploadImageResponse,
    step_to_wire,
)
from storage.backend import CloudinaryStorageBackend, ImageStorageBackend

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

store = build_store(settings)
images = CloudinaryStorageBackend(settings)


def get_store() -> JourneyStepStore:
    return store


def get_images() -> ImageStorageBackend:
    return images


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.BOOTSTRAP_ON_STARTUP:
        await store.bootstrap()
    logger.info("Journey store: %s", store.backend_name)
    logger.info("Cloudinary configured: %s", images.cloud_name or "(not set)")
    logger.info("Token format: %s", settings.TOKEN_FORMAT)
    if settings.ADMIN_PASSWORD == DEFAULT_ADMIN_PASSWORD:
        logger.warning("Admin password is the default; set ADMIN_PASSWORD")
    yield


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(JourneyError)
async def journey_error_handler(request: Request, exc: JourneyError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_wire())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Database error"})


# Raw driver failures (asyncpg refusing a connection) surface as OSError
@app.exception_handler(OSError)
async def connection_error_handler(request: Request, exc: OSError):
    logger.exception("Connection error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Database error"})


BODY_ERROR_MESSAGES = {
    "/api/verify-password": "Password required",
    "/api/admin/login": "Password required",
    "/api/admin/upload-image": "No image data provided",
}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    path = request.url.path
    body_errors = all(err.get("loc", ("body",))[0] == "body" for err in exc.errors())
    if not body_errors:
        message = "Invalid request"
    elif path.startswith("/api/admin/journey"):
        message = "Missing required fields"
    else:
        message = BODY_ERROR_MESSAGES.get(path, "Invalid request")
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": message, "details": details})


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """Refuse oversized bodies from Content-Length before they are read."""
    length = request.headers.get("content-length")
    if length and length.isdigit() and int(length) > settings.MAX_UPLOAD_BYTES:
        return JSONResponse(status_code=413, content={"error": "Request body too large"})
    return await call_next(request)


# --- Health ---


@app.get("/health")
async def health(store: JourneyStepStore = Depends(get_store)):
    try:
        await store.ping()
    except Exception as e:
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "database": "disconnected", "error": str(e)},
        )
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if store.backend_name == "database" else store.backend_name,
    }


# --- Password gates ---


def _login(body: PasswordRequest | None, secret: str, codec: TokenCodec, failure: str):
    if body is None or not body.password:
        raise MissingInputError("Password required")
    if body.password != secret:
        return JSONResponse(status_code=401, content={"success": False, "error": failure})
    return TokenResponse(token=codec.issue(secret))


@app.post("/api/verify-password", response_model=TokenResponse)
async def verify_password(
    body: PasswordRequest | None = None,
    codec: TokenCodec = Depends(get_token_codec),
    config: Settings = Depends(get_settings),
):
    return _login(body, config.SITE_PASSWORD, codec, "Incorrect password")


@app.post("/api/admin/login", response_model=TokenResponse)
async def admin_login(
    body: PasswordRequest | None = None,
    codec: TokenCodec = Depends(get_token_codec),
    config: Settings = Depends(get_settings),
):
    return _login(body, config.ADMIN_PASSWORD, codec, "Incorrect admin password")


# --- Admin ---


@app.get("/api/admin/journey", dependencies=[Depends(require_admin_token)])
async def admin_list_steps(
    store: JourneyStepStore = Depends(get_store),
    images: ImageStorageBackend = Depends(get_images),
):
    steps = await store.list()
    return [step_to_wire(s, images.signed_url(s.image_public_id), admin=True) for s in steps]


@app.post(
    "/api/admin/upload-image",
    response_model=UploadImageResponse,
    dependencies=[Depends(require_admin_token)],
)
async def upload_image(
    body: UploadImageRequest,
    images: ImageStorageBackend = Depends(get_images),
    config: Settings = Depends(get_settings),
):
    if not body.image_data:
        raise MissingInputError("No image data provided")
    if len(body.image_data) > config.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError("Image exceeds the upload size limit")

    uploaded = await images.upload(body.image_data, body.public_id)
    logger.info("Uploaded image %s", uploaded.public_id)
    return UploadImageResponse(
        public_id=uploaded.public_id,
        secure_url=uploaded.secure_url,
        width=uploaded.width,
        height=uploaded.height,
    )


def _require_fields(body: JourneyStepIn) -> dict:
    missing = body.missing_fields()
    if missing:
        raise MissingInputError("Missing required fields", details=", ".join(missing))
    return body.to_columns()


@app.post("/api/admin/journey", status_code=201, dependencies=[Depends(require_admin_token)])
async def create_step(
    body: JourneyStepIn,
    store: JourneyStepStore = Depends(get_store),
    images: ImageStorageBackend = Depends(get_images),
):
    step = await store.create(_require_fields(body))
    logger.info("Created journey step %s (order %s)", step.id, step.step_order)
    return {"success": True, "data": step_to_wire(step, images.signed_url(step.image_public_id), admin=True)}


@app.put("/api/admin/journey/{step_id}", dependencies=[Depends(require_admin_token)])
async def update_step(
    step_id: int,
    body: JourneyStepIn,
    store: JourneyStepStore = Depends(get_store),
    images: ImageStorageBackend = Depends(get_images),
):
    step = await store.update(step_id, _require_fields(body))
    logger.info("Updated journey step %s", step_id)
    return {"success": True, "data": step_to_wire(step, images.signed_url(step.image_public_id), admin=True)}


@app.delete("/api/admin/journey/{step_id}", dependencies=[Depends(require_admin_token)])
async def delete_step(step_id: int, store: JourneyStepStore = Depends(get_store)):
    await store.delete(step_id)
    logger.info("Deleted journey step %s", step_id)
    return {"success": True, "message": "Journey step deleted"}


# --- Public ---


@app.get("/api/journey", dependencies=[Depends(require_site_token)])
async def list_steps(
    store: JourneyStepStore = Depends(get_store),
    images: ImageStorageBackend = Depends(get_images),
):
    steps = await store.list()
    return [step_to_wire(s, images.signed_url(s.image_public_id)) for s in steps]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
