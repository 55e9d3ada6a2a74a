import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .errors import ImportPipelineError
from .routers import api as api_router
from .routers import imports as imports_router

settings = get_settings()
# Use Uvicorn's error logger so app logs appear in the standard server log stream.
logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

app = FastAPI(
    title=settings.app_name,
    summary="Import supplier products from Alibaba, AliExpress and Jumia into the catalog",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(ImportPipelineError)
async def _pipeline_error_handler(_request: Request, exc: ImportPipelineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Import pipeline error: %s", exc.message)
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid payload: {location}: {first.get('msg')}" if location else "Invalid payload"
    else:
        message = "Invalid payload"
    return _error_response(400, message)


app.include_router(api_router.router)
app.include_router(imports_router.router)
