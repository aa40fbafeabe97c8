"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from converter.api.routes import router
from converter.config import CORS_ORIGINS, DEBUG, WORK_DIR, logger as config_logger
from converter.conversion.service import get_conversion_service
from converter.errors import ConverterError

logging.getLogger("uvicorn").setLevel(logging.INFO)
logger = logging.getLogger("converter.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_conversion_service()
    config_logger.info("Converter API started (work dir: %s)", WORK_DIR)
    yield
    config_logger.info("Converter API shutting down")


app = FastAPI(
    title="File Format Converter API",
    description="Convert images and documents between formats using Pillow, ImageMagick, libvips, LibreOffice and Pandoc.",
    version="1.0.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if CORS_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Conversion-Errors", "X-Conversion-Strategy"],
)


@app.exception_handler(ConverterError)
async def converter_error_handler(request: Request, exc: ConverterError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if DEBUG else "Something went wrong",
        },
    )


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    from converter.config import HOST, PORT
    uvicorn.run("converter.main:app", host=HOST, port=PORT, reload=True)
