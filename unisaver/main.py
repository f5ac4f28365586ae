import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from unisaver.api.endpoints import router as api_router
from unisaver.core.config import settings
from unisaver.core.logging import setup_logging
from unisaver.models.schemas import ErrorResponse, HealthResponse

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.error("UNCAUGHT %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    body = ErrorResponse(error="Server error", error_detail=str(exc))
    return JSONResponse(status_code=500, content=body.model_dump(by_alias=True, exclude_none=True))


@app.get("/", response_model=HealthResponse)
@app.get("/api/health", response_model=HealthResponse)
async def health():
    return HealthResponse(name=f"{settings.PROJECT_NAME} Backend", version=settings.VERSION)


def run():
    import uvicorn

    logger.info("UniSaver backend listening on http://localhost:%s", settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
