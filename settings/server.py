from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone
import logging

from settings.config import Settings, get_settings
from settings.datadog_logger import DatadogLogger
from settings.service_tracer import initialize_tracer
from middleware.datadog_logging_middleware import DatadogLoggingMiddleware
from api.org_structure import org_structure_router
from api.org_structure.domain.exceptions import OrgStructureError, StorageError
from api.org_structure.infra.db.uow import translate_storage_error
from api.org_structure.schemas.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

description = """
#### Organizational Hierarchy APIs
   Per-fiscal-year org-unit tree, KPI champions and structure confirmation.
"""


def failure(status_code: int, errors: list) -> JSONResponse:
    body = ErrorResponse(errors=[ErrorDetail(**error) for error in errors])
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def org_structure_exception_handler(request: Request, exc: OrgStructureError):
    if isinstance(exc, StorageError):
        logger.error(f"Storage failure on {request.method} {request.url.path}: code={exc.code}")
    else:
        logger.info(
            f"Request rejected on {request.method} {request.url.path}: code={exc.code}, reason={exc.message}"
        )
    return failure(exc.status_code, [exc.to_dict()])


async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    error = translate_storage_error(exc)
    logger.error(
        f"Unhandled storage failure on {request.method} {request.url.path}: {exc.__class__.__name__}",
        exc_info=True
    )
    return failure(error.status_code, [error.to_dict()])


async def http_exception_handler(request: Request, exc: HTTPException):
    return failure(exc.status_code, [{"code": f"HTTP_{exc.status_code}", "message": str(exc.detail)}])


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "code": "REQUEST_VALIDATION_ERROR",
            "message": f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        }
        for error in exc.errors()
    ]
    return failure(422, errors)


def configure_logging(settings: Settings) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level.upper())

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, DatadogLogger)
               for h in root_logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root_logger.addHandler(stream_handler)

    if not any(isinstance(h, DatadogLogger) for h in root_logger.handlers):
        dd_handler = DatadogLogger(
            service=settings.service_name,
            api_key=settings.datadog_api_key,
            log_url=settings.datadog_log_url,
            env=settings.environment,
            include_loggers=settings.include_loggers,
        )
        dd_handler.setLevel(logging.INFO)
        root_logger.addHandler(dd_handler)

    # uvicorn.access goes through the root handlers only
    uvicorn_access_logger = logging.getLogger("uvicorn.access")
    uvicorn_access_logger.setLevel(logging.INFO)
    uvicorn_access_logger.propagate = True


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.service_name,
        description=description,
        version="1.0.0",
        debug=settings.debug,
    )

    app.add_exception_handler(OrgStructureError, org_structure_exception_handler)
    app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(DatadogLoggingMiddleware)

    app.include_router(org_structure_router)

    @app.get('/health')
    def health_check():
        """
        Lightweight health check endpoint for Kubernetes probes.
        """
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    if settings.tracing_enabled:
        initialize_tracer(settings.service_name, app, settings.jaeger_host, settings.jaeger_port)

    logger.info(f"{settings.service_name} app initialized: environment={settings.environment}")
    return app


org_app = create_app()
