"""
Juri Legal Assistant - Main application entry point
"""
import time
import logging
from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware

# Import configuration and dependencies
from config import settings
from api.dependencies import (
    get_app_store,
    get_chat_service,
    get_document_service,
    get_question_service,
    get_upload_service,
    get_pdf_generator,
    get_simulation_service
)

# Import API routers
from api.chat_controller import router as chat_router
from api.upload_controller import router as upload_router
from api.document_controller import router as document_router
from api.question_controller import router as question_router
from api.state_controller import router as state_router
from api.simulation_controller import router as simulation_router

# Import error handling and utilities
from utils.error_handlers import ErrorHandlingMiddleware, get_status_code_for_error_code
from utils.logging import setup_logging, log_api_request
from utils.exceptions import JuriException, ErrorCode
from utils.health_check import HealthChecker, is_service_ready

# Configure logging
logger = setup_logging()

# Global application state
app_state: Dict[str, Any] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events
    """
    # Startup
    start_time = time.time()
    app_state["start_time"] = start_time

    logger.info(f"Starting {settings.app_name} v{settings.app_version}...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")

    try:
        logger.info("Initializing core services...")

        app_store = get_app_store()
        app_state["app_store"] = app_store
        logger.info("Application state store initialized")

        chat_service = get_chat_service()
        app_state["chat_service"] = chat_service
        logger.info(f"Chat service initialized (hosted fallback: {chat_service.client is not None})")

        app_state["upload_service"] = get_upload_service()
        app_state["document_service"] = get_document_service()
        app_state["question_service"] = get_question_service()
        app_state["pdf_generator"] = get_pdf_generator()
        app_state["simulation_service"] = get_simulation_service()
        logger.info("Document, question, generator and simulation services initialized")

        health_checker = HealthChecker(chat_service=chat_service, app_store=app_store)
        app_state["health_checker"] = health_checker
        logger.info("Health checker initialized")

        system_health = await health_checker.check_system_health()
        logger.info(f"Initial system health check: {system_health.status.value}")

        startup_time = time.time() - start_time
        logger.info(f"{settings.app_name} startup completed successfully in {startup_time:.2f} seconds")

        yield

    except Exception as e:
        logger.error(f"Failed to start {settings.app_name}: {e}")
        raise

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    app_state.clear()
    logger.info(f"{settings.app_name} shutdown completed")


# Create FastAPI application with lifespan manager
app = FastAPI(
    title=settings.app_name,
    description="Legal assistant backend for startup founders: chat proxy, document upload and summaries, "
                "legal Q&A, SAFE generation and form filling, template catalog and scenario simulations",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# Configure middleware
def configure_middleware():
    """Configure all application middleware"""

    # Security middleware - Trusted Host
    if settings.allowed_hosts:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.allowed_hosts.split(",")
        )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins.split(","),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Chat-Provider", "X-Response-Time", "Content-Disposition"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"
        user_agent = request.headers.get("user-agent", "unknown")

        try:
            response = await call_next(request)
            duration_ms = int((time.time() - start_time) * 1000)

            log_api_request(
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                duration_ms=duration_ms,
                user_agent=user_agent,
                client_ip=client_ip
            )

            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            return response

        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(f"Request failed: {request.method} {request.url.path} - {str(e)}")

            log_api_request(
                method=request.method,
                path=str(request.url.path),
                status_code=500,
                duration_ms=duration_ms,
                user_agent=user_agent,
                client_ip=client_ip
            )

            raise

    app.add_middleware(ErrorHandlingMiddleware)


configure_middleware()


@app.exception_handler(JuriException)
async def juri_exception_handler(request: Request, exc: JuriException):
    """
    Handle application exceptions with structured error responses
    """
    status_code = get_status_code_for_error_code(exc.error_code)

    if status_code >= 500:
        logger.error(f"Application error in {request.method} {request.url}: {exc}")
    else:
        logger.warning(f"Application exception in {request.method} {request.url}: {exc}")

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict()
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle Pydantic validation errors with field-level details
    """
    logger.warning(f"Validation error in {request.method} {request.url}: {exc}")

    field_errors = []
    for error in exc.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        field_errors.append({
            "field": field_path,
            "message": error["msg"],
            "type": error["type"]
        })

    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": ErrorCode.VALIDATION_ERROR.value,
                "message": "Request validation failed",
                "details": {
                    "field_errors": field_errors
                },
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            }
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTP exceptions with consistent formatting
    """
    # If detail is already a dict (our custom format), return as-is
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": "HTTP_ERROR",
                "message": str(exc.detail),
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            }
        }
    )


# Include API routers
app.include_router(chat_router)
app.include_router(upload_router)
app.include_router(document_router)
app.include_router(question_router)
app.include_router(state_router)
app.include_router(simulation_router)


@app.get("/health")
async def health_check():
    """
    Basic health check endpoint for load balancers and monitoring
    """
    return {
        "status": "healthy",
        "message": f"{settings.app_name} is running",
        "version": settings.app_version,
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


@app.get("/health/detailed")
async def detailed_health_check():
    """
    Detailed health check endpoint with component status
    """
    try:
        health_checker = app_state.get("health_checker")

        if not health_checker:
            health_checker = HealthChecker(
                chat_service=get_chat_service(),
                app_store=get_app_store()
            )

        system_health = await health_checker.check_system_health(include_details=True)

        response = {
            "status": system_health.status.value,
            "message": system_health.message,
            "timestamp": system_health.timestamp,
            "uptime_seconds": system_health.uptime_seconds,
            "components": [
                {
                    "name": comp.name,
                    "status": comp.status.value,
                    "message": comp.message,
                    "details": comp.details,
                    "response_time_ms": comp.response_time_ms,
                    "last_check": comp.last_check
                }
                for comp in system_health.components
            ]
        }

        # Degraded is still operational
        status_code = 503 if system_health.status.value == "unhealthy" else 200
        return JSONResponse(status_code=status_code, content=response)

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "message": f"Health check failed: {str(e)}",
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            }
        )


@app.get("/health/ready")
async def readiness_check():
    """
    Readiness check endpoint for container orchestration
    """
    if not is_service_ready(app_state.get("chat_service"), app_state.get("app_store")):
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "message": "Required services not initialized",
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            }
        )

    return {
        "status": "ready",
        "message": "Service is ready to accept requests",
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


@app.get("/health/live")
async def liveness_check():
    """
    Liveness check endpoint for container orchestration
    """
    return {
        "status": "alive",
        "message": "Service is alive",
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "uptime_seconds": int(time.time() - app_state.get("start_time", time.time()))
    }


@app.get("/")
async def root():
    """
    Root endpoint with API information
    """
    return {
        "message": f"Welcome to the {settings.app_name} API",
        "version": settings.app_version,
        "environment": settings.environment,
        "documentation": "/docs",
        "endpoints": {
            "chat": "POST /api/chat",
            "upload": "POST /api/upload",
            "documents": "GET|POST /documents",
            "templates": "GET /documents/templates",
            "generate_safe": "POST /documents/safe",
            "fill_safe": "POST /documents/safe/fill",
            "ask_question": "POST /qa",
            "state": "GET /state",
            "simulations": "GET /simulations",
            "health_check": "GET /health",
            "detailed_health": "GET /health/detailed",
            "readiness": "GET /health/ready",
            "liveness": "GET /health/live"
        },
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


@app.get("/info")
async def application_info():
    """
    Application information endpoint
    """
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "debug": settings.debug,
        "configuration": {
            "brev_server_url": settings.brev_server_url,
            "hosted_model": settings.nvidia_model,
            "hosted_configured": bool(settings.nvidia_api_key),
            "max_file_size_mb": settings.max_file_size_mb,
            "pdf_max_pages": settings.pdf_max_pages,
            "log_level": settings.log_level
        },
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


def create_app() -> FastAPI:
    """
    Application factory function
    """
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers if not settings.debug else 1,
        reload=settings.debug,
        access_log=True,
        server_header=False,
        date_header=False
    )
