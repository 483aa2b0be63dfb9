from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import uuid
from contextlib import asynccontextmanager
from database import database
from errors import CRMError
from routes import auth, leads, users, organizations

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting LeadTrack CRM API")
    await database.connect()

    # Idempotent super admin bootstrap when email+password env are set
    bootstrap_email = (os.environ.get("BOOTSTRAP_SUPER_ADMIN_EMAIL") or "").strip()
    bootstrap_password = (os.environ.get("BOOTSTRAP_SUPER_ADMIN_PASSWORD") or "").strip()
    if bootstrap_email and bootstrap_password:
        try:
            from services.bootstrap import run_bootstrap_super_admin
            result = await run_bootstrap_super_admin()
            logger.info("Bootstrap super admin: %s - %s", result.get("action"), result.get("message"))
        except Exception as e:
            logger.warning("Bootstrap super admin failed: %s", e)

    yield

    # Shutdown
    logger.info("Shutting down LeadTrack CRM API")
    await database.close()

# Create FastAPI app
app = FastAPI(
    title="LeadTrack CRM API",
    description="Multi-tenant lead intake and case tracking",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(leads.router)
app.include_router(leads.admin_router)
app.include_router(users.router)
app.include_router(organizations.router)


# Health check
@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": os.getenv("ENVIRONMENT", "development")
    }


# Domain errors raised by services carry their own status code
@app.exception_handler(CRMError)
async def crm_error_handler(request: Request, exc: CRMError):
    if exc.status_code >= 500:
        logger.error(f"Service error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


# Validation error handler: log request_id + field locations
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = str(uuid.uuid4())
    errors = exc.errors()
    logger.warning(
        "Validation failed request_id=%s path=%s errors=%s",
        request_id,
        request.url.path,
        [(e.get("loc"), e.get("msg"), e.get("type")) for e in errors],
    )
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(errors), "request_id": request_id},
    )


def jsonable_errors(errors):
    # ctx may hold exception instances that JSONResponse cannot serialize
    return [{k: v for k, v in e.items() if k != "ctx"} for e in errors]


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=8001,
        reload=os.getenv("ENVIRONMENT") == "development"
    )
