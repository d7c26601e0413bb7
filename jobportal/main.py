# ========================================
# jobportal/main.py
# ========================================

import logging
import uvicorn

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from jobportal.config import ALLOWED_ORIGINS, LOG_LEVEL
from jobportal.database import connect_to_mongo, close_mongo_connection

# ===========================
# IMPORT ALL ROUTERS
# ===========================
from jobportal.routes.user import router as user_router
from jobportal.routes.company import router as company_router
from jobportal.routes.job import router as job_router
from jobportal.routes.application import router as application_router
from jobportal.routes.admin import router as admin_router
from jobportal.routes.files import router as files_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# ===========================
# CREATE FASTAPI APP
# ===========================

app = FastAPI(
    title="Job Portal API",
    description="Job board backend for candidates, employers and administrators",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# ===========================
# CORS MIDDLEWARE
# ===========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===========================
# ERROR HANDLERS
# ===========================

@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Server error"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error"})

# ===========================
# DATABASE EVENTS
# ===========================

@app.on_event("startup")
async def start_db():
    """Connect to MongoDB on startup"""
    await connect_to_mongo()


@app.on_event("shutdown")
async def stop_db():
    """Close MongoDB connection on shutdown"""
    await close_mongo_connection()

# ===========================
# REGISTER ROUTERS
# ===========================

app.include_router(user_router)
app.include_router(company_router)
app.include_router(job_router)
app.include_router(application_router)
app.include_router(admin_router)
app.include_router(files_router)

# ===========================
# ROOT ENDPOINTS
# ===========================

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "status": "Job Portal API Running",
        "version": VERSION,
        "documentation": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": VERSION}


def run():
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("jobportal.main:app", host="0.0.0.0", port=8000)
