"""
Main application entry point for the Person Registry API.

This module creates the storage handle, initializes it when the
application starts, configures CORS, maps registry errors to HTTP
responses, and includes routers for authentication and persons.

Modules:
- FastAPI: Web framework
- CORSMiddleware: Middleware for handling CORS
- registry.database: Storage handle
- registry.persons: Persons router
- registry.auth: Authentication router
- registry.core: Application settings and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from registry import persons
from registry.auth import router as auth_router
from registry.core import configure_logging, get_settings
from registry.database import Storage, get_storage
from registry.errors import (
    FieldValidationError,
    PersonNotFoundError,
    StorageError,
    StorageNotInitializedError,
)

logger = logging.getLogger("registry.main")

settings = get_settings()
storage = Storage(settings.DATABASE_URL, reset=settings.RESET_ON_STARTUP)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the store and reset its schema when the application starts.

    A store that cannot be opened is logged and left uninitialized;
    each request retries the initialization and answers 503 while the
    store stays unavailable.
    """
    configure_logging(settings)
    try:
        storage.initialize()
    except StorageError:
        logger.exception("Database initialization failed")
    yield
    storage.close()


# Initialize FastAPI application
app = FastAPI(title="Person Registry API", lifespan=lifespan)
app.state.storage = storage

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FieldValidationError)
async def field_validation_handler(request: Request, exc: FieldValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field, "rule": exc.rule},
    )


@app.exception_handler(PersonNotFoundError)
async def not_found_handler(request: Request, exc: PersonNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    code = 503 if isinstance(exc, StorageNotInitializedError) else 500
    return JSONResponse(status_code=code, content={"detail": str(exc)})


# Include routers for application areas
app.include_router(auth_router)
app.include_router(persons.router)


@app.get("/")
def root():
    """
    Root endpoint for the API.

    Returns a simple JSON message directing users to the Swagger UI.

    Returns:
        dict: JSON message with information about the API
    """
    return {"msg": "Person Registry API. Visit /docs for Swagger UI"}


@app.get("/health")
def health(store: Storage = Depends(get_storage)):
    """
    Liveness probe issuing a trivial query against the store.

    Returns:
        dict: ``{"database": true}`` when the store answers.
    """
    return {"database": store.test_connection()}
