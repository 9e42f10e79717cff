"""Contact Service - FastAPI server for the portfolio contact form."""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.shared.contact.origin_policy import get_cors_headers
from src.shared.contact.routes import router as contact_router, get_contact_gateway, get_contact_settings

app = FastAPI(
    title="Contact Service",
    description="Contact form gateway with CAPTCHA verification and rate limiting",
    version="0.1.0"
)


# Initialize the store on startup
@app.on_event("startup")
async def startup_event():
    try:
        get_contact_gateway()
        logging.info("Contact gateway initialized on startup")
    except Exception as e:
        # Log error but don't crash the app; the dependency is built again on first request
        logging.error(f"Contact gateway initialization error on startup: {str(e)}")


# Include contact routes
app.include_router(contact_router)


def _error_response(request: Request, status_code: int, message: str, headers: dict = None) -> JSONResponse:
    """Failure body with origin headers, so no error ever lacks CORS headers."""
    cors_headers = get_cors_headers(request.headers.get("origin"), get_contact_settings())
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers={**(headers or {}), **cors_headers},
    )


# Global exception handlers to ensure CORS headers are always added
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Covers 404/405 from routing as well as FastAPI HTTP exceptions."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    return _error_response(request, exc.status_code, message, exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Ensure CORS headers are added to validation errors."""
    return _error_response(request, 400, "Invalid request.")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Ensure CORS headers are added to all exceptions."""
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return _error_response(request, 500, "Internal server error.")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
