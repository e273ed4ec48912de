from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class NotificationStoreError(Exception):
    """Raised by store adapters when the backend query or RPC fails."""


class ChangeFeedError(Exception):
    """Raised by change feed adapters when a subscription cannot be opened or an event cannot be sent."""


def create_error_response(error_message: str) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

def create_success_response(data: dict) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail)
    )
