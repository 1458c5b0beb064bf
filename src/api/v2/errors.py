"""Global error handlers."""
from fastapi import Request
from fastapi.responses import JSONResponse


class PriceNotFoundError(LookupError):
    """No provider could produce a price for the requested instrument."""


async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=422,
        content={"error": str(exc), "code": "VALIDATION_ERROR", "details": {}},
    )


async def price_not_found_handler(request: Request, exc: PriceNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"error": str(exc), "code": "PRICE_NOT_FOUND", "details": {}},
    )
