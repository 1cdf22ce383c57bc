"""
Base router infrastructure for centralized error handling and response construction.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional

from fastapi import HTTPException

from CatalogSync.exceptions import CatalogSyncException
from CatalogSync.schemas.response import ResponseSchema

logger = logging.getLogger(__name__)


class BaseRouter:
    """
    Base class for all routers providing centralized error handling and response construction.
    """

    @staticmethod
    def build_success_response(
        data: Any = None,
        message: str = "Operation completed successfully",
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        total: Optional[int] = None,
    ) -> ResponseSchema:
        """
        Build a standardized success response.

        Args:
            data: Response data
            message: Success message
            offset: Offset for paginated responses
            limit: Page size for paginated responses
            total: Total count for paginated responses
        """
        return ResponseSchema(
            status="success",
            message=message,
            data=data,
            offset=offset,
            limit=limit,
            total=total,
        )

    @staticmethod
    def handle_exception(e: Exception) -> Exception:
        """
        Map an exception to what the route should raise.

        CatalogSync exceptions pass through untouched so the registered
        exception handler can render them with their own status code.
        """
        if isinstance(e, (HTTPException, CatalogSyncException)):
            return e
        elif isinstance(e, ValueError):
            return HTTPException(status_code=400, detail=str(e))
        else:
            logger.error(f"Unexpected error: {str(e)}", exc_info=True)
            return HTTPException(status_code=500, detail="Internal server error")


def standard_error_handling(func: Callable) -> Callable:
    """
    Decorator that provides standardized error handling for route functions.

    Usage:
        @standard_error_handling
        async def my_route():
            return BaseRouter.build_success_response(data=result)
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            raise BaseRouter.handle_exception(e)
    return wrapper
