import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from crud.errors import (
    ConflictError,
    InsufficientStockError,
    InventoryError,
    NotFoundError,
    StoreWriteError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StoreWriteError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return JSONResponse(content={"detail": exc.message}, status_code=status_code)
