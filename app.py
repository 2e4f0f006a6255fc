from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

import logger_config  # noqa: F401  configures loguru sinks
from config import CORS_ORIGINS
from exceptions import ConflictError, DomainError
from routes.conflict_route import conflict_router
from routes.game_route import game_router
from routes.order_route import order_router
from routes.queue_route import queue_router
from routes.session_route import session_router
from routes.table_reservation_route import table_reservation_router
from routes.table_route import table_router
from routes.websocket import websocket_router

app = FastAPI(title="Table Allocation")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(game_router)
app.include_router(table_router)
app.include_router(session_router)
app.include_router(queue_router)
app.include_router(table_reservation_router)
app.include_router(conflict_router)
app.include_router(order_router)
app.include_router(websocket_router)


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    logger.info(f"Conflict on {request.url.path}: {exc.message}")
    summary = exc.summary
    content = {
        "success": False,
        "error": "BOOKING_CONFLICT" if summary is None or not summary.can_proceed else "BOOKING_WARNING",
        "detail": exc.message,
        "conflicts": exc.report.conflicts if exc.report else [],
        "suggestions": exc.suggestions,
        "can_force": bool(summary and summary.can_proceed),
        "details": {
            "title": summary.title if summary else "Booking Conflict",
            "severity": exc.report.severity if exc.report else "error",
            "question": summary.question if summary else None,
            "conflict_count": len(exc.report.conflicts) if exc.report else 0,
        },
    }
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(content))


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"Domain error on {request.url.path}: {exc.message}")
    else:
        logger.info(f"Domain error on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, "detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "detail": jsonable_encoder(exc.errors())},
    )


@app.get("/")
async def base_path():
    """
    Root endpoint to verify that the API is running.

    Returns:
        dict: A success message.
    """
    return {"success": True}
