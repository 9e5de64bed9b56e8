import asyncio
import logging
import sys
import threading

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from app.core.config import settings
from app.core.logging import configure_logging
from app.endpoints import course, course_progress, quiz, order, webhooks, notification, health, category, level
from app.middleware.exceptions import HANDLED_EXCEPTIONS, global_exception_handler, validation_exception_handler
from app.middleware.logging import RequestLoggingMiddleware
from app.core.scheduler import start_scheduler, stop_scheduler

configure_logging()
logger = logging.getLogger("app")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

for exc_class in HANDLED_EXCEPTIONS:
    app.add_exception_handler(exc_class, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(health.router, tags=["Health"])
app.include_router(course.router, prefix="/courses", tags=["Courses"])
app.include_router(category.router, prefix="/categories", tags=["Categories"])
app.include_router(level.router, prefix="/levels", tags=["Levels"])
app.include_router(course_progress.router, prefix="/progress", tags=["Course Progress"])
app.include_router(quiz.router, prefix="/quizzes", tags=["Quizzes"])
app.include_router(order.router, prefix="/orders", tags=["Orders"])
app.include_router(notification.router, prefix="/notifications", tags=["Notifications"])
app.include_router(webhooks.router, tags=["Webhooks"])


def _log_uncaught(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))


def _log_thread_exception(args):
    logger.critical(
        f"Uncaught exception in thread {args.thread.name if args.thread else 'unknown'}",
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback)
    )


def _log_loop_exception(loop, context):
    exc = context.get("exception")
    logger.error(f"Unhandled error in event loop: {context.get('message')}", exc_info=exc)


sys.excepthook = _log_uncaught
threading.excepthook = _log_thread_exception


@app.on_event("startup")
async def startup_event():
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
    start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    stop_scheduler()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
