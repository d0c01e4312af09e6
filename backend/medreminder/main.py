import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Optional
from medreminder.core.config import settings
from medreminder.core.database import connect_db, init_schedule_store, close_db, check_db_health
from medreminder.db.schedules import ScheduleStore
from medreminder.routes import schedules


logging.basicConfig(
    level=settings.resolved_log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


#------This Function handles the lifespan events---------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.environment} environment")

    owns_store = app.state.schedule_store is None
    if owns_store:
        try:
            app.state.mongo_client = await connect_db(settings.mongodb_uri)
            app.state.schedule_store = await init_schedule_store(
                app.state.mongo_client, settings.db_name
            )
        except Exception as e:
            logger.error(f"Failed to connect to database: {str(e)}")
            await close_db(app.state.mongo_client)
            app.state.mongo_client = None
            raise

    logger.info(f"Serving on http://{settings.server_host}:{settings.port}")

    yield

    logger.info("Shutting down application...")
    await close_db(app.state.mongo_client)
    app.state.mongo_client = None
    # a store bound to the closed client must not survive a restart
    if owns_store:
        app.state.schedule_store = None


#------This Function lists missing query parameters---------
def _missing_params(exc: RequestValidationError) -> list:
    missing = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        if error.get("type") != "missing" or len(loc) < 2 or loc[0] != "query":
            return []
        missing.append(loc[1])
    return missing


#------This Function handles validation errors---------
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.method} {request.url}: {exc.errors()}")
    missing = _missing_params(exc)
    if missing:
        return JSONResponse(
            status_code=400,
            content={"detail": f"missing required parameter: {missing[0]}"},
        )
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


#------This Function handles value errors---------
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"Value error for {request.method} {request.url}: {str(exc)}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)},
    )


#------This Function handles general exceptions---------
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error for {request.method} {request.url}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error" if settings.environment == "production" else str(exc)},
    )


#------This Function builds the application---------
def create_app(store: Optional[ScheduleStore] = None) -> FastAPI:
    app = FastAPI(
        title="Medication Reminder API",
        description="Dosage schedules and upcoming dose times",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.schedule_store = store
    app.state.mongo_client = None

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(schedules.router)

    #------This Function returns health status---------
    @app.get("/health")
    async def health():
        return {"status": "alive", "service": "medreminder", "environment": settings.environment}

    #------This Function returns detailed health status---------
    @app.get("/health/detailed")
    async def health_detailed():
        db_health = await check_db_health(app.state.mongo_client, settings.db_name)
        return {
            "status": "alive",
            "service": "medreminder",
            "environment": settings.environment,
            "timezone": settings.timezone,
            "database": db_health,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "medreminder.main:app",
        host=settings.server_host,
        port=settings.port,
        reload=settings.environment != "production",
    )
