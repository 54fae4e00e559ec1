from contextlib import asynccontextmanager
from fastapi import FastAPI

from src.adapters.primary.api.error_handlers import general_exception_handler, workflow_exception_handler
from src.adapters.primary.api.routes.health import router as health_router
from src.adapters.primary.api.routes.workflow import router
from src.domain.workflow.exceptions import WorkflowException
from src.shared.config import settings
from src.shared.database import create_schema, engine
from src.shared.logger import configure_logging, get_logger
from src.shared.redis_client import redis_client

# Configure logging early
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.REPOSITORY_BACKEND == "postgres":
        await create_schema()

    logger.info(
        "application_started",
        version=settings.APP_VERSION,
        repository=settings.REPOSITORY_BACKEND,
        event_publisher=settings.EVENT_PUBLISHER_BACKEND,
        lock=settings.LOCK_BACKEND,
    )
    yield

    logger.info("application_shutting_down")
    await redis_client.aclose()
    await engine.dispose()
    logger.info("application_shutdown_complete")


app = FastAPI(
    title=settings.APP_NAME,
    description="Workflow graph editing service: nodes, connections and activation with domain events.",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_exception_handler(WorkflowException, workflow_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(router)
app.include_router(health_router)
