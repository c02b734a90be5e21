import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from homebudget.app.api.v1.router import api_router
from homebudget.app.config import get_settings
from homebudget.app.database import create_tables
from homebudget.app.errors import register_exception_handlers
from homebudget.app.logging_config import configure_logging
from homebudget.app.services.cache import TTLCache

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting up application...")
    create_tables()
    app.state.dashboard_cache = TTLCache(settings.dashboard_cache_ttl_seconds)
    yield
    logger.info("Shutting down application...")

app = FastAPI(title="homebudget", lifespan=lifespan)
register_exception_handlers(app)

# Include all API routes
app.include_router(api_router, prefix="/api/v1")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("homebudget.app.main:app", host="0.0.0.0", port=8000, reload=True)
