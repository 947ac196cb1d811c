import logging
import os
from contextlib import asynccontextmanager
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.dependencies import init_service
from app.routers import purchases, recipes, settings, units, demo
from app.schemas import issues_detail
from profitplate.db.database import init_db
from profitplate.errors import StorageWriteError, ValidationError

logging.basicConfig(
    level=os.environ.get("PROFITPLATE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    service = init_service()
    # Load the sample data into an empty store if PROFITPLATE_SEED_DEMO is set
    if os.environ.get("PROFITPLATE_SEED_DEMO"):
        from demo.seed import seed_if_empty
        if seed_if_empty(service):
            logger.info("Loaded sample data into empty store")
    yield


app = FastAPI(title="ProfitPlate", lifespan=lifespan)


@app.exception_handler(StorageWriteError)
async def storage_write_handler(request: Request, exc: StorageWriteError):
    logger.error("Storage write failed on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=507,
        content={"error": exc.kind.value, "message": str(exc)},
    )


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": exc.kind.value, "detail": issues_detail(exc.issues)},
    )


app.include_router(purchases.router)
app.include_router(recipes.router)
app.include_router(settings.router)
app.include_router(units.router)
app.include_router(demo.router)
