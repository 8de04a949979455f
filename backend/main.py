from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from config import settings
from database import Base, engine
from exception_handlers import setup_exception_handlers
from live_feed import inventory_feed
import models  # noqa: F401  (registers all tables on Base.metadata)
import routers.deleted_inventory_items as deleted_inventory_items
import routers.inventory_items as inventory_items


os.makedirs(settings.LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(settings.LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also log to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler)

logger = logging.getLogger(__name__)
logger.info("Application starting up...")


# Create database tables
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    inventory_feed.start()
    scheduler = None
    if settings.SCHEDULER_ENABLED:
        from scheduler import scheduler
        scheduler.start()
        logger.info("Inventory notification scheduler started.")
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        inventory_feed.stop()
        logger.info("Application shut down.")


app = FastAPI(lifespan=lifespan)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Lab Inventory API",
        version="1.0.0",
        description="API for the Laboratory Inventory Tracker",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(inventory_items.router)
app.include_router(deleted_inventory_items.router)

@app.get("/")
async def root():
    return {"message": "Lab Inventory API is running."}
