from fastapi import FastAPI, Request
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import Base, engine
from datetime import datetime
import os
import logging

from config import AUTO_CREATE_TABLES, CORS_ALLOWED_ORIGINS, LOG_DIR, LOG_LEVEL
from exceptions import InfrastructureError
from utils.schema_check import verify_required_tables
import models  # noqa: F401  registers the tables on Base.metadata
import routers.upload_procured_meds as upload_procured_meds
import routers.upload_iar as upload_iar
import routers.procured_meds as procured_meds
import routers.iar as iar
import routers.dashboard as dashboard
import routers.reports as reports


os.makedirs(LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also echo logs to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler) # Add to the root logger

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables unless alembic owns the schema
if AUTO_CREATE_TABLES:
    Base.metadata.create_all(bind=engine)


app = FastAPI(
    title="Procurement Tracking API",
    version="1.0.0",
    description="Uploads, reconciliation and delivery status of procured medicines",
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InfrastructureError)
async def infrastructure_error_handler(request: Request, exc: InfrastructureError):
    logger.error(f"Infrastructure error on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=500, content={"detail": exc.message, "hint": exc.hint})


@app.on_event("startup")
def check_schema():
    # Refuse to serve requests against a database without the procurement tables
    verify_required_tables(engine)
    logger.info("Required database tables present")


app.include_router(upload_procured_meds.router)
app.include_router(upload_iar.router)
app.include_router(procured_meds.router)
app.include_router(iar.router)
app.include_router(dashboard.router)
app.include_router(reports.router)


@app.get("/health")
def health():
    verify_required_tables(engine)
    return {"status": "ok"}


@app.get("/")
async def test_route():
    return {"message": "Procurement Tracking API"}
