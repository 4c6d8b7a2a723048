import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from labtracker.core.config import (
    CORS_ORIGIN_REGEX,
    CORS_ORIGINS,
    DATA_BOOTSTRAP_MODE,
    HOST,
    LOG_LEVEL,
    PORT,
    PUBLIC_DIR,
    SEED_SAMPLE_DATA,
    parse_cors_origins,
)
from labtracker.core.errors import LabTrackerError
from labtracker.database import seed
from labtracker.database.session import get_database
from labtracker.routes import equipments, maintenance, utility
from labtracker.services.diagnostics import lan_ipv4_addresses

logger = logging.getLogger("uvicorn.error")
app = FastAPI(title="Lab Equipment Tracker")

cors_origins = parse_cors_origins(CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=CORS_ORIGIN_REGEX,
    allow_credentials="*" not in cors_origins,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.middleware("http")
async def ensure_utf8_json_charset(request: Request, call_next):
    response = await call_next(request)
    content_type = str(response.headers.get("content-type", ""))
    if content_type.startswith("application/json") and "charset=" not in content_type.lower():
        response.headers["content-type"] = "application/json; charset=utf-8"
    return response


@app.exception_handler(LabTrackerError)
async def handle_lab_tracker_error(request: Request, exc: LabTrackerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(equipments.router)
app.include_router(maintenance.router)
app.include_router(utility.router)


@app.get("/")
def root():
    index_file = PUBLIC_DIR / "index.html"
    if index_file.is_file():
        return FileResponse(index_file)
    return {"message": "Lab Equipment Tracker API"}


@app.get("/health")
def healthcheck():
    return {"status": "ok"}


# Mounted last so the API routes above take precedence.
if PUBLIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=str(PUBLIC_DIR), html=True), name="dashboard")


def run_data_bootstrap() -> None:
    db = get_database()
    steps = [("ensure_directories", lambda: seed.ensure_directories(db))]
    if SEED_SAMPLE_DATA:
        steps.append(("seed_equipment", lambda: seed.seed_equipment(db)))
        steps.append(("seed_maintenance", lambda: seed.seed_maintenance(db)))
    for step_name, step_fn in steps:
        try:
            step_fn()
        except Exception:  # pragma: no cover - startup hardening
            logger.exception("Data bootstrap step failed (step: %s)", step_name)


def trigger_data_bootstrap() -> None:
    if DATA_BOOTSTRAP_MODE == "off":
        logger.info("Data bootstrap disabled (DATA_BOOTSTRAP_MODE=off).")
        return
    run_data_bootstrap()


@app.on_event("startup")
def startup_event():
    trigger_data_bootstrap()
    logger.info("Local:   http://localhost:%s", PORT)
    for address in lan_ipv4_addresses():
        logger.info("Network: http://%s:%s", address, PORT)


def run() -> None:
    uvicorn.run("labtracker.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL)


if __name__ == "__main__":
    run()
