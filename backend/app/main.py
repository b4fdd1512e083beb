from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router as api_router
from .barangays_api import router as barangays_router
from .characteristics_api import router as characteristics_router
from .config import CORS_ORIGINS
from .db_helpers import ensure_db
from .healthcheck import router as health_router
from .logging_setup import logger
from .sensors_api import router as sensors_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_db()
    logger.info("[main] database ready")
    yield


app = FastAPI(title="FloodWatch - API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(api_router)
app.include_router(characteristics_router)
app.include_router(barangays_router)
app.include_router(sensors_router)
app.include_router(health_router)

@app.get("/")
def root():
    return {"status": "floodwatch backend running"}


if __name__ == "__main__":
    uvicorn.run("backend.app.main:app", host="0.0.0.0", port=8000)
