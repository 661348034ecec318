"""
UrgeGuard - Main Application
Risk curve + live risk + safe harbor + logistic prediction + intervention gate.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from urgeguard import __version__
from urgeguard.api import interventions, logs, prediction, risk
from urgeguard.config import get_engine_config, settings
from urgeguard.db import create_db_and_tables, verify_database_connection

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("urgeguard")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    logger.info("urgeguard_online", extra={"env": settings.env, "version": __version__})
    yield
    logger.info("urgeguard_offline")


app = FastAPI(
    title="UrgeGuard",
    description="Relapse-risk estimation and intervention-trigger engine",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(risk.router)
app.include_router(prediction.router)
app.include_router(interventions.router)
app.include_router(logs.router)


@app.get("/health")
async def health():
    db_status = await verify_database_connection()
    return {
        "status": "ok" if db_status["sqlite"] else "degraded",
        "database": db_status,
        "engine": get_engine_config(),
    }
