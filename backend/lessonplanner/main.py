"""FastAPI application entry point for the lesson planner data service."""
from __future__ import annotations
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lessonplanner.core.config import SERVER_HOST, SERVER_PORT
from lessonplanner.persistence.db import init_db
from lessonplanner.api import auth, planner

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ------------------------------------------------------------------
# App creation
# ------------------------------------------------------------------
app = FastAPI(
    title="Lesson Planner Data Service",
    description="Stores the activity library, lessons, lesson plans, EYFS standards and units per class",
    version="1.0.0",
)

# CORS: allow everything for local dev (restrict for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    init_db()


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(auth.router)
app.include_router(planner.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("lessonplanner.main:app", host=SERVER_HOST, port=SERVER_PORT)
