"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    cd backend
    uvicorn api.server:app --reload --port 8000

Endpoints:
    GET  /v1/health
    POST /v1/trips/stops
    POST /v1/trips/timeline
    GET  /v1/hubs/stats
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health, hubs, trips

app = FastAPI(
    title="Road Trip Planner API",
    version="1.0.0",
    description=(
        "Stop-suggestion simulation and timed itinerary builder for multi-day road trips. "
        "Names stops through a self-learning hub cache and Nominatim."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# Allow the web frontend (any origin during development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/v1",       tags=["Health"])
app.include_router(trips.router,  prefix="/v1/trips", tags=["Trips"])
app.include_router(hubs.router,   prefix="/v1/hubs",  tags=["Hubs"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=True)
