"""
Waytrack API - Session Tracks & Photo Waypoints

Handles:
- GPX track upload with adaptive simplification
- Photo waypoints positioned from EXIF GPS or the fallback chain
- Track read-back for map rendering
- Location pings that feed the photo fallback chain
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from waytrack.database import create_tables

from waytrack.routes import (
    session_routes,
    tracking_routes,
    waypoint_routes,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create database tables
create_tables()

app = FastAPI(
    title="Waytrack API",
    version="1.0.0",
    description="Session track and photo waypoint service"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(session_routes.router, prefix="/sessions", tags=["Sessions"])
app.include_router(waypoint_routes.router, prefix="/waypoints", tags=["Waypoints"])
app.include_router(tracking_routes.router, prefix="/tracking", tags=["Tracking"])

@app.get("/")
def root():
    return {
        "service": "waytrack-api",
        "version": "1.0.0",
        "description": "Session track and photo waypoint service"
    }

@app.get("/health")
def health():
    return {"status": "healthy", "service": "waytrack-api"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
