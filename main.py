# file: main.py

import logging

from fastapi import FastAPI

from app.config import LOG_LEVEL
from app.controllers.devices import router as devices_router
from app.controllers.events import router as events_router
from app.services.firebase_auth import initialize_firebase

logging.basicConfig(level=LOG_LEVEL)

app = FastAPI(title="Collab Notifications API")

app.include_router(events_router, prefix="/events", tags=["events"])
app.include_router(devices_router, prefix="/api/devices", tags=["devices"])


@app.get("/")
async def root():
    return {"message": "Collab Notifications API is running"}

@app.on_event("startup")
async def startup_event():
    initialize_firebase()
