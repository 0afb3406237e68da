"""FastAPI application setup for SurfTribe forecasts."""

from fastapi import FastAPI

from .api import router as api_router

app = FastAPI(title="SurfTribe Forecasts")

# API routes
app.include_router(api_router, prefix="/v1")
