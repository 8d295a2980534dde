"""FastAPI application for the fertilization planner."""
import logging

from fastapi import FastAPI

from fertiplan.routers.fertilization import router as fertilization_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(title="FertiPlan", description="Soil-based fertilization planning")
    app.include_router(fertilization_router)
    return app


app = create_app()
