import logging

from fastapi import FastAPI
from apps.backend.api.optimize import router as optimize_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Part Sourcing Planner API",
    version="0.1.0"
)

app.include_router(optimize_router, prefix="/optimize")

@app.get("/")
def root():
    return {"status": "Part Sourcing Planner API running"}
