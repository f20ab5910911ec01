from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from core import config
from server.api import router as charts_router

logger = logging.getLogger("uvicorn.error")
app = FastAPI(title="Passenger Charts", description="Turn passenger records into chart-ready series")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount the charts API router
app.include_router(charts_router)
logger.info(
    "Charts router mounted: default metric=%s sort=%s",
    config.DEFAULT_METRIC_KEY, config.DEFAULT_SORT,
)


@app.get("/health")
async def health():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
