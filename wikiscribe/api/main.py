import logging

from fastapi import FastAPI

from wikiscribe.api.routes.pipeline import router as pipeline_router
from wikiscribe.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Wikiscribe API",
    description="Video -> audio -> transcript -> Markdown -> Wiki.js pipeline",
    version="0.1.0",
)

app.include_router(pipeline_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
