# alt_locator/app.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from alt_locator.routes import health_router, page_images_router
from alt_locator.settings import get_settings

# ----------------------
# Logging & Config
# ----------------------
settings = get_settings()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger("alt-locator-api")

# ----------------------
# FastAPI app + CORS
# ----------------------
app = FastAPI(title="PDF Image Alt Text Locator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(page_images_router)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


logger.info(
    "[AltLocator] Alt text locator ready (default fallback mode: %s)",
    settings.fallback_mode.value,
)


if __name__ == "__main__":
    import os

    import uvicorn

    port = int(os.environ.get("PORT", 5000))
    uvicorn.run(app, host="0.0.0.0", port=port)
