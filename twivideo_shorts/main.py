"""FastAPI application entry point."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .routes import media, static, status, videos
from .services import browser_session, media_proxy
from .utils.logger import logger

# Create FastAPI app
app = FastAPI(
    title="TWIVIDEO Shorts",
    description="Ranking proxy that reads twivideo.net through a headless browser and relays its media",
    version="1.0.0",
    debug=settings.debug,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def allow_any_origin(request: Request, call_next):
    """Stamp the permissive CORS header on every response, not only CORS ones."""
    response = await call_next(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        Health status
    """
    return {"status": "healthy", "service": "twivideo-shorts"}


# Include routers; static must come last since it matches every path
app.include_router(videos.router)
app.include_router(status.router)
app.include_router(media.router)
app.include_router(static.router)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info("Starting TWIVIDEO Shorts")
    logger.info(f"Local: http://localhost:{settings.port}/")
    logger.info(f"Static root: {settings.static_path}")

    if settings.launch_browser_on_startup:
        # Static and proxy routes keep serving while this runs
        browser_session.schedule_init()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("Shutting down TWIVIDEO Shorts")
    await browser_session.close()
    await media_proxy.aclose()


def run() -> None:
    """Serve the app with uvicorn using the configured host and port."""
    import uvicorn

    uvicorn.run(
        "twivideo_shorts.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
