"""Main application file - Flock Line Monitor"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import monitor_config
from refresh_controller import RefreshController

# Import routers
from api_routes import router as api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One controller per process; its timer must not outlive the app
    app.state.controller = RefreshController()
    try:
        yield
    finally:
        await app.state.controller.aclose()


# Initialize FastAPI app
app = FastAPI(title="Flock Line Monitor", version="1.0.0", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=monitor_config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(api_router, tags=["api"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info"
    )
