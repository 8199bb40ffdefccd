from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drapicorn.config import logger

from .routers import router

# Initialize FastAPI application
app = FastAPI(
    title="Drapicorn Studio API",
    description="AI tech packs, flat sketches and styled previews from design sketches",
    version="1.0.0",
)

app.include_router(router)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


logger.info("Drapicorn Studio API initialized successfully")
