from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.db.session import connect_to_mongo, close_mongo_connection
from app.services.pipeline import init_pipeline, close_pipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Taxonomy load errors propagate from here and stop the server from starting.
    init_pipeline()
    await connect_to_mongo()
    yield
    await close_mongo_connection()
    await close_pipeline()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Welcome to EcoBoleta API"}


app.include_router(api_router, prefix=settings.API_V1_STR)
