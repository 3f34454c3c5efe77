from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from nft_gate.config import settings
from nft_gate.core.deps import close_registry
from nft_gate.core.logging import setup_logging
from nft_gate.database import init_db
from nft_gate.routers import gate

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_db()
    logger.info(f"{settings.COLLECTION_NAME} gate ready, {len(settings.RPC_URLS)} RPC endpoint(s) configured")
    yield
    await close_registry()

app = FastAPI(title=f"{settings.COLLECTION_NAME} VIP Gate", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(gate.router)

@app.get("/health")
async def health():
    return {"status": "ok"}
