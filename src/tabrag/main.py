import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .lib.openai_client import OpenAIChat, OpenAIEmbedder
from .lib.scraper import FirecrawlScraper
from .lib.stores import StoreConfig, build_store
from .lib.vector_index import FaissIndex
from .routers import chat, config, health, ingest, search
from .security import verify_api_key

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings.from_env()
    app.state.settings = settings
    app.state.scraper = FirecrawlScraper(
        settings.firecrawl_api_key,
        base_url=settings.firecrawl_base_url,
        timeout=settings.scrape_timeout,
    )
    app.state.embedder_factory = lambda key: OpenAIEmbedder(key, model=settings.embedding_model)
    app.state.chat_factory = lambda key: OpenAIChat(key, model=settings.chat_model)

    app.state.index = None
    if settings.index_enabled:
        index = FaissIndex(settings.index_path)
        index.load()
        app.state.index = index

    app.state.store = None
    store_config = StoreConfig.from_env()
    if store_config is None:
        logger.info("No database configured yet; waiting for /config")
    else:
        store = build_store(store_config)
        await store.init()
        app.state.store = store
        logger.info("Using %s as default database", store.backend)

    yield

    if app.state.store is not None:
        await app.state.store.close()
    await app.state.scraper.aclose()


app = FastAPI(
    title="TabRAG API",
    description="Backend for chatting with and searching your open browser tabs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(ingest.router)
app.include_router(search.router)
app.include_router(chat.router)
app.include_router(config.router)


@app.get("/", dependencies=[Depends(verify_api_key)])
async def root():
    return {"message": "TabRAG API"}
