import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.routers import auth, chat, saved_businesses
from app.services.chat_orchestrator import ChatOrchestrator
from app.services.response_cache import ResponseCache

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.project_name,
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One response cache per process, shared by all chat turns
app.state.chat_orchestrator = ChatOrchestrator(
    cache=ResponseCache(
        ttl_seconds=settings.response_cache_ttl_seconds,
        max_entries=settings.response_cache_max_entries,
    )
)

# Include routers
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(saved_businesses.router, prefix=settings.api_prefix)
app.include_router(chat.router, prefix=settings.api_prefix)

if settings.yelp_client_id:
    logger.info("Yelp Client ID: %s...", settings.yelp_client_id[:8])


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as {"error": message, ...} for the browser client."""
    content = dict(exc.detail) if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Welcome to Spotlight API, powered by Yelp AI for local business discovery",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
