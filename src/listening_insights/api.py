"""FastAPI web server for Listening Insights."""
import logging

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from listening_insights.aggregator import aggregate
from listening_insights.config import Settings, configure_logging, load_local_env_file
from listening_insights.errors import ListeningInsightsError
from listening_insights.spotify_auth import build_authorize_url, exchange_code, resolve_redirect_uri
from listening_insights.token_cache import TokenCache

logger = logging.getLogger(__name__)

load_local_env_file()
_settings = Settings.from_env()
configure_logging(_settings.log_level)

app = FastAPI(title="Listening Insights")

# The browser client calls this API directly from another origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

token_cache = TokenCache(ttl=_settings.token_cache_ttl)


def get_settings() -> Settings:
    return _settings


# Request/Response models
class InsightsRequest(BaseModel):
    access_token: str | None = None
    refresh_token: str | None = None


class GenreEntry(BaseModel):
    name: str
    count: int


class RadarPoint(BaseModel):
    name: str
    value: float


class InsightsResponse(BaseModel):
    """Averaged audio features and top genres for the authorized user."""
    features: dict[str, float]
    genres: list[GenreEntry]
    radar: list[RadarPoint]
    access_token: str | None = None


class AuthRequest(BaseModel):
    code: str | None = None


@app.exception_handler(ListeningInsightsError)
def handle_insights_error(request: Request, exc: ListeningInsightsError) -> JSONResponse:
    logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/api/insights", response_model=InsightsResponse, response_model_exclude_none=True)
def get_insights(request: InsightsRequest | None = None):
    """Fetch top tracks and reduce them to feature averages and genre counts."""
    request = request or InsightsRequest()
    return aggregate(
        request.access_token or "",
        request.refresh_token or "",
        settings=get_settings(),
        cache=token_cache,
    )


@app.post("/api/auth")
def spotify_auth(http_request: Request, request: AuthRequest | None = None, origin: str | None = Query(default=None)):
    """Return the authorize URL, or exchange ``code`` for tokens when given."""
    settings = get_settings()
    redirect_uri = resolve_redirect_uri(settings, origin or http_request.headers.get("origin"))
    code = request.code if request else None
    if not code:
        return {"url": build_authorize_url(settings, redirect_uri)}
    logger.info("Received code, exchanging for token")
    return exchange_code(settings, code, redirect_uri)
