"""HTTP endpoint serving the report as JSON."""
import logging
from typing import Any, AsyncIterator, Dict, Optional

from aiohttp import web

from .collector import ReportCollector
from .data.base_agent import BaseAgent
from .data.cache_store import KeyValueStore
from .data.collection_context import Clock, CollectionContext, utcnow
from .models.report import AggregatedReport
from .models.settings import Settings
from .utils.http import HttpClient

logger = logging.getLogger("server")

CONTEXT_KEY = web.AppKey("collection_context", CollectionContext)
COLLECTOR_KEY = web.AppKey("collector", ReportCollector)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


async def weather_handler(request: web.Request) -> web.Response:
    """Return the current report; always 200, failures show up as ``degraded``."""
    collector = request.app[COLLECTOR_KEY]
    ctx = request.app[CONTEXT_KEY]
    try:
        report = await collector.collect(ctx)
    except Exception:
        logger.exception("Report collection failed, returning fallback report")
        report = AggregatedReport.fallback()
    return web.json_response(report.to_json_dict(), status=200, headers=CORS_HEADERS)


def create_app(
    settings: Settings,
    *,
    http_client: Optional[HttpClient] = None,
    store: Optional[KeyValueStore] = None,
    clock: Clock = utcnow,
    agents: Optional[Dict[str, BaseAgent[Any]]] = None,
) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        settings: Application settings
        http_client: HTTP client to use instead of opening a session
        store: Cache store shared by all requests
        clock: Returns the current timezone-aware time
        agents: Agent per report field, for custom sources

    Returns:
        Application exposing ``GET /weather``
    """
    app = web.Application()
    app[COLLECTOR_KEY] = ReportCollector(settings, agents=agents)

    async def collection_context(app: web.Application) -> AsyncIterator[None]:
        async with CollectionContext(settings, http_client=http_client, store=store, clock=clock) as ctx:
            app[CONTEXT_KEY] = ctx
            logger.info("Report endpoint ready")
            yield

    app.cleanup_ctx.append(collection_context)
    app.router.add_get("/weather", weather_handler)
    return app
