from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

load_dotenv()

from api.config import settings  # noqa: E402
from api.db import close_client  # noqa: E402
from api.exceptions import (  # noqa: E402
    LadderException,
    RateLimitError,
    create_error_response,
    generic_exception_handler,
    http_exception_handler,
    ladder_exception_handler,
    validation_exception_handler,
)
from api.logging_config import setup_logging  # noqa: E402
from api.metrics import metrics  # noqa: E402
from api.rate_limit import rate_limiter  # noqa: E402
from api.ranking.service import get_ranking_service  # noqa: E402

logger = setup_logging(settings.log_level)

ATTRIBUTION_HEADER = "x-sc2pulse-attribution"
ATTRIBUTION = "Ladder data courtesy of SC2Pulse (https://sc2pulse.nephest.com)"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("SC2 ladder API starting")
    yield
    if get_ranking_service.cache_info().currsize:
        await get_ranking_service().close()
    await rate_limiter.close()
    close_client()
    logger.info("SC2 ladder API stopped")


app = FastAPI(title="SC2 Ladder Ranking API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        ip = request.client.host if request.client else "unknown"
        allowed, remaining = await rate_limiter.hit(ip)
        if not allowed:
            exc = RateLimitError(rate_limiter.retry_after())
            return JSONResponse(
                status_code=exc.status_code,
                content=create_error_response(exc.status_code, exc.message, exc.details),
                headers={"Retry-After": str(exc.details["retry_after"])},
            )
        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


class ResponseMetadataMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        metrics.http_total += 1
        try:
            response = await call_next(request)
        except Exception as exc:
            # unhandled errors bypass the app handlers and reach the middleware stack
            response = await generic_exception_handler(request, exc)
        if response.status_code >= 500:
            metrics.http_5xx_total += 1
        response.headers[ATTRIBUTION_HEADER] = ATTRIBUTION
        if "server" in response.headers:
            del response.headers["server"]
        return response


app.add_middleware(RateLimitMiddleware)
app.add_middleware(ResponseMetadataMiddleware)

app.add_exception_handler(LadderException, ladder_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/healthz")
def health_check():
    return {"status": "ok"}


from api.routes.admin import router as admin_router  # noqa: E402
from api.routes.players import router as players_router  # noqa: E402
from api.routes.ranking import router as ranking_router  # noqa: E402
from api.routes.season import router as season_router  # noqa: E402

app.include_router(ranking_router)
app.include_router(players_router)
app.include_router(season_router)
app.include_router(admin_router)
