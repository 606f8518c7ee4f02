"""
Shipping Rate Service
FastAPI application entry point

- Shared HTTP client created on startup and closed on shutdown
- Rate limiting with SlowAPI
- Error sanitization middleware and domain error handlers
- Request metrics collection (/metrics)
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from shipping_rates.api.routes import shipping
from shipping_rates.core.config import settings
from shipping_rates.core.error_handler import (
    ErrorSanitizationMiddleware,
    shipping_error_handler,
    validation_error_handler,
)
from shipping_rates.core.exceptions import ShippingRatesError
from shipping_rates.core.http_client import create_http_client
from shipping_rates.core.monitoring import RequestMetricsMiddleware, get_prometheus_metrics
from shipping_rates.core.rate_limit import limiter, rate_limit_exceeded_handler
from shipping_rates.services.postal_code_client import PostalCodeResolver
from shipping_rates.services.rate_provider_client import RateQuoteProvider
from shipping_rates.services.shipping_service import ShippingRateService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shipping service on startup, close HTTP connections on shutdown."""
    http_client = create_http_client()
    app.state.http_client = http_client
    app.state.shipping_service = ShippingRateService(
        resolver=PostalCodeResolver(http_client),
        provider=RateQuoteProvider(http_client),
    )
    logger.info(
        f"{settings.APP_NAME} started (provider={'enabled' if settings.RATE_PROVIDER_ENABLED else 'disabled'})"
    )

    yield

    await http_client.aclose()
    app.state.shipping_service = None
    logger.info("Shared HTTP client closed")


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
## Shipping Rate Service

Postal code lookup and delivery quotes for the storefront checkout.

- **Postal codes**: `GET /postal-code/{code}` resolves a CEP to an address
- **Rates**: `POST /shipping/rates` returns delivery options, cheapest first

When the rate provider is unavailable, quotes come from a deterministic
offline model, so a provider outage never fails a request.
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Health check and monitoring endpoints"},
        {"name": "Shipping", "description": "Postal code lookup and rate quoting"},
    ],
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Domain and validation errors
app.add_exception_handler(ShippingRatesError, shipping_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

app.add_middleware(RequestMetricsMiddleware)
app.add_middleware(ErrorSanitizationMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(shipping.router)


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "operational",
    }


@app.get("/health", tags=["Health"])
@app.get("/api/health", tags=["Health"], include_in_schema=False)
async def health_check():
    return {"status": "ok"}


@app.get("/metrics", tags=["Health"])
async def prometheus_metrics():
    return Response(content=get_prometheus_metrics(), media_type="text/plain")
