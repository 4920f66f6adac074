from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from orderdesk.core.config import settings
from orderdesk.core.container import build_container
from orderdesk.core.errors import OrderDeskError
from orderdesk.core.observability import (
    domain_exception_handler,
    http_exception_handler,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from orderdesk.routers import cart, contact, custom_orders, donations, estimates, orders, payments, paypal

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description=(
        "Order desk backend.\n\n"
        "Checkout flow:\n"
        "1. `POST /stripe/create-checkout-session` returns a hosted checkout URL.\n"
        "2. The provider calls `POST /stripe/webhook` once payment completes; the order is recorded "
        "and confirmation emails go out.\n"
        "3. Donations return through `GET /stripe/donation-success`, which records the donation and "
        "redirects to the site."
    ),
    swagger_ui_parameters={
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "orders", "description": "Paid orders, lookup and customer ratings."},
        {"name": "custom-orders", "description": "Custom project requests."},
        {"name": "contact", "description": "Contact form submissions."},
        {"name": "cart", "description": "Shopping cart items."},
        {"name": "donations", "description": "Donation leaderboard."},
        {"name": "payments", "description": "Hosted checkout, provider webhooks and manual payments."},
        {"name": "paypal", "description": "PayPal order creation and capture."},
        {"name": "estimates", "description": "Price estimates for custom requests."},
    ],
)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(OrderDeskError, domain_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:3000"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Local tooling serves the frontend on dynamic localhost ports.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.container = build_container(settings)

app.include_router(orders.router)
app.include_router(custom_orders.router)
app.include_router(contact.router)
app.include_router(cart.router)
app.include_router(donations.router)
app.include_router(payments.router)
app.include_router(payments.manual_router)
app.include_router(paypal.router)
app.include_router(estimates.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    engine = app.state.container.engine
    if engine is None:
        return {"ok": True}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        return {"ok": False}
    return {"ok": True}
