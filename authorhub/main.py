import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from authorhub.config.settings import settings
from authorhub.core.rate_limit import limiter
from authorhub.database.supabase_client import SupabaseClient
from authorhub.modules.users import routes as users_routes
from authorhub.modules.auth import routes as auth_routes
from authorhub.modules.content import routes as content_routes
from authorhub.modules.site import routes as site_routes
from authorhub.modules.subscriptions import routes as subscriptions_routes
from authorhub.modules.cookies import routes as cookies_routes
from authorhub.modules.security import routes as security_routes
from authorhub.modules.deployments import routes as deployments_routes
from authorhub.modules.instances import routes as instances_routes
from authorhub.modules.health import routes as health_routes
from authorhub.modules.health.monitor import build_health_monitor

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.state.health_monitor = None
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def _validation_message(error: dict) -> str:
    message = str(error.get("msg", "Invalid request"))
    return message.removeprefix("Value error, ")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = _validation_message(errors[0]) if errors else "Invalid request"
    return JSONResponse(
        status_code=422,
        content={
            "detail": detail,
            "errors": [
                {"loc": list(e.get("loc", [])), "msg": _validation_message(e)}
                for e in errors
            ],
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(users_routes.router, prefix="/api/v1")
app.include_router(subscriptions_routes.router, prefix="/api/v1")
app.include_router(content_routes.books_router, prefix="/api/v1")
app.include_router(content_routes.blog_router, prefix="/api/v1")
app.include_router(content_routes.events_router, prefix="/api/v1")
app.include_router(site_routes.router, prefix="/api/v1")
app.include_router(cookies_routes.router, prefix="/api/v1")
app.include_router(security_routes.router, prefix="/api/v1")
app.include_router(deployments_routes.router, prefix="/api/v1")
app.include_router(instances_routes.router, prefix="/api/v1")
app.include_router(health_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.health_monitor_enabled:
        monitor = build_health_monitor(SupabaseClient.get_service_client())
        monitor.start()
        app.state.health_monitor = monitor


@app.on_event("shutdown")
async def shutdown_event():
    monitor = app.state.health_monitor
    if monitor is not None:
        await monitor.stop()
        app.state.health_monitor = None
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: reports whether the deployment monitor is polling"""
    return {"status": "ready", "health_monitor": app.state.health_monitor is not None}
