# apps/backend/main.py
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.backend import flags
from apps.backend.middleware.errors import install_error_handlers
from apps.backend.services.admin.logger import request_logging_middleware
from apps.backend.services.icons.icons_repository import icon_index
from apps.backend.utils.envelope import ok
from apps.backend.utils.keepalive import start_keepalive_tasks
from apps.backend.utils.settings import settings

from apps.backend.routes.admin import router as admin_router
from apps.backend.routes.analytics import router as analytics_router
from apps.backend.routes.benefit_cards import router as benefit_cards_router
from apps.backend.routes.bundles import router as bundles_router
from apps.backend.routes.dev import router as dev_router
from apps.backend.routes.health import router as health_router
from apps.backend.routes.icons import router as icons_router
from apps.backend.routes.loyalty import router as loyalty_router
from apps.backend.routes.merchant_users import router as merchant_users_router
from apps.backend.routes.merchants import router as merchants_router
from apps.backend.routes.punches import router as punches_router
from apps.backend.routes.styles import router as styles_router
from apps.backend.routes.users import router as users_router
from apps.backend.routes.ws import router as ws_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("epunch.main")

app = FastAPI(
    title="E-Punch Platform",
    version=settings.EPUNCH_VERSION,
    description="Digital punch cards, bundles and benefits for merchants and their customers",
)

# -------------------------------------------------------------------
# Error handling ({data, error} envelopes, no stack leaks)
# -------------------------------------------------------------------
install_error_handlers(app)

# -------------------------------------------------------------------
# CORS (admin, merchant and customer front-ends)
# -------------------------------------------------------------------
if settings.CORS_MODE == "allowlist":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.middleware("http")(request_logging_middleware)

# -------------------------------------------------------------------
# Routers
# -------------------------------------------------------------------
app.include_router(health_router)
app.include_router(admin_router, prefix="/admin")

app.include_router(merchant_users_router)
app.include_router(loyalty_router)
app.include_router(merchants_router)

app.include_router(punches_router)
app.include_router(users_router)
app.include_router(bundles_router)
app.include_router(benefit_cards_router)
app.include_router(styles_router)
app.include_router(analytics_router)
app.include_router(icons_router)
app.include_router(dev_router)
app.include_router(ws_router)

ROUTES = [
    "/health",
    "/admin/auth",
    "/merchants",
    "/loyalty-programs",
    "/punches",
    "/punch-cards",
    "/users",
    "/bundle-programs",
    "/bundles",
    "/benefit-cards",
    "/punch-card-styles",
    "/analytics",
    "/icons/search",
    "/ws",
]


# -------------------------------------------------------------------
# Root
# -------------------------------------------------------------------
@app.get("/")
async def root():
    return ok({
        "status": "E-Punch Online",
        "mode": settings.ENVIRONMENT,
        "version": settings.EPUNCH_VERSION,
        "routes": ROUTES,
    })


# -------------------------------------------------------------------
# Startup / shutdown
# -------------------------------------------------------------------
scheduler: Optional[AsyncIOScheduler] = None


@app.on_event("startup")
async def startup_event():
    global scheduler

    icon_index.build(settings.ICONS_DIR or None)

    if flags.enabled("KEEPALIVE_ENABLED"):
        scheduler = AsyncIOScheduler()
        start_keepalive_tasks(scheduler, settings.KEEPALIVE_INTERVAL_SECONDS)
        scheduler.start()
    log.info("E-Punch %s starting (%s)", settings.EPUNCH_VERSION, settings.ENVIRONMENT)


@app.on_event("shutdown")
async def shutdown_event():
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        log.info("Keepalive scheduler stopped")
