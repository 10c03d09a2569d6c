from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
import logging
from dotenv import load_dotenv

# ----------------------------------------------------
# 🔐 LOAD .ENV
# ----------------------------------------------------
load_dotenv(override=True)

from app.config import settings
from app.db import engine
from app.errors import ChannelPartnerError
from models import Base

# Routers
from routers import referrals
from routers import admin_channel_partners, admin_channel_referrals
from routers import admin_channel_commissions, admin_channel_dashboard

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ----------------------------------------------------
# 🚀 FASTAPI APP
# ----------------------------------------------------
app = FastAPI(
    title="Channel Partners - Referral & Commission Ledger",
    version="1.0.0",
)

# ----------------------------------------------------
# 🌐 CORS CONFIG
# ----------------------------------------------------
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------------------------------
# ⚠️ ERRORI DI DOMINIO → HTTP
# ----------------------------------------------------
@app.exception_handler(ChannelPartnerError)
async def channel_partner_error_handler(request: Request, exc: ChannelPartnerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError):
    logger.error("Database non raggiungibile su %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Database non disponibile, riprovare."})


# ----------------------------------------------------
# 🗄️ DB INIT (SOLO DEV)
# ----------------------------------------------------
if settings.db_auto_create:
    Base.metadata.create_all(bind=engine)

# ----------------------------------------------------
# 🔌 ROUTERS
# ----------------------------------------------------
app.include_router(referrals.router)

app.include_router(admin_channel_partners.router)
app.include_router(admin_channel_referrals.router)
app.include_router(admin_channel_commissions.router)
app.include_router(admin_channel_dashboard.router)


@app.get("/health")
def health():
    return {"ok": True}
