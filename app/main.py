import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from app.api.v1.health import router as health_router
from app.api.v1.resumes import router as resumes_router
from app.api.v1.analysis_jobs import router as analysis_jobs_router
from app.api.v1.networking import router as networking_router
from app.api.v1.interviews import router as interviews_router
from app.api.v1.analytics import router as analytics_router
from app.core.errors import CareerCoachError, career_coach_error_handler
from app.core.rate_limit import limiter
from app.core.config import settings
from dotenv import load_dotenv
from app.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="Finance Career Coach API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_origin_regex=(settings.cors_allow_origin_regex or "").strip() or None,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(CareerCoachError, career_coach_error_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(resumes_router, prefix="/v1", tags=["Resumes"])
app.include_router(analysis_jobs_router, prefix="/v1", tags=["Analysis Jobs"])
app.include_router(networking_router, prefix="/v1", tags=["Networking"])
app.include_router(interviews_router, prefix="/v1", tags=["Interviews"])
app.include_router(analytics_router, prefix="/v1", tags=["Analytics"])
