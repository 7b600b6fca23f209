import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clubbracket.database import init_db
from clubbracket.routes import advancement, bracket
from clubbracket.services.errors import ProgressionError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Club Bracket API")

# ProgressionError.kind -> HTTP status
ERROR_STATUS = {
    "TypeMismatch": 400,
    "NoPools": 400,
    "NoRegistrations": 400,
    "IncompleteResults": 400,
    "InsufficientQualifiers": 400,
    "NoKnockoutRound": 400,
    "Forbidden": 403,
    "TournamentNotFound": 404,
    "Conflict": 409,
    "StorageFailure": 503,
}

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProgressionError)
async def progression_error_handler(request: Request, exc: ProgressionError):
    status_code = ERROR_STATUS.get(exc.kind, 500)
    headers = {"Retry-After": "2"} if exc.retryable else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


# Include routers
app.include_router(advancement.router, prefix="/api", tags=["advancement"])
app.include_router(bracket.router, prefix="/api", tags=["bracket"])


@app.on_event("startup")
def on_startup():
    init_db()  # Use centralized init_db() which imports models and creates tables
    logger.info("Club Bracket API started with %s routes", len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": "Club Bracket API", "status": "healthy"}
