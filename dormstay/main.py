import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .db import SessionLocal, init_db
from .errors import DormStayError, OccupancyCreateFailed
from .limiter import limiter
from .models import User, UserRole
from .routers import api_auth, api_rooms, api_tenants
from .security import hash_password

# --- Logging configuration ---
_level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# Align uvicorn loggers with our level (useful under Docker Compose)
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(_level)
logger = logging.getLogger("dormstay.startup")
logger.info("Starting %s (DEBUG=%s)", settings.APP_NAME, getattr(settings, "DEBUG", False))

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        f"{settings.APP_NAME}: room occupancy for dormitories.\n\n"
        "Admit tenants into rooms within capacity, move rooms between "
        "vacant, occupied and maintenance, and list rooms with live occupancy."
    ),
)

@app.on_event("startup")
def startup_event():
    """Runs startup tasks: create tables and ensure a default admin exists."""
    logger.info("Running startup tasks...")
    init_db()

    def _ensure_default_admin():
        db = SessionLocal()
        try:
            if db.query(User).filter(User.role == UserRole.ADMIN.value).first():
                return
            email = settings.ADMIN_EMAIL.strip().lower()
            user = db.query(User).filter(User.email == email).first()
            if user:
                user.role = UserRole.ADMIN.value
            else:
                user = User(email=email, hashed_password=hash_password(settings.ADMIN_PASSWORD), role=UserRole.ADMIN.value)
                db.add(user)
            db.commit()
            logger.info("Default admin user ensured.")
        finally:
            db.close()

    _ensure_default_admin()
    logger.info("Startup tasks complete.")


@app.exception_handler(DormStayError)
async def domain_error_handler(request: Request, exc: DormStayError):
    content = {"detail": str(exc), "code": exc.code}
    if isinstance(exc, OccupancyCreateFailed):
        # Partial admission: the tenant row exists, tell the caller which one
        content["tenant_id"] = exc.tenant.id if exc.tenant is not None else exc.context.get("tenant_id")
    elif exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=content)


# Add the limiter to the app state
app.state.limiter = limiter
# Add the exception handler for rate limit exceeded errors
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(api_auth.router)
app.include_router(api_rooms.router)
app.include_router(api_tenants.router)

@app.get("/healthz")
@limiter.exempt
def healthz():
    return {"status": "ok"}
