import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.utils.exceptions import DomainError

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _seed_admin_user() -> None:
    """Create the configured admin account when it does not exist yet."""
    from app.database import SessionLocal
    from app.models.usuario import Usuario
    from app.utils.security import hash_password

    db = SessionLocal()
    try:
        admin = db.query(Usuario).filter(Usuario.username == settings.ADMIN_USERNAME).first()
        if admin is None:
            db.add(
                Usuario(
                    username=settings.ADMIN_USERNAME,
                    email=f"{settings.ADMIN_USERNAME}@edificio.local",
                    password_hash=hash_password(settings.ADMIN_PASSWORD),
                    nombre_completo="Administrador",
                    rol="ADMIN",
                    activo=True,
                )
            )
            db.commit()
            logger.info("Admin user '%s' created", settings.ADMIN_USERNAME)
        else:
            logger.info("Admin user '%s' already present", settings.ADMIN_USERNAME)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Could not seed admin user: %s", exc)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _seed_admin_user()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "data": None, "error": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errores = [
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "; ".join(errores) or "Datos de entrada inválidos",
            "data": None,
            "error": "VALIDATION_ERROR",
        },
    )


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from app.routers import auth  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])

# Contract lifecycle
from app.routers import contratos  # noqa: E402

app.include_router(
    contratos.router,
    prefix="/api/contratos",
    tags=["Contratos"],
)

# Contract history ledger
from app.routers import historial_contrato  # noqa: E402

app.include_router(
    historial_contrato.router,
    prefix="/api/historial-contrato",
    tags=["Historial de Contratos"],
)

# Lookups consumed by the contract screens
from app.routers import tipos_contrato, trabajadores  # noqa: E402

app.include_router(
    trabajadores.router,
    prefix="/api/trabajadores",
    tags=["Trabajadores"],
)
app.include_router(
    tipos_contrato.router,
    prefix="/api/tipos-contrato",
    tags=["Tipos de Contrato"],
)
