from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
from pathlib import Path
from contextlib import asynccontextmanager
from core.config import settings
from core.exceptions import AppError

# Rutas de endpoints importadas
from routes.auth import router as auth_router
from routes.products import router as products_router
from routes.categories import router as categories_router
from routes.tags import router as tags_router
from routes.orders import router as orders_router
from routes.settings import router as settings_router

# Tareas automáticas
from core.tasks import start_scheduler, stop_scheduler

# Inicializar el proveedor de identidad
from core.identity_service import identity_service

logging.basicConfig(
    level=logging.DEBUG if settings.ENV == "development" else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def initialize_identity_service():
    """
    Inicializa el servicio de identidad según el proveedor configurado.
    """
    provider = settings.AUTH_PROVIDER.lower()

    if provider == "local":
        identity_service.initialize(provider_name="local")
    elif provider == "supabase":
        identity_service.initialize(
            provider_name="supabase",
            url=settings.SUPABASE_URL,
            anon_key=settings.SUPABASE_ANON_KEY,
            timeout=settings.HTTP_TIMEOUT_SECONDS
        )
    else:
        raise ValueError(f"Unsupported identity provider: {provider}")

# Inicializar al arrancar la app
initialize_identity_service()

docs_url = "/docs" if settings.ENV == "development" else None
redoc_url = "/redoc" if settings.ENV == "development" else None
openapi_url = "/openapi.json" if settings.ENV == "development" else None

# ==================== LIFESPAN EVENTS ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestiona el startup y shutdown de la aplicación.
    """
    # Startup
    start_scheduler()
    yield
    # Shutdown
    stop_scheduler()

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    docs_url=docs_url,
    redoc_url=redoc_url,
    openapi_url=openapi_url,
    redirect_slashes=False,  # Evita redirects 307
    lifespan=lifespan
)

# CORS config - allow_credentials=True necesario para la cookie de sesión
cors_origins = settings.CORS_ALLOW_ORIGINS
if cors_origins.strip() == "*":
    # Con credenciales el navegador no acepta "*"
    allow_origins = ["http://localhost:5173"]
else:
    allow_origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== EXCEPTION HANDLERS ====================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    Convierte los errores de dominio al formato estándar.
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.error} {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Maneja errores de validación de Pydantic y los convierte al formato estándar.
    """
    errors = exc.errors()

    # Construir mensaje descriptivo
    error_messages = []
    validation_errors = []

    for error in errors:
        field = " -> ".join(str(loc) for loc in error["loc"][1:])  # Omitir 'body'
        msg = error["msg"]
        error_type = error["type"]

        # Mensajes personalizados según el tipo de error
        if error_type == "string_too_short":
            min_length = error.get("ctx", {}).get("min_length", "")
            error_messages.append(f"El campo '{field}' debe tener al menos {min_length} caracteres")
        elif error_type == "string_too_long":
            max_length = error.get("ctx", {}).get("max_length", "")
            error_messages.append(f"El campo '{field}' debe tener máximo {max_length} caracteres")
        elif error_type == "too_short":
            min_length = error.get("ctx", {}).get("min_length", "")
            error_messages.append(f"El campo '{field}' debe tener al menos {min_length} elemento(s)")
        elif error_type == "missing":
            error_messages.append(f"El campo '{field}' es requerido")
        elif error_type == "value_error":
            error_messages.append(f"El campo '{field}' tiene un valor inválido")
        elif error_type.startswith("greater_than"):
            limit = error.get("ctx", {}).get("ge", error.get("ctx", {}).get("gt", ""))
            error_messages.append(f"El campo '{field}' debe ser mayor o igual que {limit}")
        elif error_type.startswith("less_than"):
            limit = error.get("ctx", {}).get("le", error.get("ctx", {}).get("lt", ""))
            error_messages.append(f"El campo '{field}' debe ser menor o igual que {limit}")
        elif "email" in error_type.lower():
            error_messages.append(f"El campo '{field}' debe ser un email válido")
        else:
            error_messages.append(f"El campo '{field}': {msg}")

        # Agregar error detallado para debugging
        validation_errors.append({
            "field": field,
            "message": error_messages[-1],
            "type": error_type
        })

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "status_code": 400,
            "message": "Error de validación: " + "; ".join(error_messages),
            "error": "VALIDATION_ERROR",
            "details": validation_errors
        }
    )

# Registrar routers
app.include_router(auth_router)
app.include_router(products_router)
app.include_router(categories_router)
app.include_router(tags_router)
app.include_router(orders_router)
app.include_router(settings_router)

# Directorio de imágenes subidas (backend de almacenamiento local)
# Debe ir después de los routers para no capturar las rutas de API
uploads_path = Path(settings.UPLOAD_DIR)
uploads_path.mkdir(parents=True, exist_ok=True)
app.mount("/static", StaticFiles(directory=str(uploads_path)), name="static")

@app.get("/")
async def root():
    return {
        "message": "Welcome to the Tienda WhatsApp API",
        "version": settings.API_VERSION,
        "auth_provider": settings.AUTH_PROVIDER,
        "docs": "/docs"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
