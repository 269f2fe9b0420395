import os
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # API Config
    API_TITLE: str = "Tienda WhatsApp API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "API para tienda en línea con checkout por WhatsApp y panel de administración"
    ENV: str = os.getenv("ENV", "production")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "postgresql://user:pass@db:5432/tienda")

    # Sesiones & JWT (proveedor local)
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-change-in-production-PLEASE")
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_MINUTES: int = int(os.getenv("SESSION_EXPIRE_MINUTES", "1440"))  # 24 horas
    SESSION_COOKIE_NAME: str = "session"
    ALLOW_ADMIN_REGISTRATION: bool = os.getenv("ALLOW_ADMIN_REGISTRATION", "false").lower() == "true"

    # Proveedor de identidad: "local" (JWT propio) o "supabase" (GoTrue administrado)
    AUTH_PROVIDER: str = os.getenv("AUTH_PROVIDER", "local")

    # Supabase (identidad y almacenamiento administrados)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_SERVICE_KEY: str = os.getenv("SUPABASE_SERVICE_KEY", "")
    SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET", "product-images")
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

    # Email / SMTP (notificación de nuevas órdenes)
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    FROM_EMAIL: str = os.getenv("FROM_EMAIL", os.getenv("SMTP_USER", "noreply@tienda.local"))
    FROM_NAME: str = os.getenv("FROM_NAME", "Tienda")

    # Upload Configuration
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local")
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "/app/uploads")
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "")
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB
    WEBP_QUALITY: int = 85

    # Tareas programadas
    SCHEDULER_ENABLED: bool = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
    SESSION_PRUNE_INTERVAL_HOURS: int = int(os.getenv("SESSION_PRUNE_INTERVAL_HOURS", "24"))

    # CORS
    CORS_ALLOW_ORIGINS: str = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:5173")

    class Config:
        env_file = ".env"

settings = Settings()
