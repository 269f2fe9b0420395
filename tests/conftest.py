"""
Configuración común de pruebas.

La app se importa con SQLite en memoria, proveedor de identidad local y
uploads en un directorio temporal; las tablas se recrean en cada test.
"""
import os
import sys
import tempfile

os.environ["ENV"] = "development"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="tienda-uploads-")
os.environ["PUBLIC_BASE_URL"] = ""
os.environ["STORAGE_BACKEND"] = "local"
os.environ["AUTH_PROVIDER"] = "local"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ALLOW_ADMIN_REGISTRATION"] = "true"
os.environ["SMTP_HOST"] = ""

# Agregar app al path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'app'))

import pytest
from fastapi.testclient import TestClient

from main import app
from core.database import Base, SessionLocal, engine
from core.security import hash_password
from models import AdminUser

ADMIN_EMAIL = "admin@test.com"
ADMIN_PASSWORD = "Admin123"


@pytest.fixture(autouse=True)
def setup_database():
    """Base de datos limpia para cada test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_db():
    """Fixture para base de datos de prueba"""
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def client():
    """Fixture para cliente HTTP"""
    return TestClient(app)


@pytest.fixture
def admin_user(test_db):
    """Administrador local de prueba"""
    admin = AdminUser(email=ADMIN_EMAIL, hashed_password=hash_password(ADMIN_PASSWORD))
    test_db.add(admin)
    test_db.commit()
    test_db.refresh(admin)
    return admin


@pytest.fixture
def admin_token(client, admin_user):
    """Login del admin y retornar token"""
    response = client.post(
        "/api/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return response.json()["data"]["access_token"]


@pytest.fixture
def admin_client(admin_token):
    """Cliente que envía la sesión del admin como Bearer token"""
    return TestClient(app, headers={"Authorization": f"Bearer {admin_token}"})


@pytest.fixture
def make_tag(admin_client):
    def _make(name, slug=None):
        response = admin_client.post("/api/tags", json={"name": name, "slug": slug or name.lower()})
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _make


@pytest.fixture
def make_category(admin_client):
    def _make(name, slug=None, tags=None):
        payload = {"name": name, "slug": slug or name.lower()}
        if tags is not None:
            payload["tags"] = tags
        response = admin_client.post("/api/categories", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _make


@pytest.fixture
def make_product(admin_client):
    def _make(name, price=10, stock_quantity=10, category_id=None, tags=None, **extra):
        payload = {
            "name": name,
            "price": price,
            "stock_quantity": stock_quantity,
            "category_id": category_id,
            **extra
        }
        if tags is not None:
            payload["tags"] = tags
        response = admin_client.post("/api/products", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _make
