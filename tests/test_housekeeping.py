"""
Tests de tareas programadas, configuración de la tienda y datos de ejemplo.
"""
from datetime import datetime, timedelta

from core.tasks import prune_sessions, scheduler, start_scheduler
from models import AdminSession, SiteSettings, Tag, Product
from scripts.seed_db import seed_data


class TestPruneSessions:

    def test_elimina_expiradas_y_revocadas(self, admin_user, test_db):
        now = datetime.utcnow()
        test_db.add_all([
            AdminSession(jti="expirada", admin_id=admin_user.id, expires_at=now - timedelta(hours=1)),
            AdminSession(jti="revocada", admin_id=admin_user.id, expires_at=now + timedelta(hours=1), revoked_at=now),
            AdminSession(jti="activa", admin_id=admin_user.id, expires_at=now + timedelta(hours=1)),
        ])
        test_db.commit()

        assert prune_sessions() == 2

        test_db.expire_all()
        assert [s.jti for s in test_db.query(AdminSession).all()] == ["activa"]

    def test_sin_sesiones(self):
        assert prune_sessions() == 0

    def test_scheduler_deshabilitado(self):
        start_scheduler()
        assert not scheduler.running


class TestSiteSettings:

    def test_se_crea_una_sola_vez(self, client, admin_client, test_db):
        first = client.get("/api/settings").json()["data"]
        assert first["site_name"] == "Mi Tienda"
        assert first["currency"] == "USD"

        response = admin_client.patch("/api/settings", json={"whatsapp_number": "+52 55 0000 0000"})
        assert response.status_code == 200

        second = client.get("/api/settings").json()["data"]
        assert second["id"] == first["id"]
        assert second["whatsapp_number"] == "+52 55 0000 0000"
        assert test_db.query(SiteSettings).count() == 1

    def test_null_no_borra_campos_obligatorios(self, admin_client):
        response = admin_client.patch("/api/settings", json={"site_name": None, "contact_number": None})
        data = response.json()["data"]
        assert data["site_name"] == "Mi Tienda"
        assert data["contact_number"] == ""

    def test_null_vacia_campos_opcionales(self, admin_client):
        admin_client.patch("/api/settings", json={
            "site_email": "ventas@tienda.com",
            "whatsapp_number": "+52 55 0000 0000"
        })

        response = admin_client.patch("/api/settings", json={"site_email": None, "whatsapp_number": None, "currency": None})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["site_email"] == ""
        assert data["whatsapp_number"] == ""
        assert data["currency"] == "USD"

    def test_email_invalido(self, admin_client):
        for value in ("sin-arroba", "a@", "@", "@@@ nope"):
            response = admin_client.patch("/api/settings", json={"site_email": value})
            assert response.status_code == 400
            assert response.json()["details"][0]["field"] == "site_email"

        assert admin_client.get("/api/settings").json()["data"]["site_email"] == ""

    def test_email_valido_y_cadena_vacia(self, admin_client):
        response = admin_client.patch("/api/settings", json={"site_email": "ventas@tienda.com"})
        assert response.status_code == 200
        assert response.json()["data"]["site_email"] == "ventas@tienda.com"

        response = admin_client.patch("/api/settings", json={"site_email": ""})
        assert response.status_code == 200
        assert response.json()["data"]["site_email"] == ""


class TestSeed:

    def test_datos_de_ejemplo(self, client, test_db):
        seed_data(test_db, "seed@tienda.com", "Admin123")

        tenis = test_db.query(Product).filter(Product.name == "Tenis blancos").first()
        assert [t.slug for t in tenis.tags] == ["nuevo"]
        assert test_db.query(Tag).count() == 3

        response = client.post("/api/login", json={"email": "seed@tienda.com", "password": "Admin123"})
        assert response.status_code == 200

        # Una segunda ejecución no duplica nada
        seed_data(test_db, "seed@tienda.com", "Admin123")
        assert test_db.query(Product).count() == 3
