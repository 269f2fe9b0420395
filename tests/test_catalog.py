"""
Tests del catálogo: productos, categorías, etiquetas y su herencia.
"""
import base64
import io
import os

from PIL import Image
from sqlalchemy.exc import OperationalError

import routes.products as routes_products
from core.config import settings
from models import CategoryTag, ProductTag, StockUpdate


def tag_names(product):
    return sorted(t["name"] for t in product["tags"])


def png_data_url(size=(40, 30), color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


# ==================== ETIQUETAS ====================

class TestTags:

    def test_crear_y_listar(self, client, make_tag):
        make_tag("Oferta")
        make_tag("Nuevo")

        response = client.get("/api/tags")
        assert [t["name"] for t in response.json()["data"]] == ["Nuevo", "Oferta"]

    def test_nombre_duplicado_409(self, admin_client, make_tag):
        make_tag("Nuevo", "nuevo")
        response = admin_client.post("/api/tags", json={"name": "Nuevo", "slug": "otro"})
        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_TAG_NAME"

    def test_slug_duplicado_409(self, admin_client, make_tag):
        make_tag("Nuevo", "nuevo")
        response = admin_client.post("/api/tags", json={"name": "Reciente", "slug": "nuevo"})
        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_TAG_SLUG"

    def test_actualizar_chocando_con_otra_409(self, admin_client, make_tag):
        make_tag("Nuevo", "nuevo")
        oferta = make_tag("Oferta", "oferta")

        response = admin_client.patch(f"/api/tags/{oferta['id']}", json={"slug": "nuevo"})
        assert response.status_code == 409

        # Conservar su propio nombre no es un conflicto
        response = admin_client.patch(f"/api/tags/{oferta['id']}", json={"name": "Oferta", "slug": "ofertas"})
        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "ofertas"

    def test_obtener_inexistente_404(self, client):
        response = client.get("/api/tags/999")
        assert response.status_code == 404
        assert response.json()["error"] == "TAG_NOT_FOUND"

    def test_eliminar_quita_vinculos(self, admin_client, make_tag, make_category, make_product, test_db):
        tag = make_tag("Nuevo")
        category = make_category("Calzado", tags=[tag["id"]])
        product = make_product("Tenis", category_id=category["id"])
        assert tag_names(product) == ["Nuevo"]

        response = admin_client.delete(f"/api/tags/{tag['id']}")
        assert response.status_code == 204
        assert response.content == b""

        assert admin_client.get(f"/api/products/{product['id']}").json()["data"]["tags"] == []
        assert test_db.query(CategoryTag).count() == 0
        assert test_db.query(ProductTag).count() == 0

    def test_actualizar_con_null_conserva_valores(self, admin_client, make_tag):
        tag = make_tag("Nuevo", "nuevo")

        response = admin_client.patch(f"/api/tags/{tag['id']}", json={"name": None, "slug": None})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Nuevo"
        assert data["slug"] == "nuevo"


# ==================== CATEGORÍAS ====================

class TestCategories:

    def test_slug_duplicado_409(self, admin_client, make_category):
        make_category("Calzado", "calzado")
        response = admin_client.post("/api/categories", json={"name": "Zapatos", "slug": "calzado"})
        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_SLUG"

    def test_etiqueta_inexistente_404(self, admin_client):
        response = admin_client.post("/api/categories", json={"name": "Calzado", "slug": "calzado", "tags": [42]})
        assert response.status_code == 404
        assert response.json()["error"] == "TAG_NOT_FOUND"
        assert admin_client.get("/api/categories").json()["data"] == []

    def test_eliminar_con_productos_falla(self, admin_client, make_category, make_product):
        category = make_category("Calzado")
        make_product("Tenis", category_id=category["id"])

        response = admin_client.delete(f"/api/categories/{category['id']}")
        assert response.status_code == 400
        assert response.json()["error"] == "CATEGORY_HAS_PRODUCTS"
        assert admin_client.get(f"/api/categories/{category['id']}").status_code == 200

    def test_eliminar_vacia_quita_etiquetas(self, admin_client, make_tag, make_category, test_db):
        tag = make_tag("Nuevo")
        category = make_category("Calzado", tags=[tag["id"]])
        assert test_db.query(CategoryTag).count() == 1

        response = admin_client.delete(f"/api/categories/{category['id']}")
        assert response.status_code == 204
        assert test_db.query(CategoryTag).count() == 0
        assert admin_client.get(f"/api/categories/{category['id']}").status_code == 404

    def test_agregar_etiqueta_propaga_a_productos(self, admin_client, make_tag, make_category, make_product):
        tag = make_tag("Nuevo")
        category = make_category("Calzado")
        first = make_product("Tenis", category_id=category["id"])
        second = make_product("Botas", category_id=category["id"])

        response = admin_client.post(f"/api/categories/{category['id']}/tags", json={"tag_id": tag["id"]})
        assert response.status_code == 200
        assert [t["name"] for t in response.json()["data"]["tags"]] == ["Nuevo"]

        for product in (first, second):
            data = admin_client.get(f"/api/products/{product['id']}").json()["data"]
            assert tag_names(data) == ["Nuevo"]

        # Volver a agregarla no duplica vínculos
        response = admin_client.post(f"/api/categories/{category['id']}/tags", json={"tag_id": tag["id"]})
        assert response.status_code == 200
        assert len(response.json()["data"]["tags"]) == 1

    def test_quitar_etiqueta_no_la_retira_de_productos(self, admin_client, make_tag, make_category, make_product):
        a = make_tag("A")
        b = make_tag("B")
        category = make_category("Calzado", tags=[a["id"], b["id"]])
        product = make_product("Tenis", category_id=category["id"])
        assert tag_names(product) == ["A", "B"]

        response = admin_client.delete(f"/api/categories/{category['id']}/tags/{a['id']}")
        assert response.status_code == 200
        assert [t["name"] for t in response.json()["data"]["tags"]] == ["B"]

        data = admin_client.get(f"/api/products/{product['id']}").json()["data"]
        assert tag_names(data) == ["A", "B"]

    def test_quitar_etiqueta_no_vinculada_404(self, admin_client, make_tag, make_category):
        tag = make_tag("A")
        category = make_category("Calzado")
        response = admin_client.delete(f"/api/categories/{category['id']}/tags/{tag['id']}")
        assert response.status_code == 404

    def test_actualizar_reemplaza_etiquetas(self, admin_client, make_tag, make_category, make_product):
        a = make_tag("A")
        b = make_tag("B")
        category = make_category("Calzado", tags=[a["id"]])
        product = make_product("Tenis", category_id=category["id"])

        response = admin_client.patch(f"/api/categories/{category['id']}", json={"tags": [b["id"]]})
        assert response.status_code == 200
        assert [t["name"] for t in response.json()["data"]["tags"]] == ["B"]

        # B se propaga, A se conserva en el producto
        data = admin_client.get(f"/api/products/{product['id']}").json()["data"]
        assert tag_names(data) == ["A", "B"]

    def test_actualizar_con_null_conserva_valores(self, admin_client, make_category):
        category = make_category("Calzado", "calzado")

        response = admin_client.patch(f"/api/categories/{category['id']}", json={"name": None, "slug": None})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Calzado"
        assert data["slug"] == "calzado"


# ==================== PRODUCTOS ====================

class TestProducts:

    def test_escenario_calzado(self, admin_client, make_tag, make_category, make_product):
        new = make_tag("New", "new")
        shoes = make_category("Shoes", "shoes", tags=[new["id"]])
        sneaker = make_product("Sneaker", price=50, stock_quantity=10, category_id=shoes["id"])

        assert sneaker["price"] == 50.0
        assert sneaker["category"]["name"] == "Shoes"
        assert tag_names(sneaker) == ["New"]

    def test_etiquetas_explicitas_mas_heredadas(self, make_tag, make_category, make_product):
        a = make_tag("A")
        b = make_tag("B")
        x = make_tag("X")
        category = make_category("Calzado", tags=[a["id"], b["id"]])

        product = make_product("Tenis", category_id=category["id"], tags=[x["id"]])
        assert tag_names(product) == ["A", "B", "X"]

    def test_reemplazar_etiquetas_vuelve_a_heredar(self, admin_client, make_tag, make_category, make_product):
        a = make_tag("A")
        x = make_tag("X")
        y = make_tag("Y")
        category = make_category("Calzado", tags=[a["id"]])
        product = make_product("Tenis", category_id=category["id"], tags=[x["id"]])

        response = admin_client.patch(f"/api/products/{product['id']}", json={"tags": [y["id"]]})
        assert response.status_code == 200
        assert tag_names(response.json()["data"]) == ["A", "Y"]

    def test_cambiar_categoria_hereda_sus_etiquetas(self, admin_client, make_tag, make_category, make_product):
        a = make_tag("A")
        b = make_tag("B")
        first = make_category("Calzado", tags=[a["id"]])
        second = make_category("Bolsas", tags=[b["id"]])
        product = make_product("Tenis", category_id=first["id"])

        response = admin_client.patch(f"/api/products/{product['id']}", json={"category_id": second["id"]})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["category_id"] == second["id"]
        assert tag_names(data) == ["A", "B"]

    def test_categoria_inexistente_404(self, admin_client):
        response = admin_client.post("/api/products", json={
            "name": "Tenis", "price": 10, "stock_quantity": 1, "category_id": 999
        })
        assert response.status_code == 404
        assert response.json()["error"] == "CATEGORY_NOT_FOUND"
        assert admin_client.get("/api/products").json()["data"] == []

    def test_etiqueta_inexistente_404(self, admin_client):
        response = admin_client.post("/api/products", json={
            "name": "Tenis", "price": 10, "stock_quantity": 1, "tags": [7]
        })
        assert response.status_code == 404
        assert response.json()["details"] == {"tag_ids": [7]}

    def test_validacion_de_campos(self, admin_client):
        response = admin_client.post("/api/products", json={"name": "", "price": -1, "stock_quantity": -5})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert {d["field"] for d in body["details"]} == {"name", "price", "stock_quantity"}

    def test_filtros_de_listado(self, client, make_category, make_product):
        shoes = make_category("Calzado")
        make_product("Tenis blancos", category_id=shoes["id"])
        make_product("Bolsa de piel", description="Piel genuina")

        by_category = client.get("/api/products", params={"category_id": shoes["id"]}).json()["data"]
        assert [p["name"] for p in by_category] == ["Tenis blancos"]

        by_search = client.get("/api/products", params={"search": "genuina"}).json()["data"]
        assert [p["name"] for p in by_search] == ["Bolsa de piel"]

    def test_ajuste_de_stock_queda_registrado(self, admin_client, make_product):
        product = make_product("Tenis", stock_quantity=10)

        response = admin_client.patch(f"/api/products/{product['id']}", json={"stock_quantity": 4})
        assert response.json()["data"]["stock_quantity"] == 4

        updates = admin_client.get(f"/api/products/{product['id']}/stock-updates").json()["data"]
        assert len(updates) == 1
        assert updates[0]["change_amount"] == -6
        assert updates[0]["reason"] == "adjustment"

    def test_null_en_campos_obligatorios_400(self, admin_client, make_product, test_db):
        product = make_product("Tenis", price=25, stock_quantity=10)

        for field in ("stock_quantity", "name", "price"):
            response = admin_client.patch(f"/api/products/{product['id']}", json={field: None})
            assert response.status_code == 400
            assert response.json()["error"] == "VALIDATION_ERROR"
            assert response.json()["details"][0]["field"] == field

        data = admin_client.get(f"/api/products/{product['id']}").json()["data"]
        assert data["name"] == "Tenis"
        assert data["price"] == 25
        assert data["stock_quantity"] == 10
        assert test_db.query(StockUpdate).count() == 0

    def test_null_en_campos_opcionales_los_vacia(self, admin_client, make_product):
        product = make_product("Tenis", description="Lona")

        response = admin_client.patch(f"/api/products/{product['id']}", json={"description": None})
        assert response.status_code == 200
        assert response.json()["data"]["description"] is None

    def test_error_de_base_de_datos_borra_imagen_nueva(self, admin_client, make_product, monkeypatch):
        product = make_product("Tenis")
        products_dir = os.path.join(settings.UPLOAD_DIR, "products")
        before = set(os.listdir(products_dir)) if os.path.isdir(products_dir) else set()

        def failing_replace(*args, **kwargs):
            raise OperationalError("UPDATE products", {}, Exception("database is locked"))

        monkeypatch.setattr(routes_products, "replace_product_tags", failing_replace)
        response = admin_client.patch(
            f"/api/products/{product['id']}",
            json={"image_url": png_data_url(), "tags": []}
        )
        assert response.status_code == 500
        assert response.json()["error"] == "DATABASE_ERROR"
        assert set(os.listdir(products_dir)) == before
        assert admin_client.get(f"/api/products/{product['id']}").json()["data"]["image_url"] is None

    def test_error_de_base_de_datos_al_crear(self, admin_client, monkeypatch):
        products_dir = os.path.join(settings.UPLOAD_DIR, "products")
        before = set(os.listdir(products_dir)) if os.path.isdir(products_dir) else set()

        def failing_replace(*args, **kwargs):
            raise OperationalError("INSERT INTO product_tags", {}, Exception("database is locked"))

        monkeypatch.setattr(routes_products, "replace_product_tags", failing_replace)
        response = admin_client.post("/api/products", json={
            "name": "Tenis", "price": 10, "stock_quantity": 1, "image_url": png_data_url()
        })
        assert response.status_code == 500
        assert response.json()["error"] == "DATABASE_ERROR"
        assert set(os.listdir(products_dir)) == before
        assert admin_client.get("/api/products").json()["data"] == []

    def test_eliminar_producto(self, admin_client, make_tag, make_product, test_db):
        tag = make_tag("A")
        product = make_product("Tenis", tags=[tag["id"]])

        response = admin_client.delete(f"/api/products/{product['id']}")
        assert response.status_code == 204
        assert admin_client.get(f"/api/products/{product['id']}").status_code == 404
        assert test_db.query(ProductTag).count() == 0

    def test_eliminar_producto_borra_su_historial_de_stock(self, admin_client, make_product, test_db):
        product = make_product("Tenis", stock_quantity=10)
        other = make_product("Botas", stock_quantity=10)
        admin_client.patch(f"/api/products/{product['id']}", json={"stock_quantity": 7})
        admin_client.patch(f"/api/products/{other['id']}", json={"stock_quantity": 8})
        assert test_db.query(StockUpdate).count() == 2

        assert admin_client.delete(f"/api/products/{product['id']}").status_code == 204

        remaining = test_db.query(StockUpdate).all()
        assert [u.product_id for u in remaining] == [other["id"]]

    def test_imagen_embebida_se_guarda_como_webp(self, client, admin_client, make_product):
        product = make_product("Tenis", image_url=png_data_url())

        image_url = product["image_url"]
        assert image_url.startswith("/static/products/")
        assert image_url.endswith(".webp")

        filename = image_url.rsplit("/", 1)[-1]
        assert os.path.exists(os.path.join(settings.UPLOAD_DIR, "products", filename))

        response = client.get(image_url)
        assert response.status_code == 200
        assert Image.open(io.BytesIO(response.content)).format == "WEBP"

    def test_reemplazar_imagen_borra_la_anterior(self, admin_client, make_product):
        product = make_product("Tenis", image_url=png_data_url())
        old_path = os.path.join(settings.UPLOAD_DIR, "products", product["image_url"].rsplit("/", 1)[-1])

        response = admin_client.patch(
            f"/api/products/{product['id']}",
            json={"image_url": png_data_url(color=(0, 0, 255))}
        )
        assert response.status_code == 200
        assert response.json()["data"]["image_url"] != product["image_url"]
        assert not os.path.exists(old_path)

    def test_url_de_imagen_externa_se_conserva(self, make_product):
        product = make_product("Tenis", image_url="https://cdn.example.com/tenis.jpg")
        assert product["image_url"] == "https://cdn.example.com/tenis.jpg"

    def test_imagen_embebida_invalida(self, admin_client):
        response = admin_client.post("/api/products", json={
            "name": "Tenis", "price": 10, "stock_quantity": 1,
            "image_url": "data:image/png;base64,esto-no-es-base64!!"
        })
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_IMAGE_DATA"

    def test_archivo_que_no_es_imagen(self, admin_client):
        response = admin_client.post("/api/products", json={
            "name": "Tenis", "price": 10, "stock_quantity": 1,
            "image_url": "data:text/plain;base64," + base64.b64encode(b"hola").decode()
        })
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_CONTENT_TYPE"
