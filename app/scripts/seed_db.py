"""
Script para poblar la base de datos con datos de ejemplo.

Crea un administrador local, etiquetas, categorías con etiquetas heredables
y algunos productos. Uso:

    ADMIN_EMAIL=admin@tienda.com ADMIN_PASSWORD=Admin123 python scripts/seed_db.py
"""
import os

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.database import SessionLocal
from core.security import hash_password
from core.site_settings import get_or_create_settings
from core.tag_service import add_category_tag, replace_product_tags
from models import AdminUser, Category, Product, Tag


def seed_data(db: Session, admin_email: str, admin_password: str) -> None:
    """Poblar catálogo y administrador. No hace nada si ya hay categorías."""
    if db.query(Category).first():
        print("ℹ️  La base de datos ya tiene datos, no se siembra nada")
        return

    print("🌱 Poblando base de datos...")

    tags = {
        slug: Tag(name=name, slug=slug)
        for name, slug in [("Nuevo", "nuevo"), ("Oferta", "oferta"), ("Hecho a mano", "hecho-a-mano")]
    }
    db.add_all(tags.values())

    shoes = Category(name="Calzado", slug="calzado")
    bags = Category(name="Bolsas", slug="bolsas")
    db.add_all([shoes, bags])
    db.flush()

    add_category_tag(db, shoes, tags["nuevo"].id)
    add_category_tag(db, bags, tags["hecho-a-mano"].id)
    print("✅ Etiquetas y categorías creadas")

    products = [
        (Product(name="Tenis blancos", description="Tenis de lona", price=50, stock_quantity=10, category_id=shoes.id), []),
        (Product(name="Botas de piel", price=120, stock_quantity=4, category_id=shoes.id), [tags["oferta"].id]),
        (Product(name="Bolsa tejida", price=35.5, stock_quantity=8, category_id=bags.id), []),
    ]
    for product, explicit_tags in products:
        db.add(product)
        db.flush()
        replace_product_tags(db, product, explicit_tags)
    print("✅ Productos creados")

    db.add(AdminUser(email=admin_email.lower(), hashed_password=hash_password(admin_password)))
    db.commit()
    print(f"✅ Usuario admin creado ({admin_email})")

    get_or_create_settings(db)
    print("\n🎉 Base de datos poblada exitosamente!")


if __name__ == "__main__":
    db = SessionLocal()
    try:
        seed_data(
            db,
            os.getenv("ADMIN_EMAIL", "admin@tienda.com"),
            os.getenv("ADMIN_PASSWORD", "Admin123")
        )
    except SQLAlchemyError as e:
        print(f"❌ Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()
