"""
Endpoints de categorías y sus etiquetas heredables.
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from core.database import get_db, commit_or_rollback
from core.dependencies import get_current_identity
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.serializers import format_category
from core.tag_service import add_category_tag, get_tags_or_404, remove_category_tag, set_category_tags
from models.products import Category, CategoryTag, Product
from schemas.auth import Identity
from schemas.products import CategoryCreate, CategoryUpdate, CategoryTagAdd

router = APIRouter(
    prefix="/api/categories",
    tags=["categories"]
)


def get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError("Categoría no encontrada", error="CATEGORY_NOT_FOUND")
    return category


def ensure_unique_slug(db: Session, slug: str, exclude_id: int = None) -> None:
    query = db.query(Category).filter(Category.slug == slug)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError("El slug ya existe", error="DUPLICATE_SLUG")


@router.get("")
async def list_categories(db: Session = Depends(get_db)):
    """
    Listar categorías con sus etiquetas.
    """
    categories = db.query(Category).order_by(Category.name.asc()).all()

    return {
        "success": True,
        "status_code": 200,
        "message": "Categorías obtenidas exitosamente",
        "data": [format_category(c) for c in categories]
    }


@router.get("/{category_id}")
async def get_category(category_id: int, db: Session = Depends(get_db)):
    category = get_category_or_404(db, category_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Categoría obtenida exitosamente",
        "data": format_category(category)
    }


@router.post("", status_code=201)
async def create_category(
    category_data: CategoryCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Crear una categoría.
    Las etiquetas indicadas en `tags` se heredan a los productos de la categoría.
    """
    ensure_unique_slug(db, category_data.slug)
    tag_ids = category_data.tags or []
    get_tags_or_404(db, tag_ids)

    category = Category(name=category_data.name, slug=category_data.slug)
    db.add(category)
    db.flush()

    set_category_tags(db, category, tag_ids)
    commit_or_rollback(db, conflict_message="El slug ya existe", conflict_error="DUPLICATE_SLUG")
    db.refresh(category)

    return {
        "success": True,
        "status_code": 201,
        "message": "Categoría creada exitosamente",
        "data": format_category(category)
    }


@router.patch("/{category_id}")
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Actualizar una categoría.
    Con `tags` se reemplaza su conjunto de etiquetas: las nuevas se propagan a
    los productos y las retiradas solo se desvinculan de la categoría.
    """
    category = get_category_or_404(db, category_id)

    if category_data.slug is not None:
        ensure_unique_slug(db, category_data.slug, exclude_id=category.id)
    if category_data.tags is not None:
        get_tags_or_404(db, category_data.tags)

    if category_data.name is not None:
        category.name = category_data.name
    if category_data.slug is not None:
        category.slug = category_data.slug

    if category_data.tags is not None:
        set_category_tags(db, category, category_data.tags)

    commit_or_rollback(db, conflict_message="El slug ya existe", conflict_error="DUPLICATE_SLUG")
    db.refresh(category)

    return {
        "success": True,
        "status_code": 200,
        "message": "Categoría actualizada exitosamente",
        "data": format_category(category)
    }


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Eliminar una categoría vacía.
    No se puede eliminar si todavía tiene productos.
    """
    category = get_category_or_404(db, category_id)

    products_count = db.query(Product).filter(Product.category_id == category.id).count()
    if products_count > 0:
        raise ValidationError(
            f"No se puede eliminar la categoría porque tiene {products_count} producto(s) asociado(s)",
            error="CATEGORY_HAS_PRODUCTS",
            details={"products_count": products_count}
        )

    db.query(CategoryTag).filter(CategoryTag.category_id == category.id).delete(synchronize_session=False)
    db.delete(category)
    commit_or_rollback(db)

    return Response(status_code=204)


# ==================== ETIQUETAS DE LA CATEGORÍA ====================

@router.post("/{category_id}/tags")
async def add_tag_to_category(
    category_id: int,
    tag_data: CategoryTagAdd,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Agregar una etiqueta a la categoría y propagarla a todos sus productos.
    Volver a agregar una etiqueta existente no es un error.
    """
    category = get_category_or_404(db, category_id)
    get_tags_or_404(db, [tag_data.tag_id])

    add_category_tag(db, category, tag_data.tag_id)
    commit_or_rollback(db)
    db.refresh(category)

    return {
        "success": True,
        "status_code": 200,
        "message": "Etiqueta agregada a la categoría",
        "data": format_category(category)
    }


@router.delete("/{category_id}/tags/{tag_id}")
async def remove_tag_from_category(
    category_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Quitar una etiqueta de la categoría.
    Los productos que ya la heredaron la conservan.
    """
    category = get_category_or_404(db, category_id)

    if not remove_category_tag(db, category, tag_id):
        raise NotFoundError("La categoría no tiene esa etiqueta", error="CATEGORY_TAG_NOT_FOUND")

    commit_or_rollback(db)
    db.refresh(category)

    return {
        "success": True,
        "status_code": 200,
        "message": "Etiqueta quitada de la categoría",
        "data": format_category(category)
    }
