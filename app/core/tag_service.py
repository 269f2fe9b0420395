"""
Herencia de etiquetas entre categorías y productos.

Las etiquetas de un producto son la unión de:
- sus etiquetas explícitas
- las etiquetas de su categoría (se copian a ProductTag)

La propagación es en un solo sentido: quitar una etiqueta de la categoría
no la retira de los productos que ya la heredaron.

Ninguna función hace commit; la ruta que llama confirma todo en una sola transacción.
"""
from typing import Iterable, List, Set
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models.products import Category, CategoryTag, Product, ProductTag, Tag


def get_tags_or_404(db: Session, tag_ids: Iterable[int]) -> List[Tag]:
    """
    Obtener las etiquetas solicitadas validando que todas existan.
    """
    tag_ids = list(dict.fromkeys(tag_ids))
    if not tag_ids:
        return []

    tags = db.query(Tag).filter(Tag.id.in_(tag_ids)).all()
    missing = set(tag_ids) - {t.id for t in tags}
    if missing:
        raise NotFoundError(
            "Etiqueta no encontrada",
            error="TAG_NOT_FOUND",
            details={"tag_ids": sorted(missing)}
        )
    return tags


def get_category_tag_ids(db: Session, category_id: int) -> Set[int]:
    rows = db.query(CategoryTag.tag_id).filter(CategoryTag.category_id == category_id).all()
    return {row.tag_id for row in rows}


def get_product_tag_ids(db: Session, product_id: int) -> Set[int]:
    rows = db.query(ProductTag.tag_id).filter(ProductTag.product_id == product_id).all()
    return {row.tag_id for row in rows}


def add_product_tags(db: Session, product_id: int, tag_ids: Iterable[int]) -> int:
    """
    Vincular etiquetas a un producto (insert-or-ignore).

    Returns:
        Número de vínculos nuevos
    """
    existing = get_product_tag_ids(db, product_id)
    new_ids = [tid for tid in dict.fromkeys(tag_ids) if tid not in existing]

    for tag_id in new_ids:
        db.add(ProductTag(product_id=product_id, tag_id=tag_id))

    db.flush()
    return len(new_ids)


def inherit_category_tags(db: Session, product: Product) -> int:
    """
    Unir las etiquetas de la categoría del producto a sus etiquetas.
    """
    if not product.category_id:
        return 0
    return add_product_tags(db, product.id, get_category_tag_ids(db, product.category_id))


def replace_product_tags(db: Session, product: Product, tag_ids: Iterable[int]) -> None:
    """
    Reemplazar las etiquetas explícitas del producto y volver a heredar las de su categoría.
    """
    tag_ids = list(tag_ids)
    get_tags_or_404(db, tag_ids)

    db.query(ProductTag).filter(ProductTag.product_id == product.id).delete(synchronize_session=False)
    add_product_tags(db, product.id, tag_ids)
    inherit_category_tags(db, product)


def add_category_tag(db: Session, category: Category, tag_id: int) -> bool:
    """
    Vincular una etiqueta a la categoría y propagarla a todos sus productos.

    Returns:
        True si el vínculo es nuevo (re-agregar un vínculo existente no es un error)
    """
    created = False
    if tag_id not in get_category_tag_ids(db, category.id):
        db.add(CategoryTag(category_id=category.id, tag_id=tag_id))
        created = True

    product_ids = [row.id for row in db.query(Product.id).filter(Product.category_id == category.id).all()]
    for product_id in product_ids:
        add_product_tags(db, product_id, [tag_id])

    db.flush()
    return created


def remove_category_tag(db: Session, category: Category, tag_id: int) -> bool:
    """
    Quitar la etiqueta de la categoría.
    Los productos que ya la heredaron la conservan.
    """
    deleted = db.query(CategoryTag).filter(
        CategoryTag.category_id == category.id,
        CategoryTag.tag_id == tag_id
    ).delete(synchronize_session=False)
    return deleted > 0


def set_category_tags(db: Session, category: Category, tag_ids: Iterable[int]) -> None:
    """
    Reemplazar el conjunto de etiquetas de la categoría.
    Las nuevas se propagan a los productos; las retiradas solo se desvinculan de la categoría.
    """
    tag_ids = list(dict.fromkeys(tag_ids))
    get_tags_or_404(db, tag_ids)

    current = get_category_tag_ids(db, category.id)

    for tag_id in current - set(tag_ids):
        remove_category_tag(db, category, tag_id)

    for tag_id in tag_ids:
        add_category_tag(db, category, tag_id)


def remove_tag_links(db: Session, tag_id: int) -> None:
    """
    Eliminar todos los vínculos de una etiqueta (antes de borrarla).
    """
    db.query(ProductTag).filter(ProductTag.tag_id == tag_id).delete(synchronize_session=False)
    db.query(CategoryTag).filter(CategoryTag.tag_id == tag_id).delete(synchronize_session=False)
