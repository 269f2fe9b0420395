"""
Endpoints de etiquetas.
Lectura pública; escritura requiere sesión de administrador.
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from core.database import get_db, commit_or_rollback
from core.dependencies import get_current_identity
from core.exceptions import ConflictError, NotFoundError
from core.serializers import format_tag
from core.tag_service import remove_tag_links
from models.products import Tag
from schemas.auth import Identity
from schemas.products import TagCreate, TagUpdate

router = APIRouter(
    prefix="/api/tags",
    tags=["tags"]
)


def get_tag_or_404(db: Session, tag_id: int) -> Tag:
    tag = db.query(Tag).filter(Tag.id == tag_id).first()
    if not tag:
        raise NotFoundError("Etiqueta no encontrada", error="TAG_NOT_FOUND")
    return tag


def ensure_unique_tag(db: Session, name: str = None, slug: str = None, exclude_id: int = None) -> None:
    """
    Validar que nombre y slug no estén usados por otra etiqueta.
    """
    if name is not None:
        query = db.query(Tag).filter(Tag.name == name)
        if exclude_id is not None:
            query = query.filter(Tag.id != exclude_id)
        if query.first():
            raise ConflictError("Ya existe una etiqueta con ese nombre", error="DUPLICATE_TAG_NAME")

    if slug is not None:
        query = db.query(Tag).filter(Tag.slug == slug)
        if exclude_id is not None:
            query = query.filter(Tag.id != exclude_id)
        if query.first():
            raise ConflictError("Ya existe una etiqueta con ese slug", error="DUPLICATE_TAG_SLUG")


@router.get("")
async def list_tags(db: Session = Depends(get_db)):
    """
    Listar todas las etiquetas ordenadas por nombre.
    """
    tags = db.query(Tag).order_by(Tag.name.asc()).all()

    return {
        "success": True,
        "status_code": 200,
        "message": "Etiquetas obtenidas exitosamente",
        "data": [format_tag(t) for t in tags]
    }


@router.get("/{tag_id}")
async def get_tag(tag_id: int, db: Session = Depends(get_db)):
    tag = get_tag_or_404(db, tag_id)

    return {
        "success": True,
        "status_code": 200,
        "message": "Etiqueta obtenida exitosamente",
        "data": format_tag(tag)
    }


@router.post("", status_code=201)
async def create_tag(
    tag_data: TagCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Crear una etiqueta. Nombre y slug deben ser únicos (409 si ya existen).
    """
    ensure_unique_tag(db, name=tag_data.name, slug=tag_data.slug)

    tag = Tag(name=tag_data.name, slug=tag_data.slug)
    db.add(tag)
    commit_or_rollback(db, conflict_message="La etiqueta ya existe", conflict_error="DUPLICATE_TAG")
    db.refresh(tag)

    return {
        "success": True,
        "status_code": 201,
        "message": "Etiqueta creada exitosamente",
        "data": format_tag(tag)
    }


@router.patch("/{tag_id}")
async def update_tag(
    tag_id: int,
    tag_data: TagUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Actualizar una etiqueta. No puede chocar con el nombre o slug de otra.
    """
    tag = get_tag_or_404(db, tag_id)

    ensure_unique_tag(db, name=tag_data.name, slug=tag_data.slug, exclude_id=tag.id)

    if tag_data.name is not None:
        tag.name = tag_data.name
    if tag_data.slug is not None:
        tag.slug = tag_data.slug

    commit_or_rollback(db, conflict_message="La etiqueta ya existe", conflict_error="DUPLICATE_TAG")
    db.refresh(tag)

    return {
        "success": True,
        "status_code": 200,
        "message": "Etiqueta actualizada exitosamente",
        "data": format_tag(tag)
    }


@router.delete("/{tag_id}", status_code=204)
async def delete_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Eliminar una etiqueta junto con sus vínculos a productos y categorías.
    """
    tag = get_tag_or_404(db, tag_id)

    remove_tag_links(db, tag.id)
    db.delete(tag)
    commit_or_rollback(db)

    return Response(status_code=204)
