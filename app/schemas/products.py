"""
Schemas para productos, categorías y etiquetas.
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List


def _unique_ids(v):
    """Eliminar IDs repetidos conservando el orden"""
    if v is None:
        return v
    return list(dict.fromkeys(v))


# ==================== TAG SCHEMAS ====================

class TagBase(BaseModel):
    """Schema base para etiquetas"""
    name: str = Field(..., min_length=1, max_length=100, description="Nombre de la etiqueta")
    slug: str = Field(..., min_length=1, max_length=100, description="Slug URL-friendly")


class TagCreate(TagBase):
    """Schema para crear etiqueta"""
    pass


class TagUpdate(BaseModel):
    """Schema para actualizar etiqueta"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)


# ==================== CATEGORY SCHEMAS ====================

class CategoryBase(BaseModel):
    """Schema base para categorías"""
    name: str = Field(..., min_length=1, max_length=100, description="Nombre de la categoría")
    slug: str = Field(..., min_length=1, max_length=100, description="Slug URL-friendly")


class CategoryCreate(CategoryBase):
    """Schema para crear categoría"""
    tags: Optional[List[int]] = Field(None, description="IDs de etiquetas que heredarán sus productos")

    @validator('tags')
    def unique_tags(cls, v):
        return _unique_ids(v)


class CategoryUpdate(BaseModel):
    """Schema para actualizar categoría"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: Optional[List[int]] = Field(None, description="Reemplaza el conjunto de etiquetas de la categoría")

    @validator('tags')
    def unique_tags(cls, v):
        return _unique_ids(v)


class CategoryTagAdd(BaseModel):
    """Agregar una etiqueta a una categoría"""
    tag_id: int = Field(..., description="ID de la etiqueta")


# ==================== PRODUCT SCHEMAS ====================

class ProductBase(BaseModel):
    """Schema base para productos"""
    name: str = Field(..., min_length=1, max_length=255, description="Nombre del producto")
    description: Optional[str] = Field(None, description="Descripción del producto")
    price: float = Field(..., ge=0, description="Precio del producto (no puede ser negativo)")
    stock_quantity: int = Field(..., ge=0, description="Stock disponible (no puede ser negativo)")
    category_id: Optional[int] = Field(None, description="ID de la categoría")
    image_url: Optional[str] = Field(None, description="URL de la imagen o imagen embebida (data:image/...;base64,...)")


class ProductCreate(ProductBase):
    """Schema para crear producto"""
    tags: Optional[List[int]] = Field(None, description="IDs de etiquetas explícitas")

    @validator('tags')
    def unique_tags(cls, v):
        return _unique_ids(v)


class ProductUpdate(BaseModel):
    """Schema para actualizar producto (solo los campos enviados)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None
    image_url: Optional[str] = None
    tags: Optional[List[int]] = Field(None, description="Reemplaza las etiquetas explícitas del producto")

    @validator('tags')
    def unique_tags(cls, v):
        return _unique_ids(v)
