"""
Formateo de entidades para las respuestas JSON.
"""
from typing import Optional
from models.products import Category, Product, StockUpdate, Tag
from models.order import Order, OrderItem


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def format_tag(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "name": tag.name,
        "slug": tag.slug,
        "created_at": _iso(tag.created_at)
    }


def format_category(category: Category, include_tags: bool = True) -> dict:
    data = {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "created_at": _iso(category.created_at)
    }
    if include_tags:
        data["tags"] = [format_tag(t) for t in category.tags]
    return data


def format_product(product: Product) -> dict:
    """Producto con su categoría y etiquetas embebidas"""
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": float(product.price),
        "stock_quantity": product.stock_quantity,
        "category_id": product.category_id,
        "category": format_category(product.category, include_tags=False) if product.category else None,
        "image_url": product.image_url,
        "tags": [format_tag(t) for t in product.tags],
        "created_at": _iso(product.created_at),
        "updated_at": _iso(product.updated_at)
    }


def format_stock_update(update: StockUpdate) -> dict:
    return {
        "id": update.id,
        "product_id": update.product_id,
        "change_amount": update.change_amount,
        "reason": update.reason,
        "order_id": update.order_id,
        "created_at": _iso(update.created_at)
    }


def format_order_item(item: OrderItem) -> dict:
    return {
        "id": item.id,
        "order_id": item.order_id,
        "product_id": item.product_id,
        "product_name": item.product_name,
        "quantity": item.quantity,
        "price": float(item.price),
        "subtotal": round(float(item.price) * item.quantity, 2)
    }


def format_order(order: Order, include_items: bool = True) -> dict:
    items = list(order.order_items)
    data = {
        "id": order.id,
        "customer_whatsapp": order.customer_whatsapp,
        "customer_name": order.customer_name,
        "notes": order.notes,
        "order_status": order.order_status,
        "total": round(sum(float(i.price) * i.quantity for i in items), 2),
        "items_count": len(items),
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at)
    }
    if include_items:
        data["order_items"] = [format_order_item(i) for i in items]
    return data
