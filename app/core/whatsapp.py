"""
Enlace de checkout por WhatsApp (https://wa.me/<número>?text=<mensaje>).
"""
import re
from typing import Optional
from urllib.parse import quote

from models.admin_settings import SiteSettings
from models.order import Order


def normalize_number(number: Optional[str]) -> str:
    """wa.me solo acepta dígitos (código de país incluido, sin '+')"""
    return re.sub(r"\D", "", number or "")


def build_order_message(order: Order, currency: str = "") -> str:
    prefix = f"{currency} " if currency else ""
    lines = [f"Pedido #{order.id}"]
    if order.customer_name:
        lines.append(f"Cliente: {order.customer_name}")

    total = 0.0
    for item in order.order_items:
        subtotal = float(item.price) * item.quantity
        total += subtotal
        lines.append(f"- {item.product_name} x{item.quantity} = {prefix}{subtotal:.2f}")

    lines.append(f"Total: {prefix}{total:.2f}")
    if order.notes:
        lines.append(f"Notas: {order.notes}")
    return "\n".join(lines)


def build_whatsapp_url(order: Order, site_settings: Optional[SiteSettings] = None) -> str:
    """
    Construir el enlace que abre WhatsApp con el pedido ya escrito.
    Sin número configurado, WhatsApp deja elegir el contacto.
    """
    number = normalize_number(site_settings.whatsapp_number) if site_settings else ""
    currency = site_settings.currency if site_settings else ""
    message = build_order_message(order, currency)
    return f"https://wa.me/{number}?text={quote(message)}"
