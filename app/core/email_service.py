"""
Servicio de envío de emails con soporte SMTP.
Se usa para avisar a la tienda de cada pedido nuevo recibido por WhatsApp.
"""
import aiosmtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Optional
from core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Servicio para envío de emails."""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.FROM_EMAIL
        self.from_name = settings.FROM_NAME

    @property
    def enabled(self) -> bool:
        """Sin SMTP_HOST configurado no se envía nada"""
        return bool(self.smtp_host)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        plain_content: Optional[str] = None
    ) -> bool:
        """
        Enviar un email.

        Args:
            to_email: Email del destinatario
            subject: Asunto del email
            html_content: Contenido HTML del email
            plain_content: Contenido en texto plano (opcional)

        Returns:
            bool: True si se envió correctamente
        """
        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email

            if plain_content:
                message.attach(MIMEText(plain_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            if self.smtp_user and self.smtp_password:
                # Puerto 465: SSL directo; otros puertos: STARTTLS
                await aiosmtplib.send(
                    message,
                    hostname=self.smtp_host,
                    port=self.smtp_port,
                    username=self.smtp_user,
                    password=self.smtp_password,
                    use_tls=self.smtp_port == 465,
                    start_tls=self.smtp_port != 465
                )
            else:
                # Modo sin autenticación (MailHog, desarrollo)
                await aiosmtplib.send(
                    message,
                    hostname=self.smtp_host,
                    port=self.smtp_port
                )

            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Error al enviar email a {to_email}: {e}")
            return False

    async def send_new_order_notification(
        self,
        to_email: str,
        site_name: str,
        order_id: int,
        summary: str,
        customer_whatsapp: str
    ) -> bool:
        """
        Avisar a la tienda de un pedido nuevo.
        Recibe datos planos (no la orden) porque corre después de cerrar la sesión de BD.

        Args:
            to_email: Email de la tienda (settings.site_email)
            site_name: Nombre de la tienda
            order_id: ID de la orden
            summary: Resumen del pedido (mismo texto que el mensaje de WhatsApp)
            customer_whatsapp: Número del cliente

        Returns:
            bool: True si se envió correctamente (False si SMTP no está configurado)
        """
        if not self.enabled or not to_email:
            return False

        subject = f"Nuevo pedido #{order_id} - {site_name}"
        contact = f"WhatsApp del cliente: {customer_whatsapp}"

        html_content = f"""
        <!DOCTYPE html>
        <html lang="es">
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="margin: 0 0 16px;">Nuevo pedido #{order_id}</h2>
            <pre style="font-family: inherit; white-space: pre-wrap;">{escape(summary)}</pre>
            <p style="font-size: 14px; color: #666;">{escape(contact)}</p>
        </body>
        </html>
        """

        return await self.send_email(to_email, subject, html_content, f"{summary}\n\n{contact}")


# Instancia singleton
email_service = EmailService()
