"""
Servicio para manejo de almacenamiento de imágenes.
Recibe imágenes embebidas (data URLs), las optimiza a WebP y las sube al
backend configurado, devolviendo la URL pública que se guarda en la base de datos.

Backends:
    - local: disco (UPLOAD_DIR), servido por la app en /static
    - supabase: bucket de Supabase Storage vía API REST
"""
import base64
import binascii
import io
import logging
import uuid
from pathlib import Path
from typing import Optional, Tuple

import httpx
from PIL import Image

from core.config import settings
from core.exceptions import UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def is_data_url(value: Optional[str]) -> bool:
    """Indica si el valor es una imagen embebida que debe subirse"""
    return bool(value) and value.startswith("data:")


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Separar un data URL en (content_type, bytes).

    Ejemplo: "data:image/png;base64,iVBORw0..." -> ("image/png", b"...")
    """
    try:
        header, encoded = data_url.split(",", 1)
    except ValueError:
        raise ValidationError("Imagen embebida inválida", error="INVALID_IMAGE_DATA")

    meta = header[len("data:"):].split(";")
    content_type = meta[0] or "application/octet-stream"

    if "base64" not in meta[1:]:
        raise ValidationError("La imagen debe estar codificada en base64", error="INVALID_IMAGE_DATA")
    if not content_type.startswith("image/"):
        raise ValidationError("El archivo debe ser una imagen", error="INVALID_CONTENT_TYPE")

    try:
        contents = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Imagen embebida inválida", error="INVALID_IMAGE_DATA")

    return content_type, contents


class StorageService:
    """Servicio para gestionar el almacenamiento de imágenes de productos."""

    def __init__(
        self,
        backend: str = "local",
        upload_dir: str = "/app/uploads",
        public_base_url: str = "",
        supabase_url: str = "",
        supabase_key: str = "",
        bucket: str = "product-images",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if backend not in ("local", "supabase"):
            raise ValueError(f"Backend de almacenamiento no soportado: {backend}")

        self.backend = backend
        self.base_dir = Path(upload_dir)
        self.products_dir = self.base_dir / "products"
        self.public_base_url = public_base_url.rstrip("/")
        self.supabase_url = supabase_url.rstrip("/")
        self.supabase_key = supabase_key
        self.bucket = bucket
        self.timeout = timeout
        self.transport = transport

        # Configuración de optimización
        self.max_size = (1920, 1920)  # Tamaño máximo
        self.quality = settings.WEBP_QUALITY  # Calidad WebP
        self.max_file_size = settings.MAX_UPLOAD_SIZE

    def _optimize_image(self, contents: bytes) -> bytes:
        """Optimizar imagen y convertir a WebP"""
        if len(contents) > self.max_file_size:
            raise ValidationError(
                f"El archivo es muy grande. Máximo: {self.max_file_size / (1024*1024)}MB",
                error="FILE_TOO_LARGE"
            )

        try:
            image = Image.open(io.BytesIO(contents))

            # Convertir a RGB si es necesario (para WebP)
            if image.mode in ('RGBA', 'LA', 'P'):
                background = Image.new('RGB', image.size, (255, 255, 255))
                if image.mode == 'P':
                    image = image.convert('RGBA')
                background.paste(image, mask=image.split()[-1] if image.mode in ('RGBA', 'LA') else None)
                image = background
            elif image.mode != 'RGB':
                image = image.convert('RGB')

            # Redimensionar si es necesario
            if image.size[0] > self.max_size[0] or image.size[1] > self.max_size[1]:
                image.thumbnail(self.max_size, Image.Resampling.LANCZOS)

            output = io.BytesIO()
            image.save(
                output,
                format='WEBP',
                quality=self.quality,
                method=6  # Mejor compresión
            )
            return output.getvalue()

        except (OSError, ValueError) as e:
            raise ValidationError(
                f"Error al procesar imagen: {str(e)}",
                error="IMAGE_PROCESSING_ERROR"
            )

    def _public_url(self, filename: str) -> str:
        if self.backend == "supabase":
            return f"{self.supabase_url}/storage/v1/object/public/{self.bucket}/{filename}"
        return f"{self.public_base_url}/static/products/{filename}"

    async def _upload_supabase(self, filename: str, data: bytes) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.supabase_url}/storage/v1/object/{self.bucket}/{filename}",
                    content=data,
                    headers={
                        "Authorization": f"Bearer {self.supabase_key}",
                        "apikey": self.supabase_key,
                        "Content-Type": "image/webp"
                    }
                )
        except httpx.HTTPError as e:
            logger.error(f"Error subiendo imagen {filename}: {str(e)}")
            raise UpstreamError(f"Error al subir la imagen: {str(e)}", error="STORAGE_ERROR")

        if response.is_error:
            logger.error(f"Supabase Storage rechazó {filename}: {response.status_code} {response.text}")
            raise UpstreamError(f"Error al subir la imagen: {response.text}", error="STORAGE_ERROR")

    async def save_data_url(self, data_url: str) -> str:
        """
        Guardar una imagen embebida de producto.
        Retorna la URL pública de la imagen optimizada.
        """
        _, contents = parse_data_url(data_url)
        optimized_data = self._optimize_image(contents)

        filename = f"{uuid.uuid4()}.webp"

        if self.backend == "supabase":
            await self._upload_supabase(filename, optimized_data)
        else:
            self.products_dir.mkdir(parents=True, exist_ok=True)
            with open(self.products_dir / filename, 'wb') as f:
                f.write(optimized_data)

        return self._public_url(filename)

    async def delete_file(self, url: Optional[str]) -> bool:
        """
        Eliminar una imagen a partir de su URL pública.
        URLs que no pertenecen a este almacenamiento se ignoran.
        """
        if not url:
            return False

        filename = str(url).split('/')[-1]

        if self.backend == "supabase":
            if not url.startswith(self._public_url("")):
                return False
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.delete(
                        f"{self.supabase_url}/storage/v1/object/{self.bucket}/{filename}",
                        headers={"Authorization": f"Bearer {self.supabase_key}", "apikey": self.supabase_key}
                    )
                return not response.is_error
            except httpx.HTTPError as e:
                logger.warning(f"No se pudo eliminar la imagen {filename}: {str(e)}")
                return False

        if "/static/products/" not in url:
            return False

        product_path = self.products_dir / filename
        if product_path.exists():
            try:
                product_path.unlink()
                return True
            except OSError:
                return False

        # Si no encontró el archivo, retorna False pero no falla
        return False


# Instancia singleton
storage_service = StorageService(
    backend=settings.STORAGE_BACKEND,
    upload_dir=settings.UPLOAD_DIR,
    public_base_url=settings.PUBLIC_BASE_URL,
    supabase_url=settings.SUPABASE_URL,
    supabase_key=settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_ANON_KEY,
    bucket=settings.SUPABASE_BUCKET,
    timeout=settings.HTTP_TIMEOUT_SECONDS
)
