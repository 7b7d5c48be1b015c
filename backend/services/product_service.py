# backend/services/product_service.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from schemas.product import ProductOut
from services.product_repository import ProductRepository
from utils.errors import NotFoundError, ValidationError
from utils.ids import generate_product_id
from utils.qr import build_payload_url, render_qr_data_uri
from utils.storage import AssetStore, decode_data_uri

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ProductForm:
    """Submitted create form. The image arrives as raw bytes plus its declared type."""
    name: str
    description: str
    image_bytes: Optional[bytes] = None
    image_content_type: Optional[str] = None
    image_extension: Optional[str] = None


def validate_form(form: ProductForm) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not (form.name or "").strip():
        errors["name"] = "Product name is required"
    if not (form.description or "").strip():
        errors["description"] = "Product description is required"
    if not form.image_bytes:
        errors["image"] = "Product image is required"
    elif form.image_content_type and not form.image_content_type.startswith("image/"):
        errors["image"] = "Uploaded file must be an image"
    return errors


class ProductService:
    """Creates products and their assets, and serves the read paths.

    The create flow runs its steps strictly in order and stops at the first
    failure. Nothing is rolled back: an image uploaded before a failed QR
    upload or a failed insert stays in storage, unreferenced.
    """

    def __init__(
        self,
        repository: ProductRepository,
        assets: AssetStore,
        base_url: str,
        id_factory: Callable[[], str] = generate_product_id,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.assets = assets
        self.base_url = base_url
        self.id_factory = id_factory
        self.clock = clock

    def create_product(self, form: ProductForm) -> ProductOut:
        errors = validate_form(form)
        if errors:
            raise ValidationError(errors)

        product_id = self.id_factory()
        logger.info("Creating product %s", product_id)

        image_url = self.assets.put_product_image(
            product_id, form.image_bytes, form.image_content_type, form.image_extension
        )

        detail_url = build_payload_url(self.base_url, product_id)
        qr_bytes, qr_mime = decode_data_uri(render_qr_data_uri(detail_url))
        qr_url = self.assets.put_qr_code(product_id, qr_bytes, qr_mime)

        product = ProductOut(
            id=product_id,
            name=form.name,
            description=form.description,
            image=image_url,
            qr_code=qr_url,
            created_at=self.clock(),
        )
        self.repository.insert(product)
        logger.info("Product %s created (qr -> %s)", product_id, detail_url)
        return product

    def get_product(self, product_id: str) -> ProductOut:
        product = self.repository.get_by_id(product_id)
        if product is None:
            raise NotFoundError(product_id)
        return product

    def list_products(self) -> List[ProductOut]:
        return self.repository.list_all()

    def update_product(self, product_id: str, fields: dict) -> ProductOut:
        return self.repository.update(product_id, fields)

    def delete_product(self, product_id: str) -> None:
        # Stored image and QR code are left in place
        self.repository.delete(product_id)
        logger.info("Product %s deleted", product_id)

    def check_connection(self) -> dict:
        self.repository.ping()
        return {"status": "ok", "database": "ok"}
