# backend/routes/products.py
from typing import List, Optional
from fastapi import (
    APIRouter, Depends, Request, UploadFile, File, Form, status
)
from sqlalchemy.orm import Session

import logging
from pathlib import PurePath

from config import settings
from database import get_db
from utils.audit import write_log
from utils.errors import ProductError, StorageError
from utils.storage import AssetStore, build_asset_store
from services.product_repository import ProductRepository
from services.product_service import ProductForm, ProductService
import schemas.product as product_schemas

router = APIRouter(tags=["Products"])
logger = logging.getLogger(__name__)


# ---- DEPENDENCIES ----
def get_asset_store():
    assets = build_asset_store(settings)
    try:
        yield assets
    finally:
        assets.close()

def get_product_service(
    db: Session = Depends(get_db),
    assets: AssetStore = Depends(get_asset_store),
) -> ProductService:
    return ProductService(ProductRepository(db), assets, settings.PUBLIC_BASE_URL)

def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None

def _extension(filename: Optional[str]) -> Optional[str]:
    if not filename:
        return None
    return PurePath(filename).suffix.lstrip(".") or None


# =========================
# LISTA PRODUKTÓW
# =========================
@router.get("/products", response_model=List[product_schemas.ProductOut])
def list_products(service: ProductService = Depends(get_product_service)):
    """All products, newest first."""
    return service.list_products()


# =========================
# POŁĄCZENIE
# =========================
@router.get("/health", response_model=product_schemas.HealthResponse)
def health(service: ProductService = Depends(get_product_service)):
    try:
        result = service.check_connection()
    except StorageError as e:
        return {"status": "error", "database": "unreachable",
                "storage_backend": settings.STORAGE_BACKEND, "detail": e.message}
    return {**result, "storage_backend": settings.STORAGE_BACKEND}


# =========================
# POJEDYNCZY PRODUKT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: str, service: ProductService = Depends(get_product_service)):
    return service.get_product(product_id)


# Detail route encoded in every QR code
@router.get("/product/{product_id}", response_model=product_schemas.ProductOut)
def product_detail(product_id: str, service: ProductService = Depends(get_product_service)):
    return service.get_product(product_id)


# =========================
# DODAWANIE PRODUKTU
# =========================
@router.post("/products", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(
    request: Request,
    db: Session = Depends(get_db),
    service: ProductService = Depends(get_product_service),
    file: Optional[UploadFile] = File(None),
    name: str = Form(""),
    description: str = Form(""),
):
    form = ProductForm(name=name, description=description)
    if file is not None:
        try:
            form.image_bytes = file.file.read()
            form.image_content_type = file.content_type
            form.image_extension = _extension(file.filename)
        finally:
            file.file.close()

    try:
        product = service.create_product(form)
    except ProductError as e:
        logger.warning("Product create failed (%s): %s", e.kind, e.message)
        write_log(
            db, action="PRODUCT_CREATE", resource="products", status="FAIL",
            ip=_client_ip(request), meta={"kind": e.kind, "detail": e.message},
        )
        raise

    write_log(
        db, action="PRODUCT_CREATE", resource="products", status="SUCCESS",
        ip=_client_ip(request), meta={"id": product.id},
    )
    return product


# =========================
# CZĘŚCIOWA EDYCJA PRODUKTU (PATCH)
# =========================
@router.patch("/products/{product_id}", response_model=product_schemas.ProductOut)
def edit_product(
    product_id: str,
    payload: product_schemas.ProductEditRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: ProductService = Depends(get_product_service),
):
    fields = payload.model_dump(exclude_unset=True)
    product = service.update_product(product_id, fields)
    write_log(
        db, action="PRODUCT_EDIT", resource="products", status="SUCCESS",
        ip=_client_ip(request), meta={"id": product_id, "fields": sorted(fields)},
    )
    return product


# =========================
# USUWANIE
# =========================
@router.delete("/products/{product_id}")
def delete_product(
    product_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: ProductService = Depends(get_product_service),
):
    service.delete_product(product_id)
    write_log(
        db, action="PRODUCT_DELETE", resource="products", status="SUCCESS",
        ip=_client_ip(request), meta={"id": product_id},
    )
    return {"detail": f"Product '{product_id}' deleted"}
