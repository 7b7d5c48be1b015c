# backend/services/product_repository.py
import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.product import Product
from schemas.product import ProductOut
from utils.errors import ConstraintError, MalformedRowError, NotFoundError, StorageError

logger = logging.getLogger(__name__)

products_table = Product.__table__

# Entity field -> storage column, for partial updates
UPDATABLE_COLUMNS = {
    "name": "name",
    "description": "description",
    "image": "image_url",
    "qr_code": "qr_code_url",
}


def _require(row: Mapping[str, Any], column: str, types, nullable: bool = False):
    if column not in row:
        raise MalformedRowError(f"Row is missing column '{column}'")
    value = row[column]
    if value is None and nullable:
        return None
    if not isinstance(value, types):
        raise MalformedRowError(
            f"Column '{column}' has unexpected type {type(value).__name__}"
        )
    return value


def _as_utc(value) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise MalformedRowError(f"Column 'created_at' is not ISO-8601: {value!r}") from e
    # SQLite drops tzinfo; stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def row_to_product(row: Mapping[str, Any]) -> ProductOut:
    """Map a ``products`` row onto the Product entity."""
    return ProductOut(
        id=_require(row, "id", str),
        name=_require(row, "name", str),
        description=_require(row, "description", str),
        image=_require(row, "image_url", str),
        qr_code=_require(row, "qr_code_url", str, nullable=True),
        created_at=_as_utc(_require(row, "created_at", (datetime, str))),
    )


def product_to_row(product: ProductOut) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "image_url": product.image,
        "qr_code_url": product.qr_code or "",
        "created_at": _as_utc(product.created_at),
    }


class ProductRepository:
    """Record store for products, backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, e: SQLAlchemyError) -> StorageError:
        self.db.rollback()
        logger.error("Record store %s failed: %s", action, e)
        return StorageError(f"Failed to {action} product")

    def insert(self, product: ProductOut) -> None:
        try:
            self.db.execute(insert(products_table).values(**product_to_row(product)))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConstraintError(f"Product '{product.id}' already exists") from e
        except SQLAlchemyError as e:
            raise self._fail("insert", e) from e

    def get_by_id(self, product_id: str) -> Optional[ProductOut]:
        try:
            row = self.db.execute(
                select(products_table).where(products_table.c.id == product_id)
            ).mappings().first()
        except SQLAlchemyError as e:
            raise self._fail("fetch", e) from e
        return row_to_product(row) if row is not None else None

    def list_all(self) -> List[ProductOut]:
        try:
            rows = self.db.execute(
                select(products_table).order_by(products_table.c.created_at.desc())
            ).mappings().all()
        except SQLAlchemyError as e:
            raise self._fail("list", e) from e
        return [row_to_product(r) for r in rows]

    def update(self, product_id: str, fields: Mapping[str, Any]) -> ProductOut:
        values = {UPDATABLE_COLUMNS[k]: v for k, v in fields.items() if k in UPDATABLE_COLUMNS}
        try:
            if values:
                result = self.db.execute(
                    update(products_table).where(products_table.c.id == product_id).values(**values)
                )
                self.db.commit()
                if result.rowcount == 0:
                    raise NotFoundError(product_id)
        except SQLAlchemyError as e:
            raise self._fail("update", e) from e

        product = self.get_by_id(product_id)
        if product is None:
            raise NotFoundError(product_id)
        return product

    def delete(self, product_id: str) -> None:
        try:
            result = self.db.execute(delete(products_table).where(products_table.c.id == product_id))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete", e) from e
        if result.rowcount == 0:
            raise NotFoundError(product_id)

    def ping(self) -> None:
        try:
            self.db.execute(select(products_table.c.id).limit(1)).all()
        except SQLAlchemyError as e:
            raise self._fail("reach", e) from e
