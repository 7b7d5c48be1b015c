# backend/utils/errors.py
from typing import Dict, Optional


class ProductError(Exception):
    """Base class for failures surfaced by the product pipeline.

    Every subclass carries a short ``kind`` and the HTTP status the API layer
    answers with, so the router can report the failure without inspecting it.
    """

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind}


class ValidationError(ProductError):
    """Form input rejected before any I/O happened."""

    kind = "validation"
    status_code = 422

    def __init__(self, errors: Dict[str, str]):
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid product form: {fields}")
        self.errors = dict(errors)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class EncodingError(ProductError):
    kind = "encoding"
    status_code = 500


class MalformedDataUriError(ProductError):
    kind = "malformed_data_uri"
    status_code = 400


class StorageError(ProductError):
    """Asset or record I/O failed (connectivity, permission, quota)."""

    kind = "storage"
    status_code = 502


class NotFoundError(ProductError):
    kind = "not_found"
    status_code = 404

    def __init__(self, product_id: str, message: Optional[str] = None):
        super().__init__(message or f"Product '{product_id}' not found")
        self.product_id = product_id


class ConstraintError(ProductError):
    kind = "constraint"
    status_code = 409


class MalformedRowError(ProductError):
    kind = "malformed_row"
    status_code = 500
