import re
import uuid

# Canonical textual form of a random UUID, e.g. "3f1c2a9e-7b4d-4c1e-9a0b-5d6e7f8a9b0c"
PRODUCT_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def generate_product_id() -> str:
    return str(uuid.uuid4())
