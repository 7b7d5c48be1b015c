from sqlalchemy import Column, String, Text, DateTime
from database import Base

# Model Product
# A single catalog entry. Both assets live in object storage under
# "{id}/...", the row only keeps their public URLs.
class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)

    # Public URLs of the stored product image and QR code.
    image_url = Column(String, nullable=False)
    qr_code_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
