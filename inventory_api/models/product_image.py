from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inventory_api.database import Base


class ProductImage(Base):
    """
    Image attached to a product.

    At most one image per product carries ``is_main_image``; a product with
    any images has exactly one. ``ImageService`` maintains this.

    Attributes:
        id: Unique identifier for the image
        product_id: Owning product
        filename: Name of the stored file under the upload directory
        original_name: Client-side file name at upload time
        mimetype: Content type reported at upload time
        size: File size in bytes
        is_main_image: Whether this is the product's representative image
        created_at: Timestamp when image was uploaded
    """
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    mimetype = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    is_main_image = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product", back_populates="images")

    @property
    def url(self) -> str:
        return f"/uploads/{self.filename}"

    def __repr__(self):
        return f"<ProductImage(id={self.id}, product_id={self.product_id}, is_main_image={self.is_main_image})>"
