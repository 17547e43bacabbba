from sqlalchemy import (
    Column,
    String,
    Integer,
    BigInteger,
    Boolean,
    ForeignKey,
    Text,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin


class Product(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "products"

    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False, default="")
    # Minor currency units
    price = Column(BigInteger, nullable=False, index=True)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    # Category: RESTRICT deletion while products reference it
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)

    category = relationship("Category", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: (ProductImage.is_primary.desc(), ProductImage.sort_order.asc()),
    )
    tastes = relationship(
        "ProductTaste",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: ProductTaste.id,
    )

    __table_args__ = (
        CheckConstraint("price >= 1", name="ck_products_price_positive"),
        CheckConstraint("stock >= 0", name="ck_products_stock_nonnegative"),
        Index("ix_products_name", "name"),
    )


class ProductImage(BaseModel, Base):
    __tablename__ = "product_images"

    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(500), nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="images")

    __table_args__ = (
        CheckConstraint("sort_order >= 0", name="ck_product_images_sort_nonnegative"),
    )


class ProductTaste(BaseModel, Base):
    __tablename__ = "product_tastes"

    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    product = relationship("Product", back_populates="tastes")
