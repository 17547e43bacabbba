from sqlalchemy import Column, String, Text, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin


class Category(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "categories"

    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)

    # Parent removal leaves children as roots
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    parent = relationship("Category", remote_side="Category.id", back_populates="children")
    children = relationship("Category", back_populates="parent", passive_deletes=True)

    # Do NOT cascade delete products. Product.category_id has ON DELETE RESTRICT.
    products = relationship("Product", back_populates="category")

    __table_args__ = (
        Index("ix_categories_name", "name"),
    )

    def ancestor_ids(self) -> set:
        """Ids of every category above this one (used to reject parent cycles)."""
        seen = set()
        node = self.parent
        while node is not None and node.id not in seen:
            seen.add(node.id)
            node = node.parent
        return seen
