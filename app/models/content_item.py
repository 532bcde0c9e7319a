from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base


class ContentItem(Base):
    """One version of a content item. Widgets are content items placed on a layer."""
    __tablename__ = "content_items"

    id = Column(Integer, primary_key=True, index=True)

    # Shared by every version of the same item
    content_item_id = Column(String, nullable=False, index=True)
    content_type = Column(String, nullable=False, index=True)
    display_text = Column(String, default="")

    published = Column(Boolean, default=False, index=True)
    latest = Column(Boolean, default=True, index=True)

    # None means the item follows the site default culture
    culture = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    modified_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    layer_metadata = relationship("LayerMetadata", back_populates="content_item",
                                  uselist=False, cascade="all, delete-orphan")


class LayerMetadata(Base):
    """Where a widget is rendered: its zone, its layer and its position in the zone"""
    __tablename__ = "layer_metadata"

    id = Column(Integer, primary_key=True, index=True)
    content_item_row_id = Column(Integer, ForeignKey('content_items.id', ondelete='CASCADE'),
                                 nullable=False, unique=True)

    zone = Column(String, nullable=False, index=True)
    layer = Column(String, nullable=False, index=True)
    position = Column(Float, nullable=False, default=0)  # Float to allow 1.5, 2.5 for insertions
    render_title = Column(Boolean, default=True)

    content_item = relationship("ContentItem", back_populates="layer_metadata")
