# Import all models here so SQLAlchemy can set up relationships
from app.models.document import Document
from app.models.content_item import ContentItem, LayerMetadata

__all__ = [
    'Document',
    'ContentItem', 'LayerMetadata',
]
