import logging
from typing import List, Optional

from sqlalchemy.orm import Session, contains_eager

from app.core.culture import get_content_culture, get_current_culture
from app.core.exceptions import DocumentReadOnlyError
from app.core.memory_cache import MemoryCache, memory_cache
from app.core.session_helper import SessionHelper
from app.core.signal import ChangeToken, Signal, signal
from app.models.content_item import ContentItem, LayerMetadata
from app.schemas.layers import LayersDocument

logger = logging.getLogger(__name__)

LAYERS_CACHE_KEY = "LayersDocument"


class LayerService:
    def __init__(self, db: Session,
                 session_helper: Optional[SessionHelper] = None,
                 cache: MemoryCache = memory_cache,
                 change_signal: Signal = signal):
        self.db = db
        self.session_helper = session_helper or SessionHelper(db)
        self.cache = cache
        self.signal = change_signal

    @property
    def change_token(self) -> ChangeToken:
        return self.signal.get_token(LAYERS_CACHE_KEY)

    def load_layers(self) -> LayersDocument:
        """Returns the document from the database to be updated."""
        return self.session_helper.load_for_update(LayersDocument)

    def get_layers(self) -> LayersDocument:
        """Returns the document from the cache or creates a new one. The result should not be updated."""
        layers = self.cache.get(LAYERS_CACHE_KEY)

        if layers is None:
            # Taken before reading so a concurrent update can't be missed
            change_token = self.change_token

            layers = self.session_helper.get_for_caching(LayersDocument)
            layers.is_readonly = True

            self.cache.set(LAYERS_CACHE_KEY, layers, change_token)
            logger.debug(f"Layers document cached ({len(layers.layers)} layers)")

        return layers

    def get_layer_widgets(self, *criteria) -> List[ContentItem]:
        """
        Widgets (content items with layer metadata) matching the SQLAlchemy
        criteria, restricted to the culture of the current request.
        """
        widgets = (
            self.db.query(ContentItem)
            .join(ContentItem.layer_metadata)
            .options(contains_eager(ContentItem.layer_metadata))
            .filter(*criteria)
            .all()
        )

        return self._filter_widgets_by_culture(widgets)

    def get_layer_widgets_metadata(self, *criteria) -> List[LayerMetadata]:
        widgets = self.get_layer_widgets(*criteria)

        metadata = [w.layer_metadata for w in widgets if w.layer_metadata is not None]
        return sorted(metadata, key=lambda m: m.position)

    def update(self, layers: LayersDocument) -> None:
        if layers.is_readonly:
            raise DocumentReadOnlyError()

        existing = self.load_layers()
        existing.layers = layers.layers

        self.session_helper.save(existing)
        self.signal.deferred_signal_token(LAYERS_CACHE_KEY, self.db)

        # The cache entry is invalidated once this commit succeeds
        self.db.commit()
        logger.info(f"Layers document updated ({len(existing.layers)} layers)")

    def _filter_widgets_by_culture(self, widgets: List[ContentItem]) -> List[ContentItem]:
        culture = get_current_culture()
        return [w for w in widgets if get_content_culture(w) == culture]
