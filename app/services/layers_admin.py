import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import (
    DuplicateLayerError,
    LayerInUseError,
    LayerNotFoundError,
    WidgetNotFoundError,
)
from app.models.content_item import ContentItem, LayerMetadata
from app.schemas.layers import Layer
from app.services.layer_service import LayerService

logger = logging.getLogger(__name__)


class LayersAdminService:
    """Management of the layers list and of the widgets placement"""

    # --- DEFINITIONS ---
    # Seeded on startup when the site has no layer yet.
    DEFAULTS = [
        {
            "name": "Always", "rule": "true",
            "description": "The widgets in this layer are displayed on any page of this site."
        },
        {
            "name": "Homepage", "rule": "isHomepage()",
            "description": "The widgets in this layer are only displayed on the homepage."
        },
        {
            "name": "Authenticated", "rule": "isAuthenticated()",
            "description": "The widgets in this layer are displayed when the user is authenticated."
        },
        {
            "name": "Anonymous", "rule": "isAnonymous()",
            "description": "The widgets in this layer are displayed when the user is anonymous."
        },
    ]

    def __init__(self, db: Session, layer_service: Optional[LayerService] = None):
        self.db = db
        self.layer_service = layer_service or LayerService(db)

    def initialize_defaults(self):
        """
        Seeds the default layers. Does nothing once the site has any layer,
        so layers removed by an admin are not recreated.
        """
        layers = self.layer_service.load_layers()
        if layers.layers:
            return

        layers.layers = [Layer(**default) for default in self.DEFAULTS]
        self.layer_service.update(layers)
        logger.info(f"Seeded {len(self.DEFAULTS)} default layers")

    def get_overview(self) -> dict:
        """Layers, zones and the latest widgets grouped by zone for the admin UI"""
        layers = self.layer_service.get_layers()
        metadata = self.layer_service.get_layer_widgets_metadata(ContentItem.latest == True)

        zones = list(settings.layer_zones)
        widgets: Dict[str, List[LayerMetadata]] = {zone: [] for zone in zones}
        for m in metadata:
            # Widgets may sit in a zone the current theme no longer declares
            widgets.setdefault(m.zone, []).append(m)

        return {"layers": layers.layers, "zones": zones, "widgets": widgets}

    def create_layer(self, name: str, rule: Optional[str] = None, description: str = "") -> Layer:
        name = (name or "").strip()
        if not name:
            raise ValueError("Name is required")

        layers = self.layer_service.load_layers()
        if self._find(layers.layers, name) is not None:
            raise DuplicateLayerError("A layer with the same name already exists.")

        layer = Layer(name=name, rule=rule, description=description or "")
        layers.layers.append(layer)
        self.layer_service.update(layers)

        logger.info(f"Layer '{name}' created")
        return layer

    def update_layer(self, name: str, rule: Optional[str] = None,
                     description: Optional[str] = None) -> Layer:
        layers = self.layer_service.load_layers()
        layer = self._find(layers.layers, name)
        if layer is None:
            raise LayerNotFoundError(f"Layer '{name}' not found")

        if rule is not None:
            layer.rule = rule
        if description is not None:
            layer.description = description

        self.layer_service.update(layers)
        return layer

    def delete_layer(self, name: str) -> None:
        layers = self.layer_service.load_layers()
        layer = self._find(layers.layers, name)
        if layer is None:
            raise LayerNotFoundError(f"Layer '{name}' not found")

        in_use = (
            self.db.query(LayerMetadata)
            .filter(LayerMetadata.layer == layer.name)
            .first()
        )
        if in_use:
            raise LayerInUseError(
                "The layer couldn't be deleted: you must remove any associated widgets first."
            )

        layers.layers.remove(layer)
        self.layer_service.update(layers)
        logger.info(f"Layer '{layer.name}' deleted")

    def update_widget_position(self, content_item_id: str, zone: str, position: float) -> LayerMetadata:
        """Moves the latest version of a widget"""
        metadata = (
            self.db.query(LayerMetadata)
            .join(LayerMetadata.content_item)
            .filter(ContentItem.content_item_id == content_item_id,
                    ContentItem.latest == True)
            .first()
        )
        if metadata is None:
            raise WidgetNotFoundError(f"Widget '{content_item_id}' not found")

        metadata.zone = zone
        metadata.position = position

        self.db.commit()
        self.db.refresh(metadata)
        return metadata

    @staticmethod
    def _find(layers: List[Layer], name: str) -> Optional[Layer]:
        name = (name or "").strip().lower()
        for layer in layers:
            if layer.name.lower() == name:
                return layer
        return None
