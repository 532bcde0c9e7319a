from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict


# --- Documents ---
class Layer(BaseModel):
    name: str
    rule: Optional[str] = None
    description: str = ""


class LayersDocument(BaseModel):
    """The layers of the site, stored as a single document"""
    layers: List[Layer] = Field(default_factory=list)

    # Set on copies shared through the cache. Never persisted.
    is_readonly: bool = Field(default=False, exclude=True)


# --- Requests ---
class LayersUpdate(BaseModel):
    layers: List[Layer]


class LayerCreate(BaseModel):
    name: str
    rule: Optional[str] = None
    description: str = ""


class LayerUpdate(BaseModel):
    rule: Optional[str] = None
    description: Optional[str] = None


class WidgetPositionUpdate(BaseModel):
    zone: str
    position: float


# --- Responses ---
class LayerMetadataResponse(BaseModel):
    content_item_id: str
    content_type: str
    display_text: Optional[str] = None
    culture: Optional[str] = None
    zone: str
    layer: str
    position: float
    render_title: bool

    model_config = ConfigDict(from_attributes=True)


class LayersOverviewResponse(BaseModel):
    layers: List[Layer]
    zones: List[str]
    widgets: Dict[str, List[LayerMetadataResponse]]
