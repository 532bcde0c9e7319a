from fastapi import APIRouter, HTTPException, Query
from typing import List, Optional

from app.api.deps import AdminUser, LayerServiceDep, LayersAdminDep
from app.core.exceptions import (
    DuplicateLayerError,
    LayerInUseError,
    LayerNotFoundError,
    WidgetNotFoundError,
)
from app.models.content_item import ContentItem, LayerMetadata
from app.schemas.layers import (
    Layer,
    LayerCreate,
    LayerMetadataResponse,
    LayersDocument,
    LayersOverviewResponse,
    LayersUpdate,
    LayerUpdate,
    WidgetPositionUpdate,
)

router = APIRouter()


def _metadata_response(metadata: LayerMetadata) -> LayerMetadataResponse:
    item = metadata.content_item
    return LayerMetadataResponse(
        content_item_id=item.content_item_id,
        content_type=item.content_type,
        display_text=item.display_text,
        culture=item.culture,
        zone=metadata.zone,
        layer=metadata.layer,
        position=metadata.position,
        render_title=metadata.render_title,
    )


@router.get("/", response_model=LayersDocument, name="list")
def get_layers(layer_service: LayerServiceDep, admin: AdminUser):
    """Get the layers document (served from the memory cache)"""
    return layer_service.get_layers()


@router.put("/", response_model=LayersDocument, tags=["admin"], name="replace")
def replace_layers(payload: LayersUpdate, layer_service: LayerServiceDep, admin: AdminUser):
    """Replace the whole list of layers"""
    for layer in payload.layers:
        layer.name = layer.name.strip()
        if not layer.name:
            raise HTTPException(status_code=400, detail="Name is required")

    names = [layer.name.lower() for layer in payload.layers]
    if len(names) != len(set(names)):
        raise HTTPException(status_code=409, detail="A layer with the same name already exists.")

    # Written through the copy loaded for update, never through the cached one
    layers = layer_service.load_layers()
    layers.layers = payload.layers
    layer_service.update(layers)

    return layer_service.get_layers()


@router.get("/overview", response_model=LayersOverviewResponse, tags=["admin"], name="overview")
def get_overview(admin_service: LayersAdminDep, admin: AdminUser):
    """Layers, zones and widgets grouped by zone"""
    overview = admin_service.get_overview()
    return {
        "layers": overview["layers"],
        "zones": overview["zones"],
        "widgets": {
            zone: [_metadata_response(m) for m in items]
            for zone, items in overview["widgets"].items()
        },
    }


@router.post("/items", response_model=Layer, status_code=201, tags=["admin"], name="create")
def create_layer(payload: LayerCreate, admin_service: LayersAdminDep, admin: AdminUser):
    try:
        return admin_service.create_layer(payload.name, payload.rule, payload.description)
    except DuplicateLayerError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/items/{name}", response_model=Layer, tags=["admin"], name="update")
def update_layer(name: str, payload: LayerUpdate, admin_service: LayersAdminDep, admin: AdminUser):
    try:
        return admin_service.update_layer(name, payload.rule, payload.description)
    except LayerNotFoundError:
        raise HTTPException(status_code=404, detail="Layer not found")


@router.delete("/items/{name}", tags=["admin"], name="delete")
def delete_layer(name: str, admin_service: LayersAdminDep, admin: AdminUser):
    try:
        admin_service.delete_layer(name)
    except LayerNotFoundError:
        raise HTTPException(status_code=404, detail="Layer not found")
    except LayerInUseError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"message": f"Layer '{name}' deleted"}


@router.patch("/widgets/{content_item_id}/position", response_model=LayerMetadataResponse,
              tags=["admin"], name="widget-position")
def update_widget_position(content_item_id: str, payload: WidgetPositionUpdate,
                           admin_service: LayersAdminDep, admin: AdminUser):
    try:
        metadata = admin_service.update_widget_position(content_item_id, payload.zone, payload.position)
    except WidgetNotFoundError:
        raise HTTPException(status_code=404, detail="Widget not found")

    return _metadata_response(metadata)


@router.get("/widgets", response_model=List[LayerMetadataResponse], name="widgets")
def get_widgets(layer_service: LayerServiceDep,
                zone: Optional[str] = Query(None, description="Only widgets of this zone")):
    """Published widgets for the culture of the request, ordered by position"""
    criteria = [ContentItem.published == True]
    if zone:
        criteria.append(LayerMetadata.zone == zone)

    return [_metadata_response(m) for m in layer_service.get_layer_widgets_metadata(*criteria)]
