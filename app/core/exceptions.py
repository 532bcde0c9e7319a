"""Errors raised by the layers services. Routers map them to HTTP responses."""


class DocumentReadOnlyError(ValueError):
    """A cached, shared document was handed back for writing."""

    def __init__(self, message: str = "The object is read-only"):
        super().__init__(message)


class DuplicateLayerError(ValueError):
    pass


class LayerInUseError(ValueError):
    pass


class LayerNotFoundError(LookupError):
    pass


class WidgetNotFoundError(LookupError):
    pass
