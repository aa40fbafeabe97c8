from .service import ConversionService, dispatch, get_conversion_service
from .models import ConversionRequest, ConversionResult, FormatCategory
from .workspace import Workspace

__all__ = [
    "ConversionService",
    "ConversionRequest",
    "ConversionResult",
    "FormatCategory",
    "Workspace",
    "dispatch",
    "get_conversion_service",
]
