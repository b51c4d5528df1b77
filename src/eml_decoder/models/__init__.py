# Data models for the EML decoder

from .headers import HeaderMap
from .part_tree import Part
from .api_models import (
    DecodeEmlResponse,
    HealthResponse,
    MessageSummary,
    PartSummary,
    VersionResponse,
)

__all__ = [
    "HeaderMap",
    "Part",
    "PartSummary",
    "MessageSummary",
    "DecodeEmlResponse",
    "HealthResponse",
    "VersionResponse",
]
