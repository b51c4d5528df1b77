"""
API and CLI summary models.

This module defines the Pydantic models used to serialize a decoded message
for the HTTP endpoints and the command-line tool.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ..addresses import EmailAddress


class PartSummary(BaseModel):
    """One node of the MIME tree, with decoded content metadata."""

    path: str = Field(description="Position in the tree, e.g. '1' or '2.1'")
    content_type: Optional[str] = Field(None, description="Content-Type header value")
    transfer_encoding: Optional[str] = Field(
        None, description="Content-Transfer-Encoding header value"
    )
    charset: Optional[str] = Field(None, description="Declared charset parameter")
    detected_charset: Optional[str] = Field(
        None, description="charset-normalizer guess when no charset is declared"
    )
    name: Optional[str] = Field(None, description="Name parameter (attachment filename)")
    type_label: Optional[str] = Field(None, description="Short type label, e.g. 'PDF'")
    headers: Dict[str, List[str]] = Field(
        default_factory=dict, description="Headers declared on this part"
    )
    boundary: Optional[str] = Field(None, description="Boundary of this part's subparts")
    size_bytes: Optional[int] = Field(None, description="Size of the decoded content")
    text: Optional[str] = Field(None, description="Decoded text (text parts, on request)")
    error: Optional[str] = Field(None, description="Content decoding error, if any")
    subparts: List["PartSummary"] = Field(default_factory=list, description="Child parts")


class MessageSummary(BaseModel):
    """A decoded .eml message."""

    filename: Optional[str] = Field(None, description="Source filename")
    filesize: int = Field(description="Source size in bytes")
    decoded_okay: bool = Field(description="Whether decoding completed without error")
    decoded_size: int = Field(description="Estimated characters read")
    subject: Optional[str] = Field(None, description="Decoded Subject header")
    date: Optional[str] = Field(None, description="Date header as written")
    from_address: Optional[EmailAddress] = Field(None, description="Parsed From header")
    to_addresses: List[EmailAddress] = Field(default_factory=list, description="Parsed To header")
    cc_addresses: List[EmailAddress] = Field(default_factory=list, description="Parsed Cc header")
    headers: Dict[str, List[str]] = Field(default_factory=dict, description="All top-level headers")
    boundary: Optional[str] = Field(None, description="Top-level boundary")
    parts: List[PartSummary] = Field(default_factory=list, description="Top-level parts")


class DecodeEmlResponse(BaseModel):
    """Response model for the EML decode endpoint."""

    success: bool = Field(description="Whether decoding succeeded")
    message: Optional[MessageSummary] = Field(None, description="Decoded message")
    processing_time_ms: Optional[float] = Field(None, description="Processing time in milliseconds")
    error: Optional[str] = Field(None, description="Error message if failed")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status", examples=["healthy", "degraded"])
    version: str = Field(description="API version", examples=["1.0.0"])
    decoder_version: str = Field(description="Decode engine version", examples=["eml-decoder-1.0.0"])
    uptime_seconds: float = Field(description="Service uptime")
    max_email_size_mb: int = Field(description="Largest accepted upload")
    input_encoding: str = Field(description="Text encoding used to read uploads")


class VersionResponse(BaseModel):
    """Version information response."""

    api_version: str = Field(description="API version")
    components: Dict[str, str] = Field(description="Decoder component versions")


PartSummary.model_rebuild()
