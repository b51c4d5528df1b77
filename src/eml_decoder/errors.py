"""
Error taxonomy for EML decoding.

Missing input files raise the builtin FileNotFoundError at construction time.
Everything else raised by the decoder derives from EmlDecoderError.
"""


class EmlDecoderError(Exception):
    """Base class for all decoder errors."""


class DecodeIOError(EmlDecoderError, IOError):
    """Reading the input stream failed or was stopped mid-decode."""


class InvalidEncodingError(EmlDecoderError, ValueError):
    """Content is not valid for its declared transfer encoding (e.g. bad base64)."""


class UnsupportedCharsetError(EmlDecoderError, LookupError):
    """Charset name cannot be mapped to a Python codec."""

    def __init__(self, charset: str):
        super().__init__(f"Unsupported charset: {charset!r}")
        self.charset = charset
