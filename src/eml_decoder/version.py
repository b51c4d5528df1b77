"""
Version constants for the EML decoder.
"""

# API Version
API_VERSION = "1.0.0"

# Component versions (update these when implementations change)
DECODER_VERSION = "eml-decoder-1.0.0"
HEADER_WORD_DECODER_VERSION = "rfc2047-1.0.0"
ADDRESS_PARSER_VERSION = "address-list-1.0.0"


def get_component_versions() -> dict:
    """
    Get the version of every decoding component.

    Returns:
        Mapping of component name to version string
    """
    return {
        "decoder": DECODER_VERSION,
        "header_words": HEADER_WORD_DECODER_VERSION,
        "addresses": ADDRESS_PARSER_VERSION,
    }
