"""
Application configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Decoder configuration from environment variables.

    Every setting can be overridden with an ``EML_DECODER_`` prefixed variable,
    e.g. ``EML_DECODER_LOG_LEVEL=DEBUG``.
    """

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False  # uvicorn auto-reload, for development

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Input stream
    input_encoding: str = "utf-8"  # Text encoding used to read the .eml line stream
    input_errors: str = "replace"  # Codec error handler for undecodable input bytes
    line_terminator: str = "\r\n"  # Appended to every stored body line

    # Processing limits
    max_email_size_mb: int = 25

    # Output
    debug_indent: str = "  "
    summary_max_text_chars: int = 20000  # Truncate text included in summaries

    model_config = {
        "env_prefix": "EML_DECODER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


# Global settings instance
settings = Settings()
