"""Configuration exceptions."""

from .base import DocRetrievalError


class ConfigurationError(DocRetrievalError):
    """Invalid or missing configuration."""

    error_code = "DR_CFG_001"


class MissingAPIKeyError(ConfigurationError):
    """Required API key is not set.

    Set the key in the environment or in ``.env``:
    - GOOGLE_API_KEY for Gemini embeddings
    - QDRANT_URL / QDRANT_API_KEY for the Qdrant chunk store
    """

    error_code = "DR_CFG_002"


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is present but unusable."""

    error_code = "DR_CFG_003"
