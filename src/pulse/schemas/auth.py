"""Authentication schemas."""

from pydantic import BaseModel


class KeyAuthConfig(BaseModel):
    """Whether API keys are required, and which ones are accepted."""

    enabled: bool = False
    valid_keys: frozenset[str] = frozenset()

    model_config = {"frozen": True}
