"""Base Pydantic model with strict defaults for atmoderive configs.

All configuration schemas (and every recipe's Parameters model) inherit
from this base to ensure consistent validation behavior.
"""

from pydantic import BaseModel, ConfigDict


class DeriveBaseModel(BaseModel):
    """Base model for all atmoderive configuration schemas.

    Enforces strict validation:
    - No extra fields allowed
    - Validates assignments after initialization
    - Uses Python mode (not JSON mode)
    """

    model_config = ConfigDict(
        extra='forbid',           # Reject unknown fields
        validate_assignment=True, # Validate on field mutation
        use_enum_values=True,     # Convert enums to values
        str_strip_whitespace=True,# Strip whitespace from strings
    )
