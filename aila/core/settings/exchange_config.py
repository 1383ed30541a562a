"""Turn exchange configuration."""

from pydantic import BaseModel


class ExchangeConfig(BaseModel, frozen=True):
    """Chat naming and persistence policy for a turn exchange."""

    name_max_length: int
    name_ellipsis: str
    require_persistence: bool
