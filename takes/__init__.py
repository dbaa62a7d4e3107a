"""Application package initialization."""

__all__: list[str] = []
