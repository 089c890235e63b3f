"""Source history providers."""

from .provider import SourceHistoryProvider
from .vss import VSSProvider
from .exceptions import (
    SourceHistoryError,
    SourceUnavailableError,
    SourceItemNotFoundError,
)

__all__ = [
    'SourceHistoryProvider',
    'VSSProvider',
    'SourceHistoryError',
    'SourceUnavailableError',
    'SourceItemNotFoundError',
]
