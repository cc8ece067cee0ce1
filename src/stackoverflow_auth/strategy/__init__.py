"""Authentication strategies.

This module contains the strategy interface and its concrete implementations.
"""

from .base import AuthFlow, Strategy
from .stackoverflow import StackExchangeUserModel, StackOverflowStrategy

__all__ = [
    "AuthFlow",
    "StackExchangeUserModel",
    "StackOverflowStrategy",
    "Strategy",
]
