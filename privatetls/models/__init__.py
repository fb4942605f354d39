"""
Models package for the privatetls application.
"""

from .config import Config, ConfigValidationError, ConfigValidationResult, DEFAULT_ADDRESS

__all__ = [
    'Config',
    'ConfigValidationError',
    'ConfigValidationResult',
    'DEFAULT_ADDRESS'
]
