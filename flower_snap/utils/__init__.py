"""
Utility functions and classes
"""

from .exceptions import (
    ErrorKind,
    FlowerSnapError,
    ImageConversionFailure,
    ModelUnavailable,
    NoClassification,
    FetchTransportError,
    FetchParseError,
    StaleResponseDiscarded,
)
from .image_processing import ImageProcessor

__all__ = [
    'ErrorKind',
    'FlowerSnapError',
    'ImageConversionFailure',
    'ModelUnavailable',
    'NoClassification',
    'FetchTransportError',
    'FetchParseError',
    'StaleResponseDiscarded',
    'ImageProcessor',
]
