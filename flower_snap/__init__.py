"""
Flower Snap: flower photo classification with Wikipedia descriptions
"""

from .models import FlowerClassifier, ClassificationResult, DescriptionRecord
from .services import FlowerService, FlowerPipeline, DescriptionFetcher, ImageLoader
from .utils import ImageProcessor, FlowerSnapError, ErrorKind

__version__ = '1.0.0'

__all__ = [
    'FlowerClassifier',
    'ClassificationResult',
    'DescriptionRecord',
    'FlowerService',
    'FlowerPipeline',
    'DescriptionFetcher',
    'ImageLoader',
    'ImageProcessor',
    'FlowerSnapError',
    'ErrorKind',
]
