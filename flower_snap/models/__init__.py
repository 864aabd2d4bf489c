from .records import CapturedImage, Prediction, ClassificationResult, DescriptionRecord
from .flower_classifier import FlowerClassifier

__all__ = [
    'CapturedImage',
    'Prediction',
    'ClassificationResult',
    'DescriptionRecord',
    'FlowerClassifier',
]
