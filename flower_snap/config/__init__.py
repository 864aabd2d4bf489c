"""
Config for flower snap
"""

from .settings import (
    MODEL_INPUT_SIZE,
    MAX_IMAGE_SIZE,
    WEIGHT_PATH,
    CLASS_NAMES_PATH,
    TOP_K,
    WIKIPEDIA_URL,
    THUMB_SIZE,
    REQUEST_TIMEOUT,
    USER_AGENT,
    IMAGE_CACHE_SIZE,
)

__all__ = [
    'MODEL_INPUT_SIZE',
    'MAX_IMAGE_SIZE',
    'WEIGHT_PATH',
    'CLASS_NAMES_PATH',
    'TOP_K',
    'WIKIPEDIA_URL',
    'THUMB_SIZE',
    'REQUEST_TIMEOUT',
    'USER_AGENT',
    'IMAGE_CACHE_SIZE',
]
