from .flower_service import FlowerService, get_flower_service, close_flower_service
from .capture import CaptureController
from .description_fetcher import DescriptionFetcher, build_query_params, parse_description
from .image_loader import ImageLoader, ImageLoadError
from .presentation import Phase, ScreenState, PresentationSink, display_title
from .pipeline import FlowerPipeline

__all__ = [
    'FlowerService',
    'get_flower_service',
    'close_flower_service',
    'CaptureController',
    'DescriptionFetcher',
    'build_query_params',
    'parse_description',
    'ImageLoader',
    'ImageLoadError',
    'Phase',
    'ScreenState',
    'PresentationSink',
    'display_title',
    'FlowerPipeline',
]
