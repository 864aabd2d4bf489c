import logging
from typing import Optional

from flower_snap.models import CapturedImage
from flower_snap.utils import ImageProcessor
from flower_snap.utils.image_processing import ImageInput

logger = logging.getLogger(__name__)


class CaptureController:
    """Принимает отредактированный снимок и превращает его в пиксельный буфер"""

    def __init__(self, image_processor: Optional[ImageProcessor] = None):
        self.image_processor = image_processor or ImageProcessor()

    def capture(self, photo: Optional[ImageInput]) -> Optional[CapturedImage]:
        """
        Args:
            photo: снимок пользователя; None или пустые байты означают отмену

        Returns:
            CapturedImage или None при отмене

        Raises:
            ImageConversionFailure: снимок не удалось конвертировать
        """
        if photo is None or (isinstance(photo, bytes) and len(photo) == 0):
            logger.info("Съёмка отменена пользователем")
            return None

        img = self.image_processor.to_pil(photo)
        source_size = img.size
        pixels = self.image_processor.square_crop(img)
        logger.debug(f"Снимок {source_size} обрезан до {pixels.size}")
        return CapturedImage(pixels=pixels, source_size=source_size)
