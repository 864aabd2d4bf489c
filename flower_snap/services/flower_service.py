import logging
from pathlib import Path
from typing import Optional

from flower_snap.models import FlowerClassifier, CapturedImage, ClassificationResult
from flower_snap.config import WEIGHT_PATH, CLASS_NAMES_PATH, TOP_K
from flower_snap.config.settings import DEVICE
from flower_snap.utils import FlowerSnapError, NoClassification

logger = logging.getLogger(__name__)

_flower_service: Optional["FlowerService"] = None


class FlowerService:
    def __init__(
        self,
        model_path: Path = WEIGHT_PATH,
        class_names_path: Path = CLASS_NAMES_PATH,
        top_k: int = TOP_K,
        classifier: Optional[FlowerClassifier] = None
    ):
        """
        Сервис для классификации цветов

        Args:
            model_path: путь к весам модели
            class_names_path: путь к файлу с именами классов
            top_k: количество возвращаемых предсказаний
            classifier: готовый классификатор (вместо загрузки по путям)
        """
        self.classifier = classifier or FlowerClassifier(
            model_path=model_path,
            class_names_path=class_names_path,
            device=DEVICE
        )
        self.top_k = top_k

    @property
    def model(self):
        return self.classifier.model

    @property
    def class_names(self):
        return self.classifier.class_names

    def classify(self, image: CapturedImage) -> ClassificationResult:
        """
        Классификация цветка

        Raises:
            ImageConversionFailure: снимок не удалось подготовить для модели
            NoClassification: модель не вернула ни одного класса
        """
        try:
            return self.classifier.predict(image, top_k=self.top_k)
        except FlowerSnapError:
            raise
        except Exception as e:
            logger.exception(f"Ошибка при классификации: {str(e)}")
            raise NoClassification(f"Ошибка при классификации: {str(e)}") from e

    def close(self):
        """Освобождение ресурсов"""
        if hasattr(self, 'classifier'):
            del self.classifier


def get_flower_service() -> FlowerService:
    """
    Общий для процесса экземпляр FlowerService с ленивой инициализацией.

    Неудачная загрузка не кэшируется: следующий снимок попробует снова.

    Raises:
        ModelUnavailable: если модель не удалось загрузить
    """
    global _flower_service
    if _flower_service is None:
        logger.info("Инициализация FlowerService...")
        _flower_service = FlowerService()
        logger.info("FlowerService успешно инициализирован")
    return _flower_service


def is_model_loaded() -> bool:
    return _flower_service is not None


def close_flower_service() -> None:
    global _flower_service
    if _flower_service is not None:
        _flower_service.close()
        logger.info("FlowerService успешно закрыт")
    _flower_service = None
