"""
Переходные сущности одного цикла снимок -> описание.
Ничего не сохраняется между циклами.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from PIL import Image

from flower_snap.utils.exceptions import NoClassification


@dataclass
class CapturedImage:
    """Пиксельный буфер снимка после редактирования (квадратная обрезка, RGB)"""
    pixels: Image.Image
    source_size: Tuple[int, int]

    @property
    def size(self) -> Tuple[int, int]:
        return self.pixels.size


@dataclass(frozen=True)
class Prediction:
    label: str
    confidence: float


@dataclass(frozen=True)
class ClassificationResult:
    """
    Ранжированный список предсказаний.

    Инварианты: уверенность в [0, 1], порядок по убыванию уверенности.
    """
    predictions: Tuple[Prediction, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "predictions", tuple(self.predictions))
        previous = None
        for pred in self.predictions:
            if not 0.0 <= pred.confidence <= 1.0:
                raise ValueError(f"Уверенность вне диапазона [0, 1]: {pred}")
            if previous is not None and pred.confidence > previous:
                raise ValueError("Предсказания должны быть отсортированы по убыванию уверенности")
            previous = pred.confidence

    def __len__(self) -> int:
        return len(self.predictions)

    def __iter__(self):
        return iter(self.predictions)

    @property
    def top(self) -> Prediction:
        if not self.predictions:
            raise NoClassification()
        return self.predictions[0]


@dataclass(frozen=True)
class DescriptionRecord:
    title: str
    extract_text: str = ""
    image_url: Optional[str] = None
    page_id: Optional[str] = None
