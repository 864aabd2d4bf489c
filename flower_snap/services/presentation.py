import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from PIL import Image

from flower_snap.models import DescriptionRecord, Prediction
from flower_snap.utils import ErrorKind

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    CLASSIFYING = "classifying"
    FETCHING_DESCRIPTION = "fetching_description"
    RENDERED = "rendered"
    ERROR = "error"


# Начало слова: после пробела, дефиса и прочих не-букв, кроме апострофа
_WORD_START = re.compile(r"(^|[^\w'])(\w)")


def display_title(label: str) -> str:
    """Каждое слово метки с заглавной буквы, в том числе после дефиса"""
    lowered = " ".join(label.split()).lower()
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), lowered)


@dataclass
class ScreenState:
    """То, что сейчас на экране. Перезаписывается каждым циклом"""
    phase: Phase = Phase.IDLE
    title: str = ""
    body: str = ""
    image: Optional[Image.Image] = None
    image_source: Optional[str] = None
    image_url: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    sequence: int = 0
    predictions: List[Prediction] = field(default_factory=list)


class PresentationSink:
    def __init__(self):
        self.state = ScreenState()

    def set_phase(self, phase: Phase, sequence: Optional[int] = None) -> None:
        self.state.phase = phase
        if sequence is not None:
            self.state.sequence = sequence
        if phase != Phase.ERROR:
            self.state.error_kind = None
            self.state.error_message = None

    def reset(self, phase: Phase, sequence: int) -> None:
        """Новый цикл: экран очищается, ничего из прошлого снимка не остаётся"""
        self.state = ScreenState(phase=phase, sequence=sequence)

    def show_capture(self, image: Image.Image) -> None:
        self.state.image = image
        self.state.image_source = "capture"
        self.state.image_url = None

    def show_title(self, label: str, predictions: Optional[List[Prediction]] = None) -> None:
        self.state.title = display_title(label)
        self.state.predictions = list(predictions or [])

    def render(self, title: str, record: Optional[DescriptionRecord]) -> None:
        """
        Вывод описания

        Args:
            title: метка классификации
            record: описание или None, если статья не найдена
        """
        self.state.title = display_title(title)
        # Пустое или отсутствующее описание очищает текст
        self.state.body = record.extract_text if record is not None else ""
        self.set_phase(Phase.RENDERED)
        logger.info(f"Описание выведено: '{self.state.title}'")

    def show_thumbnail(self, url: str, image: Image.Image) -> None:
        self.state.image = image
        self.state.image_source = "thumbnail"
        self.state.image_url = url

    def show_error(self, kind: ErrorKind, message: str) -> None:
        self.state.phase = Phase.ERROR
        self.state.error_kind = kind
        self.state.error_message = message
        logger.warning(f"Ошибка на экране [{kind.value}]: {message}")
