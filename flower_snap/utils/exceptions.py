from enum import Enum


class ErrorKind(str, Enum):
    """Виды ошибок, которые видит пользователь на экране"""
    IMAGE_CONVERSION_FAILURE = "image_conversion_failure"
    MODEL_UNAVAILABLE = "model_unavailable"
    NO_CLASSIFICATION = "no_classification"
    FETCH_TRANSPORT_ERROR = "fetch_transport_error"
    FETCH_PARSE_ERROR = "fetch_parse_error"


class FlowerSnapError(Exception):
    """Базовое исключение конвейера снимок -> классификация -> описание"""
    kind: ErrorKind = None
    default_message = "Ошибка обработки снимка"

    def __init__(self, message: str = None, details: dict = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ImageConversionFailure(FlowerSnapError):
    """Исключение при конвертации снимка в пиксельный буфер"""
    kind = ErrorKind.IMAGE_CONVERSION_FAILURE
    default_message = "Не удалось конвертировать снимок"


class ModelUnavailable(FlowerSnapError):
    """Исключение при загрузке модели"""
    kind = ErrorKind.MODEL_UNAVAILABLE
    default_message = "Модель классификации недоступна"


class NoClassification(FlowerSnapError):
    """Модель не вернула ни одного класса"""
    kind = ErrorKind.NO_CLASSIFICATION
    default_message = "Не удалось классифицировать изображение"


class FetchTransportError(FlowerSnapError):
    """Исключение при запросе к Wikipedia"""
    kind = ErrorKind.FETCH_TRANSPORT_ERROR
    default_message = "Не удалось получить описание"


class FetchParseError(FlowerSnapError):
    """Ответ Wikipedia получен, но не содержит ожидаемых полей"""
    kind = ErrorKind.FETCH_PARSE_ERROR
    default_message = "Не удалось разобрать описание"


class StaleResponseDiscarded(FlowerSnapError):
    """Ответ пришёл для устаревшего снимка и отброшен. На экран не выводится"""
    default_message = "Устаревший ответ отброшен"
