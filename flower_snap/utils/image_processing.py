import logging
from pathlib import Path
from typing import Union
from PIL import Image
import torch
from torchvision import transforms
from torchvision.transforms import functional as F
from pillow_heif import register_heif_opener
from io import BytesIO
from .exceptions import ImageConversionFailure
from flower_snap.config import MODEL_INPUT_SIZE, MAX_IMAGE_SIZE

# Регистрируем обработчик HEIF/HEIC
register_heif_opener()

ImageInput = Union[bytes, str, Path, Image.Image]


class ImageProcessor:
    def __init__(self, input_size: int = MODEL_INPUT_SIZE, max_image_size: int = MAX_IMAGE_SIZE):
        self.logger = logging.getLogger(__name__)
        self.input_size = input_size
        self.max_image_size = max_image_size

        self.resize_transform = transforms.Resize(max_image_size)

        self.model_transform = transforms.Compose([
            transforms.Resize((input_size, input_size)),
            transforms.ToTensor(),
            transforms.Normalize(
                mean=[0.485, 0.456, 0.406],
                std=[0.229, 0.224, 0.225]
            )
        ])

    def to_pil(self, image_input: ImageInput) -> Image.Image:
        """
        Конвертация входных данных в PIL Image

        Args:
            image_input: Входные данные в одном из форматов:
                - bytes: байты изображения
                - str: путь к файлу
                - Path: путь к файлу
                - Image.Image: PIL изображение

        Returns:
            Image.Image: PIL изображение в формате RGB

        Raises:
            ImageConversionFailure: если данные не удалось декодировать
        """
        try:
            if isinstance(image_input, bytes):
                return Image.open(BytesIO(image_input)).convert('RGB')

            elif isinstance(image_input, (str, Path)):
                path = Path(image_input)
                if not path.exists():
                    raise FileNotFoundError(f"Файл не найден: {path}")
                with Image.open(path) as img:
                    return img.convert('RGB')

            elif isinstance(image_input, Image.Image):
                return image_input.convert('RGB')

            else:
                raise ValueError(f"Неподдерживаемый тип входных данных: {type(image_input)}")

        except Exception as e:
            self.logger.error(f"Ошибка при конвертации изображения: {str(e)}")
            raise ImageConversionFailure(
                f"Не удалось конвертировать снимок: {str(e)}",
                details={"input_type": type(image_input).__name__}
            ) from e

    def square_crop(self, img: Image.Image) -> Image.Image:
        """Квадратная обрезка по центру, как при редактировании снимка в камере"""
        side = min(img.size)
        if img.size == (side, side):
            return img
        return F.center_crop(img, [side, side])

    def process_image(self, image_input: ImageInput) -> torch.Tensor:
        """
        Обработка входного изображения

        Args:
            image_input: Входные данные (см. to_pil)

        Returns:
            torch.Tensor: Подготовленный тензор изображения размерности (C, H, W)

        Raises:
            ImageConversionFailure: При ошибках обработки изображения
        """
        img = self.to_pil(image_input)
        try:
            # Сохраняем оригинальные размеры
            original_size = img.size
            self.logger.debug(f"Оригинальный размер изображения: {original_size}")

            # Уменьшаем большие изображения
            if max(original_size) > self.max_image_size:
                img = self.resize_transform(img)
                self.logger.debug(f"Изображение уменьшено до: {img.size}")

            # Подготавливаем для модели
            tensor = self.model_transform(img)
            self.logger.debug(f"Размер тензора: {tensor.shape}")

            return tensor

        except Exception as e:
            self.logger.error(f"Ошибка обработки изображения: {str(e)}")
            raise ImageConversionFailure(f"Не удалось обработать изображение: {str(e)}") from e
