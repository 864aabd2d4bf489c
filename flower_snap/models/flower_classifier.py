import logging
import torch
import torch.nn as nn
from torchvision import models
from typing import List, Optional
from pathlib import Path
from flower_snap.models.records import CapturedImage, ClassificationResult, Prediction
from flower_snap.utils import ImageProcessor, ModelUnavailable, NoClassification
from flower_snap.config.settings import MODEL_ARCHITECTURE

logger = logging.getLogger(__name__)


class FlowerClassifier:
    def __init__(
        self,
        model_path: Path,
        class_names_path: Path,
        device: str = None,
        architecture: str = MODEL_ARCHITECTURE,
        model: Optional[nn.Module] = None,
        image_processor: Optional[ImageProcessor] = None
    ):
        """
        Инициализация классификатора цветов

        Args:
            model_path: путь к файлу весов
            class_names_path: путь к файлу с именами классов
            device: устройство для вычислений ('cuda' или 'cpu')
            architecture: архитектура семейства EfficientNet из torchvision
            model: готовая модель; если задана, веса из model_path не загружаются
            image_processor: обработчик изображений для подготовки тензора

        Raises:
            ModelUnavailable: если модель не удалось загрузить
        """
        self.class_names = self._load_class_names(class_names_path)
        self.num_classes = len(self.class_names)
        self.device = device or ('cuda' if torch.cuda.is_available() else 'cpu')
        self.architecture = architecture

        # Инициализируем обработчик изображений
        self.image_processor = image_processor or ImageProcessor()

        if model is None:
            self.model = self._initialize_model()
            self._load_weights(Path(model_path))
        else:
            self.model = model.to(self.device)
        self.model.eval()

    def _load_class_names(self, class_names_path: Path) -> List[str]:
        """Загрузка имен классов из файла"""
        try:
            with open(class_names_path, 'r', encoding='utf-8') as f:
                return [line.strip() for line in f.readlines() if line.strip()]
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Ошибка при загрузке классов: {str(e)}")
            raise ModelUnavailable(
                f"Файл с именами классов недоступен: {class_names_path}",
                details={"path": str(class_names_path)}
            ) from e

    def _initialize_model(self) -> nn.Module:
        """Инициализация архитектуры модели"""
        try:
            model = getattr(models, self.architecture)(weights=None)

            # Замораживаем веса базовой модели
            for param in model.parameters():
                param.requires_grad = False

            # Заменяем классификатор
            num_ftrs = model.classifier[1].in_features
            model.classifier = nn.Sequential(
                nn.Dropout(p=0.2),
                nn.Linear(num_ftrs, self.num_classes)
            )

            return model.to(self.device)

        except Exception as e:
            logger.error(f"Ошибка инициализации модели: {str(e)}")
            raise ModelUnavailable(f"Ошибка инициализации модели: {str(e)}") from e

    def _load_weights(self, model_path: Path) -> None:
        """Загрузка весов модели"""
        if not model_path.exists():
            logger.error(f"Файл весов не найден: {model_path}")
            raise ModelUnavailable(
                f"Файл весов не найден: {model_path}",
                details={"path": str(model_path)}
            )

        try:
            checkpoint = torch.load(model_path, map_location=self.device)
            state_dict = checkpoint.get('state_dict', checkpoint) if isinstance(checkpoint, dict) else checkpoint

            missing, unexpected = self.model.load_state_dict(state_dict, strict=True)

            if missing or unexpected:
                raise ValueError(f"Проблемы при загрузке весов: missing={missing}, unexpected={unexpected}")

        except Exception as e:
            logger.error(f"Ошибка загрузки весов: {str(e)}")
            raise ModelUnavailable(
                f"Ошибка загрузки весов: {str(e)}",
                details={"path": str(model_path)}
            ) from e

    @torch.no_grad()
    def predict(self, image: CapturedImage, top_k: int = 3) -> ClassificationResult:
        """
        Получение предсказаний модели

        Равные уверенности сохраняют порядок классов: выигрывает меньший индекс.

        Args:
            image: снимок после конвертации в пиксельный буфер
            top_k: количество лучших предсказаний

        Returns:
            ClassificationResult, отсортированный по убыванию уверенности

        Raises:
            NoClassification: если модель не вернула ни одного класса
        """
        if self.num_classes == 0:
            raise NoClassification("Список классов пуст")

        top_k = max(1, min(top_k, self.num_classes))

        # Используем ImageProcessor для обработки изображения
        image_tensor = self.image_processor.process_image(image.pixels)
        # Добавляем размерность батча для модели
        image_tensor = image_tensor.unsqueeze(0).to(self.device)

        outputs = self.model(image_tensor)
        if outputs.numel() == 0:
            raise NoClassification("Модель вернула пустой результат")

        probabilities = torch.nn.functional.softmax(outputs, dim=1)[0]
        top_probs, top_indices = torch.sort(probabilities, descending=True, stable=True)

        predictions = []
        for prob, idx in zip(top_probs[:top_k].tolist(), top_indices[:top_k].tolist()):
            if idx >= self.num_classes:
                logger.warning(f"Индекс класса {idx} вне списка классов")
                continue
            predictions.append(Prediction(
                label=self.class_names[idx],
                confidence=min(1.0, max(0.0, float(prob)))
            ))

        if not predictions:
            raise NoClassification()

        # Очистка CUDA памяти, если используется GPU
        if torch.cuda.is_available():
            torch.cuda.empty_cache()

        return ClassificationResult(predictions)

    def __del__(self):
        """Очистка ресурсов при удалении объекта"""
        if torch.cuda.is_available():
            torch.cuda.empty_cache()
