import asyncio
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import torch
import torch.nn as nn
from PIL import Image

from flower_snap.models import ClassificationResult, DescriptionRecord, FlowerClassifier, Prediction
from flower_snap.services import FlowerService, ImageLoadError


class FixedLogits(nn.Module):
    """Модель-заглушка: одинаковые логиты для любого входа"""

    def __init__(self, logits: List[float]):
        super().__init__()
        self.register_buffer("logits", torch.tensor([logits], dtype=torch.float32))

    def forward(self, x):
        return self.logits.expand(x.shape[0], -1)


class FakeService:
    """Классификатор, возвращающий метки по очереди"""

    def __init__(self, labels: List[str]):
        self.labels = list(labels)
        self.calls = 0

    def classify(self, image) -> ClassificationResult:
        label = self.labels[self.calls % len(self.labels)]
        self.calls += 1
        return ClassificationResult([Prediction(label, 0.9), Prediction("other", 0.1)])


class FakeFetcher:
    """Описания из словаря; для меток с gate ответ ждёт события"""

    def __init__(self, records: Optional[Dict[str, Optional[DescriptionRecord]]] = None):
        self.records = records or {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.errors: Dict[str, Exception] = {}
        self.requested: List[str] = []
        self.ignore_cancel = False
        self.closed = False

    async def fetch(self, label: str) -> Optional[DescriptionRecord]:
        self.requested.append(label)
        gate = self.gates.get(label)
        while gate is not None:
            try:
                await gate.wait()
                break
            except asyncio.CancelledError:
                if not self.ignore_cancel:
                    raise
        if label in self.errors:
            raise self.errors[label]
        return self.records.get(label)

    def close(self):
        self.closed = True


class FakeImageLoader:
    def __init__(self, images: Optional[Dict[str, Image.Image]] = None):
        self.images = images or {}
        self.requested: List[str] = []

    async def load(self, url: str) -> Image.Image:
        self.requested.append(url)
        if url not in self.images:
            raise ImageLoadError(f"Нет изображения {url}")
        return self.images[url]


def make_photo_bytes(size=(640, 480), color=(200, 30, 60), fmt="JPEG") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def photo_bytes() -> bytes:
    return make_photo_bytes()


@pytest.fixture
def class_names_path(tmp_path) -> Path:
    path = tmp_path / "class_names.txt"
    path.write_text("rose\nsunflower\ncommon dandelion\n", encoding="utf-8")
    return path


@pytest.fixture
def stub_classifier(class_names_path) -> FlowerClassifier:
    return FlowerClassifier(
        model_path=Path("unused.pth"),
        class_names_path=class_names_path,
        device="cpu",
        model=FixedLogits([0.5, 2.0, 1.0])
    )


@pytest.fixture
def stub_service(stub_classifier) -> FlowerService:
    return FlowerService(classifier=stub_classifier, top_k=3)
