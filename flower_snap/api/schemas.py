from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from flower_snap.services.presentation import ScreenState


class PredictItem(BaseModel):
    """Схема одного предсказания классификатора"""
    class_name: str = Field(..., description="Название класса цветка")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Уверенность модели в предсказании")


class ScreenOut(BaseModel):
    """Схема состояния экрана"""
    phase: str = Field(..., examples=["rendered"], description="Текущая стадия цикла")
    sequence: int = Field(..., description="Номер текущего снимка")
    title: str = Field("", description="Название цветка")
    body: str = Field("", description="Вступление статьи Wikipedia")
    image_source: Optional[str] = Field(None, description="capture или thumbnail")
    image_url: Optional[str] = Field(None, description="Адрес миниатюры")
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    predictions: List[PredictItem] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.now, description="Время формирования ответа")

    @classmethod
    def from_state(cls, state: ScreenState) -> "ScreenOut":
        return cls(
            phase=state.phase.value,
            sequence=state.sequence,
            title=state.title,
            body=state.body,
            image_source=state.image_source,
            image_url=state.image_url,
            error_kind=state.error_kind.value if state.error_kind else None,
            error_message=state.error_message,
            predictions=[
                PredictItem(class_name=pred.label, confidence=round(pred.confidence, 4))
                for pred in state.predictions
            ],
        )


class HealthResponse(BaseModel):
    """Схема для health check"""
    status: str
    service: str = "flower_snap"
    model_loaded: bool
    timestamp: datetime = Field(default_factory=datetime.now)
    error: Optional[str] = None
