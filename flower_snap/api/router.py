from fastapi import APIRouter, File, UploadFile, HTTPException, Request, Response, status
from pathlib import Path
from io import BytesIO
import logging
from typing import Optional
from ..services.pipeline import FlowerPipeline
from ..utils.exceptions import ModelUnavailable
from ..config.settings import ALLOWED_FORMATS, MAX_FILE_SIZE
from .schemas import ScreenOut, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/flower",
    tags=["Flower"],
)


def get_pipeline(request: Request) -> FlowerPipeline:
    """Конвейер экрана, созданный в lifespan приложения"""
    pipeline: Optional[FlowerPipeline] = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Сервис временно недоступен"
        )
    return pipeline


def is_valid_extension(filename: str) -> bool:
    """Проверка расширения файла"""
    if not filename:
        return False
    ext = Path(filename).suffix.lower()
    return any(ext in extensions for extensions in ALLOWED_FORMATS.values())


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Проверка состояния сервиса"""
    pipeline = get_pipeline(request)
    try:
        service = pipeline.classifier_provider()
        return HealthResponse(status="healthy", model_loaded=service is not None)
    except ModelUnavailable as e:
        logger.error(f"Health check failed: {e.message}")
        return HealthResponse(status="unhealthy", model_loaded=False, error=e.message)


@router.post("/camera", response_model=ScreenOut)
async def open_camera(request: Request):
    """Открытие камеры. Незавершённый запрос описания отменяется"""
    pipeline = get_pipeline(request)
    return ScreenOut.from_state(pipeline.begin_capture())


@router.post("/cancel", response_model=ScreenOut)
async def cancel_camera(request: Request):
    """Пользователь закрыл камеру без снимка"""
    pipeline = get_pipeline(request)
    return ScreenOut.from_state(pipeline.cancel_capture())


@router.post("/snap", response_model=ScreenOut)
async def snap_flower(request: Request, file: UploadFile = File(...)):
    """
    Отправка отредактированного снимка

    Args:
        file: Загруженное изображение (JPG, JPEG, PNG, WebP, HEIC, HEIF)

    Returns:
        Состояние экрана после классификации. Описание приходит позже,
        см. GET /flower/screen

    Raises:
        HTTPException: При неверном формате или размере файла
    """
    pipeline = get_pipeline(request)

    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Имя файла не указано"
        )

    if (file.content_type not in ALLOWED_FORMATS and
            not is_valid_extension(file.filename)):
        supported_formats = [
            ext[1:].upper()
            for exts in ALLOWED_FORMATS.values()
            for ext in exts
        ]
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Неверный формат файла. Поддерживаемые форматы: {', '.join(supported_formats)}"
        )

    try:
        contents = await file.read(MAX_FILE_SIZE + 1)

        if len(contents) > MAX_FILE_SIZE:
            size_mb = MAX_FILE_SIZE / (1024 * 1024)
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Размер файла превышает {size_mb:.0f}MB. Пожалуйста, используйте изображение меньшего размера."
            )

        logger.info(f"Получен файл: {file.filename} ({file.content_type})")
        logger.debug(f"Размер файла: {len(contents)} bytes")

        # Ошибки конвейера не прерывают работу: они показываются на экране
        state = pipeline.submit_photo(contents)
        return ScreenOut.from_state(state)

    finally:
        await file.close()


@router.get("/screen", response_model=ScreenOut)
async def get_screen(request: Request, wait: bool = False):
    """Текущее состояние экрана; wait=true дожидается описания и миниатюры"""
    pipeline = get_pipeline(request)
    if wait:
        await pipeline.settle()
    return ScreenOut.from_state(pipeline.state)


@router.get("/screen/image")
async def get_screen_image(request: Request):
    """Изображение на экране в формате JPEG"""
    pipeline = get_pipeline(request)
    image = pipeline.state.image
    if image is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="На экране нет изображения"
        )
    buffer = BytesIO()
    image.convert('RGB').save(buffer, format="JPEG")
    return Response(content=buffer.getvalue(), media_type="image/jpeg")
