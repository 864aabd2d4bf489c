"""
Конвейер одного экрана: снимок -> классификация -> описание -> вывод.

Состояния цикла:
    idle -> capturing -> classifying -> fetching_description -> rendered
    capturing -> idle при отмене съёмки
    любая ошибка -> error(kind), следующий снимок снова начинает с capturing

Все изменения экрана происходят в потоке событийного цикла asyncio.
Ответы приходят через done-callback задач и сверяются с текущим номером снимка.
"""

import asyncio
import functools
import logging
from typing import Callable, Optional

from flower_snap.models import DescriptionRecord
from flower_snap.services.capture import CaptureController
from flower_snap.services.description_fetcher import DescriptionFetcher
from flower_snap.services.flower_service import FlowerService, get_flower_service
from flower_snap.services.image_loader import ImageLoader
from flower_snap.services.presentation import Phase, PresentationSink, ScreenState
from flower_snap.utils import (
    ErrorKind,
    FlowerSnapError,
    ModelUnavailable,
    StaleResponseDiscarded,
)
from flower_snap.utils.image_processing import ImageInput

logger = logging.getLogger(__name__)


class FlowerPipeline:
    def __init__(
        self,
        classifier_provider: Callable[[], FlowerService] = get_flower_service,
        fetcher: Optional[DescriptionFetcher] = None,
        image_loader: Optional[ImageLoader] = None,
        capture_controller: Optional[CaptureController] = None,
        sink: Optional[PresentationSink] = None
    ):
        self.classifier_provider = classifier_provider
        self.fetcher = fetcher or DescriptionFetcher()
        self.image_loader = image_loader or ImageLoader()
        self.capture_controller = capture_controller or CaptureController()
        self.sink = sink or PresentationSink()

        self._sequence = 0
        self._fetch_task: Optional[asyncio.Task] = None
        self._image_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> ScreenState:
        return self.sink.state

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def pending_fetch(self) -> Optional[asyncio.Task]:
        return self._fetch_task

    def _cancel_pending(self) -> None:
        for task in (self._fetch_task, self._image_task):
            if task is not None and not task.done():
                task.cancel()
        self._fetch_task = None
        self._image_task = None

    def _ensure_current(self, sequence: int) -> None:
        if sequence != self._sequence:
            raise StaleResponseDiscarded(
                f"Ответ для снимка #{sequence} отброшен, текущий #{self._sequence}",
                details={"sequence": sequence, "current": self._sequence}
            )

    def begin_capture(self) -> ScreenState:
        """Открытие камеры: прошлый запрос описания больше не актуален"""
        self._sequence += 1
        self._cancel_pending()
        self.sink.set_phase(Phase.CAPTURING, self._sequence)
        logger.info(f"Снимок #{self._sequence}: камера открыта")
        return self.state

    def cancel_capture(self) -> ScreenState:
        if self.state.phase == Phase.CAPTURING:
            self.sink.set_phase(Phase.IDLE)
            logger.info(f"Снимок #{self._sequence}: съёмка отменена")
        return self.state

    def _load_service(self) -> FlowerService:
        try:
            return self.classifier_provider()
        except ModelUnavailable:
            raise
        except Exception as e:
            logger.exception(f"Ошибка загрузки модели: {str(e)}")
            raise ModelUnavailable(f"Ошибка загрузки модели: {str(e)}") from e

    def submit_photo(self, photo: Optional[ImageInput]) -> ScreenState:
        """
        Обработка снимка пользователя.

        Классификация выполняется синхронно, описание запрашивается фоновой
        задачей. Должен вызываться из работающего событийного цикла.

        Args:
            photo: отредактированный снимок; None или пустые байты - отмена

        Returns:
            Состояние экрана после классификации
        """
        if self.state.phase != Phase.CAPTURING:
            self.begin_capture()
        sequence = self._sequence

        try:
            captured = self.capture_controller.capture(photo)
        except FlowerSnapError as e:
            self.sink.reset(Phase.ERROR, sequence)
            self.sink.show_error(e.kind, e.message)
            return self.state

        if captured is None:
            return self.cancel_capture()

        self.sink.reset(Phase.CLASSIFYING, sequence)
        self.sink.show_capture(captured.pixels)

        try:
            service = self._load_service()
            result = service.classify(captured)
            top = result.top
        except FlowerSnapError as e:
            self.sink.show_error(e.kind, e.message)
            return self.state

        logger.info(f"Снимок #{sequence}: '{top.label}' ({top.confidence:.4f})")
        self.sink.show_title(top.label, list(result))
        self.sink.set_phase(Phase.FETCHING_DESCRIPTION)

        loop = asyncio.get_running_loop()
        self._fetch_task = loop.create_task(self.fetcher.fetch(top.label))
        self._fetch_task.add_done_callback(
            functools.partial(self._on_fetch_done, sequence, top.label)
        )
        return self.state

    def _on_fetch_done(self, sequence: int, label: str, task: asyncio.Task) -> None:
        if task.cancelled():
            if self._fetch_task is task:
                self._fetch_task = None
            logger.debug(f"Запрос описания для снимка #{sequence} отменён")
            return
        exc = task.exception()

        try:
            self._ensure_current(sequence)
        except StaleResponseDiscarded as e:
            logger.debug(e.message)
            return

        self._fetch_task = None
        if exc is not None:
            if isinstance(exc, FlowerSnapError):
                self.sink.show_error(exc.kind, exc.message)
            else:
                logger.error(f"Непредвиденная ошибка запроса описания: {exc}", exc_info=exc)
                self.sink.show_error(ErrorKind.FETCH_TRANSPORT_ERROR, f"Не удалось получить описание: {exc}")
            return

        record: Optional[DescriptionRecord] = task.result()
        if record is None:
            logger.info(f"Снимок #{sequence}: описание для '{label}' не найдено")
        self.sink.render(label, record)

        if record is not None and record.image_url:
            self._image_task = task.get_loop().create_task(self.image_loader.load(record.image_url))
            self._image_task.add_done_callback(
                functools.partial(self._on_image_done, sequence, record.image_url)
            )

    def _on_image_done(self, sequence: int, url: str, task: asyncio.Task) -> None:
        if task.cancelled():
            if self._image_task is task:
                self._image_task = None
            return
        exc = task.exception()

        try:
            self._ensure_current(sequence)
        except StaleResponseDiscarded as e:
            logger.debug(e.message)
            return

        self._image_task = None
        if exc is not None:
            # Остаётся исходный снимок
            logger.warning(f"Миниатюра не загружена: {exc}")
            return
        self.sink.show_thumbnail(url, task.result())

    async def settle(self) -> ScreenState:
        """
        Дождаться завершения фоновых задач текущего снимка.

        Задача считается завершённой только после её done-callback:
        ссылку на задачу снимает сам callback.
        """
        while True:
            tasks = [task for task in (self._fetch_task, self._image_task) if task is not None]
            if not tasks:
                return self.state
            pending = [task for task in tasks if not task.done()]
            if pending:
                await asyncio.wait(pending)
            else:
                # Задача завершена, callback ещё в очереди цикла
                await asyncio.sleep(0)

    def close(self) -> None:
        """Освобождение ресурсов при закрытии экрана"""
        self._sequence += 1
        self._cancel_pending()
        for resource in (self.fetcher, self.image_loader):
            close = getattr(resource, "close", None)
            if close is not None:
                close()
        logger.info("Конвейер закрыт")
