import asyncio
import logging
from collections import OrderedDict
from io import BytesIO
from typing import Optional

import requests
from PIL import Image

from flower_snap.config import IMAGE_CACHE_SIZE, REQUEST_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


class ImageLoadError(Exception):
    """Изображение по URL не удалось загрузить или декодировать"""


class ImageLoader:
    """Асинхронная загрузка изображений по URL с LRU-кэшем в памяти"""

    def __init__(
        self,
        cache_size: int = IMAGE_CACHE_SIZE,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        self.cache_size = cache_size
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT
        self._cache: "OrderedDict[str, Image.Image]" = OrderedDict()

    def cached(self, url: str) -> Optional[Image.Image]:
        image = self._cache.get(url)
        if image is not None:
            self._cache.move_to_end(url)
        return image

    def _remember(self, url: str, image: Image.Image) -> None:
        self._cache[url] = image
        self._cache.move_to_end(url)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def _download(self, url: str) -> Image.Image:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            image = Image.open(BytesIO(response.content))
            image.load()
            return image.convert('RGB')
        except (requests.exceptions.RequestException, OSError) as e:
            raise ImageLoadError(f"Не удалось загрузить изображение {url}: {e}") from e

    async def load(self, url: str) -> Image.Image:
        """
        Raises:
            ImageLoadError: ошибка сети или декодирования
        """
        image = self.cached(url)
        if image is not None:
            logger.debug(f"Изображение из кэша: {url}")
            return image

        image = await asyncio.to_thread(self._download, url)
        self._remember(url, image)
        logger.debug(f"Изображение загружено: {url} {image.size}")
        return image

    def close(self):
        self._cache.clear()
        self.session.close()
