import asyncio
import logging
from typing import Any, Dict, Optional

import requests

from flower_snap.config import WIKIPEDIA_URL, THUMB_SIZE, REQUEST_TIMEOUT, USER_AGENT
from flower_snap.models import DescriptionRecord
from flower_snap.utils import FetchParseError, FetchTransportError

logger = logging.getLogger(__name__)

# Маркеры страниц, которых нет в Wikipedia
_MISSING_PAGE_KEYS = ("missing", "invalid")


def build_query_params(label: str, thumb_size: int = THUMB_SIZE) -> Dict[str, str]:
    """Параметры запроса вступления статьи и её миниатюры по названию"""
    return {
        "format": "json",
        "action": "query",
        "prop": "extracts|pageimages",
        "exintro": "",
        "explaintext": "",
        "titles": label,
        "indexpageids": "",
        "redirects": "1",
        "pithumbsize": str(thumb_size),
    }


def parse_description(label: str, document: Any) -> Optional[DescriptionRecord]:
    """
    Разбор ответа Wikipedia

    Args:
        label: метка классификации, по которой выполнялся запрос
        document: декодированный JSON ответа

    Returns:
        DescriptionRecord или None, если статья не найдена

    Raises:
        FetchParseError: ответ не похож на ответ action=query
    """
    if not isinstance(document, dict):
        raise FetchParseError(f"Ожидался JSON-объект, получен {type(document).__name__}")

    if "error" in document:
        error = document["error"]
        info = error.get("info") if isinstance(error, dict) else error
        raise FetchParseError(f"Wikipedia вернула ошибку: {info}", details={"error": error})

    query = document.get("query")
    if not query:
        logger.info(f"Пустой query в ответе для '{label}'")
        return None
    if not isinstance(query, dict):
        raise FetchParseError("Поле query не является объектом")

    pageids = query.get("pageids")
    if not pageids:
        logger.info(f"Нет pageids в ответе для '{label}'")
        return None
    if not isinstance(pageids, list):
        raise FetchParseError("Поле pageids не является списком")

    page_id = str(pageids[0])
    pages = query.get("pages") or {}
    if not isinstance(pages, dict):
        raise FetchParseError("Поле pages не является объектом")

    page = pages.get(page_id)
    if page is None or page_id == "-1":
        logger.info(f"Статья для '{label}' не найдена")
        return None
    if not isinstance(page, dict):
        raise FetchParseError(f"Страница {page_id} не является объектом")
    if any(key in page for key in _MISSING_PAGE_KEYS):
        logger.info(f"Статья для '{label}' не найдена")
        return None

    extract = page.get("extract") or ""
    thumbnail = page.get("thumbnail")
    image_url = None
    if isinstance(thumbnail, dict):
        image_url = thumbnail.get("source") or None

    return DescriptionRecord(
        title=label,
        extract_text=str(extract),
        image_url=image_url,
        page_id=page_id,
    )


class DescriptionFetcher:
    """Один запрос к Wikipedia на одну классификацию, без повторов"""

    def __init__(
        self,
        url: str = WIKIPEDIA_URL,
        thumb_size: int = THUMB_SIZE,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        self.url = url
        self.thumb_size = thumb_size
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT

    def fetch_sync(self, label: str) -> Optional[DescriptionRecord]:
        """
        Блокирующий запрос описания

        Raises:
            FetchTransportError: ошибка соединения, таймаут или код ответа 4xx/5xx
            FetchParseError: ответ не удалось разобрать
        """
        params = build_query_params(label, self.thumb_size)
        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Ошибка запроса описания для '{label}': {e}")
            raise FetchTransportError(
                f"Не удалось получить описание: {e}",
                details={"label": label}
            ) from e

        try:
            document = response.json()
        except ValueError as e:
            raise FetchParseError(
                f"Ответ не является JSON: {e}",
                details={"label": label}
            ) from e

        logger.info(f"Описание для '{label}' успешно получено")
        logger.debug(f"Ответ Wikipedia: {document}")
        return parse_description(label, document)

    async def fetch(self, label: str) -> Optional[DescriptionRecord]:
        """Асинхронная обёртка: запрос выполняется в отдельном потоке"""
        return await asyncio.to_thread(self.fetch_sync, label)

    def close(self):
        self.session.close()
