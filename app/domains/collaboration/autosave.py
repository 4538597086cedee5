import asyncio
import logging
import uuid
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import STORAGE_ERRORS, Forbidden, NotFound
from app.domains.collaboration.rooms import RoomManager
from app.domains.documents.services import DocumentService

logger = logging.getLogger(__name__)


class Autosaver:
    """Периодическая запись содержимого комнат в хранилище.

    Сохранение идёт через обычное обновление документа от имени последнего
    автора изменений, поэтому право записи проверяется в момент записи.
    Конкурирующие сохранения не сливаются: побеждает последняя запись.
    """

    def __init__(
        self,
        room_manager: RoomManager,
        session_factory: Callable[[], AsyncSession],
        interval: float
    ):
        self.room_manager = room_manager
        self.session_factory = session_factory
        self.interval = interval

    async def flush(self) -> int:
        saved = 0
        for pending in self.room_manager.collect_unsaved():
            try:
                async with self.session_factory() as session:
                    await DocumentService(session).save_content(
                        uuid.UUID(pending.document_id), pending.content, pending.user_id
                    )
            except (Forbidden, NotFound) as e:
                logger.warning(f"Autosave of document {pending.document_id} skipped: {e}")
                continue
            except STORAGE_ERRORS as e:
                logger.error(f"Autosave of document {pending.document_id} failed: {e}")
                self.room_manager.requeue(pending)
                continue
            except Exception:
                logger.exception(f"Unexpected error while autosaving document {pending.document_id}")
                self.room_manager.requeue(pending)
                continue
            saved += 1

        if saved:
            logger.info(f"Autosaved {saved} document(s)")
        return saved

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.flush()
            except Exception:
                logger.exception("Autosave pass failed")
