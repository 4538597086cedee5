from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from typing import Any, Optional
import asyncio
import contextlib
import json
import logging
import uuid

from app.core.config import settings
from app.core.db import SessionLocal
from app.core.errors import (
    STORAGE_ERRORS, DocCollabError, Forbidden, NotFound, Unauthenticated, ValidationError
)
from app.core.security import IdentityClaim, extract_token_from_header, verify_credential
from app.domains.collaboration.rooms import Member, RoomManager
from app.domains.documents import access
from app.domains.documents.schemas import MAX_CONTENT_LENGTH
from app.domains.documents.services import DocumentService
from app.domains.identity.services import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter()

# Коды закрытия соединения
CLOSE_UNAUTHENTICATED = 4401
CLOSE_FORBIDDEN = 4403
CLOSE_NOT_FOUND = 4404
CLOSE_TRY_AGAIN_LATER = 1013


class ClientConnection:
    """WebSocket соединение с собственной очередью исходящих событий.

    Менеджер комнат только кладёт события в очередь; отправкой занимается
    отдельная задача, поэтому порядок событий сохраняется.
    """

    def __init__(self, websocket: WebSocket, claim: IdentityClaim):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.claim = claim
        self._outbox: asyncio.Queue = asyncio.Queue()
        self.closed = False

    @property
    def user_id(self) -> uuid.UUID:
        return self.claim.user_id

    def send(self, event: str, data: Any = None) -> None:
        if self.closed:
            return
        self._outbox.put_nowait({"event": event, "data": data})

    def send_error(self, error: DocCollabError) -> None:
        self.send("error", {"code": error.code, "message": error.message})

    async def pump(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self.websocket.send_text(json.dumps(message))
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Stopped sending to connection {self.id}: {e}")
                self._discard_pending()
                return
            finally:
                self._outbox.task_done()

    def _discard_pending(self) -> None:
        self.closed = True
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    async def drain(self) -> None:
        await self._outbox.join()


def credential_from_handshake(websocket: WebSocket) -> Optional[str]:
    """Токен из явного параметра, заголовка Authorization или cookie"""
    return (
        websocket.query_params.get("token")
        or extract_token_from_header(websocket.headers.get("Authorization"))
        or websocket.cookies.get(settings.token_cookie_name)
    )


def _parse_document_id(raw: Any) -> uuid.UUID:
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFound("Document not found")


def _close_code(error: Exception) -> int:
    if isinstance(error, Unauthenticated):
        return CLOSE_UNAUTHENTICATED
    if isinstance(error, Forbidden):
        return CLOSE_FORBIDDEN
    if isinstance(error, NotFound):
        return CLOSE_NOT_FOUND
    return CLOSE_TRY_AGAIN_LATER


async def join_document(room_manager: RoomManager, connection: ClientConnection, raw_document_id: Any) -> None:
    """Вход в комнату: права проверяются один раз, при входе"""
    document_uuid = _parse_document_id(raw_document_id)

    async with SessionLocal() as session:
        document, _ = await DocumentService(session).get_document(document_uuid, connection.user_id)
        try:
            user = await IdentityService(session).get_user(connection.user_id)
        except NotFound:
            raise Unauthenticated("User not found")

    member = Member(
        connection=connection,
        user_id=user.uuid,
        name=user.name,
        avatar=user.avatar,
        can_write=access.can_write(document, user.uuid)
    )
    room_manager.join(str(document_uuid), member)


def document_change(room_manager: RoomManager, connection: ClientConnection, data: Any) -> None:
    if not isinstance(data, dict):
        raise ValidationError("document-change expects {documentId, content}")

    content = data.get("content")
    if not isinstance(content, str):
        raise ValidationError("Content must be a string")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError("Content is too large")

    try:
        document_id = str(_parse_document_id(data.get("documentId")))
    except NotFound:
        return

    room_manager.change(document_id, connection.id, content)


def leave_document(room_manager: RoomManager, connection: ClientConnection, raw_document_id: Any) -> None:
    try:
        document_id = str(_parse_document_id(raw_document_id))
    except NotFound:
        return
    room_manager.leave(document_id, connection.id)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket эндпоинт для совместного редактирования"""
    try:
        claim = verify_credential(credential_from_handshake(websocket))
    except Unauthenticated as e:
        logger.warning(f"Refused WebSocket handshake: {e.message}")
        await websocket.close(code=CLOSE_UNAUTHENTICATED, reason=e.message)
        return

    room_manager: RoomManager = websocket.app.state.room_manager

    await websocket.accept()
    connection = ClientConnection(websocket, claim)
    writer = asyncio.create_task(connection.pump())
    logger.info(f"New client connected: {claim.user_id} (connection {connection.id})")

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                connection.send_error(ValidationError("Malformed message"))
                continue
            if not isinstance(message, dict):
                connection.send_error(ValidationError("Malformed message"))
                continue

            event = message.get("event")
            data = message.get("data")

            if event == "join-document":
                try:
                    await join_document(room_manager, connection, data)
                except (Unauthenticated, Forbidden, NotFound) as e:
                    logger.warning(f"Refused join of {claim.user_id} to {data}: {e.message}")
                    await connection.drain()
                    await websocket.close(code=_close_code(e), reason=e.message)
                    return
                except STORAGE_ERRORS as e:
                    logger.error(f"Storage error while joining {data}: {e}")
                    await connection.drain()
                    await websocket.close(code=CLOSE_TRY_AGAIN_LATER, reason="Storage is unavailable")
                    return

            elif event == "document-change":
                try:
                    document_change(room_manager, connection, data)
                except (Forbidden, ValidationError) as e:
                    connection.send_error(e)

            elif event == "leave-document":
                leave_document(room_manager, connection, data)

            elif event == "ping":
                # Ответ на ping для поддержания соединения
                connection.send("pong")

            else:
                connection.send_error(ValidationError(f"Unknown event: {event}"))

    except WebSocketDisconnect:
        pass
    finally:
        room_manager.disconnect(connection.id)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
        logger.info(f"Client disconnected: {claim.user_id} (connection {connection.id})")
