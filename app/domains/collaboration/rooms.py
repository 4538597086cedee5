"""Реестр активных комнат документов.

Комната живёт только в памяти процесса: создаётся при первом входе и
удаляется, когда из неё уходит последний участник. Участники учитываются
по соединению, а не по пользователю, поэтому один пользователь может
присутствовать в комнате несколько раз (например, из двух вкладок).

Все методы синхронные и вызываются из одного event loop, поэтому изменение
состояния комнаты и постановка событий в очереди соединений происходят
атомарно. Отсюда порядок событий: каждый участник видит события комнаты в
том порядке, в котором их обработал менеджер.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Set

from app.core.errors import Forbidden, NotFound

logger = logging.getLogger(__name__)

# События, которые получает клиент
CURRENT_USERS = "current-users"
USER_JOINED = "user-joined"
USER_LEFT = "user-left"
DOCUMENT_UPDATE = "document-update"
ACCESS_REVOKED = "access-revoked"
DOCUMENT_DELETED = "document-deleted"


class Connection(Protocol):
    """Клиентское соединение; send не блокирует и не бросает исключений"""

    id: str

    def send(self, event: str, data: Any = None) -> None:
        ...


@dataclass
class Member:
    connection: Connection
    user_id: uuid.UUID
    name: str = ""
    avatar: str = ""
    # вычисляется один раз при входе через can_write
    can_write: bool = False

    @property
    def connection_id(self) -> str:
        return self.connection.id

    def presence(self) -> Dict[str, str]:
        return {"id": str(self.user_id), "name": self.name, "avatar": self.avatar}


@dataclass
class Room:
    document_id: str
    members: Dict[str, Member] = field(default_factory=dict)
    content: str = ""
    unsaved: bool = False
    last_writer_id: Optional[uuid.UUID] = None

    def presence(self) -> List[Dict[str, str]]:
        return [member.presence() for member in self.members.values()]

    def broadcast(self, event: str, data: Any = None, exclude: Optional[str] = None) -> None:
        for connection_id, member in self.members.items():
            if connection_id == exclude:
                continue
            member.connection.send(event, data)


@dataclass(frozen=True)
class PendingSave:
    """Содержимое комнаты, которое ещё не записано в хранилище"""

    document_id: str
    content: str
    user_id: uuid.UUID


class RoomManager:
    """Владелец реестра комнат: document_id -> Room"""

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        # несохранённое содержимое комнат, которые уже закрыты
        self._orphaned: Dict[str, PendingSave] = {}
        # удалённые документы: в их комнаты больше нельзя войти
        self._deleted: Set[str] = set()

    def __contains__(self, document_id: str) -> bool:
        return document_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def get_room(self, document_id: str) -> Optional[Room]:
        return self._rooms.get(document_id)

    def rooms_of(self, connection_id: str) -> List[str]:
        return [
            document_id
            for document_id, room in self._rooms.items()
            if connection_id in room.members
        ]

    def join(self, document_id: str, member: Member) -> Room:
        """Регистрация соединения в комнате документа.

        Права на чтение проверяются вызывающей стороной до входа. Документ
        мог быть удалён, пока шла эта проверка: такой вход отклоняется.
        """
        if document_id in self._deleted:
            raise NotFound("Document not found")

        room = self._rooms.get(document_id)
        if room is None:
            room = Room(document_id=document_id)
            self._rooms[document_id] = room
            logger.info(f"Created room for document {document_id}")

        rejoined = member.connection_id in room.members
        room.members[member.connection_id] = member

        if not rejoined:
            room.broadcast(USER_JOINED, member.presence(), exclude=member.connection_id)

        member.connection.send(CURRENT_USERS, room.presence())
        if room.content:
            member.connection.send(DOCUMENT_UPDATE, room.content)

        logger.info(
            f"User {member.user_id} joined document {document_id} "
            f"(connection {member.connection_id}, write={member.can_write})"
        )
        return room

    def change(self, document_id: str, connection_id: str, content: str) -> bool:
        """Применение нового содержимого от участника комнаты.

        Возвращает False, если комнаты нет или соединение в ней не состоит:
        это гонка с входом/выходом, а не ошибка.
        """
        room = self._rooms.get(document_id)
        if room is None:
            return False

        member = room.members.get(connection_id)
        if member is None:
            logger.debug(f"Ignoring change from {connection_id}: not a member of {document_id}")
            return False

        if not member.can_write:
            raise Forbidden("Read-only access to this document")

        room.content = content
        room.unsaved = True
        room.last_writer_id = member.user_id
        room.broadcast(DOCUMENT_UPDATE, content, exclude=connection_id)
        return True

    def leave(self, document_id: str, connection_id: str) -> bool:
        room = self._rooms.get(document_id)
        if room is None:
            return False
        return self._remove_member(room, connection_id) is not None

    def disconnect(self, connection_id: str) -> List[str]:
        """Удаление соединения из всех комнат"""
        left = []
        for document_id in self.rooms_of(connection_id):
            if self.leave(document_id, connection_id):
                left.append(document_id)
        return left

    def update_access(self, document_id: str, user_id: uuid.UUID, can_write: bool) -> int:
        """Обновление права записи у всех соединений пользователя в комнате"""
        room = self._rooms.get(document_id)
        if room is None:
            return 0

        updated = 0
        for member in room.members.values():
            if member.user_id == user_id:
                member.can_write = can_write
                updated += 1
        if updated:
            logger.info(f"Write access for {user_id} in {document_id} set to {can_write}")
        return updated

    def revoke_access(self, document_id: str, user_id: uuid.UUID) -> int:
        """Исключение всех соединений пользователя из комнаты"""
        room = self._rooms.get(document_id)
        if room is None:
            return 0

        evicted = [
            member for member in list(room.members.values())
            if member.user_id == user_id
        ]
        for member in evicted:
            member.connection.send(ACCESS_REVOKED, document_id)
            self._remove_member(room, member.connection_id)
        return len(evicted)

    def close_room(self, document_id: str) -> int:
        """Закрытие комнаты удалённого документа"""
        self._deleted.add(document_id)
        room = self._rooms.pop(document_id, None)
        self._orphaned.pop(document_id, None)
        if room is None:
            return 0

        room.broadcast(DOCUMENT_DELETED, document_id)
        logger.info(f"Closed room for deleted document {document_id}")
        return len(room.members)

    def collect_unsaved(self) -> List[PendingSave]:
        """Забрать содержимое, изменённое с момента прошлого сохранения"""
        pending = list(self._orphaned.values())
        self._orphaned.clear()

        for room in self._rooms.values():
            if room.unsaved and room.last_writer_id is not None:
                pending.append(PendingSave(room.document_id, room.content, room.last_writer_id))
                room.unsaved = False
        return pending

    def requeue(self, pending: PendingSave) -> None:
        """Вернуть несохранённое содержимое после сбоя хранилища"""
        if pending.document_id in self._deleted:
            return
        room = self._rooms.get(pending.document_id)
        if room is not None and room.unsaved:
            # в комнате уже есть более свежие правки
            return
        if room is not None and room.content == pending.content:
            room.unsaved = True
            room.last_writer_id = room.last_writer_id or pending.user_id
            return
        # комната пересоздана после сбоя и не содержит эти правки
        self._orphaned.setdefault(pending.document_id, pending)

    def _remove_member(self, room: Room, connection_id: str) -> Optional[Member]:
        member = room.members.pop(connection_id, None)
        if member is None:
            return None

        room.broadcast(USER_LEFT, str(member.user_id))
        logger.info(f"User {member.user_id} left document {room.document_id} (connection {connection_id})")

        if not room.members:
            del self._rooms[room.document_id]
            if room.unsaved and room.last_writer_id is not None:
                self._orphaned[room.document_id] = PendingSave(
                    room.document_id, room.content, room.last_writer_id
                )
            logger.info(f"Removed empty room for document {room.document_id}")
        return member
