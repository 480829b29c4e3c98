"""
Tests for ConnectionManager room fan-out.

Dependencies: pytest, pytest-asyncio, widgetchat.api.websocket
System role: Connection Layer fan-out verification
"""

from widgetchat.api.websocket import ConnectionManager
from widgetchat.models.events import ServerEvent


class FakeConnection:
    """Records frames; fails every send when `broken` is set."""

    def __init__(self, broken: bool = False) -> None:
        self.broken = broken
        self.frames: list[dict] = []

    async def send_json(self, data) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.frames.append(data)


class TestConnectionManager:
    """Test suite for ConnectionManager."""

    async def test_broadcast_should_reach_every_member_except_excluded(self):
        # Arrange
        manager = ConnectionManager()
        a, b, c = FakeConnection(), FakeConnection(), FakeConnection()
        manager.join("s1", "a", a)
        manager.join("s1", "b", b)
        manager.join("s2", "c", c)

        # Act
        delivered = await manager.broadcast("s1", ServerEvent.typing(True), exclude="a")

        # Assert
        assert delivered == 1
        assert a.frames == []
        assert b.frames == [{"event": "typing", "data": {"isTyping": True}}]
        assert c.frames == []

    async def test_failed_send_should_drop_connection(self):
        # Arrange
        manager = ConnectionManager()
        manager.join("s1", "ok", FakeConnection())
        manager.join("s1", "dead", FakeConnection(broken=True))

        # Act
        delivered = await manager.broadcast("s1", ServerEvent.error("boom"))

        # Assert
        assert delivered == 1
        assert manager.members("s1") == ["ok"]

    async def test_leave_should_remove_empty_room(self):
        manager = ConnectionManager()
        manager.join("s1", "a", FakeConnection())

        manager.leave("s1", "a")
        manager.leave("s1", "a")

        assert manager.room_count() == 0
        assert await manager.broadcast("s1", ServerEvent.typing(False)) == 0
