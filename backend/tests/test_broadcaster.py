from cinequiz import messages
from cinequiz.realtime import ConnectionClosed, ConnectionRegistry, RoomBroadcaster, SocketConnection
from fakes import FakeConnection


def _room_with(*names):
    registry = ConnectionRegistry()
    conns = []
    for name in names:
        conn = FakeConnection(name)
        registry.attach('R', name, conn)
        conns.append(conn)
    return registry, RoomBroadcaster(registry), conns


def test_broadcast_reaches_every_connection_with_identical_bytes():
    registry, broadcaster, conns = _room_with('alice', 'bob', 'carol')
    event = messages.user_joined('R', 'carol', [{'userId': 'alice'}, {'userId': 'bob'}, {'userId': 'carol'}])
    assert broadcaster.broadcast('R', event) == 3
    assert all(len(c.sent) == 1 for c in conns)
    assert len({c.sent[0] for c in conns}) == 1
    assert conns[0].events()[0]['type'] == 'user_joined'


def test_broadcast_skips_closed_connections_silently():
    registry, broadcaster, conns = _room_with('alice', 'bob')
    conns[0].is_open = False
    assert broadcaster.broadcast('R', messages.next_question('R', {'questionIndex': 1})) == 1
    assert conns[0].sent == []
    assert len(conns[1].sent) == 1


def test_broadcast_skips_connection_that_closes_during_send():
    class Closing(FakeConnection):
        def send(self, text):
            raise ConnectionClosed(self.name)

    registry = ConnectionRegistry()
    registry.attach('R', 'alice', Closing('alice'))
    bob = FakeConnection('bob')
    registry.attach('R', 'bob', bob)
    assert RoomBroadcaster(registry).broadcast('R', messages.game_started('R', [])) == 1
    assert len(bob.sent) == 1


def test_broadcast_to_empty_room_sends_nothing():
    broadcaster = RoomBroadcaster(ConnectionRegistry())
    assert broadcaster.broadcast('nowhere', messages.game_started('nowhere', [])) == 0


def test_send_is_private():
    registry, broadcaster, conns = _room_with('alice', 'bob')
    broadcaster.send(conns[0], messages.answer_result('R', 'q1', True))
    assert conns[0].events('answer_result')[0]['payload'] == {'isCorrect': True, 'questionId': 'q1'}
    assert conns[1].sent == []


def test_socket_connections_compare_by_sid_and_namespace():
    a = SocketConnection(None, 'sid-1', '/ws')
    b = SocketConnection(None, 'sid-1', '/ws')
    c = SocketConnection(None, 'sid-1', '/')
    assert a == b and hash(a) == hash(b)
    assert a != c
    assert not a.is_open
