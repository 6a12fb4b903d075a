from pedidomendez.hub import Client, Hub
from pedidomendez.message import Message, MessageType


def _msg(text="x"):
    return Message(MessageType.ORDER_STATUS_UPDATE, f'"{text}"')


def _hub_with(*clients):
    hub = Hub()
    for client in clients:
        hub.register(client)
    return hub


def test_send_to_user_reaches_only_that_user():
    a, b = Client("u1", "CLIENT"), Client("u2", "CLIENT")
    hub = _hub_with(a, b)
    msg = _msg()
    hub.send_to_user("u1", msg)
    assert a.drain() == [msg]
    assert b.drain() == []


def test_send_to_unknown_user_delivers_nothing():
    a = Client("u1", "CLIENT")
    hub = _hub_with(a)
    hub.send_to_user("nobody", _msg())
    assert a.drain() == []


def test_send_to_role_filters_by_role():
    r1, r2 = Client("r1", "REPARTIDOR"), Client("r2", "REPARTIDOR")
    admin = Client("a1", "ADMIN")
    hub = _hub_with(r1, r2, admin)
    msg = _msg()
    hub.send_to_role("REPARTIDOR", msg)
    assert r1.drain() == [msg]
    assert r2.drain() == [msg]
    assert admin.drain() == []


def test_send_to_role_drops_full_client():
    slow = Client("r1", "REPARTIDOR", capacity=1)
    hub = _hub_with(slow)
    first, second = _msg("a"), _msg("b")
    hub.send_to_role("REPARTIDOR", first)
    hub.send_to_role("REPARTIDOR", second)
    assert slow.closed is True
    assert hub.role_counts() == {"REPARTIDOR": 0}
    assert slow.drain() == [first]


def test_broadcast_reaches_everyone_and_drops_full():
    a = Client("u1", "CLIENT")
    full = Client("u2", "ADMIN", capacity=1)
    hub = _hub_with(a, full)
    hub.broadcast(_msg("a"))
    hub.broadcast(_msg("b"))
    assert len(a.drain()) == 2
    assert full.closed is True
    assert hub.role_counts() == {"CLIENT": 1, "ADMIN": 0}


def test_unregister_closes_and_removes():
    a = Client("u1", "CLIENT")
    hub = _hub_with(a)
    hub.unregister(a)
    assert a.closed is True
    hub.send_to_user("u1", _msg())
    assert a.drain() == []
    assert hub.role_counts() == {"CLIENT": 0}


def test_unregister_unknown_client_leaves_it_open():
    hub = Hub()
    stray = Client("u9", "CLIENT")
    hub.unregister(stray)
    assert stray.closed is False


def test_role_counts_tracks_registrations():
    hub = _hub_with(Client("u1", "CLIENT"), Client("u2", "CLIENT"), Client("a", "ADMIN"))
    assert hub.role_counts() == {"CLIENT": 2, "ADMIN": 1}


def test_drain_empties_queue():
    a = Client("u1", "CLIENT")
    hub = _hub_with(a)
    hub.send_to_user("u1", _msg())
    a.drain()
    assert a.drain() == []