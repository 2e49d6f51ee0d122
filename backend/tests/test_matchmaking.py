import logging
import re

import pytest

from baller.services.matchmaking import ConnectionState, MatchmakingService
from baller.services.matchmaking.queue import MatchQueue


TOKENS = {'tok-alice': 'alice', 'tok-bob': 'bob', 'tok-cara': 'cara', 'tok-dan': 'dan'}


class Outbox:
    """Records deliveries as (connection id, event, payload)."""

    def __init__(self):
        self.sent = []

    def __call__(self, conn, event, payload=None):
        self.sent.append((conn.id, event, payload))

    def to(self, conn_id, event=None):
        return [(e, p) for cid, e, p in self.sent if cid == conn_id and (event is None or e == event)]

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def outbox():
    return Outbox()


@pytest.fixture()
def service(outbox):
    return MatchmakingService(
        verify_token=TOKENS.get,
        deliver=outbox,
        logger=logging.getLogger('tests.matchmaking'),
    )


def _paired(service, outbox):
    for sid in ('A', 'B'):
        service.connect(sid)
    service.join('A', 'tok-alice', {'robots': ['r1']})
    room = service.join('B', 'tok-bob', {'robots': ['r2']})
    outbox.clear()
    return room


def test_second_joiner_pairs_with_waiter_as_away(service, outbox):
    service.connect('A')
    service.connect('B')
    assert service.join('A', 'tok-alice', {'robots': ['r1']}) is None
    assert outbox.to('A', 'queue:waiting') == [('queue:waiting', {'position': 1})]

    room = service.join('B', 'tok-bob', {'robots': ['r2']})
    assert room is not None
    found_a = outbox.to('A', 'match:found')
    found_b = outbox.to('B', 'match:found')
    assert len(found_a) == 1 and len(found_b) == 1
    payload = found_b[0][1]
    assert payload == found_a[0][1]
    assert payload['roomId'] == room.id
    assert payload['home'] == {'username': 'alice', 'teamData': {'robots': ['r1']}}
    assert payload['away'] == {'username': 'bob', 'teamData': {'robots': ['r2']}}
    assert len(service.queue) == 0
    assert service.registry.get('A').state == ConnectionState.IN_MATCH
    assert service.registry.get('B').room_id == room.id


def test_waiters_are_paired_first_in_first_out(service, outbox):
    for sid in ('A', 'B', 'C'):
        service.connect(sid)
    service.join('A', 'tok-alice')
    service.join('B', 'tok-bob')  # pairs with A
    service.join('C', 'tok-cara')
    assert outbox.to('C', 'queue:waiting') == [('queue:waiting', {'position': 1})]
    service.connect('D')
    room = service.join('D', 'tok-dan')
    assert room.home_id == 'C' and room.away_id == 'D'


def test_rejoin_while_waiting_keeps_single_entry(service, outbox):
    service.connect('A')
    service.join('A', 'tok-alice', {'v': 1})
    service.join('A', 'tok-alice', {'v': 2})
    service.join('A', 'tok-alice', {'v': 3})
    assert service.queue.ids() == ['A']
    assert [p for _, p in outbox.to('A', 'queue:waiting')] == [{'position': 1}] * 3
    # Latest team payload wins when the match is found
    service.connect('B')
    service.join('B', 'tok-bob')
    home = outbox.to('B', 'match:found')[0][1]['home']
    assert home['teamData'] == {'v': 3}


def test_join_while_in_match_is_ignored(service, outbox):
    room = _paired(service, outbox)
    assert service.join('A', 'tok-alice') is None
    assert len(service.queue) == 0
    assert service.registry.get('A').room_id == room.id
    assert outbox.sent == []


def test_goal_is_relayed_only_to_opponent(service, outbox):
    _paired(service, outbox)
    for sid in ('C', 'D'):
        service.connect(sid)
    service.join('C', 'tok-cara')
    service.join('D', 'tok-dan')
    outbox.clear()

    assert service.relay_event('A', 'match:goal', {'scorer': 'r1'}) is True
    assert outbox.sent == [('B', 'match:goal', {'scorer': 'r1'})]


def test_state_messages_keep_order(service, outbox):
    _paired(service, outbox)
    for tick in range(5):
        service.relay_event('B', 'match:state', {'tick': tick})
    assert [p['tick'] for _, p in outbox.to('A', 'match:state')] == [0, 1, 2, 3, 4]


def test_chat_is_truncated_and_tagged(service, outbox):
    _paired(service, outbox)
    service.relay_event('A', 'match:chat', {'message': 'x' * 300})
    assert outbox.to('A') == []
    [(event, payload)] = outbox.to('B')
    assert event == 'match:chat'
    assert payload == {'from': 'alice', 'message': 'x' * 120}


def test_chat_without_message_relays_empty_string(service, outbox):
    _paired(service, outbox)
    service.relay_event('B', 'match:chat', {})
    assert outbox.to('A', 'match:chat') == [('match:chat', {'from': 'bob', 'message': ''})]


def test_match_end_tears_down_room_and_drops_late_events(service, outbox):
    room = _paired(service, outbox)
    service.relay_event('A', 'match:end', {'score': [2, 1]})
    assert outbox.sent == [('B', 'match:end', {'score': [2, 1]})]
    assert room.id not in service.rooms
    assert service.registry.get('A').room_id is None
    assert service.registry.get('B').state == ConnectionState.IDENTIFIED

    outbox.clear()
    assert service.relay_event('B', 'match:state', {'tick': 99}) is False
    assert service.relay_event('A', 'match:end', {}) is False
    assert outbox.sent == []
    assert len(service.rooms) == 0


def test_disconnect_notifies_opponent_once(service, outbox):
    room = _paired(service, outbox)
    service.disconnect('A')
    assert outbox.to('B') == [('match:opponent_left', None)]
    assert room.id not in service.rooms
    assert 'A' not in service.registry

    # Repeated disconnect and late events from the survivor are no-ops
    service.disconnect('A')
    assert service.relay_event('B', 'match:goal', {}) is False
    assert outbox.to('B', 'match:opponent_left') == [('match:opponent_left', None)]


def test_disconnect_after_match_end_is_noop(service, outbox):
    _paired(service, outbox)
    service.relay_event('A', 'match:end', {})
    outbox.clear()
    service.disconnect('B')
    service.disconnect('A')
    assert outbox.sent == []
    assert service.stats() == {'connections': 0, 'queued': 0, 'rooms': 0}


def test_disconnect_prunes_queue_entry(service, outbox):
    service.connect('A')
    service.join('A', 'tok-alice')
    service.disconnect('A')
    assert len(service.queue) == 0

    service.connect('B')
    assert service.join('B', 'tok-bob') is None
    assert outbox.to('B', 'queue:waiting') == [('queue:waiting', {'position': 1})]


def test_stale_queue_entry_is_skipped(service, outbox):
    service.connect('A')
    service.join('A', 'tok-alice')
    # Simulate a transport that lost A without the cleanup having run yet
    service.registry.get('A').live = False
    service.connect('B')
    assert service.join('B', 'tok-bob') is None
    assert service.queue.ids() == ['B']
    assert outbox.to('A', 'match:found') == []


def test_leave_is_idempotent_and_always_acknowledged(service, outbox):
    service.connect('A')
    service.connect('B')
    service.join('B', 'tok-bob')
    assert service.leave('A') is False
    assert len(service.queue) == 1
    assert outbox.to('A') == [('queue:left', None)]

    assert service.leave('B') is True
    assert service.leave('B') is False
    assert len(service.queue) == 0
    assert outbox.to('B', 'queue:left') == [('queue:left', None)] * 2
    assert service.registry.get('B').state == ConnectionState.IDENTIFIED


def test_leave_before_pairing_prevents_match(service, outbox):
    service.connect('A')
    service.connect('B')
    service.join('A', 'tok-alice')
    service.leave('A')
    assert service.join('B', 'tok-bob') is None
    assert outbox.to('A', 'match:found') == []


def test_unverified_token_falls_back_to_guest(service, outbox):
    service.connect('A')
    service.connect('B')
    service.join('A', 'not-a-token')
    service.join('B', None)
    payload = outbox.to('A', 'match:found')[0][1]
    for side in ('home', 'away'):
        assert re.fullmatch(r'Guest_[A-Z0-9]{4}', payload[side]['username'])


def test_authenticate_assigns_identity(service):
    service.connect('A')
    assert service.authenticate('A', 'tok-alice') == 'alice'
    assert service.registry.get('A').state == ConnectionState.IDENTIFIED
    assert service.authenticate('gone', 'tok-alice') is None


def test_events_without_room_are_silent(service, outbox):
    service.connect('A')
    for event in ('match:goal', 'match:state', 'match:chat', 'match:end'):
        assert service.relay_event('A', event, {'x': 1}) is False
    assert service.relay_event('unknown', 'match:goal', {}) is False
    assert outbox.sent == []


def test_queue_pop_peer_prunes_dead_entries():
    queue = MatchQueue()
    for conn_id in ('dead1', 'me', 'dead2', 'alive'):
        queue.append(conn_id)
    peer = queue.pop_peer('me', lambda cid: cid == 'alive' or cid == 'me')
    assert peer == 'alive'
    assert queue.ids() == ['me']
    assert queue.append('me') == 1
