def _events(sio_client, name):
    return [pkt['args'][0] if pkt['args'] else None
            for pkt in sio_client.get_received() if pkt['name'] == name]


def _names(sio_client):
    return [pkt['name'] for pkt in sio_client.get_received()]


def _join(sio_client, room_id, name):
    return sio_client.emit('join', {'roomId': room_id, 'playerName': name}, callback=True)


def test_socket_connect_and_join(sio_client):
    assert sio_client.is_connected()

    ack = _join(sio_client, 'R1', 'Alice')
    assert ack['roomId'] == 'R1'
    assert ack['playerId']

    updates = _events(sio_client, 'player_list_update')
    assert updates == [[{'id': ack['playerId'], 'name': 'Alice', 'vote': None}]]


def test_join_validation_error_only_reaches_requester(sio_factory):
    alice, bob = sio_factory(), sio_factory()
    _join(alice, 'R1', 'Alice')
    alice.get_received()

    ack = bob.emit('join', {'roomId': 'R1', 'playerName': '   '}, callback=True)

    assert not ack
    errors = _events(bob, 'error')
    assert len(errors) == 1 and 'required' in errors[0]['message']
    assert _names(alice) == []


def test_malformed_payloads_are_rejected(sio_client):
    sio_client.emit('join', 'R1')
    sio_client.emit('reveal')
    sio_client.emit('vote', {'vote': 5})
    errors = _events(sio_client, 'error')
    assert len(errors) == 3


def test_full_round_between_two_players(flask_app, sio_factory):
    alice, bob = sio_factory(), sio_factory()
    a = _join(alice, 'R1', 'A')
    b = _join(bob, 'R1', 'B')
    alice.get_received()
    bob.get_received()

    alice.emit('vote', {'roomId': 'R1', 'vote': 5})
    bob.emit('vote', {'roomId': 'R1', 'vote': 8})

    # Both members, the voter included, hear who voted but not the value
    for sio_client in (alice, bob):
        voted = _events(sio_client, 'player_voted')
        assert voted == [{'playerId': a['playerId']}, {'playerId': b['playerId']}]

    bob.emit('reveal', {'roomId': 'R1'})
    expected = [
        {'id': a['playerId'], 'name': 'A', 'vote': 5},
        {'id': b['playerId'], 'name': 'B', 'vote': 8},
    ]
    assert _events(alice, 'votes_revealed') == [expected]
    assert _events(bob, 'votes_revealed') == [expected]

    alice.emit('vote', {'roomId': 'R1', 'vote': 13})
    errors = _events(alice, 'error')
    assert len(errors) == 1
    assert _names(bob) == []

    alice.emit('reset', {'roomId': 'R1'})
    cleared = [
        {'id': a['playerId'], 'name': 'A', 'vote': None},
        {'id': b['playerId'], 'name': 'B', 'vote': None},
    ]
    assert _events(alice, 'game_reset') == [cleared]
    assert _events(bob, 'game_reset') == [cleared]


def test_vote_out_of_deck_reports_error(sio_client):
    _join(sio_client, 'R1', 'Alice')
    sio_client.get_received()

    sio_client.emit('vote', {'roomId': 'R1', 'vote': 4})

    received = sio_client.get_received()
    assert [pkt['name'] for pkt in received] == ['error']
    assert 'Invalid vote' in received[0]['args'][0]['message']


def test_intent_for_foreign_room_reports_not_member(sio_factory):
    alice, mallory = sio_factory(), sio_factory()
    _join(alice, 'R1', 'Alice')
    alice.get_received()

    mallory.emit('reveal', {'roomId': 'R1'})

    errors = _events(mallory, 'error')
    assert errors == [{'message': 'You are not a member of room R1'}]
    assert _names(alice) == []


def test_disconnect_updates_remaining_players(flask_app, sio_factory):
    alice, bob = sio_factory(), sio_factory()
    a = _join(alice, 'R1', 'Alice')
    _join(bob, 'R1', 'Bob')
    alice.get_received()

    bob.disconnect()

    assert _events(alice, 'player_list_update') == [
        [{'id': a['playerId'], 'name': 'Alice', 'vote': None}],
    ]


def test_last_disconnect_closes_room(flask_app, sio_factory, client):
    alice = sio_factory()
    _join(alice, 'R1', 'Alice')
    alice.emit('vote', {'roomId': 'R1', 'vote': 3})
    alice.emit('reveal', {'roomId': 'R1'})
    assert client.get('/rooms/R1').status_code == 200

    alice.disconnect()

    assert client.get('/rooms/R1').status_code == 404
    bob = sio_factory()
    _join(bob, 'R1', 'Bob')
    state = client.get('/rooms/R1').get_json()
    assert state['revealed'] is False
    assert [p['name'] for p in state['players']] == ['Bob']


def test_switching_rooms_stops_old_broadcasts(sio_factory):
    alice, bob = sio_factory(), sio_factory()
    _join(alice, 'R1', 'Alice')
    _join(bob, 'R1', 'Bob')

    _join(alice, 'R2', 'Alice')
    alice.get_received()
    bob.get_received()

    bob.emit('reveal', {'roomId': 'R1'})

    assert _names(alice) == []
    assert [p['name'] for p in _events(bob, 'votes_revealed')[0]] == ['Bob']
