from deathgame import registry

SCENARIO_A = [50, 50, 30, 70, 90]


def _events(test_client, name):
    return [pkt['args'][0] for pkt in test_client.get_received() if pkt['name'] == name]


def _create_room(host, name='Alice'):
    host.emit('createRoom', {'playerName': name})
    created = _events(host, 'roomCreated')
    assert len(created) == 1
    return created[0]['roomCode'], created[0]['playerId']


def _start_game(sio_factory):
    """Create a room and fill it to quorum; returns (code, clients, player ids)."""
    host = sio_factory()
    code, host_id = _create_room(host)
    clients, ids = [host], [host_id]
    for i in range(2, 6):
        guest = sio_factory()
        guest.emit('joinRoom', {'roomCode': code, 'playerName': f'Player {i}'})
        joined = _events(guest, 'joinedRoom')
        assert joined[0]['roomCode'] == code
        clients.append(guest)
        ids.append(joined[0]['playerId'])
    return code, clients, ids


def test_create_room(sio_factory):
    host = sio_factory()
    code, player_id = _create_room(host)
    assert len(code) == 6
    assert registry.get_room(code).players[player_id].name == 'Alice'


def test_create_room_requires_name(sio_factory):
    host = sio_factory()
    host.emit('createRoom', {'playerName': '   '})
    assert _events(host, 'error') == [{'message': 'playerName is required'}]


def test_join_unknown_room(sio_factory):
    guest = sio_factory()
    guest.emit('joinRoom', {'roomCode': 'ZZZZZZ', 'playerName': 'Bob'})
    assert _events(guest, 'error') == [{'message': 'Room not found'}]


def test_join_broadcasts_player_list(sio_factory):
    host = sio_factory()
    code, _ = _create_room(host)
    guest = sio_factory()
    guest.emit('joinRoom', {'roomCode': code, 'playerName': 'Bob'})

    updates = _events(host, 'playerJoined')
    assert [p['name'] for p in updates[-1]['players']] == ['Alice', 'Bob']
    assert updates[-1]['players'][1] == {
        'id': updates[-1]['players'][1]['id'], 'name': 'Bob', 'points': 0, 'isAlive': True, 'number': None,
    }


def test_quorum_starts_game(sio_factory):
    host = sio_factory()
    code, _ = _create_room(host)
    guests = []
    for i in range(2, 6):
        guest = sio_factory()
        guest.emit('joinRoom', {'roomCode': code, 'playerName': f'Player {i}'})
        guests.append(guest)
    assert registry.get_room(code) is None
    assert registry.get_game(code) is not None

    expected = [{'round': 1, 'timeLimit': 300, 'playersRemaining': 5}]
    assert _events(host, 'gameStart') == expected
    for guest in guests:
        assert _events(guest, 'gameStart') == expected


def test_sixth_player_cannot_join_started_game(sio_factory):
    code, _, _ = _start_game(sio_factory)
    late = sio_factory()
    late.emit('joinRoom', {'roomCode': code, 'playerName': 'Late'})
    assert _events(late, 'error') == [{'message': 'Room not found'}]


def test_round_results_and_next_round(sio_factory):
    code, clients, ids = _start_game(sio_factory)
    for test_client in clients:
        test_client.get_received()

    for test_client, value in zip(clients, SCENARIO_A):
        test_client.emit('submitNumber', {'roomCode': code, 'number': value})

    received = clients[2].get_received()
    names = [pkt['name'] for pkt in received]
    assert names == ['roundResults', 'roundStart']
    results = received[0]['args'][0]
    assert results['average'] == 58
    assert abs(results['target'] - 46.4) < 1e-9
    assert results['duplicates'] == [50]
    assert results['winner']['id'] == ids[0]
    assert results['numbers'] == dict(zip(ids, SCENARIO_A))
    assert results['eliminations'] == []
    assert results['gameOver'] is False
    assert received[1]['args'][0] == {'round': 2, 'timeLimit': 60, 'playersRemaining': 5}

    session = registry.get_game(code)
    assert [session.players[pid].points for pid in ids] == [0, -1, -1, -1, -1]


def test_invalid_number_is_reported_to_sender_only(sio_factory):
    code, clients, _ = _start_game(sio_factory)
    for test_client in clients:
        test_client.get_received()

    clients[0].emit('submitNumber', {'roomCode': code, 'number': 'fifty'})
    assert _events(clients[0], 'error') == [{'message': 'Number must be numeric'}]
    assert clients[1].get_received() == []
    assert registry.get_game(code).round_submissions == {}


def test_submission_to_unknown_game_is_ignored(sio_factory):
    stray = sio_factory()
    stray.get_received()
    stray.emit('submitNumber', {'roomCode': 'ZZZZZZ', 'number': 10})
    assert stray.get_received() == []


def test_game_over_discards_session(sio_factory):
    code, clients, ids = _start_game(sio_factory)
    session = registry.get_game(code)
    for pid in ids[1:]:
        session.players[pid].points = -9
    for test_client in clients:
        test_client.get_received()

    for test_client, value in zip(clients, SCENARIO_A):
        test_client.emit('submitNumber', {'roomCode': code, 'number': value})

    received = clients[0].get_received()
    assert [pkt['name'] for pkt in received] == ['roundResults', 'gameOver']
    results = received[0]['args'][0]
    assert results['gameOver'] is True
    assert [p['id'] for p in results['eliminations']] == ids[1:]
    game_over = received[1]['args'][0]
    assert game_over['winner']['id'] == ids[0]
    assert len(game_over['finalScores']) == 5
    assert registry.get_game(code) is None

    # late submissions are silently dropped
    clients[0].emit('submitNumber', {'roomCode': code, 'number': 10})
    assert clients[0].get_received() == []


def test_sudden_death_over_sockets(sio_factory):
    code, clients, ids = _start_game(sio_factory)
    session = registry.get_game(code)
    for pid in ids[2:]:
        session.forfeit(pid)
    for test_client in clients:
        test_client.get_received()

    clients[0].emit('submitNumber', {'roomCode': code, 'number': 0})
    clients[1].emit('submitNumber', {'roomCode': code, 'number': 100})

    received = clients[0].get_received()
    results = received[0]['args'][0]
    assert results['specialRule'] is True
    assert results['winner']['id'] == ids[1]
    assert received[1]['name'] == 'gameOver'
    assert session.players[ids[0]].points == 0


def test_waiting_room_disconnect(sio_factory):
    host = sio_factory()
    code, host_id = _create_room(host)
    guest = sio_factory()
    guest.emit('joinRoom', {'roomCode': code, 'playerName': 'Bob'})
    host.get_received()

    guest.disconnect()
    left = _events(host, 'playerLeft')
    assert len(left) == 1
    assert [p['id'] for p in left[0]['players']] == [host_id]
    assert len(registry.get_room(code).players) == 1


def test_in_game_disconnect_forfeits_and_resolves(sio_factory):
    code, clients, ids = _start_game(sio_factory)
    for test_client in clients:
        test_client.get_received()

    for test_client, value in zip(clients[:4], [10, 20, 30, 40]):
        test_client.emit('submitNumber', {'roomCode': code, 'number': value})
    clients[4].disconnect()

    received = clients[0].get_received()
    assert [pkt['name'] for pkt in received] == ['playerForfeited', 'roundResults', 'roundStart']
    assert received[0]['args'][0]['player']['id'] == ids[4]
    assert received[0]['args'][0]['reason'] == 'disconnect'
    results = received[1]['args'][0]
    assert set(results['numbers']) == set(ids[:4])
    assert received[2]['args'][0]['playersRemaining'] == 4

    session = registry.get_game(code)
    assert session.players[ids[4]].is_alive is False
    assert session.eliminated_count == 1


def test_disconnects_down_to_last_player_end_game(sio_factory):
    code, clients, ids = _start_game(sio_factory)
    for test_client in clients[1:4]:
        test_client.disconnect()
    clients[0].get_received()

    clients[4].disconnect()
    game_over = _events(clients[0], 'gameOver')
    assert game_over[0]['winner']['id'] == ids[0]
    assert registry.get_game(code) is None


def test_ignore_policy_keeps_player_alive(flask_app, sio_factory):
    flask_app.config['DISCONNECT_POLICY'] = 'ignore'
    code, clients, ids = _start_game(sio_factory)
    clients[4].disconnect()
    assert registry.get_game(code).players[ids[4]].is_alive is True


def test_player_in_game_cannot_open_another_room(sio_factory):
    code, clients, ids = _start_game(sio_factory)
    for test_client in clients:
        test_client.get_received()

    clients[4].emit('createRoom', {'playerName': 'Player 5'})
    assert _events(clients[4], 'error') == [{'message': 'Already in a room'}]
    assert registry.waiting_rooms == {}

    clients[4].disconnect()
    session = registry.get_game(code)
    assert session.players[ids[4]].is_alive is False
    assert _events(clients[0], 'playerForfeited')[0]['player']['id'] == ids[4]


def test_waiting_player_cannot_join_a_second_room(sio_factory):
    first = sio_factory()
    code, first_id = _create_room(first)
    second = sio_factory()
    other_code, _ = _create_room(second, 'Bob')

    first.emit('joinRoom', {'roomCode': other_code, 'playerName': 'Alice'})
    assert _events(first, 'error') == [{'message': 'Already in a room'}]
    assert first_id not in registry.get_room(other_code).players
    assert registry.room_code_for(first_id) == code
