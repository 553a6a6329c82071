def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'Welcome' in res.get_json()['message']


def test_create_and_get_room(client, seeded):
    res = client.post('/api/rooms', json={'name': 'Friday quiz', 'hostId': 'alice', 'category': 'general'})
    assert res.status_code == 201
    room = res.get_json()
    assert room['hostId'] == 'alice'
    assert room['currentPlayers'] == 0
    assert room['maxPlayers'] == 8
    assert room['status'] == 'waiting'
    assert 'password' not in room and 'passwordHash' not in room

    res = client.get(f"/api/rooms/{room['id']}")
    assert res.status_code == 200
    assert res.get_json()['name'] == 'Friday quiz'


def test_create_room_validation(client, seeded):
    assert client.post('/api/rooms', json={'hostId': 'alice'}).status_code == 400
    assert client.post('/api/rooms', json={'name': 'x', 'hostId': 'alice', 'category': 'cartoons'}).status_code == 400
    assert client.post('/api/rooms', json={'name': 'x', 'hostId': 'alice', 'maxPlayers': 0}).status_code == 400
    assert client.post('/api/rooms', json={'name': 'x', 'hostId': 'nobody'}).status_code == 404


def test_missing_room_is_404(client, seeded):
    assert client.get('/api/rooms/does-not-exist').status_code == 404
    assert client.get('/api/rooms/does-not-exist/participants').status_code == 404


def test_list_rooms_hides_private_by_default(client, seeded):
    client.post('/api/rooms', json={'name': 'Open', 'hostId': 'alice'})
    client.post('/api/rooms', json={'name': 'Closed', 'hostId': 'bob', 'isPrivate': True, 'password': 'pw'})
    public = client.get('/api/rooms').get_json()
    assert [r['name'] for r in public] == ['Open']
    everything = client.get('/api/rooms?includePrivate=true').get_json()
    assert {r['name'] for r in everything} == {'Open', 'Closed'}


def test_participants_follow_socket_joins(client, make_room, sio_factory):
    from fakes import send
    room_id = make_room()
    alice = sio_factory()
    send(alice, {'type': 'join_room', 'roomId': room_id, 'userId': 'alice'})
    participants = client.get(f'/api/rooms/{room_id}/participants').get_json()
    assert [p['userId'] for p in participants] == ['alice']
    assert client.get(f'/api/rooms/{room_id}').get_json()['currentPlayers'] == 1


def test_quick_match_creates_then_reuses(client, seeded):
    res = client.post('/api/rooms/quick-match', json={'userId': 'alice', 'category': 'general'})
    assert res.status_code == 200
    created = res.get_json()['room']
    assert created['hostId'] == 'alice'
    assert created['maxPlayers'] == 4
    assert created['name'].startswith('Quick game #')

    res = client.post('/api/rooms/quick-match', json={'userId': 'bob', 'category': 'general'})
    assert res.get_json()['room']['id'] == created['id']

    res = client.post('/api/rooms/quick-match', json={'userId': 'bob', 'category': 'by_year'})
    assert res.get_json()['room']['id'] != created['id']


def test_quick_match_requires_known_user(client, seeded):
    assert client.post('/api/rooms/quick-match', json={}).status_code == 400
    assert client.post('/api/rooms/quick-match', json={'userId': 'nobody'}).status_code == 404


def test_http_join_and_leave_go_through_the_room(client, make_room, sio_factory):
    from fakes import events, send
    room_id = make_room()
    alice = sio_factory()
    send(alice, {'type': 'join_room', 'roomId': room_id, 'userId': 'alice'})
    events(alice)

    res = client.post(f'/api/rooms/{room_id}/join', json={'userId': 'bob'})
    assert res.status_code == 200
    assert res.get_json()['userId'] == 'bob'
    joined = events(alice, 'user_joined')
    assert [p['userId'] for p in joined[-1]['payload']] == ['alice', 'bob']
    assert client.get(f'/api/rooms/{room_id}').get_json()['currentPlayers'] == 2

    res = client.post(f'/api/rooms/{room_id}/leave', json={'userId': 'bob'})
    assert res.get_json() == {'success': True, 'removed': True}
    assert [e['userId'] for e in events(alice, 'user_left')] == ['bob']
    assert client.get(f'/api/rooms/{room_id}').get_json()['currentPlayers'] == 1

    res = client.post(f'/api/rooms/{room_id}/leave', json={'userId': 'bob'})
    assert res.get_json() == {'success': True, 'removed': False}


def test_http_join_errors(client, make_room):
    room_id = make_room()
    assert client.post(f'/api/rooms/{room_id}/join', json={}).status_code == 400
    assert client.post(f'/api/rooms/{room_id}/join', json={'userId': 'nobody'}).status_code == 404
    res = client.post('/api/rooms/missing/join', json={'userId': 'bob'})
    assert res.status_code == 404
    assert res.get_json()['code'] == 'not_found'
    assert client.post('/api/rooms/missing/leave', json={'userId': 'bob'}).status_code == 404


def test_http_join_private_room(client, seeded):
    room_id = client.post('/api/rooms', json={
        'name': 'Secret screening', 'hostId': 'alice', 'isPrivate': True, 'password': 'popcorn',
    }).get_json()['id']
    res = client.post(f'/api/rooms/{room_id}/join', json={'userId': 'bob'})
    assert res.status_code == 403
    assert res.get_json()['code'] == 'forbidden'
    res = client.post(f'/api/rooms/{room_id}/join', json={'userId': 'bob', 'password': 'popcorn'})
    assert res.status_code == 200
    assert client.get(f'/api/rooms/{room_id}/participants').get_json()[0]['userId'] == 'bob'
