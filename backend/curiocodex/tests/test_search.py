def search(client, headers, **body):
    return client.post('/api/discover/search', json=body, headers=headers)


def test_semantic_search_is_scoped_to_caller(client, alice, bob, create_hobby, create_item):
    guitar = create_hobby(alice, 'Guitar', description='Acoustic')
    capo = create_item(alice, guitar['id'], 'Guitar capo')
    create_hobby(bob, 'Guitar', description='Acoustic')

    r = search(client, alice, query='guitar')
    assert r.status_code == 200
    body = r.json()
    assert body['searchMethod'] == 'semantic'
    assert [h['id'] for h in body['hobbies']] == [guitar['id']]
    assert [i['id'] for i in body['items']] == [capo['id']]
    assert body['hobbies'][0]['similarity'] > 0


def test_text_mode(client, alice, create_hobby, create_item):
    chess = create_hobby(alice, 'Chess', description='Sicilian defence')
    create_hobby(alice, 'Guitar')
    clock = create_item(alice, chess['id'], 'Clock', description='For sicilian blitz')

    body = search(client, alice, query='SICILIAN', mode='text').json()
    assert body['searchMethod'] == 'text'
    assert [h['id'] for h in body['hobbies']] == [chess['id']]
    assert [i['id'] for i in body['items']] == [clock['id']]


def test_embedding_failure_falls_back_to_text(client, ai, alice, create_hobby):
    create_hobby(alice, 'Chess')
    ai.fail_embed = True
    body = search(client, alice, query='chess').json()
    assert body['searchMethod'] == 'text'
    assert [h['name'] for h in body['hobbies']] == ['Chess']


def test_search_requires_query(client, alice):
    r = search(client, alice, query='  ')
    assert r.status_code == 400
    assert r.json() == {'error': 'Search query is required'}
    assert search(client, alice, query='x', limit=0).status_code == 400


def test_search_limit(client, alice, create_hobby):
    for n in range(5):
        create_hobby(alice, f'Chess variant {n}')
    body = search(client, alice, query='chess', limit=2).json()
    assert len(body['hobbies']) + len(body['items']) == 2
