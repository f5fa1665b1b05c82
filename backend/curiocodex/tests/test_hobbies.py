from backend.curiocodex.services.ai_gateway import CATEGORIES


def test_create_hobby_enriches(client, ai, index, alice, create_hobby):
    hobby = create_hobby(alice, 'Sourdough bread', description='Baking with wild yeast')
    assert hobby['category'] == 'Cooking'
    assert hobby['category'] in CATEGORIES
    assert hobby['tags'] == ['sourdough', 'bread', 'baking', 'wild', 'yeast']
    assert len(index) == 1
    assert ai.called('embed') == [('embed', 'Sourdough bread Baking with wild yeast')]


def test_manual_category_is_kept_verbatim(client, ai, alice, create_hobby):
    hobby = create_hobby(alice, 'Chess', category='Board games & puzzles')
    assert hobby['category'] == 'Board games & puzzles'
    assert not ai.called('categorize')
    # tags are still extracted
    assert hobby['tags'] == ['chess']


def test_name_is_required(client, ai, alice):
    for body in ({}, {'name': ''}, {'name': '   '}):
        r = client.post('/api/hobbies', json=body, headers=alice)
        assert r.status_code == 400
        assert r.json() == {'error': 'Name is required'}
    assert ai.calls == []


def test_embedding_failure_persists_nothing(client, ai, index, alice):
    ai.fail_embed = True
    r = client.post('/api/hobbies', json={'name': 'Guitar'}, headers=alice)
    assert r.status_code == 500
    assert r.json() == {'error': 'Internal server error'}
    assert client.get('/api/hobbies', headers=alice).json() == {'hobbies': []}
    assert len(index) == 0


def test_list_is_newest_first_and_scoped(client, alice, bob, create_hobby):
    first = create_hobby(alice, 'Guitar')
    second = create_hobby(alice, 'Piano')
    create_hobby(bob, 'Stamps')

    hobbies = client.get('/api/hobbies', headers=alice).json()['hobbies']
    assert [h['id'] for h in hobbies] == [second['id'], first['id']]


def test_update_recomputes_everything(client, ai, index, alice, create_hobby):
    hobby = create_hobby(alice, 'Guitar', description='Acoustic fingerstyle')
    r = client.put(f"/api/hobbies/{hobby['id']}", json={'name': 'Hiking', 'description': 'Mountain trails'}, headers=alice)
    assert r.status_code == 200
    updated = r.json()['hobby']
    assert updated['id'] == hobby['id']
    assert updated['category'] == 'Outdoor Activities'
    assert updated['tags'] == ['hiking', 'mountain', 'trails']
    assert index.get_by_ids([hobby['id']])[0].metadata['name'] == 'Hiking'


def test_update_is_idempotent(client, alice, create_hobby):
    hobby = create_hobby(alice, 'Coin collecting')
    body = {'name': 'Coin collecting', 'description': 'Roman coins'}
    once = client.put(f"/api/hobbies/{hobby['id']}", json=body, headers=alice).json()
    twice = client.put(f"/api/hobbies/{hobby['id']}", json=body, headers=alice).json()
    assert once == twice


def test_update_checks_ownership_before_enrichment(client, ai, alice, bob, create_hobby):
    hobby = create_hobby(alice, 'Guitar')
    ai.calls.clear()
    r = client.put(f"/api/hobbies/{hobby['id']}", json={'name': 'Mine now'}, headers=bob)
    assert r.status_code == 404
    assert r.json() == {'error': 'Hobby not found'}
    assert ai.calls == []


def test_delete_removes_items_and_vectors(client, index, alice, create_hobby, create_item):
    hobby = create_hobby(alice, 'Photography')
    item = create_item(alice, hobby['id'], 'Camera')
    other = create_hobby(alice, 'Chess')

    r = client.delete(f"/api/hobbies/{hobby['id']}", headers=alice)
    assert r.json() == {'success': True}
    assert index.get_by_ids([hobby['id'], item['id']]) == []
    assert [v.id for v in index.get_by_ids([other['id']])] == [other['id']]
    assert client.get(f"/api/hobbies/{hobby['id']}/items", headers=alice).status_code == 404


def test_other_users_hobby_is_not_found(client, alice, bob, create_hobby):
    hobby = create_hobby(alice, 'Guitar')
    for method, path in [
        ('delete', f"/api/hobbies/{hobby['id']}"),
        ('get', f"/api/hobbies/{hobby['id']}/items"),
        ('get', f"/api/hobbies/{hobby['id']}/similar"),
        ('get', f"/api/hobbies/{hobby['id']}/item-categories"),
    ]:
        r = getattr(client, method)(path, headers=bob)
        assert r.status_code == 404, path
    assert len(client.get('/api/hobbies', headers=alice).json()['hobbies']) == 1


def test_missing_hobby_is_not_found(client, alice):
    assert client.delete('/api/hobbies/does-not-exist', headers=alice).status_code == 404


def test_item_category_definitions(client, alice, create_hobby):
    hobby = create_hobby(alice, 'Stamps', itemCategories=['Europe', 'Asia', 'Europe', ' '])
    r = client.get(f"/api/hobbies/{hobby['id']}/item-categories", headers=alice)
    assert r.json() == {
        'hobbyCategory': 'Collectables',
        'itemCategories': ['Asia', 'Europe'],
        'definedCategories': ['Asia', 'Europe'],
    }

    # an update without names keeps the definitions, one with names replaces them
    client.put(f"/api/hobbies/{hobby['id']}", json={'name': 'Stamps'}, headers=alice)
    assert client.get(f"/api/hobbies/{hobby['id']}/item-categories", headers=alice).json()['definedCategories'] == ['Asia', 'Europe']
    client.put(f"/api/hobbies/{hobby['id']}", json={'name': 'Stamps', 'itemCategories': ['Africa']}, headers=alice)
    assert client.get(f"/api/hobbies/{hobby['id']}/item-categories", headers=alice).json()['definedCategories'] == ['Africa']


def test_by_category_is_scoped_to_caller(client, alice, bob, create_hobby):
    mine = create_hobby(alice, 'Guitar')
    create_hobby(alice, 'Chess')
    create_hobby(bob, 'Piano')

    r = client.get('/api/discover/by-category/Music', headers=alice)
    assert [h['id'] for h in r.json()['hobbies']] == [mine['id']]
