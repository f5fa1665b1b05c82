from backend.curiocodex.dependencies import get_vector_index
from backend.curiocodex.main import app


def repair(client, headers):
    return client.post('/api/admin/repair-vector-index', headers=headers)


def test_repair_restores_missing_vectors(client, index, alice, bob, create_hobby, create_item):
    hobby = create_hobby(alice, 'Guitar')
    item = create_item(alice, hobby['id'], 'Capo')
    theirs = create_hobby(bob, 'Chess')
    index.delete_by_ids([hobby['id'], item['id']])

    r = repair(client, alice)
    assert r.status_code == 200
    assert r.json() == {'success': True, 'repaired': 2, 'hobbies': 1, 'items': 1}
    assert {v.id for v in index.get_by_ids([hobby['id'], item['id']])} == {hobby['id'], item['id']}
    assert index.get_by_ids([item['id']])[0].metadata['hobbyId'] == hobby['id']

    # idempotent and leaves other users alone
    assert repair(client, alice).json()['repaired'] == 2
    assert len(index) == 3
    assert [v.id for v in index.get_by_ids([theirs['id']])] == [theirs['id']]


def test_repair_without_index(client, alice):
    app.dependency_overrides[get_vector_index] = lambda: None
    r = repair(client, alice)
    assert r.status_code == 400
    assert r.json() == {'error': 'Vector index not available'}


def test_repair_with_failing_index(client, alice, failing_index, create_hobby):
    create_hobby(alice, 'Guitar')
    app.dependency_overrides[get_vector_index] = lambda: failing_index
    r = repair(client, alice)
    assert r.status_code == 200
    assert r.json() == {'success': False, 'repaired': 0, 'hobbies': 1, 'items': 0}


def test_repair_requires_auth(client):
    assert repair(client, {}).status_code == 401
