from datetime import timedelta
from flask_jwt_extended import decode_token
from repairdesk import get_db
from repairdesk.models.user import User
from tests.test_utils_seed import ensure_user, token_for, login


def _signup(client, **overrides):
    body = {'name': 'Asha', 'email': 'asha@example.com', 'password': 'secret1', 'role': 'customer'}
    body.update(overrides)
    return client.post('/signup', json=body)


def test_signup_then_login_returns_token_and_user(client, app_instance):
    resp = _signup(client)
    assert resp.status_code == 201, resp.get_json()
    user = resp.get_json()['user']
    assert user['email'] == 'asha@example.com'
    assert user['role'] == 'customer'
    assert 'password' not in user and 'password_hash' not in user

    resp = login(client, 'asha@example.com', 'secret1')
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['success'] is True
    assert body['user']['id'] == user['id']
    with app_instance.app_context():
        stored = get_db().get(User, user['id'])
        assert stored.password_hash != 'secret1'
        assert stored.last_login_at is not None


def test_distinct_signups_get_distinct_ids(client):
    a = _signup(client, email='one@example.com').get_json()['user']
    b = _signup(client, email='two@example.com', role='service_team').get_json()['user']
    assert a['id'] != b['id']
    assert b['role'] == 'service_team'


def test_duplicate_email_is_case_insensitive(client):
    assert _signup(client, email='Dup@Example.com').status_code == 201
    resp = _signup(client, email='dup@example.COM')
    assert resp.status_code == 409
    assert resp.get_json() == {'success': False, 'error': 'Email already registered'}


def test_signup_validation(client):
    resp = client.post('/signup', json={'name': 'x', 'email': 'x@example.com'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Missing required fields: password, role'
    assert _signup(client, email='not-an-email').get_json()['error'] == 'Invalid email format'
    assert _signup(client, password='12345').status_code == 400
    assert _signup(client, role='admin').status_code == 400


def test_signup_trims_input(client):
    resp = _signup(client, name='  Ravi  ', email='  ravi@example.com ')
    assert resp.status_code == 201
    assert resp.get_json()['user']['name'] == 'Ravi'
    assert login(client, 'ravi@example.com').status_code == 200


def test_wrong_password_and_unknown_email_look_identical(client):
    _signup(client)
    wrong = login(client, 'asha@example.com', 'nope-nope')
    unknown = login(client, 'ghost@example.com', 'secret1')
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json() == unknown.get_json() == {'success': False, 'error': 'Invalid email or password'}


def test_deactivated_account_cannot_login(client, app_instance):
    with app_instance.app_context():
        ensure_user('off@example.com', is_active=False)
    resp = login(client, 'off@example.com')
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Account is deactivated'


def test_token_expires_after_eight_hours_and_carries_claims(client, app_instance):
    _signup(client)
    token = login(client, 'asha@example.com').get_json()['token']
    with app_instance.app_context():
        decoded = decode_token(token)
    assert decoded['exp'] - decoded['iat'] == 8 * 3600
    assert decoded['role'] == 'customer'
    assert decoded['email'] == 'asha@example.com'
    assert decoded['name'] == 'Asha'


def test_missing_invalid_and_expired_tokens(client, app_instance):
    resp = client.get('/profile')
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Authorization header missing'

    resp = client.get('/profile', headers={'Authorization': 'Bearer not.a.token'})
    assert resp.status_code == 403
    assert resp.get_json()['error'] == 'Invalid token'

    with app_instance.app_context():
        user = ensure_user('late@example.com')
        expired = token_for(user, expires_delta=timedelta(seconds=-1))
    resp = client.get('/profile', headers={'Authorization': f'Bearer {expired}'})
    assert resp.status_code == 403
    assert resp.get_json()['error'] == 'Token expired'


def test_deactivated_user_token_is_rejected(client, app_instance):
    with app_instance.app_context():
        user = ensure_user('soon-off@example.com')
        token = token_for(user)
        user.is_active = False
        get_db().commit()
    resp = client.get('/profile', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'User not found or inactive'


def test_profile_read_and_partial_update(client):
    _signup(client, phone='+91-1')
    token = login(client, 'asha@example.com').get_json()['token']
    headers = {'Authorization': f'Bearer {token}'}

    body = client.get('/profile', headers=headers).get_json()
    assert body['user']['email'] == 'asha@example.com'
    assert body['user']['lastLoginAt'] is not None

    resp = client.patch('/profile', json={'name': '', 'phone': '+91-2'}, headers=headers)
    assert resp.status_code == 200
    user = resp.get_json()['user']
    assert user['name'] == 'Asha'
    assert user['phone'] == '+91-2'


def test_logout_is_stateless(client):
    resp = client.post('/logout')
    assert resp.status_code == 200
    assert resp.get_json()['success'] is True
