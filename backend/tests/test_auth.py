# Overview: Pytest coverage for login, sessions and admin management.

from datetime import timedelta

from conftest import PASSWORD, auth_headers, get_auth_token
from supplydesk.models import SessionToken
from supplydesk.services.auth_service import hash_password, verify_password
from supplydesk.services.session_service import hash_token
from supplydesk.time_utils import utcnow


class TestPasswords:
    def test_hash_and_verify(self, app):
        hashed = hash_password("secret-pass", rounds=4)
        assert hashed != "secret-pass"
        assert verify_password("secret-pass", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_is_a_mismatch(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestLogin:
    def test_login_returns_token(self, client, admin_a):
        response = client.post('/api/auth/login', json={'email': admin_a.email, 'password': PASSWORD})
        assert response.status_code == 200
        assert response.json['data']['admin']['email'] == admin_a.email
        assert len(response.json['data']['token']) == 64

    def test_token_stored_hashed(self, client, db_session, admin_a):
        token = get_auth_token(client, admin_a.email)
        assert db_session.query(SessionToken).filter_by(token_hash=token).first() is None
        assert db_session.query(SessionToken).filter_by(token_hash=hash_token(token)).one()

    def test_bad_password(self, client, admin_a):
        response = client.post('/api/auth/login', json={'email': admin_a.email, 'password': "nope"})
        assert response.status_code == 401
        assert response.json['success'] is False

    def test_missing_fields(self, client):
        response = client.post('/api/auth/login', json={'email': "x@example.com"})
        assert response.status_code == 400


class TestSessions:
    def test_requests_without_token_are_rejected(self, client, db_session):
        response = client.get('/api/schools')
        assert response.status_code == 401
        assert response.json == {'success': False, 'message': "Authentication required"}

    def test_garbage_token_rejected(self, client, db_session):
        response = client.get('/api/schools', headers=auth_headers("deadbeef"))
        assert response.status_code == 401

    def test_me(self, client, headers_a, admin_a):
        response = client.get('/api/auth/me', headers=headers_a)
        assert response.status_code == 200
        assert response.json['data']['id'] == admin_a.id

    def test_logout_revokes_token(self, client, headers_a):
        assert client.post('/api/auth/logout', headers=headers_a).status_code == 200
        assert client.get('/api/auth/me', headers=headers_a).status_code == 401

    def test_expired_token_rejected(self, client, db_session, admin_a):
        token = get_auth_token(client, admin_a.email)
        record = db_session.query(SessionToken).filter_by(token_hash=hash_token(token)).one()
        record.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert client.get('/api/auth/me', headers=auth_headers(token)).status_code == 401

    def test_deactivated_admin_rejected(self, client, db_session, admin_a, headers_a):
        admin_a.is_active = False
        db_session.commit()

        assert client.get('/api/auth/me', headers=headers_a).status_code == 401


class TestAdminManagement:
    def test_superadmin_creates_admin(self, client, headers_super):
        response = client.post('/api/admins', json={
            'username': "clerk",
            'email': "Clerk@Example.com",
            'password': "secret1",
        }, headers=headers_super)
        assert response.status_code == 201
        assert response.json['data']['email'] == "clerk@example.com"
        assert response.json['data']['role'] == "admin"

        login = client.post('/api/auth/login', json={'email': "clerk@example.com", 'password': "secret1"})
        assert login.status_code == 200

    def test_plain_admin_cannot_create_admins(self, client, headers_a):
        response = client.post('/api/admins', json={
            'username': "clerk",
            'email': "clerk@example.com",
            'password': "secret1",
        }, headers=headers_a)
        assert response.status_code == 403

    def test_duplicate_email(self, client, headers_super, admin_a):
        response = client.post('/api/admins', json={
            'username': "again",
            'email': admin_a.email,
            'password': "secret1",
        }, headers=headers_super)
        assert response.status_code == 400
        assert response.json['message'] == "Admin with this email already exists"

    def test_short_password(self, client, headers_super):
        response = client.post('/api/admins', json={
            'username': "clerk",
            'email': "clerk@example.com",
            'password': "123",
        }, headers=headers_super)
        assert response.status_code == 400
