"""Tests for login, refresh and logout."""
from datetime import datetime, timedelta

import pytest


class TestPasswordHashing:
    """Test password hashing functions."""
    
    def test_hash_and_verify(self):
        from app.services.security import get_password_hash, verify_password
        
        hashed = get_password_hash("testpassword")
        assert hashed != "testpassword"
        assert verify_password("testpassword", hashed)
        assert not verify_password("wrongpassword", hashed)


class TestAccessToken:
    """Signed access credentials."""
    
    def test_round_trip_claims(self, db_session, acme_client):
        from app.services.auth import AuthService
        from app.services.security import decode_access_token
        
        token = AuthService(db_session)._issue_access_token(acme_client)
        payload = decode_access_token(token)
        assert payload["sub"] == str(acme_client.id)
        assert payload["tenant_id"] == str(acme_client.tenant_id)
        assert payload["role"] == "CLIENT"
    
    def test_master_token_has_null_tenant(self, db_session, master):
        from app.services.auth import AuthService
        from app.services.security import decode_access_token
        
        payload = decode_access_token(AuthService(db_session)._issue_access_token(master))
        assert payload["tenant_id"] is None
    
    def test_expired_token_is_rejected(self):
        from app.errors import Unauthenticated
        from app.services.security import create_access_token, decode_access_token
        
        token = create_access_token({"sub": "x"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(Unauthenticated):
            decode_access_token(token)
    
    def test_garbage_token_is_rejected(self):
        from app.errors import Unauthenticated
        from app.services.security import decode_access_token
        
        with pytest.raises(Unauthenticated):
            decode_access_token("not-a-jwt")
    
    def test_principal_of_deleted_user_is_rejected(self, db_session, acme_client):
        from app.errors import Unauthenticated
        from app.services.auth import AuthService
        
        service = AuthService(db_session)
        token = service._issue_access_token(acme_client)
        assert service.principal_from_token(token).id == acme_client.id
        acme_client.soft_delete()
        db_session.commit()
        with pytest.raises(Unauthenticated):
            service.principal_from_token(token)


class TestLogin:
    """Credential checks."""
    
    def test_login_issues_tokens(self, db_session, acme_client):
        from app.models.refresh_token import RefreshToken
        from app.services.auth import AuthService
        
        tokens = AuthService(db_session).login(acme_client.email, "secret123")
        assert tokens.access_token
        assert tokens.user.id == acme_client.id
        assert db_session.query(RefreshToken).filter(RefreshToken.token == tokens.refresh_token).count() == 1
    
    def test_wrong_password(self, db_session, acme_client):
        from app.errors import Unauthenticated
        from app.services.auth import AuthService
        
        with pytest.raises(Unauthenticated):
            AuthService(db_session).login(acme_client.email, "wrong-password")
    
    def test_unknown_email_still_checks_a_hash(self, db_session, monkeypatch):
        from app.errors import Unauthenticated
        from app.services import auth as auth_service
        
        checked = []
        real_verify = auth_service.verify_password
        
        def spy(plain, hashed):
            checked.append(hashed)
            return real_verify(plain, hashed)
        
        monkeypatch.setattr(auth_service, "verify_password", spy)
        with pytest.raises(Unauthenticated):
            auth_service.AuthService(db_session).login("nobody@example.com", "secret123")
        assert len(checked) == 1
    
    def test_deleted_user_cannot_login(self, db_session, acme_client):
        from app.errors import Unauthenticated
        from app.services.auth import AuthService
        
        acme_client.soft_delete()
        db_session.commit()
        with pytest.raises(Unauthenticated):
            AuthService(db_session).login(acme_client.email, "secret123")


class TestRefresh:
    """Refresh keeps the same refresh value."""
    
    def test_refresh_returns_same_refresh_token(self, db_session, acme_client):
        from app.services.auth import AuthService
        
        service = AuthService(db_session)
        tokens = service.login(acme_client.email, "secret123")
        refreshed = service.refresh(tokens.refresh_token)
        again = service.refresh(tokens.refresh_token)
        
        assert refreshed.refresh_token == tokens.refresh_token
        assert again.refresh_token == tokens.refresh_token
        assert refreshed.access_token
    
    def test_unknown_refresh_token(self, db_session):
        from app.errors import Unauthenticated
        from app.services.auth import AuthService
        
        with pytest.raises(Unauthenticated):
            AuthService(db_session).refresh("missing")
    
    def test_expired_refresh_token_is_purged(self, db_session, acme_client):
        from app.errors import Unauthenticated
        from app.models.refresh_token import RefreshToken
        from app.services.auth import AuthService
        
        db_session.add(RefreshToken(
            token="expired-token",
            user_id=acme_client.id,
            expires_at=datetime.utcnow() - timedelta(minutes=1),
        ))
        db_session.commit()
        
        with pytest.raises(Unauthenticated):
            AuthService(db_session).refresh("expired-token")
        assert db_session.query(RefreshToken).filter(RefreshToken.token == "expired-token").count() == 0
    
    def test_refresh_for_deleted_user(self, db_session, acme_client):
        from app.errors import Unauthenticated
        from app.services.auth import AuthService
        
        service = AuthService(db_session)
        tokens = service.login(acme_client.email, "secret123")
        acme_client.soft_delete()
        db_session.commit()
        with pytest.raises(Unauthenticated):
            service.refresh(tokens.refresh_token)


class TestLogout:
    """Logout is idempotent."""
    
    def test_logout_revokes_and_repeats_quietly(self, db_session, acme_client):
        from app.errors import Unauthenticated
        from app.services.auth import AuthService
        
        service = AuthService(db_session)
        tokens = service.login(acme_client.email, "secret123")
        service.logout(tokens.refresh_token)
        service.logout(tokens.refresh_token)
        service.logout("never-issued")
        with pytest.raises(Unauthenticated):
            service.refresh(tokens.refresh_token)
