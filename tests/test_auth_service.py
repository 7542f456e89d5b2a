import pytest
import jwt
from datetime import timedelta
from talentflow.services import auth as auth_service

def test_password_hashing():
    """Test that password hashing and verification works correctly."""
    password = "MySecurePassword123!"
    hashed = auth_service.get_password_hash(password)
    assert hashed != password
    assert auth_service.verify_password(password, hashed)
    assert not auth_service.verify_password("WrongPassword", hashed)

def test_access_token_round_trip():
    token = auth_service.create_access_token(data={"sub": "identity-1", "role": "admin"})
    payload = auth_service.decode_access_token(token)
    assert payload["sub"] == "identity-1"
    assert payload["type"] == "access"

def test_expired_token_is_reported():
    token = auth_service.create_access_token(data={"sub": "identity-1"}, expires_delta=timedelta(seconds=-5))
    assert auth_service.decode_access_token(token) == {"error": "TOKEN_EXPIRED"}

def test_foreign_signature_is_rejected():
    token = jwt.encode({"sub": "identity-1", "type": "access"}, "another-secret", algorithm="HS256")
    assert auth_service.decode_access_token(token) is None

def test_refresh_tokens_are_unique():
    first = auth_service.create_refresh_token(data={"sub": "identity-1"})
    second = auth_service.create_refresh_token(data={"sub": "identity-1"})
    assert first != second
    assert auth_service.decode_access_token(first)["type"] == "refresh"

def test_passwords_are_hashed_with_bcrypt():
    hashed = auth_service.get_password_hash("MySecurePassword123!")
    assert hashed.startswith("$2b$")
    assert auth_service.pwd_context.identify(hashed) == "bcrypt"
