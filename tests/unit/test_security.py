"""
Unit tests for password hashing and demo tokens
"""

import uuid

import pytest

from student_dashboard.security import (
    DEMO_TOKEN_PREFIX,
    create_demo_token,
    get_password_hash,
    parse_demo_token,
    verify_password,
)


class TestPasswordHashing:

    def test_hash_verifies(self):
        hashed = get_password_hash("password123", rounds=4)
        assert hashed != "password123"
        assert verify_password("password123", hashed)
        assert not verify_password("wrong", hashed)

    def test_long_passwords_truncated_at_72_bytes(self):
        """Bcrypt only looks at the first 72 bytes"""
        base = "a" * 72
        hashed = get_password_hash(base + "tail", rounds=4)
        assert verify_password(base + "different", hashed)


class TestDemoTokens:

    def test_round_trip(self):
        user_id = uuid.uuid4()
        token = create_demo_token(user_id)
        assert token.startswith(DEMO_TOKEN_PREFIX)
        assert parse_demo_token(token) == user_id

    @pytest.mark.parametrize("token", [
        "",
        "Bearer abc",
        "demo-token-",
        "demo-token-not-a-uuid-123",
        f"demo-token-{uuid.UUID(int=1)}",
        f"demo-token-{uuid.UUID(int=1)}-abc",
        f"other-token-{uuid.UUID(int=1)}-123",
    ])
    def test_malformed_tokens_rejected(self, token):
        assert parse_demo_token(token) is None
