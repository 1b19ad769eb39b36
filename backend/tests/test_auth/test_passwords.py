"""Unit tests for password hashing and verification."""

from subscription_api.auth.passwords import hash_password, verify_password


class TestHashPassword:
    """Test password hashing."""

    def test_hash_is_bcrypt_string(self):
        hashed = hash_password("mypassword")
        assert isinstance(hashed, str)
        assert hashed.startswith("$2")
        assert hashed != "mypassword"

    def test_same_password_different_salts(self):
        """Hashing the same password twice should produce different hashes (different salts)."""
        assert hash_password("samepassword") != hash_password("samepassword")


class TestVerifyPassword:
    """Test password verification."""

    def test_correct_password_verifies(self):
        hashed = hash_password("admin123")
        assert verify_password("admin123", hashed) is True

    def test_wrong_password_fails(self):
        hashed = hash_password("admin123")
        assert verify_password("admin124", hashed) is False

    def test_password_longer_than_bcrypt_limit(self):
        long_pass = "a" * 100
        hashed = hash_password(long_pass)
        assert verify_password(long_pass, hashed) is True

    def test_unicode_password(self):
        hashed = hash_password("pässwördü")
        assert verify_password("pässwördü", hashed) is True
        assert verify_password("password", hashed) is False
