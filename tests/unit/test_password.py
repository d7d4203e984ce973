"""
Unit tests for Password Handler and Phone Normalization.

Tests password hashing, verification, and Romanian phone number normalization.
"""

import pytest

from itpnotify.auth import PasswordHandler, normalize_phone
from itpnotify.auth.password import BCRYPT_ROUNDS, to_international


class TestPasswordHandler:
    """Tests for PasswordHandler class."""

    @pytest.mark.unit
    def test_default_work_factor(self):
        """Production handler uses 12 rounds."""
        assert BCRYPT_ROUNDS == 12
        assert PasswordHandler().rounds == 12

    @pytest.mark.unit
    def test_hash_password(self, password_handler):
        """Test password hashing."""
        password = "Password1!"
        hashed = password_handler.hash(password)

        assert hashed is not None
        assert hashed != password
        assert hashed.startswith("$2b$")  # bcrypt prefix

    @pytest.mark.unit
    def test_verify_correct_password(self, password_handler):
        hashed = password_handler.hash("Password1!")

        assert password_handler.verify("Password1!", hashed) is True

    @pytest.mark.unit
    def test_verify_incorrect_password(self, password_handler):
        hashed = password_handler.hash("Password1!")

        assert password_handler.verify("Password2!", hashed) is False

    @pytest.mark.unit
    def test_same_password_has_different_hash_each_time(self, password_handler):
        """Test that same password produces different hashes (due to salt)."""
        hash1 = password_handler.hash("Password1!")
        hash2 = password_handler.hash("Password1!")

        assert hash1 != hash2
        assert password_handler.verify("Password1!", hash1) is True
        assert password_handler.verify("Password1!", hash2) is True

    @pytest.mark.unit
    def test_empty_password(self, password_handler):
        with pytest.raises(ValueError, match="cannot be empty"):
            password_handler.hash("")

    @pytest.mark.unit
    def test_unicode_password(self, password_handler):
        password = "Parolă1!ăîșț"
        hashed = password_handler.hash(password)

        assert password_handler.verify(password, hashed) is True

    @pytest.mark.unit
    def test_long_password(self, password_handler):
        """bcrypt has a max of 72 bytes."""
        with pytest.raises(ValueError, match="cannot be longer than 72"):
            password_handler.hash("A" * 100)

    @pytest.mark.unit
    def test_verify_malformed_hash(self, password_handler):
        assert password_handler.verify("Password1!", "not-a-bcrypt-hash") is False
        assert password_handler.verify("Password1!", None) is False

    @pytest.mark.unit
    def test_needs_rehash(self, password_handler):
        hashed = password_handler.hash("Password1!")

        assert password_handler.needs_rehash(hashed) is False
        assert PasswordHandler(rounds=5).needs_rehash(hashed) is True
        assert password_handler.needs_rehash("garbage") is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_async_variants(self, password_handler):
        hashed = await password_handler.hash_async("Password1!")

        assert await password_handler.verify_async("Password1!", hashed) is True
        assert await password_handler.verify_async("password1!", hashed) is False


class TestPhoneNormalization:
    """Tests for phone number normalization."""

    @pytest.mark.unit
    def test_normalize_already_formatted(self):
        assert normalize_phone("0712345678") == "0712345678"

    @pytest.mark.unit
    def test_normalize_international_prefix(self):
        assert normalize_phone("+40712345678") == "0712345678"
        assert normalize_phone("0040712345678") == "0712345678"

    @pytest.mark.unit
    def test_normalize_with_separators(self):
        assert normalize_phone("0712 345 678") == "0712345678"
        assert normalize_phone("+40 (712) 345-678") == "0712345678"
        assert normalize_phone("0712.345.678") == "0712345678"

    @pytest.mark.unit
    def test_normalize_landline(self):
        assert normalize_phone("0040-21-123-4567") == "0211234567"
        assert normalize_phone("0364123456") == "0364123456"

    @pytest.mark.unit
    def test_normalize_rejects_other_leading_digits(self):
        """Romanian numbers start with 2, 3, 6 or 7 after the zero."""
        assert normalize_phone("0812345678") is None
        assert normalize_phone("0112345678") is None

    @pytest.mark.unit
    def test_normalize_wrong_length(self):
        assert normalize_phone("071234567") is None
        assert normalize_phone("07123456789") is None

    @pytest.mark.unit
    def test_normalize_foreign_number(self):
        assert normalize_phone("+5511999999999") is None

    @pytest.mark.unit
    def test_normalize_with_letters(self):
        assert normalize_phone("07123abc78") is None

    @pytest.mark.unit
    def test_normalize_empty(self):
        assert normalize_phone("") is None
        assert normalize_phone(None) is None


class TestInternationalFormat:
    """Tests for the SMS gateway number format."""

    @pytest.mark.unit
    def test_national_to_international(self):
        assert to_international("0712345678") == "+40712345678"

    @pytest.mark.unit
    def test_already_international(self):
        assert to_international("+40 712 345 678") == "+40712345678"

    @pytest.mark.unit
    def test_unrecognized_number_gets_prefix(self):
        assert to_international("0812345678") == "+40812345678"
        assert to_international("812345678") == "+40812345678"
