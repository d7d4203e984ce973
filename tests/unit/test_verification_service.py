"""
Unit tests for verification artifact issuing and dispatch.
"""

import pytest

from itpnotify.auth import Account
from itpnotify.services import (
    VerificationService,
    generate_email_token,
    generate_sms_code,
)


def make_account(channel: str = "email") -> Account:
    return Account(
        account_id="acc-1",
        surname="Popescu",
        given_name="Ion",
        phone="0712345678",
        email="a@b.ro",
        preferred_verification=channel,
        email_verification_token="tok1234567890abcdef",
        sms_verification_code="123456",
    )


class TestArtifacts:
    """Tests for token and code generation."""

    @pytest.mark.unit
    def test_email_token_shape(self):
        token = generate_email_token()

        assert len(token) == 32
        assert token.isalnum()

    @pytest.mark.unit
    def test_email_tokens_are_unique(self):
        tokens = {generate_email_token() for _ in range(100)}

        assert len(tokens) == 100

    @pytest.mark.unit
    def test_sms_code_shape(self):
        for _ in range(200):
            code = generate_sms_code()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999

    @pytest.mark.unit
    def test_issue_returns_both(self, verification_service):
        artifacts = verification_service.issue()

        assert len(artifacts.email_token) == 32
        assert len(artifacts.sms_code) == 6


class TestDispatch:
    """Tests for sending the preferred channel's artifact."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_email_channel(self, verification_service, email_notifier, sms_notifier):
        result = await verification_service.dispatch(make_account("email"))

        assert result.delivered is True
        assert result.channel == "email"
        email_notifier.send_verification_email.assert_awaited_once_with(
            "a@b.ro", "Popescu Ion", "tok1234567890abcdef"
        )
        sms_notifier.send_verification_sms.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sms_channel(self, verification_service, email_notifier, sms_notifier):
        result = await verification_service.dispatch(make_account("sms"))

        assert result.delivered is True
        assert result.channel == "sms"
        sms_notifier.send_verification_sms.assert_awaited_once_with("0712345678", "Popescu Ion", "123456")
        email_notifier.send_verification_email.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_email_not_delivered(self, verification_service, email_notifier):
        email_notifier.send_verification_email.return_value = False

        result = await verification_service.dispatch(make_account("email"))

        assert result.delivered is False
        assert result.error == "Email not delivered"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sms_gateway_error(self, verification_service, sms_notifier):
        sms_notifier.send_verification_sms.return_value = {"success": False, "error": "SMS not configured"}

        result = await verification_service.dispatch(make_account("sms"))

        assert result.delivered is False
        assert result.error == "SMS not configured"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_notifier_exception_is_contained(self, verification_service, email_notifier):
        email_notifier.send_verification_email.side_effect = RuntimeError("smtp down")

        result = await verification_service.dispatch(make_account("email"))

        assert result.delivered is False
        assert result.error == "smtp down"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_welcome_on_verified_channel(self, verification_service, email_notifier, sms_notifier):
        await verification_service.send_welcome(make_account("email"), "sms")

        sms_notifier.send_welcome_sms.assert_awaited_once_with("0712345678", "Popescu Ion")
        email_notifier.send_welcome_email.assert_not_called()
