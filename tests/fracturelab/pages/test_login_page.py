"""
Tests for the Login page
"""
from unittest.mock import patch

import pytest

from fracturelab.pages.login import is_valid_email, render_login_page, sign_in
from fracturelab.services.annotation import GatewayError


@pytest.fixture
def signed_out(patched_pages, session_state):
    session_state.app_state.user = None
    return session_state


class TestEmailValidation:
    """Tests for is_valid_email()"""

    @pytest.mark.parametrize("email", ["reviewer@example.org", "a.b@hospital.co.uk"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "reviewer", "@example.org", "reviewer@example", "reviewer@.org"])
    def test_invalid(self, email):
        assert not is_valid_email(email)


class TestSignIn:
    """Tests for sign_in()"""

    def test_invalid_email(self, signed_out, gateway, patched_pages):
        assert sign_in(gateway, "not-an-email") is False

        patched_pages.error.assert_called_once_with("Please enter a valid email address")
        assert signed_out.app_state.user is None

    def test_registers_new_editor(self, signed_out, gateway):
        assert sign_in(gateway, "  New.User@Example.org ") is True

        user = signed_out.app_state.user
        assert user.email == "New.User@Example.org"
        assert user.auth_id == "new.user@example.org"
        assert user.role == "editor"

    def test_existing_user(self, signed_out, gateway, user):
        sign_in(gateway, "reviewer@example.org")

        assert signed_out.app_state.user.id == user.id

    def test_gateway_error(self, signed_out, gateway, patched_pages):
        with patch.object(gateway, "check_and_create_user", side_effect=GatewayError("offline")):
            assert sign_in(gateway, "reviewer@example.org") is False

        patched_pages.error.assert_called_once_with("Sign-in failed: offline")


class TestLoginPage:
    """Tests for render_login_page()"""

    def test_button_disabled_without_email(self, signed_out, patched_pages, find_button):
        render_login_page()

        assert find_button(patched_pages, "Sign In")[1]["disabled"] is True

    def test_sign_in_click(self, signed_out, patched_pages, click):
        patched_pages.text_input.side_effect = lambda label, value="", **kw: "reviewer@example.org"
        click(patched_pages, "Sign In")

        render_login_page()

        assert signed_out.app_state.user.email == "reviewer@example.org"
        patched_pages.rerun.assert_called_once()
