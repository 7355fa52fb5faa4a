"""
Tests for Firebase auth helpers, admin detection and Firestore analytics
"""

import pytest
from unittest.mock import MagicMock, patch

from app.core import firebase
from app.core.middleware import _user_from_token, is_admin
from app.models.user import User
from app.services.analytics_service import AnalyticsService


@pytest.fixture
def mock_firestore():
    """Firestore client whose collection().add() calls can be inspected"""
    client = MagicMock()
    with patch("app.services.analytics_service.get_firestore_client", return_value=client):
        yield client


class TestFirebaseHelpers:
    """Token verification and custom claims"""

    @patch("app.core.firebase.auth")
    def test_verify_token(self, mock_auth):
        mock_auth.verify_id_token.return_value = {"uid": "test_user_123", "email": "test@example.com"}

        result = firebase.verify_firebase_token("token_123")

        assert result["uid"] == "test_user_123"
        mock_auth.verify_id_token.assert_called_once_with("token_123")

    @patch("app.core.firebase.auth")
    def test_verify_token_raises(self, mock_auth):
        mock_auth.verify_id_token.side_effect = ValueError("Invalid token")

        with pytest.raises(ValueError) as exc_info:
            firebase.verify_firebase_token("invalid_token")

        assert "Invalid token" in str(exc_info.value)

    @patch("app.core.firebase.auth")
    def test_set_admin_claim(self, mock_auth):
        firebase.set_admin_claim("user_1", True)
        mock_auth.set_custom_user_claims.assert_called_once_with("user_1", {"admin": True})

    @pytest.mark.parametrize("token,expected", [
        ({"admin": True}, True),
        ({"role": "admin"}, True),
        ({"role": "user"}, False),
        ({}, False),
    ])
    def test_has_admin_claim(self, token, expected):
        assert firebase.has_admin_claim(token) is expected

    @patch("app.core.firebase.firebase_admin")
    def test_init_firebase_once(self, mock_admin):
        mock_admin._apps = {"[DEFAULT]": MagicMock()}

        firebase.init_firebase()

        mock_admin.initialize_app.assert_not_called()


class TestAdminDetection:
    """Any of claim, allow-listed email or users row makes an admin"""

    def test_user_from_token(self):
        current = _user_from_token({"uid": "u1", "email": "u1@example.test", "admin": True})
        assert current["uid"] == "u1"
        assert current["is_admin_claim"] is True

    def test_user_from_token_without_uid(self):
        from fastapi import HTTPException

        with pytest.raises(HTTPException) as exc_info:
            _user_from_token({"email": "x@example.test"})
        assert exc_info.value.status_code == 401

    def test_claim(self):
        assert is_admin({"uid": "u1", "is_admin_claim": True}, None) is True

    def test_allow_listed_email(self):
        assert is_admin({"uid": "u1", "email": "owner@example.test"}, None) is True

    def test_users_row(self):
        assert is_admin({"uid": "u1"}, User(id="u1", email="u1@example.test", is_admin=True)) is True
        assert is_admin({"uid": "u1"}, User(id="u1", email="u1@example.test", role="ADMIN")) is True

    def test_regular_user(self):
        assert is_admin({"uid": "u1", "email": "u1@example.test"}, User(id="u1", role="user", is_admin=False)) is False
        assert is_admin({"uid": "u1"}, None) is False


class TestAnalyticsService:
    """Events and errors land in Firestore collections"""

    def test_log_success(self, mock_firestore):
        AnalyticsService().log_success(action="save_package", user_id="u1", parameters={"package_id": "pkg_1"})

        mock_firestore.collection.assert_called_once_with("directory_events")
        event = mock_firestore.collection.return_value.add.call_args[0][0]
        assert event["event_name"] == "save_package_success"
        assert event["parameters"] == {"status": "success", "package_id": "pkg_1"}

    def test_log_failure_writes_event_and_error(self, mock_firestore):
        AnalyticsService().log_failure(action="list_businesses", error="network timeout")

        collections = [c[0][0] for c in mock_firestore.collection.call_args_list]
        assert collections == ["directory_events", "directory_errors"]
        error = mock_firestore.collection.return_value.add.call_args_list[1][0][0]
        assert error["category"] == "network"
        assert error["fatal"] is False

    def test_log_payment_error(self, mock_firestore):
        AnalyticsService().log_payment_error(gateway="paytm", error="permission denied", order_id="PAYTM_1")

        mock_firestore.collection.assert_called_once_with("payment_errors")
        report = mock_firestore.collection.return_value.add.call_args[0][0]
        assert report["gateway"] == "paytm"
        assert report["order_id"] == "PAYTM_1"
        assert report["category"] == "permission"

    def test_firestore_failure_is_swallowed(self, mock_firestore):
        mock_firestore.collection.return_value.add.side_effect = RuntimeError("unavailable")

        AnalyticsService().log_event("checkout_started", user_id="u1")
