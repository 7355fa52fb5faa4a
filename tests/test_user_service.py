"""
Tests for UserService
"""

import pytest

from app.services.user_service import UserService


@pytest.fixture
def service(no_analytics):
    return UserService()


class TestGetOrCreate:
    def test_creates_on_first_call(self, service, db_session):
        user = service.get_or_create_user(db_session, "uid_1", "a@example.test", "Asha")

        assert user.email == "a@example.test"
        assert user.name == "Asha"
        assert user.role == "user"
        assert user.last_login is not None

    def test_existing_user_updates_last_login(self, service, db_session, user_factory):
        user_factory("uid_1", name="Asha")

        user = service.get_or_create_user(db_session, "uid_1", "other@example.test")

        assert user.email == "uid_1@example.test"
        assert user.last_login is not None

    def test_missing_email_placeholder(self, service, db_session):
        user = service.get_or_create_user(db_session, "phone_only", None)
        assert user.email == "phone_only@users.noreply"


class TestProfile:
    def test_update_whitelisted_fields_only(self, service, db_session, user_factory):
        user_factory("uid_1")

        profile = service.update_profile(db_session, "uid_1", {
            'name': 'Asha',
            'city': 'Jaipur',
            'role': 'admin',
            'is_admin': True,
        })

        assert profile['name'] == 'Asha'
        assert profile['city'] == 'Jaipur'
        assert profile['role'] == 'user'
        assert profile['is_admin'] is False

    def test_missing_user(self, service, db_session):
        with pytest.raises(ValueError) as exc_info:
            service.get_profile(db_session, "ghost")
        assert "User not found" in str(exc_info.value)


class TestRoles:
    """Roles are stored lowercase and shown capitalised"""

    def test_admin_role_sets_flag(self, service, db_session, user_factory):
        user_factory("uid_1")

        profile = service.set_role(db_session, "uid_1", "ADMIN")

        assert profile['role'] == 'admin'
        assert profile['role_display'] == 'Admin'
        assert profile['is_admin'] is True

        demoted = service.set_role(db_session, "uid_1", "business")
        assert demoted['is_admin'] is False
        assert demoted['role_display'] == 'Business'

    def test_influencer_role_sets_flag(self, service, db_session, user_factory):
        user_factory("uid_1")
        assert service.set_role(db_session, "uid_1", "influencer")['is_influencer'] is True

    @pytest.mark.parametrize("role", ["superuser", ""])
    def test_invalid_role(self, service, db_session, user_factory, role):
        user_factory("uid_1")
        with pytest.raises(ValueError) as exc_info:
            service.set_role(db_session, "uid_1", role)
        assert "Invalid role" in str(exc_info.value)

    def test_influencer_status(self, service, db_session, user_factory):
        user_factory("uid_1")
        assert service.set_influencer_status(db_session, "uid_1", True)['is_influencer'] is True
        assert service.set_influencer_status(db_session, "uid_1", False)['is_influencer'] is False

    def test_list_users_filters(self, service, db_session, user_factory):
        user_factory("uid_1", name="Asha", role="business")
        user_factory("uid_2", name="Ravi", role="user")

        assert [u['id'] for u in service.list_users(db_session, role="Business")] == ["uid_1"]
        assert [u['id'] for u in service.list_users(db_session, search="rav")] == ["uid_2"]
        assert len(service.list_users(db_session)) == 2
