"""
Tests for referral codes, signups and commission credit
"""

import re

import pytest

from app.models.referral import Referral
from app.models.user import User
from app.services.referral_service import ReferralService, build_referral_link


@pytest.fixture
def service(no_analytics):
    return ReferralService()


class TestReferralCodes:
    def test_ensure_creates_code_once(self, service, db_session, user_factory):
        user_factory("alice")

        code = service.ensure_referral_id(db_session, "alice")

        assert re.fullmatch(r"[A-Z0-9]{8}", code)
        assert service.ensure_referral_id(db_session, "alice") == code

    def test_force_new_replaces_code(self, service, db_session, user_factory):
        user_factory("alice", referral_id="OLDCODE1")

        code = service.ensure_referral_id(db_session, "alice", force_new=True)

        assert code != "OLDCODE1"

    def test_unknown_user(self, service, db_session):
        with pytest.raises(ValueError):
            service.ensure_referral_id(db_session, "ghost")

    def test_lookup_is_case_insensitive(self, service, db_session, user_factory):
        user_factory("alice", name="Alice", referral_id="ABCD1234")

        found = service.get_user_by_referral_id(db_session, " abcd1234 ")

        assert found == {'id': 'alice', 'name': 'Alice', 'email': 'alice@example.test', 'referral_id': 'ABCD1234'}
        assert service.get_user_by_referral_id(db_session, "ZZZZ9999") is None
        assert service.get_user_by_referral_id(db_session, "") is None

    def test_referral_link(self):
        assert build_referral_link("ABCD1234") == "https://example.test/register?ref=ABCD1234"


class TestReferralSignup:
    def test_links_new_user(self, service, db_session, user_factory):
        user_factory("alice", referral_id="ABCD1234")
        user_factory("bob")

        assert service.process_referral_signup(db_session, "bob", "ABCD1234") is True

        bob = db_session.query(User).filter(User.id == "bob").first()
        assert bob.referred_by == "alice"

    def test_rejects_unknown_code(self, service, db_session, user_factory):
        user_factory("bob")
        assert service.process_referral_signup(db_session, "bob", "NOPE0000") is False

    def test_rejects_self_referral(self, service, db_session, user_factory):
        user_factory("alice", referral_id="ABCD1234")
        assert service.process_referral_signup(db_session, "alice", "ABCD1234") is False

    def test_first_referrer_wins(self, service, db_session, user_factory):
        user_factory("alice", referral_id="ABCD1234")
        user_factory("carol", referral_id="EFGH5678")
        user_factory("bob")

        assert service.process_referral_signup(db_session, "bob", "ABCD1234") is True
        assert service.process_referral_signup(db_session, "bob", "EFGH5678") is False

        bob = db_session.query(User).filter(User.id == "bob").first()
        assert bob.referred_by == "alice"


class TestRecordReferral:
    def test_credits_twenty_percent(self, service, db_session, user_factory):
        user_factory("alice", referral_id="ABCD1234")
        user_factory("bob", referred_by="alice")

        result = service.record_referral(db_session, "alice", 12999, referred_user_id="bob", subscription_id="sub_1")

        assert result['earnings'] == 2599.8
        alice = db_session.query(User).filter(User.id == "alice").first()
        assert alice.referral_count == 1
        assert alice.referral_earnings == 2599.8
        assert db_session.query(Referral).count() == 1

    def test_accumulates(self, service, db_session, user_factory):
        user_factory("alice")
        service.record_referral(db_session, "alice", 1000)
        service.record_referral(db_session, "alice", 500)

        alice = db_session.query(User).filter(User.id == "alice").first()
        assert alice.referral_count == 2
        assert alice.referral_earnings == 300.0

    def test_unknown_referrer(self, service, db_session):
        with pytest.raises(ValueError) as exc_info:
            service.record_referral(db_session, "ghost", 1000)
        assert "Referrer not found" in str(exc_info.value)


class TestReferralStats:
    def test_stats(self, service, db_session, user_factory, sample_package):
        from app.services.subscription_service import SubscriptionService

        user_factory("alice", referral_id="ABCD1234")
        user_factory("bob", referred_by="alice")
        user_factory("dave", referred_by="alice")
        SubscriptionService().activate_subscription(db_session, "bob", sample_package, payment_method='razorpay')
        service.record_referral(db_session, "alice", 12000, referred_user_id="bob")

        stats = service.get_referral_stats(db_session, "alice")

        assert stats['referral_id'] == "ABCD1234"
        assert stats['referral_link'] == "https://example.test/register?ref=ABCD1234"
        assert stats['referral_count'] == 1
        assert stats['referral_earnings'] == 2400.0
        assert stats['referred_users'] == 2
        assert stats['active_referred_subscriptions'] == 1
        assert stats['referrals'][0]['referred_user_id'] == "bob"

    def test_stats_without_code(self, service, db_session, user_factory):
        user_factory("alice")
        stats = service.get_referral_stats(db_session, "alice")
        assert stats['referral_id'] is None
        assert stats['referral_link'] is None
        assert stats['referrals'] == []
