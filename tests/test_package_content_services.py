"""
Tests for subscription packages and site content
"""

import re

import pytest

from app.services.content_service import ContentService
from app.services.package_service import DEFAULT_PACKAGES, PackageService, parse_features


@pytest.fixture
def packages(no_analytics):
    return PackageService()


@pytest.fixture
def content(no_analytics):
    return ContentService()


class TestPackageService:
    def test_save_generates_id_and_defaults(self, packages, db_session):
        saved = packages.save_package(db_session, {
            'title': ' Starter ',
            'price': '4999',
            'features': "Listing\n\n  Support  \n",
        })

        assert re.fullmatch(r"pkg_\d{13}", saved['id'])
        assert saved['title'] == 'Starter'
        assert saved['price'] == 4999.0
        assert saved['features'] == ['Listing', 'Support']
        assert saved['payment_type'] == 'recurring'
        assert saved['billing_cycle'] == 'yearly'
        assert saved['duration_months'] == 12
        assert saved['type'] == 'Business'
        assert saved['is_active'] is True

    def test_one_time_drops_recurring_fields(self, packages, db_session):
        saved = packages.save_package(db_session, {
            'title': 'Lifetime',
            'price': 25000,
            'payment_type': 'one-time',
            'monthly_price': 2500,
            'setup_fee': 999,
            'billing_cycle': 'monthly',
            'advance_payment_months': 3,
        })

        assert saved['monthly_price'] is None
        assert saved['setup_fee'] == 0.0
        assert saved['billing_cycle'] is None
        assert saved['advance_payment_months'] == 0

    @pytest.mark.parametrize("data,message", [
        ({'price': 100}, "Package title is required"),
        ({'title': 'No price'}, "Package price is required"),
        ({'title': 'Blank price', 'price': ''}, "Package price is required"),
    ])
    def test_validation(self, packages, db_session, data, message):
        with pytest.raises(ValueError) as exc_info:
            packages.save_package(db_session, data)
        assert message in str(exc_info.value)

    def test_update_keeps_id(self, packages, db_session, package_row):
        updated = packages.save_package(db_session, {'id': 'pkg_1', 'title': 'Business Pro+', 'price': 15000})

        assert updated['id'] == 'pkg_1'
        assert updated['title'] == 'Business Pro+'
        assert len(packages.get_all_packages(db_session)) == 1

    def test_listing_order_and_filters(self, packages, db_session):
        packages.save_package(db_session, {'id': 'pkg_b', 'title': 'B', 'price': 9000, 'type': 'Influencer'})
        packages.save_package(db_session, {'id': 'pkg_a', 'title': 'A', 'price': 3000})
        packages.save_package(db_session, {'id': 'pkg_c', 'title': 'C', 'price': 1000, 'is_active': False})

        assert [p['id'] for p in packages.get_all_packages(db_session)] == ['pkg_a', 'pkg_b']
        assert [p['id'] for p in packages.get_all_packages(db_session, include_inactive=True)] == [
            'pkg_c', 'pkg_a', 'pkg_b'
        ]
        assert [p['id'] for p in packages.get_packages_by_type(db_session, 'Influencer')] == ['pkg_b']

    def test_get_missing_returns_none(self, packages, db_session):
        assert packages.get_package_by_id(db_session, 'pkg_missing') is None

    def test_delete(self, packages, db_session, package_row):
        assert packages.delete_package(db_session, 'pkg_1') is True
        with pytest.raises(ValueError):
            packages.delete_package(db_session, 'pkg_1')

    def test_parse_features(self):
        assert parse_features(None) == []
        assert parse_features(['a', ' ', None, ' b ']) == ['a', 'b']

    def test_default_packages(self):
        ids = [p['id'] for p in DEFAULT_PACKAGES]
        assert ids == ['business-basic', 'business-pro', 'influencer-starter', 'influencer-pro']
        assert {p['type'] for p in DEFAULT_PACKAGES} == {'Business', 'Influencer'}


class TestBlogPosts:
    def test_slug_from_title(self, content, db_session):
        post = content.save_post(db_session, {'title': 'Grow Your Shop Online!', 'content': 'Body'})

        assert post['slug'] == 'grow-your-shop-online'
        assert post['published'] is False
        assert post['published_at'] is None

    def test_publish_sets_timestamp_once(self, content, db_session):
        post = content.save_post(db_session, {'title': 'Launch', 'published': True})
        first_published = post['published_at']
        assert first_published is not None

        again = content.save_post(db_session, {'id': post['id'], 'title': 'Launch', 'published': True})
        assert again['published_at'] == first_published

    def test_duplicate_slug(self, content, db_session):
        content.save_post(db_session, {'title': 'Same Title'})
        with pytest.raises(ValueError) as exc_info:
            content.save_post(db_session, {'title': 'Same title'})
        assert "Slug already in use" in str(exc_info.value)

    def test_public_listing_hides_drafts(self, content, db_session):
        content.save_post(db_session, {'title': 'Draft'})
        content.save_post(db_session, {'title': 'Live', 'published': True})

        assert [p['slug'] for p in content.list_posts(db_session)] == ['live']
        assert len(content.list_posts(db_session, published_only=False)) == 2

        with pytest.raises(ValueError):
            content.get_post_by_slug(db_session, 'draft')
        assert content.get_post_by_slug(db_session, 'draft', published_only=False)['title'] == 'Draft'

    def test_title_required(self, content, db_session):
        with pytest.raises(ValueError):
            content.save_post(db_session, {'title': ' '})


class TestTestimonials:
    def test_save_and_filter(self, content, db_session):
        content.save_testimonial(db_session, {'name': 'Ravi', 'quote': 'Great', 'rating': 5, 'featured': True})
        content.save_testimonial(db_session, {'name': 'Meera', 'quote': 'Good'})

        assert len(content.list_testimonials(db_session)) == 2
        assert [t['name'] for t in content.list_testimonials(db_session, featured=True)] == ['Ravi']

    def test_rating_range(self, content, db_session):
        with pytest.raises(ValueError) as exc_info:
            content.save_testimonial(db_session, {'name': 'Ravi', 'quote': 'Great', 'rating': 6})
        assert "between 1 and 5" in str(exc_info.value)

    def test_delete_missing(self, content, db_session):
        with pytest.raises(ValueError):
            content.delete_testimonial(db_session, 'nope')


class TestVideoSubmissions:
    def _submission(self, **overrides):
        data = {
            'name': 'Ravi',
            'email': 'ravi@example.test',
            'title': 'Our story',
            'description': 'How we grew',
            'video_url': 'https://videos.test/1',
        }
        data.update(overrides)
        return data

    def test_submit_defaults_to_pending_reel(self, content, db_session):
        submission = content.submit_video(db_session, self._submission(), user_id='user_1')

        assert submission['status'] == 'pending'
        assert submission['video_type'] == 'reel'
        assert submission['user_id'] == 'user_1'

    def test_missing_field(self, content, db_session):
        with pytest.raises(ValueError) as exc_info:
            content.submit_video(db_session, self._submission(video_url=''))
        assert "video_url is required" in str(exc_info.value)

    def test_invalid_type(self, content, db_session):
        with pytest.raises(ValueError):
            content.submit_video(db_session, self._submission(video_type='hologram'))

    def test_review(self, content, db_session):
        first = content.submit_video(db_session, self._submission())
        second = content.submit_video(db_session, self._submission(title='Second'))

        content.review_submission(db_session, first['id'], approved=True)
        content.review_submission(db_session, second['id'], approved=False)

        assert [s['id'] for s in content.list_submissions(db_session, status='approved')] == [first['id']]
        assert [s['id'] for s in content.list_submissions(db_session, status='rejected')] == [second['id']]
        assert content.list_submissions(db_session, status='pending') == []

    def test_invalid_status_filter(self, content, db_session):
        with pytest.raises(ValueError):
            content.list_submissions(db_session, status='archived')
