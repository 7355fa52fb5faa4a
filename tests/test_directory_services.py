"""
Tests for the business and influencer directories and CSV import
"""

import pytest

from app.services.business_service import BusinessService
from app.services.csv_import_service import CsvImportService, parse_rows
from app.services.influencer_service import InfluencerService


@pytest.fixture
def businesses(no_analytics):
    return BusinessService()


@pytest.fixture
def influencers(no_analytics):
    return InfluencerService()


class TestBusinessService:
    """Business directory CRUD and listing"""

    def test_save_parses_comma_tags(self, businesses, db_session):
        saved = businesses.save_business(db_session, {
            'name': 'Sharma Sweets',
            'category': 'Food',
            'tags': 'sweets, snacks, , catering, gifts',
        })

        assert saved['id'] is not None
        assert saved['tags'] == ['sweets', 'snacks', 'catering', 'gifts']
        assert saved['visible_tags'] == ['sweets', 'snacks', 'catering']
        assert saved['hidden_tag_count'] == 1
        assert saved['featured'] is False

    def test_name_required(self, businesses, db_session):
        with pytest.raises(ValueError) as exc_info:
            businesses.save_business(db_session, {'name': '  ', 'category': 'Food'})
        assert "Business name is required" in str(exc_info.value)

    def test_update_existing(self, businesses, db_session):
        saved = businesses.save_business(db_session, {'name': 'Old Name', 'city': 'Pune'})

        updated = businesses.save_business(db_session, {'id': saved['id'], 'name': 'New Name'})

        assert updated['id'] == saved['id']
        assert updated['name'] == 'New Name'
        assert updated['city'] == 'Pune'

    def test_update_missing(self, businesses, db_session):
        with pytest.raises(ValueError) as exc_info:
            businesses.save_business(db_session, {'id': 999, 'name': 'Ghost'})
        assert "Business not found" in str(exc_info.value)

    def test_list_ordered_by_name_with_filters(self, businesses, db_session):
        businesses.save_business(db_session, {'name': 'Zed Motors', 'category': 'Auto', 'featured': True})
        businesses.save_business(db_session, {'name': 'Apex Tailors', 'category': 'Retail'})
        businesses.save_business(db_session, {'name': 'Mango Cafe', 'category': 'Food', 'featured': True})

        names = [b['name'] for b in businesses.list_businesses(db_session)]
        assert names == ['Apex Tailors', 'Mango Cafe', 'Zed Motors']

        featured = [b['name'] for b in businesses.get_featured_businesses(db_session)]
        assert featured == ['Mango Cafe', 'Zed Motors']

        food = businesses.get_businesses_by_category(db_session, 'Food')
        assert [b['name'] for b in food] == ['Mango Cafe']

        found = businesses.list_businesses(db_session, search='tail')
        assert [b['name'] for b in found] == ['Apex Tailors']

    def test_pagination(self, businesses, db_session):
        for name in ('A', 'B', 'C'):
            businesses.save_business(db_session, {'name': name})

        page = businesses.list_businesses(db_session, limit=1, offset=1)

        assert [b['name'] for b in page] == ['B']

    def test_get_and_delete(self, businesses, db_session):
        saved = businesses.save_business(db_session, {'name': 'Temp'})

        assert businesses.get_business(db_session, saved['id'])['name'] == 'Temp'
        assert businesses.delete_business(db_session, saved['id']) is True

        with pytest.raises(ValueError):
            businesses.get_business(db_session, saved['id'])
        with pytest.raises(ValueError):
            businesses.delete_business(db_session, saved['id'])


class TestInfluencerService:
    """Influencer directory"""

    def test_priority_then_name(self, influencers, db_session):
        influencers.save_influencer(db_session, {'name': 'Bina', 'priority': 1})
        influencers.save_influencer(db_session, {'name': 'Arjun', 'priority': 1})
        influencers.save_influencer(db_session, {'name': 'Chetan', 'priority': 5})

        names = [i['name'] for i in influencers.list_influencers(db_session)]

        assert names == ['Chetan', 'Arjun', 'Bina']

    def test_filters(self, influencers, db_session):
        influencers.save_influencer(db_session, {'name': 'Arjun', 'niche': 'Food', 'city': 'Mumbai'})
        influencers.save_influencer(db_session, {'name': 'Bina', 'niche': 'Travel', 'location': 'Goa, India'})

        assert [i['name'] for i in influencers.list_influencers(db_session, niche='Travel')] == ['Bina']
        assert [i['name'] for i in influencers.list_influencers(db_session, location='mumbai')] == ['Arjun']
        assert [i['name'] for i in influencers.list_influencers(db_session, location='goa')] == ['Bina']

    def test_followers_display_and_lists(self, influencers, db_session):
        saved = influencers.save_influencer(db_session, {
            'name': 'Arjun',
            'followers_count': 1_200_000,
            'tags': ['food', 'street food'],
            'previous_brands': 'Amul, Haldiram',
        })

        assert saved['followers_display'] == '1.2M'
        assert saved['previous_brands'] == ['Amul', 'Haldiram']
        assert saved['hidden_tag_count'] == 0
        assert saved['priority'] == 0

    def test_name_required(self, influencers, db_session):
        with pytest.raises(ValueError) as exc_info:
            influencers.save_influencer(db_session, {'niche': 'Food'})
        assert "Influencer name is required" in str(exc_info.value)

    def test_delete_missing(self, influencers, db_session):
        with pytest.raises(ValueError):
            influencers.delete_influencer(db_session, 42)

    def test_stats(self, influencers, db_session, user_factory):
        user_factory("inf_1", referral_id="INFL0001", referral_count=3, referral_earnings=600.0)

        stats = influencers.get_influencer_stats(db_session, "inf_1")

        assert stats == {
            'referral_id': 'INFL0001',
            'referral_link': 'https://example.test/register?ref=INFL0001',
            'referral_count': 3,
            'referral_earnings': 600.0,
            'active_referred_subscriptions': 0,
        }


class TestCsvImport:
    """Bulk import reports per-row errors without stopping"""

    def test_parse_rows_normalizes_headers(self):
        rows = parse_rows("\ufeffName,Followers Count,Instagram-Handle\nArjun,1000,@arjun\n")
        assert rows == [{'name': 'Arjun', 'followers_count': '1000', 'instagram_handle': '@arjun'}]

    def test_import_businesses(self, db_session, no_analytics):
        content = (
            "name,category,rating,reviews,tags,featured\n"
            "Sharma Sweets,Food,4.5,120,sweets;snacks,yes\n"
            ",Retail,3.0,1,,no\n"
            "Apex Tailors,Retail,not-a-number,5,,no\n"
            "Mango Cafe,Food,,\"1,200\",coffee,true\n"
        )

        result = CsvImportService().import_businesses(db_session, content)

        assert result['imported'] == 2
        assert result['failed'] == 2
        assert result['errors'][0] == "Row 3: name is required"
        assert result['errors'][1].startswith("Row 4: Invalid rating")

        listed = {b['name']: b for b in BusinessService().list_businesses(db_session)}
        assert listed['Sharma Sweets']['tags'] == ['sweets', 'snacks']
        assert listed['Sharma Sweets']['featured'] is True
        assert listed['Sharma Sweets']['rating'] == 4.5
        assert listed['Mango Cafe']['reviews'] == 1200
        assert listed['Mango Cafe']['rating'] is None

    def test_import_influencers_column_aliases(self, db_session, no_analytics):
        content = "name,followers,instagram,image,previous_brands\nArjun,25000,@arjun,https://img.test/a.png,Amul;Tata\n"

        result = CsvImportService().import_influencers(db_session, content)

        assert result == {'imported': 1, 'failed': 0, 'errors': []}
        influencer = InfluencerService().list_influencers(db_session)[0]
        assert influencer['followers_count'] == 25000
        assert influencer['followers_display'] == '25.0K'
        assert influencer['instagram_handle'] == '@arjun'
        assert influencer['profile_image'] == 'https://img.test/a.png'
        assert influencer['previous_brands'] == ['Amul', 'Tata']
