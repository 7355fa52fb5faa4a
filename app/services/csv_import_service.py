import csv
import io
import logging

from sqlalchemy.orm import Session

from app.services.analytics_service import AnalyticsService
from app.services.business_service import BusinessService
from app.services.influencer_service import InfluencerService
from app.utils.formatting import parse_tag_list

logger = logging.getLogger(__name__)

TAG_SEPARATORS = ';,'

# CSV header -> model field
BUSINESS_COLUMNS = {
    'name': 'name', 'category': 'category', 'description': 'description', 'address': 'address',
    'city': 'city', 'phone': 'phone', 'email': 'email', 'website': 'website', 'image': 'image',
    'rating': 'rating', 'reviews': 'reviews', 'tags': 'tags', 'featured': 'featured',
    'latitude': 'latitude', 'longitude': 'longitude',
}

INFLUENCER_COLUMNS = {
    'name': 'name', 'niche': 'niche', 'category': 'category', 'bio': 'bio', 'email': 'email',
    'phone': 'phone', 'website': 'website', 'followers': 'followers_count',
    'followers_count': 'followers_count', 'engagement_rate': 'engagement_rate',
    'instagram': 'instagram_handle', 'instagram_handle': 'instagram_handle',
    'facebook': 'facebook_handle', 'facebook_handle': 'facebook_handle',
    'youtube': 'youtube_handle', 'youtube_handle': 'youtube_handle',
    'twitter': 'twitter_handle', 'twitter_handle': 'twitter_handle',
    'linkedin': 'linkedin_handle', 'linkedin_handle': 'linkedin_handle',
    'location': 'location', 'city': 'city', 'state': 'state', 'country': 'country',
    'tags': 'tags', 'previous_brands': 'previous_brands', 'featured': 'featured',
    'priority': 'priority', 'rating': 'rating', 'reviews_count': 'reviews_count',
    'profile_image': 'profile_image', 'image': 'profile_image', 'cover_image': 'cover_image',
}

INT_FIELDS = {'reviews', 'followers_count', 'priority', 'reviews_count'}
FLOAT_FIELDS = {'rating', 'latitude', 'longitude', 'engagement_rate'}
LIST_FIELDS = {'tags', 'previous_brands'}


def _normalize_header(header: str) -> str:
    return (header or '').strip().lower().replace(' ', '_').replace('-', '_')


def _convert(field: str, value: str):
    value = value.strip()
    if field in LIST_FIELDS:
        return parse_tag_list(value, TAG_SEPARATORS)
    if value == '':
        return None
    if field == 'featured':
        return value.lower() in ('true', 'yes', '1', 'y')
    try:
        if field in INT_FIELDS:
            return int(float(value.replace(',', '')))
        if field in FLOAT_FIELDS:
            return float(value)
    except ValueError:
        raise ValueError(f"Invalid {field}: {value}")
    return value


def parse_rows(content: str) -> list[dict]:
    """One dict per data row keyed by normalized header"""
    reader = csv.DictReader(io.StringIO(content.lstrip('\ufeff')))
    rows = []
    for raw in reader:
        rows.append({
            _normalize_header(header): value for header, value in raw.items() if header is not None
        })
    return rows


class CsvImportService:
    def __init__(self):
        self.analytics = AnalyticsService()
        self.business_service = BusinessService()
        self.influencer_service = InfluencerService()
        self.logger = logging.getLogger(__name__)

    def _import(self, db: Session, content: str, columns: dict, save, entity: str) -> dict:
        self.logger.info(f"import_{entity}: Entry")

        imported = 0
        errors = []
        rows = parse_rows(content)
        # Row numbers count the header as row 1
        for row_number, row in enumerate(rows, start=2):
            try:
                data = {}
                for header, value in row.items():
                    field = columns.get(header)
                    if field and value is not None:
                        data[field] = _convert(field, value)
                if not data.get('name'):
                    raise ValueError("name is required")
                save(db, data)
                imported += 1
            except Exception as e:
                errors.append(f"Row {row_number}: {e}")

        result = {'imported': imported, 'failed': len(errors), 'errors': errors}
        self.analytics.log_event(f'{entity}_csv_import', parameters={'imported': imported, 'failed': len(errors)})
        self.logger.info(f"import_{entity}: Success - imported: {imported}, failed: {len(errors)}")
        return result

    def import_businesses(self, db: Session, content: str) -> dict:
        return self._import(db, content, BUSINESS_COLUMNS, self.business_service.save_business, 'businesses')

    def import_influencers(self, db: Session, content: str) -> dict:
        return self._import(db, content, INFLUENCER_COLUMNS, self.influencer_service.save_influencer, 'influencers')
