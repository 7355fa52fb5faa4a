import re
from typing import List, Optional, Tuple

ROLE_DISPLAY = {
    'admin': 'Admin',
    'business': 'Business',
    'influencer': 'Influencer',
    'staff': 'Staff',
    'user': 'User',
}


def format_followers(count: Optional[int]) -> str:
    """1_200_000 -> '1.2M', 15_000 -> '15.0K', 999 -> '999'"""
    if count is None:
        return '0'
    if count >= 1_000_000 or round(count / 1_000, 1) >= 1_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def split_tags(tags: Optional[List[str]], visible: int = 3) -> Tuple[List[str], int]:
    """Return the first `visible` tags and how many are hidden"""
    tags = tags or []
    return tags[:visible], max(0, len(tags) - visible)


def parse_tag_list(value, separators: str = ',') -> List[str]:
    """Accept a list or a separated string; trims entries and drops blanks"""
    if value is None:
        return []
    if isinstance(value, str):
        parts = re.split(f"[{re.escape(separators)}]", value)
    else:
        parts = value
    return [str(part).strip() for part in parts if part is not None and str(part).strip()]


def kebab_case(text: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', (text or '').lower())
    return slug.strip('-')


def normalize_role(role: Optional[str]) -> str:
    role = (role or 'user').strip().lower()
    return role if role in ROLE_DISPLAY else 'user'


def display_role(role: Optional[str]) -> str:
    return ROLE_DISPLAY[normalize_role(role)]


def error_category(message: Optional[str]) -> str:
    """Classify an error message as 'permission', 'network' or 'unknown'"""
    text = (message or '').lower()
    if 'permission' in text:
        return 'permission'
    if 'network' in text or 'timeout' in text:
        return 'network'
    return 'unknown'
