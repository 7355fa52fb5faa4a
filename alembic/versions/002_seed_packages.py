"""Seed default business and influencer packages

Revision ID: directory_002
Revises: directory_001
Create Date: 2026-09-01 10:30:00.000000

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = 'directory_002'
down_revision = 'directory_001'
branch_labels = None
depends_on = None

SEED_IDS = ('business-basic', 'business-pro', 'influencer-starter', 'influencer-pro')


def upgrade():
    op.execute("""
        INSERT INTO subscription_packages (id, title, price, setup_fee, duration_months, short_description,
            full_description, features, popular, type, payment_type, billing_cycle, advance_payment_months,
            dashboard_sections, is_active, created_at, updated_at)
        VALUES
        (
            'business-basic', 'Basic Business', 9999, 1999, 12,
            'Essential tools for small businesses',
            'Get started with the essential tools every small business needs to establish an online presence.',
            '["Business profile listing", "Basic analytics", "Email support"]',
            false, 'Business', 'recurring', 'yearly', 0, '[]', true, now(), now()
        ),
        (
            'business-pro', 'Business Pro', 19999, 999, 12,
            'Advanced tools for growing businesses',
            'Comprehensive tools and features for businesses looking to expand their reach and customer base.',
            '["Everything in Basic", "Priority business listing", "Advanced analytics", "Priority support", "Marketing toolkit"]',
            true, 'Business', 'recurring', 'yearly', 0, '[]', true, now(), now()
        ),
        (
            'influencer-starter', 'Influencer Starter', 4999, 999, 12,
            'Essential tools for new influencers',
            'Get started with the essential tools every influencer needs to connect with businesses.',
            '["Influencer profile listing", "Basic analytics", "Email support"]',
            false, 'Influencer', 'recurring', 'yearly', 0, '[]', true, now(), now()
        ),
        (
            'influencer-pro', 'Influencer Pro', 9999, 499, 12,
            'Advanced tools for serious influencers',
            'Comprehensive tools and features for influencers looking to monetize their audience and grow their brand.',
            '["Everything in Starter", "Priority profile listing", "Advanced analytics", "Priority support", "Brand partnership toolkit"]',
            true, 'Influencer', 'recurring', 'yearly', 0, '[]', true, now(), now()
        )
        ON CONFLICT (id) DO NOTHING
    """)


def downgrade():
    op.execute(
        "DELETE FROM subscription_packages WHERE id IN ({})".format(
            ", ".join(f"'{package_id}'" for package_id in SEED_IDS)
        )
    )
