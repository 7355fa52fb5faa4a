import click
from app.core.database import SessionLocal
from app.models.subscription_package import SubscriptionPackage
from app.models.user import User
from app.services.package_service import DEFAULT_PACKAGES
from datetime import datetime, timedelta
import logging

logger = logging.getLogger(__name__)


def _find_user(db, email, user_id):
    if user_id:
        return db.query(User).filter(User.id == user_id).first()
    return db.query(User).filter(User.email == email).first()


def _init_services():
    # Services report to Firestore, so Firebase must be up before they are built
    from app.core.firebase import init_firebase
    init_firebase()


@click.group()
def cli():
    """Grow Bharat Vyapaar CLI commands"""
    pass


@cli.command('make-admin')
@click.option('--email', required=False, help='User email')
@click.option('--id', 'user_id', required=False, help='User id (Firebase UID)')
@click.option('--remove', is_flag=True, help='Demote the user back to the user role')
@click.option('--skip-claims', is_flag=True, help='Do not update Firebase custom claims')
def make_admin(email, user_id, remove, skip_claims):
    """Promote a user to admin (or demote with --remove)"""
    db = SessionLocal()
    try:
        if not email and not user_id:
            click.echo("❌ Please provide --email or --id for this operation", err=True)
            return

        user = _find_user(db, email, user_id)
        if not user:
            click.echo(f"❌ User not found: {user_id or email}", err=True)
            return

        _init_services()
        from app.core.firebase import set_admin_claim
        from app.services.user_service import UserService

        role = 'user' if remove else 'admin'
        UserService().set_role(db, user.id, role)
        if not skip_claims:
            set_admin_claim(user.id, not remove)

        display_ident = user.email or user.id
        if remove:
            click.echo(f"✓ Removed admin role from {display_ident}")
        else:
            click.echo(f"✓ {display_ident} is now an admin")
    except Exception as e:
        db.rollback()
        logger.error(f"CLI error: {e}")
        click.echo(f"❌ Error: {e}", err=True)
    finally:
        db.close()


@cli.command('assign-subscription')
@click.option('--email', required=False, help='User email')
@click.option('--id', 'user_id', required=False, help='User id (Firebase UID)')
@click.option('--package', 'package_id', required=True, help='Subscription package id')
@click.option('--days', default=365, show_default=True, help='Subscription length in days')
def assign_subscription(email, user_id, package_id, days):
    """Grant a package to a user without payment"""
    db = SessionLocal()
    try:
        if not email and not user_id:
            click.echo("❌ Please provide --email or --id for this operation", err=True)
            return

        user = _find_user(db, email, user_id)
        if not user:
            click.echo(f"❌ User not found: {user_id or email}", err=True)
            return

        package = db.query(SubscriptionPackage).filter(SubscriptionPackage.id == package_id).first()
        if not package:
            click.echo(f"❌ Package not found: {package_id}", err=True)
            return

        _init_services()
        from app.services.subscription_service import SubscriptionService

        start = datetime.utcnow()
        subscription = SubscriptionService().admin_assign_subscription(
            db,
            user.id,
            {
                'package_id': package.id,
                'package_name': package.title,
                'amount': package.price,
                'payment_type': package.payment_type,
                'billing_cycle': package.billing_cycle,
                'start_date': start,
                'end_date': start + timedelta(days=days),
            },
            admin_id='cli'
        )
        click.echo(f"✓ Assigned {package.title} to {user.email or user.id} until {subscription['end_date']}")
    except Exception as e:
        db.rollback()
        logger.error(f"CLI error: {e}")
        click.echo(f"❌ Error: {e}", err=True)
    finally:
        db.close()


@cli.command('expire-subscriptions')
def expire_subscriptions():
    """Mark active subscriptions past their end date as expired"""
    db = SessionLocal()
    try:
        _init_services()
        from app.services.subscription_service import SubscriptionService

        expired = SubscriptionService().check_expired_subscriptions(db)
        click.echo(f"✓ Expired {expired} subscriptions")
    except Exception as e:
        db.rollback()
        logger.error(f"CLI error: {e}")
        click.echo(f"❌ Error: {e}", err=True)
    finally:
        db.close()


@cli.command('seed-packages')
@click.option('--dry-run', 'dry_run', is_flag=True, help='Show what would be created without committing')
def seed_packages(dry_run):
    """Insert the default business and influencer packages that are missing"""
    db = SessionLocal()
    try:
        existing = {p.id for p in db.query(SubscriptionPackage.id).all()}
        missing = [p for p in DEFAULT_PACKAGES if p['id'] not in existing]
        if not missing:
            click.echo("All default packages already exist")
            return

        if dry_run:
            click.echo(f"🔍 Dry run: would create {len(missing)} packages:")
            for p in missing:
                click.echo(f"  - {p['id']} ({p['title']}, ₹{p['price']})")
            return

        # Direct inserts keep this command usable before Firebase is configured
        for p in missing:
            db.add(SubscriptionPackage(
                **p,
                duration_months=12,
                payment_type='recurring',
                billing_cycle='yearly',
                advance_payment_months=0,
                dashboard_sections=[],
                is_active=True,
            ))
        db.commit()
        click.echo(f"✓ Created {len(missing)} packages")
    except Exception as e:
        db.rollback()
        logger.error(f"CLI error: {e}")
        click.echo(f"❌ Error: {e}", err=True)
    finally:
        db.close()


@cli.command('import-csv')
@click.argument('csv_file', type=click.File('r', encoding='utf-8'))
@click.option('--type', 'entity', type=click.Choice(['businesses', 'influencers']), required=True,
              help='What the rows describe')
def import_csv(csv_file, entity):
    """Bulk-load directory listings from a CSV file"""
    db = SessionLocal()
    try:
        _init_services()
        from app.services.csv_import_service import CsvImportService

        service = CsvImportService()
        content = csv_file.read()
        if entity == 'businesses':
            result = service.import_businesses(db, content)
        else:
            result = service.import_influencers(db, content)

        click.echo(f"✓ Imported {result['imported']} {entity}, {result['failed']} failed")
        for error in result['errors']:
            click.echo(f"  - {error}", err=True)
    except Exception as e:
        db.rollback()
        logger.error(f"CLI error: {e}")
        click.echo(f"❌ Error: {e}", err=True)
    finally:
        db.close()


if __name__ == '__main__':
    cli()
