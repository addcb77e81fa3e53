"""
Management commands for deployment and maintenance
"""
import click
from flask.cli import with_appcontext

from .seeders import seed_batch_types
from .services.inventory_ledger import scan_ledger_invariants


@click.command('seed-batch-types')
@with_appcontext
def seed_batch_types_command():
    """Seed the standard batch types (Loose -> Coil, Coil, Sheet)"""
    try:
        created = seed_batch_types()
        print(f"✅ Batch types seeded ({created} created)")
    except Exception as e:
        print(f'❌ Error seeding batch types: {str(e)}')
        raise


@click.command('verify-ledger')
@with_appcontext
def verify_ledger_command():
    """Check every inventory instance against the ledger invariants"""
    violations = scan_ledger_invariants()
    if not violations:
        print("✅ Ledger is consistent")
        return

    for violation in violations:
        print(f"❌ {violation['instance_code']}: {violation['problem']}")
    raise click.ClickException(f"{len(violations)} ledger invariant violation(s) found")


def register_commands(app):
    """Register CLI commands"""
    app.cli.add_command(seed_batch_types_command)
    app.cli.add_command(verify_ledger_command)
