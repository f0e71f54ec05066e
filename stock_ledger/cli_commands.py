"""
Flask CLI commands for ledger administration.

Commands:
- flask init-db: Create every table
- flask check-stock: Compare stock against movement history
- flask issue-token: Sign a bearer token for local development
"""
from datetime import datetime, timedelta, timezone

import click
import jwt
from flask import current_app

from stock_ledger.database import get_database
from stock_ledger.decorators.permissions import LEDGER_READ_ROLES
from stock_ledger.services.stock_service import find_stock_discrepancies


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables that do not exist yet."""
        get_database().create_all()
        click.echo(click.style('✅ Tablas creadas.', fg='green'))

    @app.cli.command('check-stock')
    @click.pass_context
    def check_stock(ctx):
        """Report products whose stock differs from entries minus exits."""
        database = get_database()
        session = database.session_factory()
        try:
            discrepancies = find_stock_discrepancies(session)
        finally:
            session.close()

        if not discrepancies:
            click.echo(click.style('✅ El stock coincide con el historial de movimientos.', fg='green'))
            return

        click.echo(click.style(f'❌ {len(discrepancies)} producto(s) con diferencias:', fg='red', bold=True))
        for row in discrepancies:
            click.echo(
                f"   Producto {row['product_id']}: registrado {row['recorded']}, "
                f"esperado {row['expected']}"
            )
        ctx.exit(1)

    @app.cli.command('issue-token')
    @click.option('--sub', required=True, help='Subject (user identifier)')
    @click.option('--role', required=True, type=click.Choice(LEDGER_READ_ROLES), help='User role')
    @click.option('--hours', type=int, default=None, help='Validity in hours')
    def issue_token(sub, role, hours):
        """Sign a development bearer token with the app's secret key."""
        hours = hours or current_app.config.get('JWT_EXPIRATION_HOURS', 8)
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {'sub': sub, 'role': role, 'iat': now, 'exp': now + timedelta(hours=hours)},
            current_app.config['SECRET_KEY'],
            algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256'),
        )
        click.echo(token)
