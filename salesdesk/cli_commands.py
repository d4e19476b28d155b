"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask import-legacy FILE --owner EMAIL: Import a JSON export of the old document store
"""
import json

import click
from sqlalchemy.exc import SQLAlchemyError

from salesdesk.database import create_all, get_session
from salesdesk.models import AppUser, Client, Product, Quote, Sale
from salesdesk.models.legacy import (
    client_fields_from_legacy, product_fields_from_legacy,
    document_fields_from_legacy, sale_fields_from_legacy,
)
from salesdesk.services.sale_service import generate_order_number


def _apply_document(document, fields, client_ids):
    legacy_client_id = fields.pop('legacy_client_id', None)
    items = fields.pop('line_items')
    created_at = fields.pop('created_at', None)
    for key, value in fields.items():
        setattr(document, key, value)
    document.client_id = client_ids.get(legacy_client_id)
    document.line_items = items
    if created_at:
        document.created_at = created_at


def import_legacy_data(session, owner, data):
    """
    Insert clients, products, quotes and sales from a legacy export.

    Returns a dict with the number of imported records per collection.
    Legacy quote/sale links are restored by legacy id.
    """
    client_ids = {}
    for record in data.get('clients') or []:
        client = Client(owner_id=owner.id, **client_fields_from_legacy(record))
        session.add(client)
        session.flush()
        client_ids[record.get('id')] = client.id

    products = 0
    for record in data.get('products') or []:
        session.add(Product(owner_id=owner.id, **product_fields_from_legacy(record)))
        products += 1

    quote_ids = {}
    quote_sale_links = {}
    for record in data.get('quotes') or []:
        quote = Quote(owner_id=owner.id)
        _apply_document(quote, document_fields_from_legacy(record), client_ids)
        session.add(quote)
        session.flush()
        quote_ids[record.get('id')] = quote
        if record.get('saleId'):
            quote_sale_links[record['saleId']] = quote

    sales = 0
    for record in data.get('sales') or []:
        sale = Sale(owner_id=owner.id)
        _apply_document(sale, sale_fields_from_legacy(record), client_ids)
        if not sale.order_number:
            sale.order_number = generate_order_number(session, owner.id)
        quote = quote_ids.get(record.get('quoteId')) or quote_sale_links.get(record.get('id'))
        if quote is not None:
            sale.quote_id = quote.id
        session.add(sale)
        session.flush()
        if quote is not None:
            quote.sale_id = sale.id
            quote.status = 'converted'
        sales += 1

    session.commit()
    return {'clients': len(client_ids), 'products': products, 'quotes': len(quote_ids), 'sales': sales}


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all database tables."""
        create_all()
        click.echo(click.style('✅ Tablas creadas.', fg='green'))

    @app.cli.command('import-legacy')
    @click.argument('file', type=click.File('r', encoding='utf-8'))
    @click.option('--owner', required=True, help='Email of the user that will own the imported records')
    def import_legacy(file, owner):
        """Import clients, products, quotes and sales from a legacy JSON export."""
        session = get_session()
        user = session.query(AppUser).filter_by(email=owner).first()
        if not user:
            raise click.ClickException(f'No existe un usuario con el email: {owner}')

        try:
            data = json.load(file)
        except json.JSONDecodeError as e:
            raise click.ClickException(f'JSON inválido: {e}')

        try:
            counts = import_legacy_data(session, user, data)
        except (SQLAlchemyError, ValueError) as e:
            session.rollback()
            raise click.ClickException(f'Error al importar: {e}')

        click.echo(click.style('✅ Importación completa', fg='green', bold=True))
        for name, count in counts.items():
            click.echo(f'   {name}: {count}')
