from decimal import Decimal

import pytest

from src.config import TestingConfig
from src.extensions import db
from src.main import create_app
from models import Branch, Customer, Product, Stock, Supplier, User
from user.jwt_utils import generate_tokens


@pytest.fixture(scope='session')
def app():
    """Create and configure a test Flask app instance"""
    flask_app = create_app(TestingConfig)

    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='session')
def users(app):
    """One user per role; hashing is slow so these live for the whole session."""
    created = {}
    for role in ('admin', 'editor', 'viewer'):
        user = User(username=f'{role}_user', role=role)
        user.set_password(f'{role}-pass')
        db.session.add(user)
        created[role] = user
    db.session.commit()
    return created


@pytest.fixture(scope='session')
def tokens(users):
    return {role: generate_tokens(user)['access_token'] for role, user in users.items()}


@pytest.fixture
def auth_headers(tokens):
    return {'Authorization': f"Bearer {tokens['admin']}"}


@pytest.fixture
def headers_for(tokens):
    def _headers(role):
        return {'Authorization': f'Bearer {tokens[role]}'}
    return _headers


@pytest.fixture(scope='function')
def db_session(app, users):
    """Clear every table except users before each test"""
    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        if table.name != 'users':
            db.session.execute(table.delete())
    db.session.commit()
    for obj in list(db.session.identity_map.values()):
        if not isinstance(obj, User):
            db.session.expunge(obj)

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create a test client for the app"""
    return app.test_client()


@pytest.fixture
def customer(db_session):
    cust = Customer(customer_name='Asha Traders', phone='9000000001')
    db_session.add(cust)
    db_session.commit()
    return cust


@pytest.fixture
def branch(db_session):
    br = Branch(branch_name='Main Branch')
    db_session.add(br)
    db_session.commit()
    return br


@pytest.fixture
def supplier(db_session):
    sup = Supplier(supplier_name='Kaveri Supplies')
    db_session.add(sup)
    db_session.commit()
    return sup


@pytest.fixture
def make_product(db_session):
    """Create a product, optionally with a stock row holding ``stock`` units."""
    counter = {'n': 0}

    def _make(name=None, stock=None, price='100.00'):
        counter['n'] += 1
        product = Product(
            product_name=name or f'Product {counter["n"]}',
            bar_code=f'BC{counter["n"]:05d}',
            sales_price=Decimal(price),
        )
        db_session.add(product)
        db_session.flush()
        if stock is not None:
            db_session.add(Stock(
                product_id=product.id,
                opening_stock=Decimal(stock),
                purchased_qty=Decimal('0'),
                sold_qty=Decimal('0'),
                current_stock=Decimal(stock),
            ))
        db_session.commit()
        return product
    return _make


@pytest.fixture
def stock_of(db_session):
    """Current stock of a product as stored, or None without a stock row."""
    def _stock_of(product_id):
        db_session.expire_all()
        stock = Stock.query.filter_by(product_id=product_id).first()
        return stock.current_stock if stock else None
    return _stock_of


@pytest.fixture
def stock_row(db_session):
    """The stored stock row of a product, re-read from the database."""
    def _stock_row(product_id):
        db_session.expire_all()
        return Stock.query.filter_by(product_id=product_id).one()
    return _stock_row
