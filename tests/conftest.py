from decimal import Decimal

import pytest

from storefront import create_app
from storefront.config import Config
from storefront.extensions import db
from storefront.models import (
    AccountStatus,
    Category,
    PaymentMethod,
    Product,
    ProductStatus,
    Shop,
    ShopProduct,
    User,
    UserRole,
)
from storefront.services.token_service import issue_token

COURIER_BASE_URL = 'https://courier.test/api/v1'


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'test-secret'
    DEFAULT_SHOP_ID = 4
    FRONTEND_URL = 'https://shop.test'
    STEADFAST_ENABLED = False
    STEADFAST_BASE_URL = COURIER_BASE_URL
    STEADFAST_API_KEY = 'test-api-key'
    STEADFAST_SECRET_KEY = 'test-secret-key'
    STEADFAST_TIMEOUT = 5.0
    COURIER_REQUIRED = False


def _seed():
    db.session.add(Shop(id=4, name='Web Shop', city='Dhaka'))
    db.session.add(PaymentMethod(name='Cash on Delivery', code='cod'))
    db.session.add(PaymentMethod(name='bKash', code='bkash', sort_order=1))

    bedding = Category(name='Bedding', slug='bedding', level=1)
    db.session.add(bedding)
    db.session.flush()
    sheets = Category(
        name='Bed Sheets', slug='bed-sheets', parent_id=bedding.id, level=2)
    db.session.add(sheets)
    db.session.flush()

    products = {
        'sheet': Product(
            name='Cotton Bed Sheet',
            slug='cotton-bed-sheet',
            sku='BS-100',
            category_id=sheets.id,
            price=Decimal('1000.00'),
            discount_percent=Decimal('10'),
            stock=10,
            is_featured=True,
        ),
        'towel': Product(
            name='Bath Towel',
            slug='bath-towel',
            sku='TW-200',
            price=Decimal('500.00'),
            stock=3,
        ),
        'curtain': Product(
            name='Blackout Curtain',
            slug='blackout-curtain',
            sku='CT-300',
            price=Decimal('2050.00'),
            stock=5,
            status=ProductStatus.INACTIVE,
        ),
    }
    for product in products.values():
        db.session.add(product)
    db.session.flush()
    db.session.add(ShopProduct(
        shop_id=4, product_id=products['sheet'].id, quantity=10))
    db.session.commit()

    ids = {key: product.id for key, product in products.items()}
    ids['bedding'] = bedding.id
    ids['bed_sheets'] = sheets.id
    return ids


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        app.config['SEED_IDS'] = _seed()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def catalog(app):
    return app.config['SEED_IDS']


@pytest.fixture
def create_user(app):
    def _create(
            email='customer@example.com',
            role=UserRole.CUSTOMER,
            status=AccountStatus.ACTIVE,
            password='secret123',
            first_name='Test',
            phone=None):
        with app.app_context():
            user = User(
                email=email,
                first_name=first_name,
                phone=phone,
                role=role,
                status=status,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _create


@pytest.fixture
def token_for(app):
    def _headers(user_id):
        with app.app_context():
            token = issue_token(db.session.get(User, user_id))
            db.session.commit()
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture
def admin_headers(create_user, token_for):
    return token_for(create_user('admin@example.com', role=UserRole.ADMIN))


@pytest.fixture
def customer_headers(create_user, token_for):
    return token_for(create_user('customer@example.com'))


@pytest.fixture
def guest_payload():
    def _payload(items, email='guest@example.com', payment_type='cod'):
        return {
            'customer': {
                'email': email,
                'phone': '01712345678',
                'firstName': 'Rahim',
                'lastName': 'Uddin',
            },
            'items': items,
            'shippingAddress': {
                'firstName': 'Rahim',
                'lastName': 'Uddin',
                'phone': '01712345678',
                'addressLine1': 'House 12, Road 5',
                'city': 'Dhaka',
                'postalCode': '1207',
                'country': 'Bangladesh',
            },
            'paymentMethod': {'type': payment_type},
        }
    return _payload
