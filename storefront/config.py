import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default='false'):
    return os.environ.get(name, default).lower() == 'true'


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or (
        'dev-secret-key-change-in-production'
    )
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or (
        'sqlite:///storefront.db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')

    # Pagination configuration
    ITEMS_PER_PAGE = 20
    MAX_PER_PAGE = 100

    # Storefront defaults. Web orders are booked against this shop.
    DEFAULT_SHOP_ID = int(os.environ.get('DEFAULT_SHOP_ID', 4))
    DEFAULT_SALES_MANAGER_ID = int(
        os.environ.get('DEFAULT_SALES_MANAGER_ID', 2))
    ORDER_NUMBER_PREFIX = os.environ.get('ORDER_NUMBER_PREFIX', 'HTB')
    CURRENCY = 'BDT'
    CURRENCY_SYMBOL = '৳'
    FRONTEND_URL = os.environ.get(
        'FRONTEND_URL', 'http://localhost:3000').rstrip('/')

    # Personal access tokens
    TOKEN_EXPIRE_DAYS = int(os.environ.get('TOKEN_EXPIRE_DAYS', 30))

    # Login throttling
    LOGIN_MAX_ATTEMPTS = 5
    LOGIN_LOCKOUT_MINUTES = 30

    # Steadfast courier config.
    STEADFAST_ENABLED = _env_flag('STEADFAST_ENABLED')
    STEADFAST_BASE_URL = os.environ.get(
        'STEADFAST_BASE_URL', 'https://portal.packzy.com/api/v1'
    ).rstrip('/')
    STEADFAST_API_KEY = os.environ.get('STEADFAST_API_KEY', '')
    STEADFAST_SECRET_KEY = os.environ.get('STEADFAST_SECRET_KEY', '')
    STEADFAST_TIMEOUT = float(os.environ.get('STEADFAST_TIMEOUT', 10))
    # Used when the recipient phone is not a valid 11 digit number.
    COURIER_FALLBACK_PHONE = os.environ.get(
        'COURIER_FALLBACK_PHONE', '01234567890')
    # When true a failed booking rolls the whole order back.
    COURIER_REQUIRED = _env_flag('COURIER_REQUIRED')
