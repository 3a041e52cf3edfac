from datetime import datetime, timedelta
from decimal import Decimal

from storefront.models import PaymentStatus
from storefront.services.pricing_service import (
    calculate_order_totals,
    calculate_sell_price,
    decide_payment_status,
    discount_active,
)

NOW = datetime(2024, 6, 1, 12, 0, 0)


def test_percent_discount():
    sale, discount, applied = calculate_sell_price(1000, 10, 0, now=NOW)
    assert sale == Decimal('900.00')
    assert discount == Decimal('100.00')
    assert applied is True


def test_percent_and_fixed_discount_combine():
    sale, discount, _ = calculate_sell_price(1000, 10, 50, now=NOW)
    assert discount == Decimal('150.00')
    assert sale == Decimal('850.00')


def test_discount_never_exceeds_price():
    sale, discount, applied = calculate_sell_price(100, 0, 150, now=NOW)
    assert discount == Decimal('100.00')
    assert sale == Decimal('0.00')
    assert applied is True


def test_discount_rounds_half_up():
    # 99.99 * 15% = 14.9985
    sale, discount, _ = calculate_sell_price('99.99', 15, 0, now=NOW)
    assert discount == Decimal('15.00')
    assert sale == Decimal('84.99')


def test_no_discount_configured():
    sale, discount, applied = calculate_sell_price(500, 0, 0, now=NOW)
    assert sale == Decimal('500.00')
    assert discount == Decimal('0.00')
    assert applied is False


def test_discount_before_window_starts():
    start = NOW + timedelta(days=1)
    sale, discount, applied = calculate_sell_price(
        1000, 10, 0, discount_start=start, now=NOW)
    assert sale == Decimal('1000.00')
    assert applied is False


def test_discount_after_window_ends():
    end = NOW - timedelta(seconds=1)
    assert not discount_active(10, 0, discount_end=end, now=NOW)


def test_open_ended_window_bounds():
    assert discount_active(
        10, 0, discount_end=NOW + timedelta(days=1), now=NOW)
    assert discount_active(
        10, 0, discount_start=NOW - timedelta(days=1), now=NOW)
    assert discount_active(
        10,
        0,
        discount_start=NOW - timedelta(days=1),
        discount_end=NOW + timedelta(days=1),
        now=NOW)


def test_order_totals():
    lines = [
        {'price': Decimal('1000.00'), 'discount': Decimal('100.00'),
         'quantity': 2},
        {'price': Decimal('500.00'), 'discount': Decimal('0.00'),
         'quantity': 1},
    ]
    totals = calculate_order_totals(lines)
    assert totals['sub_total'] == Decimal('2500.00')
    assert totals['discount'] == Decimal('200.00')
    assert totals['total'] == Decimal('2300.00')
    assert totals['quantity'] == 3


def test_order_totals_empty():
    totals = calculate_order_totals([])
    assert totals['total'] == Decimal('0.00')
    assert totals['quantity'] == 0


def test_payment_status():
    assert decide_payment_status(100, 100) == PaymentStatus.PAID
    assert decide_payment_status(100, 150) == PaymentStatus.PAID
    assert decide_payment_status(100, 40) == PaymentStatus.PARTIAL_PAID
    assert decide_payment_status(100, 0) == PaymentStatus.UNPAID
