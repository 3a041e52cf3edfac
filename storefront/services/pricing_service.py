"""Sale price and order total arithmetic.

All amounts are ``Decimal`` and rounded half-up to two places. A discount is
``price * percent / 100 + fixed``, never more than the price itself, and only
applies inside its date window. Either bound of the window may be missing, in
which case that side is open.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from storefront.models import PaymentStatus

CENT = Decimal('0.01')
ZERO = Decimal('0')


def quantize(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def discount_active(
        discount_percent,
        discount_fixed,
        discount_start=None,
        discount_end=None,
        now=None) -> bool:
    percent = Decimal(str(discount_percent or 0))
    fixed = Decimal(str(discount_fixed or 0))
    if percent <= 0 and fixed <= 0:
        return False
    now = now or datetime.utcnow()
    if discount_start and now < discount_start:
        return False
    if discount_end and now > discount_end:
        return False
    return True


def calculate_sell_price(
        price,
        discount_percent=0,
        discount_fixed=0,
        discount_start=None,
        discount_end=None,
        now=None):
    """Return ``(sale_price, unit_discount, is_discounted)`` for one unit."""
    price = quantize(price)
    if not discount_active(
            discount_percent,
            discount_fixed,
            discount_start,
            discount_end,
            now):
        return price, ZERO.quantize(CENT), False

    percent = Decimal(str(discount_percent or 0))
    fixed = Decimal(str(discount_fixed or 0))
    discount = quantize(price * percent / 100 + fixed)
    if discount > price:
        discount = price
    return price - discount, discount, discount > 0


def product_sell_price(product, now=None):
    return calculate_sell_price(
        product.price,
        product.discount_percent,
        product.discount_fixed,
        product.discount_start,
        product.discount_end,
        now=now,
    )


def calculate_order_totals(lines):
    """Sum priced lines.

    Each line is a mapping with ``price``, ``discount`` (per unit) and
    ``quantity``. ``total`` is always ``sub_total - discount``.
    """
    sub_total = ZERO
    discount = ZERO
    quantity = 0
    for line in lines:
        qty = int(line['quantity'])
        sub_total += quantize(line['price']) * qty
        discount += quantize(line['discount']) * qty
        quantity += qty
    sub_total = quantize(sub_total)
    discount = quantize(discount)
    return {
        'sub_total': sub_total,
        'discount': discount,
        'total': sub_total - discount,
        'quantity': quantity,
    }


def decide_payment_status(total, paid):
    total = quantize(total)
    paid = quantize(paid)
    if paid >= total:
        return PaymentStatus.PAID
    if paid > 0:
        return PaymentStatus.PARTIAL_PAID
    return PaymentStatus.UNPAID
