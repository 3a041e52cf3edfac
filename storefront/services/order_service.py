from flask import current_app, has_request_context, request
from sqlalchemy import update
from storefront.extensions import db
from storefront.exceptions import (
    CourierError,
    InsufficientStockError,
    NotFoundError,
    ServiceError,
    ValidationFailed,
)
from storefront.models import (
    Customer,
    Order,
    OrderDetails,
    OrderGift,
    OrderStatus,
    PaymentMethod,
    Product,
    ProductStatus,
    Transaction,
    TransactionStatus,
)
from storefront.services.pricing_service import (
    calculate_order_totals,
    decide_payment_status,
    product_sell_price,
    quantize,
)
from storefront.services.steadfast_service import book_shipment
from storefront.utils import add_error, money
from datetime import datetime
import logging
import secrets

logger = logging.getLogger(__name__)

MAX_LINE_QUANTITY = 100

PAYMENT_TYPES = ('cod', 'online', 'card', 'bkash', 'nagad', 'rocket')

ADDRESS_FIELDS = (
    'first_name',
    'last_name',
    'phone',
    'email',
    'address_line1',
    'address_line2',
    'city',
    'state',
    'postal_code',
    'country',
)

ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def parse_items(raw, errors, empty_message='At least one item is required.'):
    """Validate ``[{'id', 'quantity'}]`` request items into ``errors``."""
    if not isinstance(raw, list) or not raw:
        add_error(errors, 'items', empty_message)
        return []

    items = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or item.get('id') in (None, ''):
            add_error(
                errors,
                f'items.{index}.id',
                'Product ID is missing for one or more items.')
            continue
        try:
            quantity = int(item.get('quantity'))
        except (TypeError, ValueError):
            add_error(
                errors,
                f'items.{index}.quantity',
                'Quantity is required for all items.')
            continue
        if not 1 <= quantity <= MAX_LINE_QUANTITY:
            add_error(
                errors,
                f'items.{index}.quantity',
                f'Quantity must be between 1 and {MAX_LINE_QUANTITY}.')
            continue
        items.append({'id': item['id'], 'quantity': quantity})
    return items


def find_product(identifier):
    """Look a product up by id, or by SKU when given a string.

    A string matches an exact SKU first so numeric SKUs are not mistaken
    for ids.
    """
    query = Product.query.filter_by(is_deleted=False)
    if isinstance(identifier, int) and not isinstance(identifier, bool):
        return query.filter_by(id=identifier).first()
    identifier = str(identifier).strip()
    product = query.filter_by(sku=identifier).first()
    if product is None and identifier.isdigit():
        product = query.filter_by(id=int(identifier)).first()
    return product


def price_items(items, now=None):
    """Resolve ``[{'id', 'quantity'}]`` into priced order lines.

    Duplicate products are merged into one line.
    """
    if not items:
        raise ValidationFailed(
            {'items': ['At least one item is required.']})
    lines = {}
    for item in items:
        product = find_product(item.get('id'))
        if product is None:
            raise NotFoundError(f"Product not found: {item.get('id')}")
        if product.status != ProductStatus.ACTIVE:
            raise ServiceError(f'Product is not available: {product.name}')

        quantity = int(item.get('quantity') or 0)
        if product.id in lines:
            lines[product.id]['quantity'] += quantity
        else:
            sale_price, discount, _ = product_sell_price(product, now=now)
            lines[product.id] = {
                'product': product,
                'price': quantize(product.price),
                'discount': discount,
                'sale_price': sale_price,
                'quantity': quantity,
            }

    for line in lines.values():
        if not 1 <= line['quantity'] <= MAX_LINE_QUANTITY:
            raise ServiceError(
                f"Quantity for {line['product'].name} must be between 1 "
                f"and {MAX_LINE_QUANTITY}")
    return list(lines.values())


def reserve_stock(product, quantity):
    """Take ``quantity`` units off the shelf, or raise.

    The check and the decrement are a single conditional UPDATE, so two
    checkouts racing for the last unit cannot both succeed.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock >= quantity)
        .values(
            stock=Product.stock - quantity,
            sold_count=Product.sold_count + quantity,
        )
        .execution_options(synchronize_session=False)
    )
    db.session.expire(product, ['stock', 'sold_count'])
    if result.rowcount != 1:
        available = db.session.query(Product.stock).filter(
            Product.id == product.id).scalar()
        raise InsufficientStockError(product, quantity, available or 0)


def restore_order_stock(order: Order):
    if order.stock_restored:
        return
    for detail in order.details:
        if detail.product_id is None:
            continue
        db.session.execute(
            update(Product)
            .where(Product.id == detail.product_id)
            .values(
                stock=Product.stock + detail.quantity,
                sold_count=Product.sold_count - detail.quantity,
            )
            .execution_options(synchronize_session=False)
        )
    order.stock_restored = True


def generate_order_number(shop_id=None):
    prefix = current_app.config.get('ORDER_NUMBER_PREFIX', 'HTB')
    while True:
        candidate = (
            f'{prefix}{shop_id or 0}{datetime.utcnow():%y%m%d%H%M%S}'
            f'{secrets.randbelow(1000):03d}'
        )
        if not Order.query.filter_by(order_number=candidate).first():
            return candidate


def resolve_payment_method(payment_type):
    method = None
    if payment_type:
        method = PaymentMethod.query.filter_by(
            code=payment_type, is_active=True).first()
    if method is None:
        method = PaymentMethod.query.filter_by(is_active=True).order_by(
            PaymentMethod.sort_order, PaymentMethod.id).first()
    return method


def customer_for_user(user):
    """Return the customer row of a registered user, creating it once."""
    customer = Customer.query.filter_by(user_id=user.id).first()
    if customer is None:
        customer = Customer(
            user_id=user.id,
            name=user.full_name,
            email=user.email,
            phone=user.phone,
        )
        db.session.add(customer)
        db.session.flush()
    return customer


def _address_columns(prefix, address):
    address = address or {}
    return {
        f'{prefix}_{field}': address.get(field) for field in ADDRESS_FIELDS
    }


def place_order(
        customer,
        items,
        shipping,
        billing=None,
        payment_type='cod',
        source='checkout',
        shop_id=None,
        sales_manager_id=None,
        paid_amount=None,
        notes=None,
        delivery_type=0,
        gift=None,
        guest_token=None,
        pay_in_full=False):
    """Price, reserve and persist an order, then book it with the courier.

    ``shipping`` and ``billing`` are dicts keyed by ``ADDRESS_FIELDS``.
    Without ``paid_amount``, cash on delivery starts unpaid unless
    ``pay_in_full`` is set; other payment types are paid in full.
    Returns ``(order, courier_result)``; ``courier_result`` is ``None`` when
    booking is disabled. Any failure rolls the whole order back, so stock is
    only taken for orders that are committed.
    """
    try:
        lines = price_items(items)
        for line in lines:
            reserve_stock(line['product'], line['quantity'])

        totals = calculate_order_totals(lines)
        payment_method = resolve_payment_method(payment_type)
        if paid_amount is None:
            pay_now = pay_in_full or payment_type not in (None, 'cod')
            paid = totals['total'] if pay_now else 0
        else:
            paid = min(quantize(paid_amount), totals['total'])
        paid = quantize(paid)

        if shop_id is None:
            shop_id = current_app.config.get('DEFAULT_SHOP_ID')
        if sales_manager_id is None:
            sales_manager_id = current_app.config.get(
                'DEFAULT_SALES_MANAGER_ID')

        order = Order(
            order_number=generate_order_number(shop_id),
            customer=customer,
            shop_id=shop_id,
            sales_manager_id=sales_manager_id,
            payment_method=payment_method,
            sub_total=totals['sub_total'],
            discount=totals['discount'],
            total=totals['total'],
            quantity=totals['quantity'],
            paid_amount=paid,
            due_amount=totals['total'] - paid,
            order_status=OrderStatus.PENDING,
            payment_status=decide_payment_status(totals['total'], paid),
            delivery_type=delivery_type or 0,
            notes=notes,
            is_guest_order=guest_token is not None,
            guest_token=guest_token,
            is_gift=bool(gift),
            **_address_columns('shipping', shipping),
            **_address_columns('billing', billing or shipping),
        )
        if guest_token is not None:
            order.guest_email = customer.email
            order.guest_phone = customer.phone
            order.guest_name = customer.name
        if has_request_context():
            order.ip_address = request.remote_addr
            order.user_agent = (
                request.headers.get('User-Agent') or '')[:500]
        db.session.add(order)
        db.session.flush()

        details = []
        for line in lines:
            product = line['product']
            detail = OrderDetails(
                order_id=order.id,
                product_id=product.id,
                name=product.name,
                sku=product.sku,
                price=line['price'],
                discount=line['discount'],
                sale_price=line['sale_price'],
                quantity=line['quantity'],
            )
            db.session.add(detail)
            details.append(detail)

        db.session.add(Transaction(
            order_id=order.id,
            customer_id=customer.id,
            payment_method=payment_method,
            source=source,
            amount=totals['total'],
            status=(
                TransactionStatus.PENDING if payment_type == 'cod'
                else TransactionStatus.COMPLETED
            ),
            payment_details={
                'type': payment_type,
                'paid_amount': money(paid),
            },
        ))

        if gift:
            db.session.add(OrderGift(
                order_id=order.id,
                wrapping=bool(gift.get('wrapping')),
                sender_name=gift.get('sender_name'),
                recipient_name=gift.get('recipient_name'),
                message=gift.get('message'),
            ))
        db.session.flush()

        courier_result = book_shipment(order, details)
        if courier_result is not None and not courier_result['success']:
            if current_app.config.get('COURIER_REQUIRED'):
                raise CourierError(
                    'Failed to create shipping order',
                    data={'courier_error': courier_result.get('error')},
                )
            logger.warning(
                "Order %s saved without courier booking: %s",
                order.order_number,
                courier_result.get('error'),
            )

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Placed order %s (%s) for customer %s total=%s",
        order.order_number,
        source,
        customer.id,
        order.total,
    )
    return order, courier_result


def courier_warning(courier_result):
    if courier_result is None or courier_result['success']:
        return None
    return courier_result.get('error') or 'Courier booking failed'


def change_order_status(order: Order, new_status: OrderStatus):
    if new_status == order.order_status:
        return order
    allowed = ORDER_TRANSITIONS.get(order.order_status, set())
    if new_status not in allowed:
        raise ServiceError(
            f'Cannot change order from {order.order_status.value} '
            f'to {new_status.value}')
    if new_status == OrderStatus.CANCELLED:
        restore_order_stock(order)
    order.order_status = new_status
    return order


def record_payment(order: Order, paid_amount):
    paid = min(quantize(paid_amount), quantize(order.total))
    if paid < 0:
        raise ServiceError('Paid amount cannot be negative')
    order.paid_amount = paid
    order.due_amount = quantize(order.total) - paid
    order.payment_status = decide_payment_status(order.total, paid)
    return order


def order_detail_to_dict(detail: OrderDetails):
    return {
        'id': detail.id,
        'product_id': detail.product_id,
        'name': detail.name,
        'sku': detail.sku,
        'price': money(detail.price),
        'discount': money(detail.discount),
        'sale_price': money(detail.sale_price),
        'quantity': detail.quantity,
        'line_total': money(detail.line_total),
    }


def order_to_dict(order: Order, include_details=True):
    data = {
        'id': order.id,
        'order_number': order.order_number,
        'customer': {
            'id': order.customer.id,
            'name': order.customer.name,
            'email': order.customer.email,
            'phone': order.customer.phone,
        },
        'shop_id': order.shop_id,
        'order_status': order.order_status.value,
        'payment_status': order.payment_status.value,
        'shipment_status': order.shipment_status.value,
        'payment_method': (
            order.payment_method.name if order.payment_method else None
        ),
        'sub_total': money(order.sub_total),
        'discount': money(order.discount),
        'total': money(order.total),
        'quantity': order.quantity,
        'paid_amount': money(order.paid_amount),
        'due_amount': money(order.due_amount),
        'consignment_id': order.consignment_id,
        'tracking_code': order.tracking_code,
        'courier_status': order.courier_status,
        'is_guest_order': order.is_guest_order,
        'notes': order.notes,
        'shipping': {
            'name': order.shipping_name,
            'phone': order.shipping_phone,
            'email': order.shipping_email,
            'address': order.shipping_full_address,
        },
        'created_at': order.created_at.isoformat(),
    }
    if order.gift is not None:
        data['gift'] = {
            'wrapping': order.gift.wrapping,
            'sender_name': order.gift.sender_name,
            'recipient_name': order.gift.recipient_name,
            'message': order.gift.message,
        }
    if include_details:
        data['items'] = [order_detail_to_dict(d) for d in order.details]
    return data
