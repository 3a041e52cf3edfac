from flask import current_app
from sqlalchemy import func
from storefront.extensions import db
from storefront.models import Customer, Order
from storefront.services.order_service import customer_for_user
from storefront.utils import money
import logging
import re
import secrets

logger = logging.getLogger(__name__)


def generate_guest_token():
    while True:
        token = secrets.token_hex(32)
        if not Order.query.filter_by(guest_token=token).first():
            return token


def find_or_create_guest_customer(email, name, phone=None, address=None):
    customer = Customer.query.filter(
        func.lower(Customer.email) == email.lower(),
        Customer.user_id.is_(None),
    ).first()
    if customer is None:
        customer = Customer(
            name=name,
            email=email,
            phone=phone,
            address=address,
        )
        db.session.add(customer)
    else:
        customer.name = name or customer.name
        customer.phone = phone or customer.phone
        customer.address = address or customer.address
    db.session.flush()
    return customer


def mask_email(email):
    if not email or '@' not in email:
        return email
    local, domain = email.split('@', 1)
    if len(local) <= 2:
        return f'{local[:1]}***@{domain}'
    return f"{local[0]}{'*' * min(len(local) - 1, 5)}@{domain}"


def mask_phone(phone):
    if not phone:
        return phone
    digits = re.sub(r'\D', '', phone)
    if len(digits) < 6:
        return '*' * len(digits)
    return f'{digits[:3]}***{digits[-4:]}'


def tracking_url(order: Order):
    base = current_app.config.get('FRONTEND_URL', '')
    return f'{base}/track-order?token={order.guest_token}'


def find_guest_order(token=None, order_number=None, email=None):
    query = Order.query.filter_by(is_guest_order=True)
    if token:
        return query.filter_by(guest_token=token).first()
    if order_number and email:
        return query.filter(
            Order.order_number == order_number,
            func.lower(Order.guest_email) == email.lower(),
        ).first()
    return None


def guest_orders_by_email(email):
    return Order.query.filter(
        Order.is_guest_order.is_(True),
        func.lower(Order.guest_email) == email.lower(),
    ).order_by(Order.created_at.desc()).all()


def convert_guest_order(order: Order, user) -> bool:
    """Attach one guest order to a registered user's customer record.

    The guest fields and token are kept so tracking links stay valid.
    """
    if not order.is_guest_order:
        return False
    customer = customer_for_user(user)
    order.customer = customer
    return True


def link_guest_orders_to_user(user):
    orders = [
        o for o in guest_orders_by_email(user.email)
        if o.customer.user_id is None
    ]
    linked = sum(1 for o in orders if convert_guest_order(o, user))
    if linked:
        logger.info("Linked %d guest orders to user %s", linked, user.id)
    return linked


def tracking_payload(order: Order):
    return {
        'orderNumber': order.order_number,
        'status': order.order_status.value,
        'paymentStatus': order.payment_status.value,
        'shipmentStatus': order.shipment_status.value,
        'trackingCode': order.tracking_code,
        'consignmentId': order.consignment_id,
        'courierStatus': order.courier_status,
        'total': money(order.total),
        'createdAt': order.created_at.isoformat(),
        'customer': {
            'name': order.guest_name,
            'email': mask_email(order.guest_email),
            'phone': mask_phone(order.guest_phone),
        },
        'shipping': {
            'city': order.shipping_city,
            'country': order.shipping_country,
        },
        'items': [
            {
                'name': d.name,
                'sku': d.sku,
                'quantity': d.quantity,
                'price': money(d.sale_price),
                'total': money(d.line_total),
            }
            for d in order.details
        ],
    }
