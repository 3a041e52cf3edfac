import logging

from flask import Blueprint, request
from flask_login import login_required, current_user

from storefront.middleware import role_required
from storefront.models import PaymentMethod
from storefront.services import guest_order_service
from storefront.services.audit_service import log_audit
from storefront.services.order_service import (
    PAYMENT_TYPES,
    courier_warning,
    customer_for_user,
    order_to_dict,
    parse_items,
    place_order,
)
from storefront.utils import (
    add_error,
    api_error,
    api_success,
    is_valid_email,
    money,
    normalize_phone,
    validation_error,
)

logger = logging.getLogger(__name__)
bp = Blueprint('checkout', __name__)

# camelCase request keys mapped onto order address columns
ADDRESS_KEYS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'phone': 'phone',
    'email': 'email',
    'addressLine1': 'address_line1',
    'addressLine2': 'address_line2',
    'city': 'city',
    'state': 'state',
    'postalCode': 'postal_code',
    'country': 'country',
}

REQUIRED_ADDRESS_KEYS = (
    'firstName',
    'phone',
    'addressLine1',
    'city',
    'postalCode',
    'country',
)


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _check_phone(errors, field, phone):
    if phone and not 10 <= len(phone.lstrip('+')) <= 20:
        add_error(errors, field, 'Phone number must be at least 10 digits.')


def _parse_address(raw, field, errors, defaults=None):
    """Turn a camelCase address payload into order address columns."""
    if raw is None and defaults:
        raw = {}
    if not isinstance(raw, dict):
        add_error(errors, field, f'The {field} field is required.')
        return None

    address = {}
    for key, column in ADDRESS_KEYS.items():
        value = _clean(raw.get(key))
        if value is None and defaults:
            value = defaults.get(column)
        address[column] = value
    address['phone'] = normalize_phone(address['phone'])

    for key in REQUIRED_ADDRESS_KEYS:
        if not address[ADDRESS_KEYS[key]]:
            add_error(errors, f'{field}.{key}', f'The {key} is required.')
    _check_phone(errors, f'{field}.phone', address['phone'])
    if address['email'] and not is_valid_email(address['email']):
        add_error(
            errors, f'{field}.email', 'Please provide a valid email address.')
    return address


def _parse_payment_type(data, errors):
    method = data.get('paymentMethod')
    if isinstance(method, dict):
        payment_type = method.get('type')
    else:
        payment_type = method
    payment_type = (_clean(payment_type) or '').lower()
    if payment_type not in PAYMENT_TYPES:
        add_error(
            errors, 'paymentMethod.type', 'Invalid payment method selected.')
    return payment_type


def _parse_common(data, errors, shipping_defaults=None):
    items = parse_items(
        data.get('items'),
        errors,
        'Your cart is empty. Please add items before checkout.')
    shipping = _parse_address(
        data.get('shippingAddress'),
        'shippingAddress',
        errors,
        defaults=shipping_defaults)

    billing = None
    if data.get('billingAddress') and not data.get('billingSameAsShipping'):
        billing = _parse_address(
            data['billingAddress'], 'billingAddress', errors)

    payment_type = _parse_payment_type(data, errors)

    notes = _clean(data.get('notes'))
    if notes and len(notes) > 1000:
        add_error(errors, 'notes', 'The notes may not exceed 1000 characters.')

    delivery_type = data.get('deliveryType', 0) or 0
    if delivery_type not in (0, 1):
        add_error(errors, 'deliveryType', 'The delivery type must be 0 or 1.')

    return {
        'items': items,
        'shipping': shipping,
        'billing': billing,
        'payment_type': payment_type,
        'notes': notes,
        'delivery_type': delivery_type,
    }


def _parse_gift(raw):
    if not isinstance(raw, dict):
        return None
    return {
        'wrapping': bool(raw.get('wrapping')),
        'sender_name': _clean(raw.get('sender_name')),
        'recipient_name': _clean(raw.get('recipient_name')),
        'message': (_clean(raw.get('message')) or '')[:500] or None,
    }


@bp.route('/api/check-out', methods=['POST'])
@login_required
@role_required('CUSTOMER', 'CORPORATE')
def checkout():
    data = request.get_json(silent=True) or {}
    errors = {}
    parsed = _parse_common(data, errors, shipping_defaults={
        'first_name': current_user.first_name,
        'last_name': current_user.last_name,
        'phone': current_user.phone,
        'email': current_user.email,
    })
    if errors:
        return validation_error(errors)

    customer = customer_for_user(current_user)
    order, courier_result = place_order(
        customer,
        parsed['items'],
        parsed['shipping'],
        billing=parsed['billing'],
        payment_type=parsed['payment_type'],
        source='checkout',
        notes=parsed['notes'],
        delivery_type=parsed['delivery_type'],
        gift=_parse_gift(data.get('gift')),
    )

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='ORDER_CREATE',
        target_type='ORDER',
        target_id=order.id,
        payload={
            'order_number': order.order_number,
            'total': str(order.total),
            'source': 'checkout',
        }
    )

    payload = order_to_dict(order)
    payload['courier_warning'] = courier_warning(courier_result)
    return api_success(payload, 'Order placed successfully', 201)


@bp.route('/api/get-payment-methods', methods=['GET'])
def payment_methods():
    methods = PaymentMethod.query.filter_by(is_active=True).order_by(
        PaymentMethod.sort_order, PaymentMethod.id).all()
    return api_success([
        {'id': m.id, 'name': m.name, 'code': m.code} for m in methods
    ])


# Guest checkout

@bp.route('/api/guest/checkout', methods=['POST'])
def guest_checkout():
    data = request.get_json(silent=True) or {}
    errors = {}

    raw_customer = data.get('customer')
    if not isinstance(raw_customer, dict):
        raw_customer = {}
    email = (_clean(raw_customer.get('email')) or '').lower()
    phone = normalize_phone(_clean(raw_customer.get('phone')))
    first_name = _clean(raw_customer.get('firstName'))
    last_name = _clean(raw_customer.get('lastName'))
    if not email:
        add_error(
            errors,
            'customer.email',
            'Email address is required for order confirmation.')
    elif not is_valid_email(email):
        add_error(
            errors, 'customer.email', 'Please provide a valid email address.')
    if not phone:
        add_error(
            errors,
            'customer.phone',
            'Phone number is required for delivery updates.')
    _check_phone(errors, 'customer.phone', phone)
    if not first_name:
        add_error(errors, 'customer.firstName', 'First name is required.')

    parsed = _parse_common(data, errors)
    if errors:
        return validation_error(errors)

    shipping = parsed['shipping']
    if not shipping.get('email'):
        shipping['email'] = email
    name = ' '.join(p for p in (first_name, last_name) if p)

    customer = guest_order_service.find_or_create_guest_customer(
        email,
        name,
        phone=phone,
        address=', '.join(
            p for p in (
                shipping['address_line1'],
                shipping['city'],
                shipping['country'],
            ) if p),
    )
    order, courier_result = place_order(
        customer,
        parsed['items'],
        shipping,
        billing=parsed['billing'],
        payment_type=parsed['payment_type'],
        source='guest_checkout',
        notes=parsed['notes'],
        delivery_type=parsed['delivery_type'],
        guest_token=guest_order_service.generate_guest_token(),
    )

    log_audit(
        actor_id=None,
        actor_role='GUEST',
        action='ORDER_CREATE',
        target_type='ORDER',
        target_id=order.id,
        payload={
            'order_number': order.order_number,
            'total': str(order.total),
            'source': 'guest_checkout',
        }
    )

    return api_success({
        'order': {
            'id': order.id,
            'orderNumber': order.order_number,
            'guestToken': order.guest_token,
            'status': order.order_status.value,
            'paymentStatus': order.payment_status.value,
            'subTotal': money(order.sub_total),
            'discount': money(order.discount),
            'total': money(order.total),
            'trackingCode': order.tracking_code,
            'consignmentId': order.consignment_id,
        },
        'customer': {
            'name': customer.name,
            'email': customer.email,
            'phone': customer.phone,
        },
        'shipping': {
            'name': order.shipping_name,
            'phone': order.shipping_phone,
            'address': order.shipping_full_address,
        },
        'paymentMethod': {
            'type': parsed['payment_type'],
            'name': (
                order.payment_method.name if order.payment_method else None
            ),
        },
        'trackingUrl': guest_order_service.tracking_url(order),
        'courierWarning': courier_warning(courier_result),
    }, 'Order placed successfully', 201)


@bp.route('/api/guest/orders/track', methods=['GET'])
def track_guest_order():
    token = _clean(request.args.get('token'))
    order_number = _clean(request.args.get('orderNumber'))
    email = _clean(request.args.get('email'))
    if not token and not (order_number and email):
        return api_error(
            'Provide a tracking token or an order number and email', 400)

    order = guest_order_service.find_guest_order(
        token=token, order_number=order_number, email=email)
    if order is None:
        return api_error('Order not found', 404)
    return api_success(guest_order_service.tracking_payload(order))


@bp.route('/api/guest/orders/lookup', methods=['POST'])
def lookup_guest_order():
    data = request.get_json(silent=True) or {}
    email = _clean(data.get('email'))
    order_number = _clean(data.get('orderNumber'))
    errors = {}
    if not email:
        add_error(errors, 'email', 'The email field is required.')
    if not order_number:
        add_error(errors, 'orderNumber', 'The order number field is required.')
    if errors:
        return validation_error(errors)

    order = guest_order_service.find_guest_order(
        order_number=order_number, email=email)
    if order is None:
        return api_error('Order not found', 404)
    return api_success({
        'orderNumber': order.order_number,
        'trackingUrl': guest_order_service.tracking_url(order),
    })
