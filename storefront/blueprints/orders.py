from flask import Blueprint, request
from flask_login import login_required, current_user
from sqlalchemy import false, or_
from storefront.extensions import db
from storefront.middleware import role_required
from storefront.models import (
    AddressType,
    Customer,
    Order,
    OrderStatus,
    PaymentStatus,
    Shop,
    User,
    UserAddress,
    UserRole,
)
from storefront.services.audit_service import log_audit
from storefront.services.order_service import (
    PAYMENT_TYPES,
    change_order_status,
    courier_warning,
    customer_for_user,
    order_to_dict,
    parse_items,
    place_order,
    record_payment,
)
from storefront.services.steadfast_service import SteadfastClient
from storefront.utils import (
    add_error,
    api_error,
    api_success,
    get_page_args,
    paginate_query,
    to_decimal,
    validation_error,
)
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('orders', __name__)


def _list_order(order):
    return order_to_dict(order, include_details=False)


def _scoped_orders():
    """Orders the current staff member may see."""
    query = Order.query
    if current_user.role == UserRole.SALES_MANAGER:
        shop_id = current_user.primary_shop_id()
        if shop_id is None:
            return query.filter(false())
        query = query.filter(Order.shop_id == shop_id)
    return query


def _get_order_or_404(order_id):
    return _scoped_orders().filter(Order.id == order_id).first_or_404()


def _parse_enum(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _admin_address(raw, user):
    """Map ``{street, city, state, country, postalCode}`` to order columns."""
    raw = raw or {}
    return {
        'first_name': raw.get('firstName') or user.first_name,
        'last_name': raw.get('lastName') or user.last_name,
        'phone': raw.get('phone') or user.phone,
        'email': raw.get('email') or user.email,
        'address_line1': raw.get('street'),
        'address_line2': None,
        'city': raw.get('city'),
        'state': raw.get('state'),
        'postal_code': raw.get('postalCode'),
        'country': raw.get('country'),
    }


def _save_user_address(user, address, address_type):
    exists = UserAddress.query.filter_by(
        user_id=user.id,
        address_type=address_type,
        street=address['address_line1'],
        city=address['city'],
    ).first()
    if exists:
        return
    has_default = UserAddress.query.filter_by(
        user_id=user.id, address_type=address_type, is_default=True).first()
    db.session.add(UserAddress(
        user_id=user.id,
        address_type=address_type,
        street=address['address_line1'],
        city=address['city'],
        state=address['state'],
        postal_code=address['postal_code'],
        country=address['country'],
        is_default=has_default is None,
    ))


@bp.route('/api/order', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def list_orders():
    page, per_page = get_page_args()
    query = _scoped_orders()

    status = request.args.get('status')
    if status:
        order_status = _parse_enum(OrderStatus, status)
        if order_status is None:
            return validation_error({'status': ['Invalid order status.']})
        query = query.filter(Order.order_status == order_status)

    payment_status = request.args.get('payment_status')
    if payment_status:
        parsed = _parse_enum(PaymentStatus, payment_status)
        if parsed is None:
            return validation_error(
                {'payment_status': ['Invalid payment status.']})
        query = query.filter(Order.payment_status == parsed)

    search = (request.args.get('search') or '').strip()
    if search:
        like = f'%{search}%'
        query = query.join(Customer, Customer.id == Order.customer_id).filter(
            or_(
                Order.order_number.ilike(like),
                Customer.name.ilike(like),
                Customer.phone.ilike(like),
            )
        )

    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    return api_success(
        paginate_query(query, page, per_page, serializer=_list_order))


@bp.route('/api/order', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def create_order():
    data = request.get_json(silent=True) or {}
    errors = {}

    if not data.get('customerId'):
        add_error(errors, 'customerId', 'The customer id field is required.')
    items = parse_items(data.get('items'), errors)
    shipping_raw = data.get('shippingAddress')
    if not isinstance(shipping_raw, dict):
        add_error(
            errors, 'shippingAddress', 'The shipping address is required.')
    else:
        for key in ('street', 'city', 'country'):
            if not shipping_raw.get(key):
                add_error(
                    errors,
                    f'shippingAddress.{key}',
                    f'The {key} is required.')

    method = data.get('paymentMethod') or {}
    payment_type = (
        method.get('type') if isinstance(method, dict) else method) or 'cod'
    if payment_type not in PAYMENT_TYPES:
        add_error(
            errors, 'paymentMethod.type', 'Invalid payment method selected.')

    paid_amount = None
    if data.get('paidAmount') is not None:
        paid_amount = to_decimal(data.get('paidAmount'))
        if paid_amount is None or paid_amount < 0:
            add_error(
                errors, 'paidAmount', 'The paid amount must be a number.')

    shop_id = data.get('shopId')
    if current_user.role == UserRole.SALES_MANAGER:
        shop_id = current_user.primary_shop_id()
    if shop_id is not None and db.session.get(Shop, shop_id) is None:
        add_error(errors, 'shopId', 'The selected shop is invalid.')

    if errors:
        return validation_error(errors)

    user = db.session.get(User, data['customerId'])
    if user is None:
        return api_error('Customer not found', 404)

    shipping = _admin_address(shipping_raw, user)
    billing_raw = data.get('billingAddress')
    billing = _admin_address(billing_raw, user) if isinstance(
        billing_raw, dict) and billing_raw.get('street') else None

    customer = customer_for_user(user)
    _save_user_address(user, shipping, AddressType.SHIPPING)
    if billing is not None:
        _save_user_address(user, billing, AddressType.BILLING)

    order, courier_result = place_order(
        customer,
        items,
        shipping,
        billing=billing,
        payment_type=payment_type,
        source='admin_order',
        shop_id=shop_id,
        sales_manager_id=current_user.id,
        paid_amount=paid_amount,
        notes=data.get('notes'),
        pay_in_full=True,
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
            'customer_user_id': user.id,
            'source': 'admin_order',
        }
    )

    payload = order_to_dict(order)
    payload['courier_warning'] = courier_warning(courier_result)
    return api_success(payload, 'Order created successfully', 201)


@bp.route('/api/order/<int:order_id>', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def show_order(order_id):
    return api_success(order_to_dict(_get_order_or_404(order_id)))


@bp.route('/api/order/<int:order_id>', methods=['PUT', 'PATCH'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def update_order(order_id):
    order = _get_order_or_404(order_id)
    data = request.get_json(silent=True) or {}
    before = {
        'status': order.order_status.value,
        'paid_amount': str(order.paid_amount),
    }

    if 'status' in data:
        new_status = _parse_enum(OrderStatus, data.get('status'))
        if new_status is None:
            return validation_error({'status': ['Invalid order status.']})
        change_order_status(order, new_status)

    paid = data.get('paid_amount', data.get('paidAmount'))
    if paid is not None:
        amount = to_decimal(paid)
        if amount is None:
            return validation_error(
                {'paid_amount': ['The paid amount must be a number.']})
        record_payment(order, amount)

    if 'notes' in data:
        order.notes = data.get('notes')
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='ORDER_UPDATE',
        target_type='ORDER',
        target_id=order.id,
        payload={
            'before': before,
            'after': {
                'status': order.order_status.value,
                'paid_amount': str(order.paid_amount),
            },
        }
    )
    return api_success(order_to_dict(order), 'Order updated successfully')


@bp.route('/api/orders/invoice/<order_number>', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def invoice(order_number):
    order = _scoped_orders().filter(
        Order.order_number == order_number).first_or_404()
    data = order_to_dict(order)
    data['shop'] = {
        'id': order.shop.id,
        'name': order.shop.name,
        'phone': order.shop.phone,
        'address': order.shop.address_line,
    } if order.shop else None
    data['billing'] = {
        'name': ' '.join(p for p in (
            order.billing_first_name, order.billing_last_name) if p),
        'phone': order.billing_phone,
        'email': order.billing_email,
        'address_line1': order.billing_address_line1,
        'city': order.billing_city,
        'country': order.billing_country,
    }
    data['transactions'] = [
        {
            'source': t.source,
            'amount': float(t.amount),
            'status': t.status.value,
            'created_at': t.created_at.isoformat(),
        }
        for t in order.transactions
    ]
    return api_success(data)


@bp.route('/api/orders/customer/<int:customer_id>', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def customer_orders(customer_id):
    customer = db.get_or_404(Customer, customer_id)
    page, per_page = get_page_args()
    query = _scoped_orders().filter(
        Order.customer_id == customer.id
    ).order_by(Order.created_at.desc(), Order.id.desc())
    result = paginate_query(query, page, per_page, serializer=_list_order)
    result['customer'] = {
        'id': customer.id,
        'name': customer.name,
        'email': customer.email,
        'phone': customer.phone,
    }
    return api_success(result)


@bp.route('/api/my-orders', methods=['GET'])
@login_required
def my_orders():
    page, per_page = get_page_args()
    query = Order.query.join(
        Customer, Customer.id == Order.customer_id
    ).filter(
        Customer.user_id == current_user.id
    ).order_by(Order.created_at.desc(), Order.id.desc())
    return api_success(paginate_query(
        query,
        page,
        per_page,
        serializer=order_to_dict,
    ))


@bp.route('/api/order/tracking-status', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def tracking_status():
    consignment_id = request.args.get('consignment_id')
    invoice_number = request.args.get('invoice')
    tracking_code = request.args.get('tracking_code')

    client = SteadfastClient.from_config()
    if consignment_id:
        result = client.status_by_consignment_id(consignment_id)
        order = Order.query.filter_by(consignment_id=consignment_id).first()
    elif invoice_number:
        result = client.status_by_invoice(invoice_number)
        order = Order.query.filter_by(order_number=invoice_number).first()
    elif tracking_code:
        result = client.status_by_tracking_code(tracking_code)
        order = Order.query.filter_by(tracking_code=tracking_code).first()
    else:
        return validation_error({
            'consignment_id': [
                'Provide a consignment_id, invoice or tracking_code.'
            ],
        })

    if result is None:
        return api_error('Tracking information not found', 404)
    if result.get('status') != 200:
        return api_error(
            'Courier returned an error',
            400,
            data={'courier_response': result})

    if order is not None and result.get('delivery_status'):
        order.courier_status = result['delivery_status']
        db.session.commit()

    return api_success({
        'courier': result,
        'order': _list_order(order) if order is not None else None,
    })
