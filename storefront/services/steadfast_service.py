from flask import current_app
from storefront.models import ShipmentStatus
from storefront.utils import is_valid_email, money
import httpx
import json
import logging
import re

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_ADDRESS_LENGTH = 250
MAX_TEXT_LENGTH = 500


class SteadfastClient:
    def __init__(self, base_url, api_key, secret_key, timeout=10.0):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.secret_key = secret_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config=None):
        config = config or current_app.config
        return cls(
            config['STEADFAST_BASE_URL'],
            config['STEADFAST_API_KEY'],
            config['STEADFAST_SECRET_KEY'],
            timeout=config.get('STEADFAST_TIMEOUT', 10.0),
        )

    def _get_headers(self):
        return {
            'Api-Key': self.api_key,
            'Secret-Key': self.secret_key,
            'Content-Type': 'application/json',
        }

    def _url(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def create_order(self, payload):
        """Book a consignment.

        Returns ``{'success': True, 'data': body, 'status_code': 200}`` or
        ``{'success': False, 'error': message, 'status_code': code}``.
        """
        try:
            with httpx.Client() as client:
                response = client.post(
                    self._url('create_order'),
                    headers=self._get_headers(),
                    json=payload,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logger.error(
                "Steadfast create_order failed for invoice %s: %s",
                payload.get('invoice'),
                e,
            )
            return {'success': False, 'error': str(e), 'status_code': 500}

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if body.get('errors'):
            message = body.get('message') or 'Validation error'
            error = f"{message}: {json.dumps(body['errors'])}"
            logger.warning(
                "Steadfast rejected invoice %s: %s",
                payload.get('invoice'),
                error,
            )
            return {
                'success': False,
                'error': error,
                'status_code': response.status_code,
            }

        if (response.is_success and body.get('status') == 200
                and body.get('consignment')):
            return {
                'success': True,
                'data': body,
                'status_code': response.status_code,
            }

        error = body.get('message') or (
            f'Unexpected courier response ({response.status_code})')
        logger.warning(
            "Steadfast create_order unsuccessful for invoice %s: %s",
            payload.get('invoice'),
            error,
        )
        return {
            'success': False,
            'error': error,
            'status_code': response.status_code,
        }

    def _get_status(self, path):
        try:
            with httpx.Client() as client:
                response = client.get(
                    self._url(path),
                    headers=self._get_headers(),
                    timeout=self.timeout,
                )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Steadfast status lookup %s failed: %s", path, e)
            return None

    def status_by_consignment_id(self, consignment_id):
        return self._get_status(f'status_by_cid/{consignment_id}')

    def status_by_invoice(self, invoice):
        return self._get_status(f'status_by_invoice/{invoice}')

    def status_by_tracking_code(self, tracking_code):
        return self._get_status(f'status_by_trackingcode/{tracking_code}')


def _truncate(value, limit):
    value = value or ''
    if len(value) <= limit:
        return value
    return value[:limit - 3] + '...'


def courier_phone(phone):
    digits = re.sub(r'\D', '', phone or '')
    # 8801XXXXXXXXX -> 01XXXXXXXXX
    if len(digits) == 13 and digits.startswith('880'):
        digits = digits[2:]
    if len(digits) != 11:
        return current_app.config['COURIER_FALLBACK_PHONE']
    return digits


def build_courier_payload(order, details):
    description = ', '.join(
        f'{d.name} (Qty: {d.quantity})' for d in details
    )
    payload = {
        'invoice': order.order_number,
        'recipient_name': (
            order.shipping_name or order.customer.name
        )[:MAX_NAME_LENGTH],
        'recipient_phone': courier_phone(
            order.shipping_phone or order.customer.phone),
        'recipient_address': _truncate(
            order.shipping_full_address, MAX_ADDRESS_LENGTH),
        'cod_amount': money(order.due_amount),
        'note': (order.notes or '')[:MAX_TEXT_LENGTH],
        'item_description': description[:MAX_TEXT_LENGTH],
        'total_lot': sum(d.quantity for d in details),
        'delivery_type': order.delivery_type or 0,
    }
    email = order.shipping_email or order.customer.email
    if is_valid_email(email):
        payload['recipient_email'] = email
    return payload


def book_shipment(order, details, client=None):
    """Send the order to the courier and store the consignment on it.

    Returns the client result, or ``None`` when courier booking is disabled.
    The caller owns the transaction.
    """
    if not current_app.config.get('STEADFAST_ENABLED'):
        return None

    client = client or SteadfastClient.from_config()
    result = client.create_order(build_courier_payload(order, details))
    if not result['success']:
        order.shipment_status = ShipmentStatus.BOOKING_FAILED
        return result

    consignment = result['data'].get('consignment') or {}
    consignment_id = consignment.get('consignment_id')
    order.consignment_id = str(consignment_id) if consignment_id else None
    order.tracking_code = consignment.get('tracking_code')
    order.courier_status = consignment.get('status')
    order.shipment_status = ShipmentStatus.BOOKED
    logger.info(
        "Booked order %s with Steadfast consignment %s",
        order.order_number,
        order.consignment_id,
    )
    return result
