class ServiceError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None, data=None, errors=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.data = data
        self.errors = errors


class ValidationFailed(ServiceError):
    status_code = 422

    def __init__(self, errors, message='Validation failed'):
        super().__init__(message, errors=errors)


class NotFoundError(ServiceError):
    status_code = 404


class InsufficientStockError(ServiceError):
    status_code = 400

    def __init__(self, product, requested, available):
        super().__init__(
            f'Insufficient stock for product: {product.name}',
            data={
                'product_id': product.id,
                'sku': product.sku,
                'available': available,
                'requested': requested,
            })


class AccountStateError(ServiceError):
    status_code = 403


class CourierError(ServiceError):
    status_code = 500
