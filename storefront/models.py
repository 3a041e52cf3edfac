from storefront.extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from sqlalchemy import CheckConstraint, UniqueConstraint
import enum
import json


class UserRole(enum.Enum):
    ADMIN = 'ADMIN'
    SALES_MANAGER = 'SALES_MANAGER'
    CUSTOMER = 'CUSTOMER'
    CORPORATE = 'CORPORATE'


class AccountStatus(enum.Enum):
    ACTIVE = 'active'
    PENDING = 'pending'
    REJECTED = 'rejected'
    SUSPENDED = 'suspended'
    INACTIVE = 'inactive'


class PaymentTerms(enum.Enum):
    NET_15 = 'net_15'
    NET_30 = 'net_30'
    NET_45 = 'net_45'
    NET_60 = 'net_60'
    PREPAID = 'prepaid'


class ProductStatus(enum.Enum):
    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'


class OrderStatus(enum.Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class PaymentStatus(enum.Enum):
    PAID = 'paid'
    PARTIAL_PAID = 'partial_paid'
    UNPAID = 'unpaid'


class ShipmentStatus(enum.Enum):
    NOT_BOOKED = 'not_booked'
    BOOKED = 'booked'
    BOOKING_FAILED = 'booking_failed'
    DELIVERED = 'delivered'


class TransactionStatus(enum.Enum):
    COMPLETED = 'completed'
    PENDING = 'pending'


class AddressType(enum.Enum):
    SHIPPING = 'shipping'
    BILLING = 'billing'


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(UserRole),
        nullable=False,
        default=UserRole.CUSTOMER)
    status = db.Column(
        db.Enum(AccountStatus),
        nullable=False,
        default=AccountStatus.ACTIVE)
    notification_preferences = db.Column(db.JSON, nullable=True)

    # Login throttling
    failed_login_attempts = db.Column(db.Integer, default=0, nullable=False)
    locked_until = db.Column(db.DateTime, nullable=True)
    last_login_at = db.Column(db.DateTime, nullable=True)
    last_login_ip = db.Column(db.String(45), nullable=True)
    login_count = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    # Relationships
    corporate_profile = db.relationship(
        'CorporateProfile',
        backref='user',
        uselist=False,
        foreign_keys='CorporateProfile.user_id',
        cascade='all, delete-orphan')
    customer = db.relationship(
        'Customer',
        backref='user',
        uselist=False)
    tokens = db.relationship(
        'PersonalAccessToken',
        backref='user',
        lazy='dynamic',
        cascade='all, delete-orphan')
    shop_access = db.relationship(
        'UserShopAccess',
        backref='user',
        lazy='dynamic',
        cascade='all, delete-orphan')
    addresses = db.relationship(
        'UserAddress',
        backref='user',
        lazy='dynamic',
        cascade='all, delete-orphan')

    @property
    def is_active(self):
        return self.status == AccountStatus.ACTIVE

    @property
    def full_name(self):
        return ' '.join(p for p in (self.first_name, self.last_name) if p)

    def is_locked(self, now=None) -> bool:
        now = now or datetime.utcnow()
        return bool(self.locked_until and self.locked_until > now)

    def primary_shop_id(self):
        access = self.shop_access.filter_by(is_primary=True).first()
        if access is None:
            access = self.shop_access.first()
        return access.shop_id if access else None

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<User {self.email}>'


class PersonalAccessToken(db.Model):
    __tablename__ = 'personal_access_tokens'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    name = db.Column(db.String(100), nullable=False)
    # SHA-256 hex digest of the secret half of the token
    token_hash = db.Column(db.String(64), unique=True, nullable=False)
    abilities = db.Column(db.JSON, nullable=True)
    last_used_at = db.Column(db.DateTime, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return f'<PersonalAccessToken {self.id} user={self.user_id}>'


class CorporateProfile(db.Model):
    __tablename__ = 'corporate_profiles'

    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        primary_key=True)
    company_legal_name = db.Column(db.String(255), nullable=False)
    trade_name = db.Column(db.String(255), nullable=True)
    trade_license_number = db.Column(
        db.String(100), unique=True, nullable=True)
    vat_registration_number = db.Column(
        db.String(100), unique=True, nullable=True)
    business_type = db.Column(db.String(100), nullable=True)
    industry = db.Column(db.String(100), nullable=True)
    primary_contact_name = db.Column(db.String(255), nullable=False)
    primary_contact_email = db.Column(db.String(120), nullable=False)
    primary_contact_phone = db.Column(db.String(20), nullable=False)
    billing_address = db.Column(db.Text, nullable=True)
    payment_terms = db.Column(
        db.Enum(PaymentTerms),
        nullable=False,
        default=PaymentTerms.PREPAID)
    credit_limit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    admin_notes = db.Column(db.Text, nullable=True)

    approved_at = db.Column(db.DateTime, nullable=True)
    approved_by = db.Column(
        db.Integer,
        db.ForeignKey('users.id'),
        nullable=True)
    rejected_at = db.Column(db.DateTime, nullable=True)
    rejection_reason = db.Column(db.String(500), nullable=True)
    suspended_at = db.Column(db.DateTime, nullable=True)
    suspension_reason = db.Column(db.String(500), nullable=True)

    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return f'<CorporateProfile {self.company_legal_name}>'


class Shop(db.Model):
    __tablename__ = 'shops'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), unique=True, nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(120), nullable=True)
    address_line = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    country = db.Column(db.String(100), nullable=True, default='Bangladesh')
    details = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    shop_products = db.relationship(
        'ShopProduct',
        back_populates='shop',
        lazy='dynamic',
        cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Shop {self.name}>'


class UserShopAccess(db.Model):
    __tablename__ = 'user_shop_access'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    shop_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'shops.id',
            ondelete='CASCADE'),
        nullable=False)
    is_primary = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    shop = db.relationship('Shop')

    __table_args__ = (
        UniqueConstraint('user_id', 'shop_id', name='uq_user_shop_access'),
    )


class Category(db.Model):
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    parent_id = db.Column(
        db.Integer,
        db.ForeignKey('categories.id'),
        nullable=True,
        index=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False, index=True)
    # 1 = root, 2 = sub category, 3 = child sub category
    level = db.Column(db.Integer, nullable=False, default=1)
    description = db.Column(db.Text, nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    # Soft delete
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)
    deleted_by = db.Column(
        db.Integer,
        db.ForeignKey('users.id'),
        nullable=True)

    children = db.relationship(
        'Category',
        backref=db.backref('parent', remote_side=[id]),
        lazy='dynamic')
    products = db.relationship('Product', backref='category', lazy='dynamic')

    def __repr__(self):
        return f'<Category {self.name}>'


class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    slug = db.Column(db.String(220), unique=True, nullable=False, index=True)
    sku = db.Column(db.String(64), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    category_id = db.Column(
        db.Integer,
        db.ForeignKey('categories.id'),
        nullable=True,
        index=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    cost = db.Column(db.Numeric(10, 2), nullable=True)
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    discount_fixed = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_start = db.Column(db.DateTime, nullable=True)
    discount_end = db.Column(db.DateTime, nullable=True)
    stock = db.Column(db.Integer, nullable=False, default=0)
    sold_count = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(
        db.Enum(ProductStatus),
        default=ProductStatus.ACTIVE,
        nullable=False)
    is_featured = db.Column(db.Boolean, default=False, nullable=False)
    is_trending = db.Column(db.Boolean, default=False, nullable=False)
    created_by = db.Column(
        db.Integer,
        db.ForeignKey('users.id'),
        nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    # Soft delete
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)
    deleted_by = db.Column(
        db.Integer,
        db.ForeignKey('users.id'),
        nullable=True)

    shop_products = db.relationship(
        'ShopProduct',
        back_populates='product',
        lazy='dynamic',
        cascade='all, delete-orphan')
    reviews = db.relationship(
        'ProductReview',
        backref='product',
        lazy='dynamic')

    __table_args__ = (
        CheckConstraint('stock >= 0', name='check_product_stock_positive'),
        CheckConstraint('price >= 0', name='check_product_price_positive'),
    )

    def __repr__(self):
        return f'<Product {self.sku}>'


class ShopProduct(db.Model):
    __tablename__ = 'shop_products'

    shop_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'shops.id',
            ondelete='CASCADE'),
        primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'products.id',
            ondelete='CASCADE'),
        primary_key=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    shop = db.relationship('Shop', back_populates='shop_products')
    product = db.relationship('Product', back_populates='shop_products')

    __table_args__ = (
        db.Index('idx_shop_product_product_id', 'product_id'),
    )

    def __repr__(self):
        return (
            f"<ShopProduct shop={self.shop_id} "
            f"product={self.product_id} qty={self.quantity}>"
        )


class Customer(db.Model):
    __tablename__ = 'customers'

    id = db.Column(db.Integer, primary_key=True)
    # Null for guest customers
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='SET NULL'),
        unique=True,
        nullable=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120), nullable=True, index=True)
    phone = db.Column(db.String(20), nullable=True, index=True)
    address = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    orders = db.relationship('Order', backref='customer', lazy='dynamic')

    @property
    def is_guest(self):
        return self.user_id is None

    def __repr__(self):
        return f'<Customer {self.id} {self.email}>'


class UserAddress(db.Model):
    __tablename__ = 'user_addresses'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    address_type = db.Column(
        db.Enum(AddressType),
        nullable=False,
        default=AddressType.SHIPPING)
    street = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(100), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    country = db.Column(db.String(100), nullable=False)
    country_code = db.Column(db.String(2), nullable=True)
    is_default = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return f'<UserAddress {self.id} for user {self.user_id}>'


class PaymentMethod(db.Model):
    __tablename__ = 'payment_methods'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    # cod, online, card, bkash, nagad, rocket
    code = db.Column(db.String(30), unique=True, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<PaymentMethod {self.code}>'


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(
        db.String(40), unique=True, nullable=False, index=True)
    customer_id = db.Column(
        db.Integer,
        db.ForeignKey('customers.id'),
        nullable=False,
        index=True)
    shop_id = db.Column(
        db.Integer,
        db.ForeignKey('shops.id'),
        nullable=True,
        index=True)
    sales_manager_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='SET NULL'),
        nullable=True)
    payment_method_id = db.Column(
        db.Integer,
        db.ForeignKey('payment_methods.id'),
        nullable=True)

    # Amounts
    sub_total = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    paid_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    due_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    order_status = db.Column(
        db.Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False)
    payment_status = db.Column(
        db.Enum(PaymentStatus),
        default=PaymentStatus.UNPAID,
        nullable=False)
    shipment_status = db.Column(
        db.Enum(ShipmentStatus),
        default=ShipmentStatus.NOT_BOOKED,
        nullable=False)

    # Courier booking
    consignment_id = db.Column(db.String(50), nullable=True, index=True)
    tracking_code = db.Column(db.String(50), nullable=True, index=True)
    courier_status = db.Column(db.String(50), nullable=True)
    # 0 = home delivery, 1 = point delivery
    delivery_type = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    # Guest checkout
    is_guest_order = db.Column(db.Boolean, default=False, nullable=False)
    guest_token = db.Column(
        db.String(64), unique=True, nullable=True, index=True)
    guest_email = db.Column(db.String(120), nullable=True, index=True)
    guest_phone = db.Column(db.String(20), nullable=True)
    guest_name = db.Column(db.String(200), nullable=True)

    # Shipping snapshot
    shipping_first_name = db.Column(db.String(100), nullable=True)
    shipping_last_name = db.Column(db.String(100), nullable=True)
    shipping_phone = db.Column(db.String(20), nullable=True)
    shipping_email = db.Column(db.String(120), nullable=True)
    shipping_address_line1 = db.Column(db.String(255), nullable=True)
    shipping_address_line2 = db.Column(db.String(255), nullable=True)
    shipping_city = db.Column(db.String(100), nullable=True)
    shipping_state = db.Column(db.String(100), nullable=True)
    shipping_postal_code = db.Column(db.String(20), nullable=True)
    shipping_country = db.Column(db.String(100), nullable=True)

    # Billing snapshot
    billing_first_name = db.Column(db.String(100), nullable=True)
    billing_last_name = db.Column(db.String(100), nullable=True)
    billing_phone = db.Column(db.String(20), nullable=True)
    billing_email = db.Column(db.String(120), nullable=True)
    billing_address_line1 = db.Column(db.String(255), nullable=True)
    billing_address_line2 = db.Column(db.String(255), nullable=True)
    billing_city = db.Column(db.String(100), nullable=True)
    billing_state = db.Column(db.String(100), nullable=True)
    billing_postal_code = db.Column(db.String(20), nullable=True)
    billing_country = db.Column(db.String(100), nullable=True)

    is_gift = db.Column(db.Boolean, default=False, nullable=False)
    stock_restored = db.Column(db.Boolean, default=False, nullable=False)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    # Relationships
    shop = db.relationship('Shop')
    sales_manager = db.relationship('User', foreign_keys=[sales_manager_id])
    payment_method = db.relationship('PaymentMethod')
    details = db.relationship(
        'OrderDetails',
        backref='order',
        lazy='dynamic',
        cascade='all, delete-orphan')
    transactions = db.relationship(
        'Transaction',
        backref='order',
        lazy='dynamic',
        cascade='all, delete-orphan')
    gift = db.relationship(
        'OrderGift',
        backref='order',
        uselist=False,
        cascade='all, delete-orphan')

    @property
    def shipping_name(self):
        parts = (self.shipping_first_name, self.shipping_last_name)
        return ' '.join(p for p in parts if p)

    @property
    def shipping_full_address(self):
        parts = (
            self.shipping_address_line1,
            self.shipping_address_line2,
            self.shipping_city,
            self.shipping_state,
            self.shipping_postal_code,
            self.shipping_country,
        )
        return ', '.join(p for p in parts if p)

    def __repr__(self):
        return f'<Order {self.order_number} status={self.order_status}>'


class OrderDetails(db.Model):
    __tablename__ = 'order_details'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'orders.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'products.id',
            ondelete='SET NULL'),
        nullable=True,
        index=True)
    # Order snapshot of the product at purchase time.
    name = db.Column(db.String(200), nullable=False)
    sku = db.Column(db.String(64), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    sale_price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    product = db.relationship('Product')

    __table_args__ = (
        CheckConstraint(
            'quantity > 0',
            name='check_order_detail_quantity_positive'),
    )

    @property
    def line_total(self):
        return self.sale_price * self.quantity

    def __repr__(self):
        return (
            f"<OrderDetails {self.id} order={self.order_id} "
            f"product={self.product_id}>"
        )


class OrderGift(db.Model):
    __tablename__ = 'order_gifts'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'orders.id',
            ondelete='CASCADE'),
        unique=True,
        nullable=False)
    wrapping = db.Column(db.Boolean, default=False, nullable=False)
    sender_name = db.Column(db.String(100), nullable=True)
    recipient_name = db.Column(db.String(100), nullable=True)
    message = db.Column(db.String(500), nullable=True)

    def __repr__(self):
        return f'<OrderGift for order {self.order_id}>'


class Transaction(db.Model):
    __tablename__ = 'transactions'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'orders.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    customer_id = db.Column(
        db.Integer,
        db.ForeignKey('customers.id'),
        nullable=False)
    payment_method_id = db.Column(
        db.Integer,
        db.ForeignKey('payment_methods.id'),
        nullable=True)
    # checkout, guest_checkout, admin_order
    source = db.Column(db.String(30), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(
        db.Enum(TransactionStatus),
        default=TransactionStatus.PENDING,
        nullable=False)
    payment_details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    payment_method = db.relationship('PaymentMethod')

    def __repr__(self):
        return f'<Transaction {self.id} status={self.status}>'


class ProductReview(db.Model):
    __tablename__ = 'product_reviews'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'products.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='SET NULL'),
        nullable=True,
        index=True)
    reviewer_name = db.Column(db.String(255), nullable=True)
    reviewer_email = db.Column(db.String(255), nullable=True)
    rating = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(255), nullable=True)
    review = db.Column(db.Text, nullable=True)
    is_approved = db.Column(db.Boolean, default=False, nullable=False)
    is_verified_purchase = db.Column(
        db.Boolean, default=False, nullable=False)
    is_recommended = db.Column(db.Boolean, default=True, nullable=False)
    approved_at = db.Column(db.DateTime, nullable=True)
    approved_by = db.Column(
        db.Integer,
        db.ForeignKey('users.id'),
        nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    # Soft delete
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)
    deleted_by = db.Column(
        db.Integer,
        db.ForeignKey('users.id'),
        nullable=True)
    deleted_reason = db.Column(db.String(500), nullable=True)

    author = db.relationship('User', foreign_keys=[user_id])

    __table_args__ = (
        CheckConstraint(
            'rating >= 1 AND rating <= 5',
            name='check_rating_range'),
    )

    def __repr__(self):
        return f'<ProductReview {self.id} for product {self.product_id}>'


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='SET NULL'),
        nullable=True)
    actor_role = db.Column(db.String(20), nullable=False)
    # e.g., ORDER_CREATE, CORPORATE_APPROVE
    action = db.Column(db.String(100), nullable=False)
    # ORDER, PRODUCT, USER, etc.
    target_type = db.Column(db.String(50), nullable=True)
    target_id = db.Column(db.Integer, nullable=True, index=True)
    ip = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    # JSON format key field snapshot
    payload_json = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)

    actor = db.relationship('User', foreign_keys=[actor_id])

    def set_payload(self, data):
        self.payload_json = json.dumps(data, ensure_ascii=False, default=str)

    def get_payload(self):
        if self.payload_json:
            return json.loads(self.payload_json)
        return {}

    def __repr__(self):
        return f'<AuditLog {self.id} action={self.action}>'
