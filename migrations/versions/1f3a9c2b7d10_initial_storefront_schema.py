from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "1f3a9c2b7d10"
down_revision = None
branch_labels = None
depends_on = None


# Enum columns store the member names
USER_ROLE = sa.Enum(
    "ADMIN", "SALES_MANAGER", "CUSTOMER", "CORPORATE", name="userrole"
)
ACCOUNT_STATUS = sa.Enum(
    "ACTIVE", "PENDING", "REJECTED", "SUSPENDED", "INACTIVE",
    name="accountstatus",
)
PAYMENT_TERMS = sa.Enum(
    "NET_15", "NET_30", "NET_45", "NET_60", "PREPAID", name="paymentterms"
)
PRODUCT_STATUS = sa.Enum("ACTIVE", "INACTIVE", name="productstatus")
ORDER_STATUS = sa.Enum(
    "PENDING", "PROCESSING", "COMPLETED", "CANCELLED", name="orderstatus"
)
PAYMENT_STATUS = sa.Enum(
    "PAID", "PARTIAL_PAID", "UNPAID", name="paymentstatus"
)
SHIPMENT_STATUS = sa.Enum(
    "NOT_BOOKED", "BOOKED", "BOOKING_FAILED", "DELIVERED",
    name="shipmentstatus",
)
TRANSACTION_STATUS = sa.Enum(
    "COMPLETED", "PENDING", name="transactionstatus"
)
ADDRESS_TYPE = sa.Enum("SHIPPING", "BILLING", name="addresstype")


def _timestamps(updated=True):
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return columns


def _address_columns(prefix):
    return [
        sa.Column(f"{prefix}_first_name", sa.String(length=100)),
        sa.Column(f"{prefix}_last_name", sa.String(length=100)),
        sa.Column(f"{prefix}_phone", sa.String(length=20)),
        sa.Column(f"{prefix}_email", sa.String(length=120)),
        sa.Column(f"{prefix}_address_line1", sa.String(length=255)),
        sa.Column(f"{prefix}_address_line2", sa.String(length=255)),
        sa.Column(f"{prefix}_city", sa.String(length=100)),
        sa.Column(f"{prefix}_state", sa.String(length=100)),
        sa.Column(f"{prefix}_postal_code", sa.String(length=20)),
        sa.Column(f"{prefix}_country", sa.String(length=100)),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=120), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", USER_ROLE, nullable=False),
        sa.Column("status", ACCOUNT_STATUS, nullable=False),
        sa.Column("notification_preferences", sa.JSON(), nullable=True),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False),
        sa.Column("locked_until", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_ip", sa.String(length=45), nullable=True),
        sa.Column("login_count", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_email", ["email"], unique=True)
        batch_op.create_index("ix_users_phone", ["phone"], unique=True)

    op.create_table(
        "personal_access_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("abilities", sa.JSON(), nullable=True),
        sa.Column("last_used_at", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash"),
    )
    with op.batch_alter_table(
            "personal_access_tokens", schema=None) as batch_op:
        batch_op.create_index(
            "ix_personal_access_tokens_user_id", ["user_id"], unique=False)

    op.create_table(
        "corporate_profiles",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "company_legal_name", sa.String(length=255), nullable=False),
        sa.Column("trade_name", sa.String(length=255), nullable=True),
        sa.Column(
            "trade_license_number", sa.String(length=100), nullable=True),
        sa.Column(
            "vat_registration_number", sa.String(length=100), nullable=True),
        sa.Column("business_type", sa.String(length=100), nullable=True),
        sa.Column("industry", sa.String(length=100), nullable=True),
        sa.Column(
            "primary_contact_name", sa.String(length=255), nullable=False),
        sa.Column(
            "primary_contact_email", sa.String(length=120), nullable=False),
        sa.Column(
            "primary_contact_phone", sa.String(length=20), nullable=False),
        sa.Column("billing_address", sa.Text(), nullable=True),
        sa.Column("payment_terms", PAYMENT_TERMS, nullable=False),
        sa.Column(
            "credit_limit",
            sa.Numeric(precision=12, scale=2),
            nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.String(length=500), nullable=True),
        sa.Column("suspended_at", sa.DateTime(), nullable=True),
        sa.Column(
            "suspension_reason", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["approved_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("trade_license_number"),
        sa.UniqueConstraint("vat_registration_number"),
    )

    op.create_table(
        "shops",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=120), nullable=True),
        sa.Column("address_line", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("postal_code", sa.String(length=20), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "user_shop_access",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("shop_id", sa.Integer(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["shop_id"], ["shops.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "shop_id", name="uq_user_shop_access"),
    )
    with op.batch_alter_table("user_shop_access", schema=None) as batch_op:
        batch_op.create_index(
            "ix_user_shop_access_user_id", ["user_id"], unique=False)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("slug", sa.String(length=120), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["parent_id"], ["categories.id"]),
        sa.ForeignKeyConstraint(["deleted_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("categories", schema=None) as batch_op:
        batch_op.create_index(
            "ix_categories_parent_id", ["parent_id"], unique=False)
        batch_op.create_index("ix_categories_slug", ["slug"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=220), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column(
            "price", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("cost", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column(
            "discount_percent",
            sa.Numeric(precision=5, scale=2),
            nullable=False),
        sa.Column(
            "discount_fixed",
            sa.Numeric(precision=10, scale=2),
            nullable=False),
        sa.Column("discount_start", sa.DateTime(), nullable=True),
        sa.Column("discount_end", sa.DateTime(), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("sold_count", sa.Integer(), nullable=False),
        sa.Column("status", PRODUCT_STATUS, nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False),
        sa.Column("is_trending", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sa.Integer(), nullable=True),
        sa.CheckConstraint(
            "stock >= 0", name="check_product_stock_positive"),
        sa.CheckConstraint(
            "price >= 0", name="check_product_price_positive"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["deleted_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_name", ["name"], unique=False)
        batch_op.create_index("ix_products_slug", ["slug"], unique=True)
        batch_op.create_index("ix_products_sku", ["sku"], unique=True)
        batch_op.create_index(
            "ix_products_category_id", ["category_id"], unique=False)

    op.create_table(
        "shop_products",
        sa.Column("shop_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["shop_id"], ["shops.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("shop_id", "product_id"),
    )
    with op.batch_alter_table("shop_products", schema=None) as batch_op:
        batch_op.create_index(
            "idx_shop_product_product_id", ["product_id"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=120), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_email", ["email"], unique=False)
        batch_op.create_index("ix_customers_phone", ["phone"], unique=False)

    op.create_table(
        "user_addresses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("address_type", ADDRESS_TYPE, nullable=False),
        sa.Column("street", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("postal_code", sa.String(length=20), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("country_code", sa.String(length=2), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("user_addresses", schema=None) as batch_op:
        batch_op.create_index(
            "ix_user_addresses_user_id", ["user_id"], unique=False)

    op.create_table(
        "payment_methods",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=30), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_number", sa.String(length=40), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("shop_id", sa.Integer(), nullable=True),
        sa.Column("sales_manager_id", sa.Integer(), nullable=True),
        sa.Column("payment_method_id", sa.Integer(), nullable=True),
        sa.Column(
            "sub_total", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column(
            "discount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column(
            "total", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column(
            "paid_amount",
            sa.Numeric(precision=10, scale=2),
            nullable=False),
        sa.Column(
            "due_amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("order_status", ORDER_STATUS, nullable=False),
        sa.Column("payment_status", PAYMENT_STATUS, nullable=False),
        sa.Column("shipment_status", SHIPMENT_STATUS, nullable=False),
        sa.Column("consignment_id", sa.String(length=50), nullable=True),
        sa.Column("tracking_code", sa.String(length=50), nullable=True),
        sa.Column("courier_status", sa.String(length=50), nullable=True),
        sa.Column("delivery_type", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_guest_order", sa.Boolean(), nullable=False),
        sa.Column("guest_token", sa.String(length=64), nullable=True),
        sa.Column("guest_email", sa.String(length=120), nullable=True),
        sa.Column("guest_phone", sa.String(length=20), nullable=True),
        sa.Column("guest_name", sa.String(length=200), nullable=True),
        *_address_columns("shipping"),
        *_address_columns("billing"),
        sa.Column("is_gift", sa.Boolean(), nullable=False),
        sa.Column("stock_restored", sa.Boolean(), nullable=False),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["shop_id"], ["shops.id"]),
        sa.ForeignKeyConstraint(
            ["sales_manager_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["payment_method_id"], ["payment_methods.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("orders", schema=None) as batch_op:
        batch_op.create_index(
            "ix_orders_order_number", ["order_number"], unique=True)
        batch_op.create_index(
            "ix_orders_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_orders_shop_id", ["shop_id"], unique=False)
        batch_op.create_index(
            "ix_orders_consignment_id", ["consignment_id"], unique=False)
        batch_op.create_index(
            "ix_orders_tracking_code", ["tracking_code"], unique=False)
        batch_op.create_index(
            "ix_orders_guest_token", ["guest_token"], unique=True)
        batch_op.create_index(
            "ix_orders_guest_email", ["guest_email"], unique=False)
        batch_op.create_index(
            "ix_orders_created_at", ["created_at"], unique=False)

    op.create_table(
        "order_details",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column(
            "price", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column(
            "discount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column(
            "sale_price", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "quantity > 0", name="check_order_detail_quantity_positive"),
        sa.ForeignKeyConstraint(
            ["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("order_details", schema=None) as batch_op:
        batch_op.create_index(
            "ix_order_details_order_id", ["order_id"], unique=False)
        batch_op.create_index(
            "ix_order_details_product_id", ["product_id"], unique=False)

    op.create_table(
        "order_gifts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("wrapping", sa.Boolean(), nullable=False),
        sa.Column("sender_name", sa.String(length=100), nullable=True),
        sa.Column("recipient_name", sa.String(length=100), nullable=True),
        sa.Column("message", sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(
            ["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_id"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("payment_method_id", sa.Integer(), nullable=True),
        sa.Column("source", sa.String(length=30), nullable=False),
        sa.Column(
            "amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("status", TRANSACTION_STATUS, nullable=False),
        sa.Column("payment_details", sa.JSON(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(
            ["payment_method_id"], ["payment_methods.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("transactions", schema=None) as batch_op:
        batch_op.create_index(
            "ix_transactions_order_id", ["order_id"], unique=False)

    op.create_table(
        "product_reviews",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("reviewer_name", sa.String(length=255), nullable=True),
        sa.Column("reviewer_email", sa.String(length=255), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("review", sa.Text(), nullable=True),
        sa.Column("is_approved", sa.Boolean(), nullable=False),
        sa.Column("is_verified_purchase", sa.Boolean(), nullable=False),
        sa.Column("is_recommended", sa.Boolean(), nullable=False),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sa.Integer(), nullable=True),
        sa.Column("deleted_reason", sa.String(length=500), nullable=True),
        sa.CheckConstraint(
            "rating >= 1 AND rating <= 5", name="check_rating_range"),
        sa.ForeignKeyConstraint(
            ["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["approved_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["deleted_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("product_reviews", schema=None) as batch_op:
        batch_op.create_index(
            "ix_product_reviews_product_id", ["product_id"], unique=False)
        batch_op.create_index(
            "ix_product_reviews_user_id", ["user_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("actor_role", sa.String(length=20), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("target_type", sa.String(length=50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("ip", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("payload_json", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ["actor_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("audit_logs", schema=None) as batch_op:
        batch_op.create_index(
            "ix_audit_logs_target_id", ["target_id"], unique=False)
        batch_op.create_index(
            "ix_audit_logs_created_at", ["created_at"], unique=False)


def downgrade():
    for table in (
        "audit_logs",
        "product_reviews",
        "transactions",
        "order_gifts",
        "order_details",
        "orders",
        "payment_methods",
        "user_addresses",
        "customers",
        "shop_products",
        "products",
        "categories",
        "user_shop_access",
        "shops",
        "corporate_profiles",
        "personal_access_tokens",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (
        ADDRESS_TYPE,
        TRANSACTION_STATUS,
        SHIPMENT_STATUS,
        PAYMENT_STATUS,
        ORDER_STATUS,
        PRODUCT_STATUS,
        PAYMENT_TERMS,
        ACCOUNT_STATUS,
        USER_ROLE,
    ):
        enum_type.drop(bind, checkfirst=True)
