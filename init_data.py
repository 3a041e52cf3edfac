from decimal import Decimal

from storefront import create_app
from storefront.extensions import db
from storefront.models import (
    Category,
    PaymentMethod,
    Product,
    ProductStatus,
    Shop,
    ShopProduct,
    User,
    UserRole,
    UserShopAccess,
)
from storefront.utils import slugify

app = create_app()

with app.app_context():
    # Shops. Web orders are booked against DEFAULT_SHOP_ID, so ids are fixed.
    shops_data = [
        {"id": 1, "name": "Gulshan Showroom", "city": "Dhaka"},
        {"id": 2, "name": "Dhanmondi Showroom", "city": "Dhaka"},
        {"id": 3, "name": "Agrabad Showroom", "city": "Chattogram"},
        {"id": 4, "name": "Web Shop", "city": "Dhaka"},
    ]
    for shop_data in shops_data:
        if not db.session.get(Shop, shop_data["id"]):
            shop = Shop(
                id=shop_data["id"],
                name=shop_data["name"],
                city=shop_data["city"],
                country="Bangladesh",
                is_active=True,
            )
            db.session.add(shop)
            print(f"Created shop: {shop_data['name']}")
    db.session.flush()

    # Staff accounts. The sales manager is the default order owner.
    staff_data = [
        {
            "email": "admin@example.com",
            "first_name": "Site",
            "last_name": "Admin",
            "role": UserRole.ADMIN,
            "password": "admin123",
            "shop_id": None,
        },
        {
            "email": "sales@example.com",
            "first_name": "Default",
            "last_name": "Sales Manager",
            "role": UserRole.SALES_MANAGER,
            "password": "sales123",
            "shop_id": app.config["DEFAULT_SHOP_ID"],
        },
    ]
    for staff in staff_data:
        user = User.query.filter_by(email=staff["email"]).first()
        if not user:
            user = User(
                email=staff["email"],
                first_name=staff["first_name"],
                last_name=staff["last_name"],
                role=staff["role"],
            )
            user.set_password(staff["password"])
            db.session.add(user)
            db.session.flush()
            print(
                "Created %s account: %s / %s"
                % (staff["role"].value, staff["email"], staff["password"])
            )
        if staff["shop_id"] and not UserShopAccess.query.filter_by(
            user_id=user.id, shop_id=staff["shop_id"]
        ).first():
            db.session.add(
                UserShopAccess(
                    user_id=user.id, shop_id=staff["shop_id"], is_primary=True
                )
            )

    # Payment methods
    payment_methods = [
        ("Cash on Delivery", "cod"),
        ("Online Payment", "online"),
        ("Card", "card"),
        ("bKash", "bkash"),
        ("Nagad", "nagad"),
        ("Rocket", "rocket"),
    ]
    for sort_order, (name, code) in enumerate(payment_methods):
        if not PaymentMethod.query.filter_by(code=code).first():
            db.session.add(
                PaymentMethod(name=name, code=code, sort_order=sort_order)
            )
            print(f"Created payment method: {name}")

    # Category tree: root -> sub category -> child sub category
    category_tree = {
        "Bedding": {
            "Bed Sheets": ["Cotton Bed Sheets", "Satin Bed Sheets"],
            "Comforters": [],
        },
        "Bath": {
            "Towels": ["Bath Towels", "Hand Towels"],
        },
        "Home Decor": {
            "Curtains": [],
            "Cushion Covers": [],
        },
    }

    categories_dict = {}

    def ensure_category(name, parent=None):
        slug = slugify(name)
        category = Category.query.filter_by(slug=slug).first()
        if not category:
            category = Category(
                name=name,
                slug=slug,
                parent_id=parent.id if parent else None,
                level=parent.level + 1 if parent else 1,
                is_active=True,
            )
            db.session.add(category)
            db.session.flush()
            print(f"Created category: {name}")
        categories_dict[slug] = category
        return category

    for root_name, subs in category_tree.items():
        root = ensure_category(root_name)
        for sub_name, children in subs.items():
            sub = ensure_category(sub_name, root)
            for child_name in children:
                ensure_category(child_name, sub)

    # Sample products
    products_data = [
        {
            "name": "Premium Cotton Bed Sheet Set",
            "sku": "HTB-BS-1001",
            "category": "cotton-bed-sheets",
            "price": "4450.00",
            "discount_percent": "10",
            "stock": 91,
            "is_featured": True,
        },
        {
            "name": "Satin Bed Sheet King Size",
            "sku": "HTB-BS-1002",
            "category": "satin-bed-sheets",
            "price": "5200.00",
            "discount_fixed": "500",
            "stock": 40,
        },
        {
            "name": "All Season Comforter",
            "sku": "HTB-CF-2001",
            "category": "comforters",
            "price": "6800.00",
            "stock": 25,
            "is_trending": True,
        },
        {
            "name": "Egyptian Cotton Bath Towel",
            "sku": "HTB-TW-3001",
            "category": "bath-towels",
            "price": "950.00",
            "stock": 150,
            "is_featured": True,
        },
        {
            "name": "Hand Towel Pack of 4",
            "sku": "HTB-TW-3002",
            "category": "hand-towels",
            "price": "1200.00",
            "stock": 80,
        },
        {
            "name": "Blackout Curtain Pair",
            "sku": "HTB-CT-4001",
            "category": "curtains",
            "price": "2050.00",
            "stock": 60,
            "is_trending": True,
        },
        {
            "name": "Embroidered Cushion Cover",
            "sku": "HTB-CC-5001",
            "category": "cushion-covers",
            "price": "450.00",
            "stock": 200,
        },
    ]

    default_shop_id = app.config["DEFAULT_SHOP_ID"]
    for product_data in products_data:
        if Product.query.filter_by(sku=product_data["sku"]).first():
            continue
        category = categories_dict.get(product_data["category"])
        product = Product(
            name=product_data["name"],
            slug=slugify(product_data["name"]),
            sku=product_data["sku"],
            description=f"{product_data['name']} from our home collection.",
            category_id=category.id if category else None,
            price=Decimal(product_data["price"]),
            discount_percent=Decimal(
                product_data.get("discount_percent", "0")
            ),
            discount_fixed=Decimal(product_data.get("discount_fixed", "0")),
            stock=product_data["stock"],
            status=ProductStatus.ACTIVE,
            is_featured=product_data.get("is_featured", False),
            is_trending=product_data.get("is_trending", False),
        )
        db.session.add(product)
        db.session.flush()
        db.session.add(
            ShopProduct(
                shop_id=default_shop_id,
                product_id=product.id,
                quantity=product_data["stock"],
            )
        )
        print(f"  Created product: {product_data['name']}")

    db.session.commit()
    print("Data initialization completed!")
