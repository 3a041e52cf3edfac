from flask import Flask
from storefront.extensions import db, login_manager, migrate
from storefront.config import Config
from storefront.middleware import (
    register_error_handlers,
    setup_request_context,
    setup_token_auth,
)
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(Config.LOG_FILE),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Setup user loader
    from storefront.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Bearer token auth, request ids and JSON error bodies
    setup_token_auth(login_manager)
    setup_request_context(app)
    register_error_handlers(app)

    # Register blueprints
    from storefront.blueprints import (
        admin,
        api,
        auth,
        categories,
        checkout,
        corporate,
        orders,
        products,
        reviews,
        shops,
    )

    # These blueprints already use absolute routes.
    # Using url_prefix here would double the path.
    app.register_blueprint(auth.bp, url_prefix='/')
    app.register_blueprint(corporate.bp, url_prefix='/')
    app.register_blueprint(categories.bp, url_prefix='/')
    app.register_blueprint(products.bp, url_prefix='/')
    app.register_blueprint(admin.bp, url_prefix='/')
    app.register_blueprint(shops.bp, url_prefix='/')
    app.register_blueprint(reviews.bp, url_prefix='/')
    app.register_blueprint(checkout.bp, url_prefix='/')
    app.register_blueprint(orders.bp, url_prefix='/')
    app.register_blueprint(api.bp, url_prefix='/')

    # Note: Database tables are managed via Flask-Migrate
    # Use 'flask db upgrade' to create/update tables

    logger.info("Storefront API initialized")
    return app
