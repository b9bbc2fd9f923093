import structlog
from flask import Flask

from .config import Config
from .extensions import db, jwt, cors, migrate
from .errors import register_error_handlers
from .utils.api import ok, err
from .utils.log import configure_logging

log = structlog.get_logger(__name__)


def create_app(config_object=None, **overrides):
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_object(config_object or Config)
    app.config.update(overrides)
    (config_object or Config).init_app(app)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"), json=app.config.get("LOG_JSON", False))

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": "*"}})
    migrate.init_app(app, db)

    @jwt.unauthorized_loader
    def _missing_token(reason):
        return err("Unauthorized", 401)

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return err(f"Invalid token: {reason}", 401)

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return err("Token expired", 401)

    register_error_handlers(app)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .product import bp as product_bp; app.register_blueprint(product_bp)
    from .category import bp as category_bp; app.register_blueprint(category_bp)
    from .brand import bp as brand_bp; app.register_blueprint(brand_bp)
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .promotion import bp as promotion_bp; app.register_blueprint(promotion_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return ok("API running")

    log.info("app_created", blueprints=sorted(app.blueprints.keys()))
    return app
