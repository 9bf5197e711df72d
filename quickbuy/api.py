from quickbuy.routes import (
    auth_bp,
    catalog_bp,
    buyer_bp,
    payments_bp,
)


def register_api_v1(app):
    """Register blueprint routes under the API version prefix."""
    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(buyer_bp)
    app.register_blueprint(payments_bp)
