from .auth import auth_bp
from .catalog import catalog_bp
from .buyer import buyer_bp
from .payments import payments_bp


__all__ = [
    'auth_bp',
    'catalog_bp',
    'buyer_bp',
    'payments_bp',
]
