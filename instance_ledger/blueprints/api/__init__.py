from flask import Blueprint

api_bp = Blueprint('api', __name__, url_prefix='/api')

# Import all route modules to register them
from . import routes  # noqa: E402,F401

# Register sub-blueprints
from .inventory_routes import inventory_api_bp  # noqa: E402
from .batch_type_routes import batch_type_api_bp  # noqa: E402

api_bp.register_blueprint(inventory_api_bp)
api_bp.register_blueprint(batch_type_api_bp)
