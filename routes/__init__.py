from .auth import auth_bp
from .templates import templates_bp
from .contracts import contracts_bp

def register_blueprints(app):
    app.register_blueprint(auth_bp)
    app.register_blueprint(templates_bp)
    app.register_blueprint(contracts_bp)
