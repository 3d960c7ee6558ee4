from panavest.routes.enrollments import enrollments_bp
from panavest.routes.health import health_bp
from panavest.routes.payments import payments_bp


def register_blueprints(app):
    app.register_blueprint(health_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(enrollments_bp)
