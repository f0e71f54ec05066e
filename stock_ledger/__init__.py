"""Flask application factory."""
import logging
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from stock_ledger.database import init_db


def create_app(config_object='config.Config', overrides=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    log_level = app.config.get('LOG_LEVEL', 'INFO')
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    app.logger.setLevel(log_level)

    is_production = app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'

    # Error tracking (production only)
    if app.config.get('SENTRY_DSN') and is_production:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Redis cache for the stock listing
    from stock_ledger.services.cache_service import init_cache
    init_cache(app)

    # Prometheus metrics instrumentation
    from stock_ledger.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust X-Forwarded-* headers from the reverse proxy
    if is_production:
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Engine and session factory live on app.extensions
    init_db(app)

    from stock_ledger.middleware import load_current_user

    @app.before_request
    def before_request_handler():
        """Load the caller's token claims for each request."""
        load_current_user()

    # Error Handlers
    from stock_ledger.exceptions import LedgerError

    @app.errorhandler(LedgerError)
    def handle_ledger_error(error):
        """Handle application exceptions as JSON with their status code."""
        if error.status_code >= 500:
            app.logger.error(f"LedgerError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"LedgerError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        """404, 405 and friends as JSON."""
        return jsonify({'status': 'error', 'message': error.name}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'status': 'error', 'message': 'Error interno del servidor'}), 500

    # Register blueprints
    from stock_ledger.blueprints.inventory import inventory_bp
    from stock_ledger.blueprints.entries import entries_bp
    from stock_ledger.blueprints.exits import exits_bp
    from stock_ledger.blueprints.products import products_bp
    from stock_ledger.blueprints.parties import customers_bp, suppliers_bp
    from stock_ledger.blueprints.metrics import metrics_bp

    app.register_blueprint(inventory_bp)
    app.register_blueprint(entries_bp)
    app.register_blueprint(exits_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(metrics_bp)

    # CLI commands
    from stock_ledger.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
