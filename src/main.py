import logging
import time

import click
from flask import Flask, jsonify, request, g
from flask_cors import CORS

from src.config import Config
from src.extensions import db, migrate
from src.error_handlers import register_error_handlers

# register blueprints dynamically
from routes import register_routes

logger = logging.getLogger(__name__)


def _setup_logging(app):
    logging.basicConfig(
        level=getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO),
        format='%(asctime)s %(name)s:%(levelname)s: %(message)s'
    )
    app.logger.setLevel(logging.getLogger().level)


def _register_request_logging(app):
    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.get("request_started")
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0
        logger.info("%s %s %s %.1fms", request.method, request.path, response.status_code, elapsed_ms)
        return response


def _register_commands(app):
    @app.cli.command("create-tables")
    def create_tables():
        """Create all tables (use `flask db upgrade` for migrations)."""
        db.create_all()
        click.echo("All tables created")

    @app.cli.command("seed-admin")
    @click.option("--username", default=None, help="Defaults to ADMIN_USERNAME")
    @click.option("--password", default=None, help="Defaults to ADMIN_PASSWORD")
    def seed_admin(username, password):
        from user.init_data import create_admin_user
        user, created = create_admin_user(
            username or app.config["ADMIN_USERNAME"],
            password or app.config["ADMIN_PASSWORD"],
        )
        click.echo(f"Admin user {user.username} {'created' if created else 'already exists'}")

    @app.cli.command("recalculate-accounts")
    def recalculate_accounts_command():
        """Rebuild every account balance from invoices and payments."""
        from accounts.account_service import recalculate_accounts
        summary = recalculate_accounts()
        click.echo(
            "Accounts: {created} created, {updated} updated, {zeroed} zeroed, {unchanged} unchanged".format(**summary)
        )


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    _setup_logging(app)

    # Enable CORS for all routes
    CORS(
        app,
        origins=app.config["CORS_ORIGINS"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        supports_credentials=True,
    )

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import all models within app context to resolve relationships
    with app.app_context():
        import models  # noqa: F401

    register_error_handlers(app)
    register_routes(app)
    _register_request_logging(app)
    _register_commands(app)

    @app.get("/")
    def index():
        return jsonify({"message": "Store Management API"}), 200

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=app.config["DEBUG"])
