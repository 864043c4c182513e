from __future__ import annotations

import logging

import click
from flask import Flask, jsonify, request
from sqlalchemy import event
from werkzeug.exceptions import HTTPException, InternalServerError

from causas.assignment import assignment_bp
from causas.assignment.notifications import Mailer, init_mailer
from causas.core.auth import auth_bp
from causas.core.config import Config
from causas.core.errors import Internal, ServiceError
from causas.core.extensions import db, login_manager, migrate
from causas.core.models import Especialidad, User, seed_demo_data
from causas.lawyers import lawyers_bp

logger = logging.getLogger(__name__)


def create_app(config_object: type[Config] | None = None, mailer: Mailer | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    configure_logging(app)

    db.init_app(app)
    configure_sqlite_transactions(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    init_mailer(app, mailer)

    app.register_blueprint(auth_bp)
    app.register_blueprint(assignment_bp)
    app.register_blueprint(lawyers_bp)

    register_error_handlers(app)
    register_cli(app)
    return app


def configure_logging(app: Flask) -> None:
    level = str(app.config.get("LOG_LEVEL") or "INFO").upper()
    package_logger = logging.getLogger("causas")
    package_logger.setLevel(level)
    if not package_logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        package_logger.addHandler(handler)


def configure_sqlite_transactions(app: Flask) -> None:
    """Take the SQLite write lock when a transaction starts.

    pysqlite defers BEGIN until the first write and SQLite ignores
    ``FOR UPDATE``, so without this two requests can read the same rotation
    cursor. ``BEGIN IMMEDIATE`` makes the second one wait, or fail with
    "database is locked", which ``run_in_transaction`` retries. An in-memory
    database is a single shared connection and is left alone.
    """
    with app.app_context():
        engine = db.engine
    if engine.dialect.name != "sqlite" or engine.url.database in (None, "", ":memory:"):
        return

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def service_error(error: ServiceError):
        if error.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, error.message)
        return jsonify({"error": error.to_dict()}), error.status_code

    @app.errorhandler(InternalServerError)
    def unexpected_error(error: InternalServerError):
        original = getattr(error, "original_exception", None) or error
        logger.error("%s %s crashed", request.method, request.path, exc_info=original)
        failure = Internal("Error interno inesperado.")
        return jsonify({"error": failure.to_dict()}), failure.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        code = (error.name or "error").lower().replace(" ", "-")
        return jsonify({"error": {"code": code, "message": error.description}}), error.code


def register_cli(app: Flask) -> None:
    @app.cli.command("seed-demo")
    @click.option("--reset", is_flag=True, help="Delete existing data before seed.")
    def seed_demo(reset: bool) -> None:
        """Seed specialties, an admin and demo lawyers."""
        if reset:
            db.drop_all()
            db.create_all()
        if not Especialidad.query.first():
            seed_demo_data(db.session)
            click.echo("Demo data seeded.")
        else:
            click.echo("Seed skipped: existing specialties found.")

    @app.cli.command("create-admin")
    @click.option("--email", type=str, required=True, help="Administrator email.")
    @click.option("--password", type=str, required=True, help="Initial password (min 6 chars).")
    def create_admin_command(email: str, password: str) -> None:
        """Create an administrator account."""
        from causas.lawyers.services import create_admin

        try:
            user = create_admin(email, password)
        except ServiceError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Admin created: uid={user.id} email={user.email}")

    @app.cli.command("rotation-show")
    def rotation_show() -> None:
        """Print every rotation pool and its cursor."""
        from causas.assignment.rotation import rotation_snapshot

        states = rotation_snapshot()
        if not states:
            click.echo("No rotation pools yet.")
            return
        for state in states:
            click.echo(f"[{state.pool_key}] cursor={state.cursor} updated_at={state.updated_at.isoformat()}")


@login_manager.user_loader
def load_user(user_id: str) -> User | None:
    user = db.session.get(User, int(user_id))
    if user is None or not user.is_active:
        return None
    return user
