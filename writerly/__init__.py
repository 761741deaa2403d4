from __future__ import annotations

from pathlib import Path

import click
from flask import Flask
from dotenv import load_dotenv

from .config import Config
from .extensions import csrf, db, login_manager, migrate
from .db_utils import ensure_database_schema


BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(
        __name__,
        instance_relative_config=True,
        static_folder=str(BASE_DIR / "static"),
        static_url_path="/static",
    )
    app.config.from_object(config_class)

    register_extensions(app)
    register_blueprints(app)
    register_commands(app)

    with app.app_context():
        ensure_database_schema()
        if app.config.get("SEED_ACHIEVEMENTS"):
            _seed_default_catalog()

    return app


def register_extensions(app: Flask) -> None:
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message_category = "info"
    csrf.init_app(app)


def register_blueprints(app: Flask) -> None:
    from .api import bp as api_bp
    from .auth import bp as auth_bp
    from .books import bp as books_bp
    from .main import bp as main_bp

    csrf.exempt(api_bp)

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(books_bp)
    app.register_blueprint(api_bp)


def register_commands(app: Flask) -> None:
    @app.cli.command("seed-achievements")
    def seed_achievements_command() -> None:
        """Insert the default achievement catalog if it is empty."""

        created = _seed_default_catalog()
        click.echo(f"Seeded {created} achievements.")


def _seed_default_catalog() -> int:
    from .services.catalog import seed_achievements
    from .storage import WritingStorage

    return seed_achievements(WritingStorage())
