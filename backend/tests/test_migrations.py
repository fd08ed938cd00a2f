"""
The Alembic history must build the same tables the models declare.
"""

from pathlib import Path

from flask_migrate import upgrade
from sqlalchemy import inspect

from stockroom import create_app
from stockroom.config import TestConfig
from stockroom.extensions import db

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def test_upgrade_matches_models(tmp_path):
    class MigrationConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'migrated.sqlite3'}"

    app = create_app(MigrationConfig)
    with app.app_context():
        upgrade(directory=str(MIGRATIONS_DIR))

        inspector = inspect(db.engine)
        migrated = set(inspector.get_table_names()) - {"alembic_version"}
        assert migrated == set(db.metadata.tables)

        for table in db.metadata.sorted_tables:
            columns = {c["name"] for c in inspector.get_columns(table.name)}
            assert columns == set(table.columns.keys()), table.name
