"""Tests for the personas display_name/triggers revision on real SQLite files.

Run with: cd backend && pytest tests/unit/test_persona_migration.py -v
"""

from __future__ import annotations

import io

import pytest
from alembic import command
from sqlalchemy import Text, inspect, text
from sqlalchemy.engine import Engine

from personaforge.core import migrations
from personaforge.core.errors import MissingPrerequisite, SchemaConflict, StorageFailure

BASELINE = "3b7d1f0c9a2e"
PERSONA_NAMES = "9e4a6c2d8b15"

BASELINE_COLUMNS = {"id", "name", "prompt", "is_active", "created_at"}


def _columns(engine: Engine) -> dict[str, dict]:
    return {col["name"]: col for col in inspect(engine).get_columns("personas")}


def _rows(engine: Engine) -> list[dict]:
    with engine.connect() as conn:
        result = conn.execute(
            text("SELECT * FROM personas ORDER BY id")
        )
        return [dict(row._mapping) for row in result]


class TestUpgrade:
    def test_backfills_display_name_for_existing_rows(self, database_url, engine, seed_personas):
        migrations.upgrade(BASELINE, database_url=database_url)
        seed_personas("Aria", "Nova")

        migrations.upgrade("head", database_url=database_url)

        rows = [
            {key: row[key] for key in ("name", "display_name", "triggers")}
            for row in _rows(engine)
        ]
        assert rows == [
            {"name": "Aria", "display_name": "Aria", "triggers": None},
            {"name": "Nova", "display_name": "Nova", "triggers": None},
        ]

    def test_adds_two_nullable_text_columns_and_nothing_else(self, database_url, engine):
        migrations.upgrade(BASELINE, database_url=database_url)
        before = {
            name: (str(col["type"]), col["nullable"])
            for name, col in _columns(engine).items()
        }

        migrations.upgrade("head", database_url=database_url)
        after = _columns(engine)

        assert set(after) == BASELINE_COLUMNS | {"display_name", "triggers"}
        for name in ("display_name", "triggers"):
            assert isinstance(after[name]["type"], Text)
            assert after[name]["nullable"] is True
            assert after[name]["default"] is None
        for name, shape in before.items():
            assert (str(after[name]["type"]), after[name]["nullable"]) == shape

    def test_empty_table_migrates_cleanly(self, database_url, engine):
        migrations.upgrade("head", database_url=database_url)

        assert _rows(engine) == []
        assert migrations.current_revision(database_url) == PERSONA_NAMES

    def test_rows_inserted_after_migration_are_left_alone(self, database_url, engine):
        migrations.upgrade("head", database_url=database_url)
        with engine.begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO personas (name, prompt, display_name, triggers) "
                    "VALUES ('Aria', 'p', 'Captain', 'captain,ship'), ('Nova', 'p', NULL, NULL)"
                )
            )

        rows = _rows(engine)

        assert rows[0]["display_name"] == "Captain"
        assert rows[0]["triggers"] == "captain,ship"
        assert rows[1]["display_name"] is None

    def test_upgrade_to_head_twice_is_a_no_op(self, database_url, engine, seed_personas):
        migrations.upgrade("head", database_url=database_url)
        seed_personas("Aria")

        migrations.upgrade("head", database_url=database_url)

        assert _rows(engine)[0]["display_name"] is None
        assert migrations.current_revision(database_url) == PERSONA_NAMES


class TestPreconditions:
    def test_rerunning_step_on_migrated_schema_raises_schema_conflict(self, database_url, engine):
        migrations.upgrade("head", database_url=database_url)
        # Version table drifts back while the columns stay.
        command.stamp(migrations.build_config(database_url), BASELINE)

        with pytest.raises(SchemaConflict) as exc_info:
            migrations.upgrade("head", database_url=database_url)

        assert exc_info.value.columns == ["display_name", "triggers"]
        assert exc_info.value.table == "personas"
        assert set(_columns(engine)) == BASELINE_COLUMNS | {"display_name", "triggers"}
        assert migrations.current_revision(database_url) == BASELINE

    def test_existing_display_name_column_aborts_whole_step(self, database_url, engine, seed_personas):
        migrations.upgrade(BASELINE, database_url=database_url)
        seed_personas("Aria", "Nova")
        with engine.begin() as conn:
            conn.execute(text("ALTER TABLE personas ADD COLUMN display_name TEXT"))

        with pytest.raises(SchemaConflict) as exc_info:
            migrations.upgrade("head", database_url=database_url)

        assert exc_info.value.columns == ["display_name"]
        assert exc_info.value.kind == "schema_conflict"
        assert "triggers" not in _columns(engine)
        assert [row["display_name"] for row in _rows(engine)] == [None, None]
        assert migrations.current_revision(database_url) == BASELINE

    def test_missing_personas_table_raises_missing_prerequisite(self, database_url, engine):
        migrations.upgrade(BASELINE, database_url=database_url)
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE personas"))

        with pytest.raises(MissingPrerequisite, match="personas"):
            migrations.upgrade("head", database_url=database_url)

        assert migrations.current_revision(database_url) == BASELINE


class TestAtomicity:
    def test_failed_backfill_rolls_back_column_additions(self, database_url, engine, seed_personas):
        migrations.upgrade(BASELINE, database_url=database_url)
        seed_personas("Aria")
        with engine.begin() as conn:
            conn.execute(
                text(
                    "CREATE TRIGGER personas_read_only BEFORE UPDATE ON personas "
                    "BEGIN SELECT RAISE(ABORT, 'personas are read-only'); END"
                )
            )

        with pytest.raises(StorageFailure, match="read-only"):
            migrations.upgrade("head", database_url=database_url)

        assert set(_columns(engine)) == BASELINE_COLUMNS
        assert migrations.current_revision(database_url) == BASELINE


class TestDowngrade:
    def test_downgrade_drops_both_columns_and_keeps_rows(self, database_url, engine, seed_personas):
        migrations.upgrade(BASELINE, database_url=database_url)
        seed_personas("Aria", "Nova")
        migrations.upgrade("head", database_url=database_url)

        migrations.downgrade("-1", database_url=database_url)

        assert set(_columns(engine)) == BASELINE_COLUMNS
        assert [row["name"] for row in _rows(engine)] == ["Aria", "Nova"]
        assert migrations.current_revision(database_url) == BASELINE

    def test_upgrade_after_downgrade_backfills_again(self, database_url, engine, seed_personas):
        migrations.upgrade("head", database_url=database_url)
        migrations.downgrade(BASELINE, database_url=database_url)
        seed_personas("Aria")

        migrations.upgrade("head", database_url=database_url)

        assert _rows(engine)[0]["display_name"] == "Aria"


class TestOfflineSql:
    def _render(self, database_url, run) -> str:
        config = migrations.build_config(database_url)
        config.output_buffer = io.StringIO()
        run(config)
        return config.output_buffer.getvalue()

    def test_upgrade_renders_add_columns_and_backfill(self, database_url, db_path):
        sql = self._render(
            database_url, lambda config: command.upgrade(config, "head", sql=True)
        )

        assert "ALTER TABLE personas ADD COLUMN display_name TEXT" in sql
        assert "ALTER TABLE personas ADD COLUMN triggers TEXT" in sql
        assert "UPDATE personas SET display_name = name WHERE display_name IS NULL" in sql
        assert not db_path.exists()

    def test_downgrade_renders_table_copy_without_new_columns(self, database_url, db_path):
        sql = self._render(
            database_url,
            lambda config: command.downgrade(
                config, f"{PERSONA_NAMES}:{BASELINE}", sql=True
            ),
        )

        assert "CREATE TABLE _alembic_tmp_personas" in sql
        assert "INSERT INTO _alembic_tmp_personas (id, name, prompt, is_active, created_at)" in sql
        assert "DROP TABLE personas" in sql
        assert "ALTER TABLE _alembic_tmp_personas RENAME TO personas" in sql
        copied = sql.split("CREATE TABLE _alembic_tmp_personas", 1)[1].split(";", 1)[0]
        assert "display_name" not in copied
        assert "triggers" not in copied
        assert f"version_num='{BASELINE}'" in sql
        assert not db_path.exists()
