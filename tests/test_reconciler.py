"""Tests for statement planning against the database state read beforehand."""

from __future__ import annotations

import pytest

from audit_tables.core.errors import (
    AuditTableExistsError,
    BaseTableMissingError,
    ConnectionCapabilityError,
    TriggerExistsError,
)
from audit_tables.naming import AuditEvent, AuditTarget
from audit_tables.prober import AuditStatus
from audit_tables.reconciler import (
    AuditPolicy,
    AuditTableCreator,
    check_policy,
    generate_statements,
    plan_statements,
)
from audit_tables.schema import parse_create_table
from conftest import AUTO_INCREMENT_DDL, FakeMySQL, NO_PRIMARY_DDL

T = AuditTarget.for_table("t")


def _status(**overrides) -> AuditStatus:
    values = dict(
        base_table_exists=True,
        audit_table_exists=False,
        insert_trigger_exists=False,
        update_trigger_exists=False,
        delete_trigger_exists=False,
    )
    values.update(overrides)
    return AuditStatus(**values)


class TestCheckPolicy:
    def test_missing_base_table_always_fails(self):
        with pytest.raises(BaseTableMissingError):
            check_policy(_status(base_table_exists=False), T, AuditPolicy())

    def test_lenient_accepts_everything_present(self):
        check_policy(
            _status(
                audit_table_exists=True,
                insert_trigger_exists=True,
                update_trigger_exists=True,
                delete_trigger_exists=True,
            ),
            T,
            AuditPolicy(),
        )

    def test_strict_audit_table(self):
        with pytest.raises(AuditTableExistsError, match="Audit table already exists"):
            check_policy(_status(audit_table_exists=True), T, AuditPolicy(strict_if_audit_table_exists=True))

    def test_strict_triggers_ignores_audit_table(self):
        check_policy(_status(audit_table_exists=True), T, AuditPolicy(strict_if_triggers_exist=True))

    def test_strict_trigger_check_order(self):
        status = _status(insert_trigger_exists=True, update_trigger_exists=True, delete_trigger_exists=True)
        with pytest.raises(TriggerExistsError) as exc_info:
            check_policy(status, T, AuditPolicy(strict_if_triggers_exist=True))
        assert exc_info.value.event is AuditEvent.DELETE
        assert str(exc_info.value) == "Audit trigger for deletions on table t already exists"

    @pytest.mark.parametrize(
        "flag, label, trigger",
        [
            ("insert_trigger_exists", "insertions", "audit_t_inserts"),
            ("update_trigger_exists", "updates", "audit_t_updates"),
            ("delete_trigger_exists", "deletions", "audit_t_deletes"),
        ],
    )
    def test_strict_single_trigger(self, flag, label, trigger):
        with pytest.raises(TriggerExistsError, match=f"for {label} on table t") as exc_info:
            check_policy(_status(**{flag: True}), T, AuditPolicy(strict_if_triggers_exist=True))
        assert exc_info.value.trigger == trigger


class TestPlanStatements:
    def setup_method(self):
        self.schema = parse_create_table(AUTO_INCREMENT_DDL)

    def test_first_run(self):
        statements = plan_statements(self.schema, _status(), T)
        assert len(statements) == 5
        assert statements[0] == "CREATE TABLE IF NOT EXISTS `audit_t` LIKE `t`"
        assert statements[1].startswith("ALTER TABLE `audit_t`")
        assert statements[2].startswith("CREATE TRIGGER `audit_t_inserts`")
        assert statements[3].startswith("CREATE TRIGGER `audit_t_deletes`")
        assert statements[4].startswith("CREATE TRIGGER `audit_t_updates`")

    def test_strict_table_uses_plain_create(self):
        statements = plan_statements(self.schema, _status(), T, AuditPolicy(strict_if_audit_table_exists=True))
        assert statements[0] == "CREATE TABLE `audit_t` LIKE `t`"

    def test_existing_audit_table_is_not_altered_again(self):
        statements = plan_statements(self.schema, _status(audit_table_exists=True), T)
        assert len(statements) == 3
        assert all(sql.startswith("CREATE TRIGGER") for sql in statements)

    def test_each_existing_trigger_is_skipped(self):
        statements = plan_statements(
            self.schema, _status(audit_table_exists=True, delete_trigger_exists=True), T
        )
        assert [sql.split("`")[1] for sql in statements] == ["audit_t_inserts", "audit_t_updates"]

    def test_nothing_left_to_do(self):
        status = _status(
            audit_table_exists=True,
            insert_trigger_exists=True,
            update_trigger_exists=True,
            delete_trigger_exists=True,
        )
        assert plan_statements(self.schema, status, T) == []

    def test_policy_violation_produces_nothing(self):
        with pytest.raises(AuditTableExistsError):
            plan_statements(
                self.schema,
                _status(audit_table_exists=True),
                T,
                AuditPolicy(strict_if_audit_table_exists=True),
            )


class TestGenerateStatements:
    def test_first_run(self, fake_db):
        statements = generate_statements("t", fake_db)
        assert len(statements) == 5
        assert fake_db.queries == ["SELECT 1", "SHOW TABLES", "SHOW TRIGGERS", "SHOW CREATE TABLE `t`"]
        assert fake_db.executed == []

    def test_reads_from_fetch_style_variants(self):
        for cursor in ("dict", "iterator"):
            db = FakeMySQL({"t": AUTO_INCREMENT_DDL}, cursor=cursor)
            assert len(generate_statements("t", db)) == 5

    def test_idempotent_after_setup(self, audited_db):
        assert generate_statements("t", audited_db) == []

    def test_strict_flags_pass_when_nothing_exists(self, fake_db):
        statements = generate_statements(
            "t", fake_db, strict_if_audit_table_exists=True, strict_if_triggers_exist=True
        )
        assert statements[0] == "CREATE TABLE `audit_t` LIKE `t`"

    def test_strict_triggers_fail_before_reading_definition(self, audited_db):
        with pytest.raises(TriggerExistsError):
            generate_statements("t", audited_db, strict_if_triggers_exist=True)
        assert "SHOW CREATE TABLE `t`" not in audited_db.queries

    def test_missing_base_table(self, fake_db):
        with pytest.raises(BaseTableMissingError, match="Base table nope does not exist"):
            generate_statements("nope", fake_db)

    def test_connection_without_query(self):
        with pytest.raises(ConnectionCapabilityError):
            generate_statements("t", object())

    def test_table_without_primary_key(self):
        db = FakeMySQL({"other": NO_PRIMARY_DDL})
        statements = generate_statements("other", db)
        assert len(statements) == 5
        assert not any("audit_item_version" in sql for sql in statements)

    def test_custom_audit_table(self, fake_db):
        statements = generate_statements("t", fake_db, "t_history")
        assert statements[0] == "CREATE TABLE IF NOT EXISTS `t_history` LIKE `t`"
        assert "INSERT INTO `t_history`" in statements[2]
        assert statements[2].startswith("CREATE TRIGGER `audit_t_inserts`")


class TestAuditTableCreator:
    def test_rejects_connection_without_query(self):
        with pytest.raises(ConnectionCapabilityError):
            AuditTableCreator("t", object())

    def test_names(self, fake_db):
        creator = AuditTableCreator("t", fake_db)
        assert creator.table == "t"
        assert creator.audit_table == "audit_t"

    def test_generate_matches_function(self, fake_db):
        creator = AuditTableCreator("t", fake_db)
        assert creator.generate_statements() == generate_statements("t", FakeMySQL(dict(fake_db.tables)))

    def test_execute_then_rerun(self, fake_db):
        creator = AuditTableCreator("t", fake_db, strict_if_triggers_exist=True)
        report = creator.execute()
        assert report.count == 5
        assert "audit_t" in fake_db.tables
        assert set(fake_db.triggers) == {"audit_t_inserts", "audit_t_updates", "audit_t_deletes"}
        with pytest.raises(TriggerExistsError):
            creator.execute()

    def test_lenient_rerun_executes_nothing(self, fake_db):
        creator = AuditTableCreator("t", fake_db)
        creator.execute()
        executed = list(fake_db.executed)
        assert creator.execute().count == 0
        assert fake_db.executed == executed
