"""Tests for the command line interface."""

import re

import pytest

from coopledger.cli.main import cli
from coopledger.domain.branches import Partition
from coopledger.domain.filters import ChangeRequestFilters


def _invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


def _created_id(output):
    return re.search(r"Created transaction ([0-9a-f-]{36})", output).group(1)


def test_help_does_not_touch_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "transaction" in result.output
    assert "request" in result.output


def test_branch_list(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "branch", "list")

    assert result.exit_code == 0
    assert "Main Branch" in result.output
    assert "mataasnakahoy_transactions" in result.output


def test_user_add(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "user", "add", "jdoe", "--branch", "4", "--role", "reviewer")

    assert result.exit_code == 0
    assert "Created user 'jdoe'" in result.output


def test_user_add_unknown_branch(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "user", "add", "jdoe", "--branch", "40")

    assert result.exit_code == 1
    assert "Branch with ID 40 not found" in result.output


class TestTransactionCommands:
    def test_add_and_show(self, cli_runner, temp_db, requester):
        result = _invoke(
            cli_runner, temp_db,
            "transaction", "add",
            "--branch", "2",
            "--user", str(requester.id),
            "--date", "2024-03-15",
            "--payee", "Juan Dela Cruz",
            "--particulars", "Savings deposit",
            "--credit", "₱5,000.00",
        )
        assert result.exit_code == 0, result.output
        assert "in branch 2" in result.output

        txn_id = _created_id(result.output)
        shown = _invoke(cli_runner, temp_db, "transaction", "show", txn_id)

        assert shown.exit_code == 0
        assert "Juan Dela Cruz" in shown.output
        assert "Savings Deposits: 5,000.00" in shown.output
        assert "Partition: bauan_transactions" in shown.output

    def test_add_invalid(self, cli_runner, temp_db):
        result = _invoke(
            cli_runner, temp_db,
            "transaction", "add",
            "--branch", "2",
            "--date", "2024-03-15",
            "--payee", "X",
            "--particulars", "Y",
        )

        assert result.exit_code == 1
        assert "Either debit or credit amount must be greater than 0" in result.output

    def test_add_bad_amount(self, cli_runner, temp_db):
        result = _invoke(
            cli_runner, temp_db,
            "transaction", "add", "--branch", "2", "--date", "today",
            "--payee", "X", "--particulars", "Y", "--debit", "lots",
        )

        assert result.exit_code == 1
        assert "Invalid amount format" in result.output

    def test_show_missing(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "transaction", "show", "missing")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_list(self, cli_runner, temp_db, sample_transaction):
        result = _invoke(cli_runner, temp_db, "transaction", "list", "--branch", "2")

        assert result.exit_code == 0
        assert "Found 1 transaction(s)" in result.output
        assert sample_transaction.id in result.output

        empty = _invoke(cli_runner, temp_db, "transaction", "list", "--branch", "3")
        assert "No transactions found." in empty.output

    def test_list_requires_known_branch(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "transaction", "list", "--branch", "99")

        assert result.exit_code == 1

    def test_update(self, cli_runner, temp_db, sample_transaction):
        result = _invoke(cli_runner, temp_db, "transaction", "update", sample_transaction.id, "--payee", "Maria")

        assert result.exit_code == 0
        assert "(payee)" in result.output
        assert temp_db.get_transaction(Partition.BAUAN, sample_transaction.id).payee == "Maria"

    def test_update_nothing(self, cli_runner, temp_db, sample_transaction):
        result = _invoke(cli_runner, temp_db, "transaction", "update", sample_transaction.id)

        assert result.exit_code == 1
        assert "No fields to update" in result.output

    def test_delete_confirmed(self, cli_runner, temp_db, sample_transaction):
        result = _invoke(cli_runner, temp_db, "transaction", "delete", sample_transaction.id, input="y\n")

        assert result.exit_code == 0
        assert "Deleted transaction" in result.output
        assert temp_db.get_transaction(Partition.BAUAN, sample_transaction.id) is None

    def test_delete_cancelled(self, cli_runner, temp_db, sample_transaction):
        result = _invoke(cli_runner, temp_db, "transaction", "delete", sample_transaction.id, input="n\n")

        assert "Deletion cancelled." in result.output
        assert temp_db.get_transaction(Partition.BAUAN, sample_transaction.id) is not None

    @pytest.mark.parametrize("strategy", ["sequential", "union"])
    def test_stats_all(self, cli_runner, temp_db, sample_transaction, strategy):
        result = _invoke(cli_runner, temp_db, "--strategy", strategy, "transaction", "stats", "--all")

        assert result.exit_code == 0
        assert "5,000.00" in result.output
        assert "Total" in result.output

    def test_stats_needs_one_scope(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "transaction", "stats")

        assert result.exit_code == 1
        assert "exactly one of --branch or --all" in result.output


class TestRequestCommands:
    def _create(self, cli_runner, temp_db, txn, requester, *extra):
        return _invoke(
            cli_runner, temp_db,
            "request", "create", txn.id,
            "--user", str(requester.id),
            "--branch", "2",
            "--set", "credit_amount=7500",
            "--reason", "Wrong amount",
            *extra,
        )

    def test_create_and_approve(self, cli_runner, temp_db, sample_transaction, requester, reviewer):
        created = self._create(cli_runner, temp_db, sample_transaction, requester)
        assert created.exit_code == 0, created.output
        assert f"Notified user {reviewer.id}: New Request CR-" in created.output

        request_id = re.search(r"\(([0-9a-f-]{36})\)", created.output).group(1)
        approved = _invoke(
            cli_runner, temp_db, "request", "approve", request_id, "--reviewer", str(reviewer.id)
        )

        assert approved.exit_code == 0, approved.output
        assert "approved" in approved.output
        assert f"Notified user {requester.id}" in approved.output
        assert str(temp_db.get_transaction(Partition.BAUAN, sample_transaction.id).credit_amount) in (
            "7500", "7500.00",
        )

        again = _invoke(cli_runner, temp_db, "request", "reject", request_id, "--reviewer", str(reviewer.id))
        assert again.exit_code == 1
        assert "already been processed" in again.output

    def test_create_unassigned_warns(self, cli_runner, temp_db, sample_transaction, requester):
        created = self._create(cli_runner, temp_db, sample_transaction, requester)

        assert created.exit_code == 0
        assert "unassigned" in created.output

    def test_create_bad_assignment(self, cli_runner, temp_db, sample_transaction, requester):
        result = _invoke(
            cli_runner, temp_db,
            "request", "create", sample_transaction.id,
            "--user", str(requester.id), "--branch", "2", "--set", "payee", "--reason", "x",
        )

        assert result.exit_code == 1
        assert "Expected FIELD=VALUE" in result.output

    def test_create_branch_mismatch(self, cli_runner, temp_db, sample_transaction, requester):
        result = _invoke(
            cli_runner, temp_db,
            "request", "create", sample_transaction.id,
            "--user", str(requester.id), "--branch", "3", "--set", "payee=X", "--reason", "x",
        )

        assert result.exit_code == 1
        assert "belongs to branch 2" in result.output

    def test_list_and_show(self, cli_runner, temp_db, sample_transaction, requester, reviewer):
        self._create(cli_runner, temp_db, sample_transaction, requester)

        listed = _invoke(cli_runner, temp_db, "request", "list", "--status", "pending")
        assert listed.exit_code == 0
        assert "Showing 1 of 1" in listed.output

        [request] = temp_db.list_change_requests(ChangeRequestFilters())
        assert request.request_number in listed.output

        shown = _invoke(cli_runner, temp_db, "request", "show", request.id)
        assert shown.exit_code == 0
        assert "Status: pending" in shown.output
        assert f"Assigned to: {reviewer.id}" in shown.output
        assert '"credit_amount": "7500"' in shown.output

    def test_show_missing(self, cli_runner, temp_db):
        result = _invoke(cli_runner, temp_db, "request", "show", "missing")

        assert result.exit_code == 1
        assert "not found" in result.output
