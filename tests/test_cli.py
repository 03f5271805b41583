"""
tests/test_cli.py

End-to-end CLI behaviour through click's CliRunner. Each invocation
rebuilds the engine from the journal on disk, exactly as separate
processes would.
"""

import json

import pytest
from click.testing import CliRunner

from confidentialcast.cli import cli
from confidentialcast.core.time import DAY_SECONDS, SystemClock

from conftest import ALICE, BOB, OWNER, START_PERIOD


@pytest.fixture
def now(monkeypatch):
    """Pin SystemClock to a settable time, starting inside START_PERIOD."""
    state = {"now": START_PERIOD * DAY_SECONDS + 3600}
    monkeypatch.setattr(SystemClock, "now", lambda self: state["now"])
    return state


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "engine.yaml"


@pytest.fixture
def run(config_file):
    runner = CliRunner()

    def _run(*args):
        return runner.invoke(cli, ["--config", str(config_file), *args])
    return _run


@pytest.fixture
def engine(run, now):
    result = run("init", "--owner", OWNER)
    assert result.exit_code == 0, result.output
    return run


def as_json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestInit:

    def test_init_writes_config_and_keys(self, engine, config_file):
        state_dir = config_file.parent / ".confidentialcast"
        assert config_file.exists()
        assert (state_dir / "journal.jsonl").exists()
        assert (state_dir / "journal.key").exists()
        assert (state_dir / "capability.key").exists()

    def test_init_reports_proof_key(self, run, now):
        data = as_json(run("init", "--owner", OWNER, "--json"))
        assert len(data["proof_key"]) == 64
        int(data["proof_key"], 16)

    def test_init_twice_is_an_error(self, engine):
        assert engine("init", "--owner", OWNER).exit_code == 2

    def test_init_null_owner_is_an_error(self, run, now):
        assert run("init", "--owner", "0x" + "00" * 20).exit_code == 2

    def test_missing_config_is_an_error(self, run, now):
        assert run("period").exit_code == 2


class TestQueries:

    def test_period(self, engine):
        data = as_json(engine("period", "--json"))
        assert data["period"] == START_PERIOD
        assert data["period_length"] == DAY_SECONDS

    def test_latest_before_any_reference(self, engine):
        data = as_json(engine("latest", "--json"))
        assert data == {"period": 0, "value": "0", "recorded_at": None}

    def test_reference_not_recorded(self, engine):
        data = as_json(engine("reference", str(START_PERIOD), "--json"))
        assert data == {"period": START_PERIOD, "exists": False, "value": "0", "recorded_at": 0}

    def test_forecast_absent(self, engine):
        data = as_json(engine("forecast", ALICE, str(START_PERIOD), "--json"))
        assert data["exists"] is False
        assert data["stake"] == "0"

    def test_decrypt_with_nothing_to_decrypt(self, engine):
        assert as_json(engine("decrypt-points", "--account", ALICE, "--json"))["points"] is None
        assert as_json(engine("decrypt-result", "--account", ALICE, "--json"))["won"] is None


class TestTransactions:

    def test_record_reference(self, engine):
        data = as_json(engine("record-reference", "64000", "--account", OWNER, "--json"))
        assert data["event"] == "ReferenceRecorded"
        assert data["value"] == "64000"

        latest = as_json(engine("latest", "--json"))
        assert latest["period"] == START_PERIOD
        assert latest["value"] == "64000"

        reference = as_json(engine("reference", str(START_PERIOD), "--json"))
        assert reference["exists"] is True
        assert reference["value"] == "64000"

    def test_non_owner_record_is_rejected(self, engine):
        result = engine("record-reference", "64000", "--account", ALICE)
        assert result.exit_code == 1

    def test_zero_reference_is_rejected(self, engine):
        assert engine("record-reference", "0", "--account", OWNER).exit_code == 1

    def test_submit_and_inspect(self, engine):
        data = as_json(engine("submit", "63000", "above", "0.05", "--account", ALICE, "--json"))
        assert data["event"] == "ForecastSubmitted"
        assert data["stake"] == "50000000000000000"

        forecast = as_json(engine("forecast", ALICE, str(START_PERIOD), "--json"))
        assert forecast["exists"] is True
        assert forecast["stake"] == "0.05"
        assert forecast["settled"] is False

    def test_duplicate_submit_is_rejected(self, engine):
        engine("submit", "63000", "above", "0.05", "--account", ALICE)
        assert engine("submit", "63000", "below", "0.05", "--account", ALICE).exit_code == 1

    def test_zero_stake_is_rejected(self, engine):
        assert engine("submit", "63000", "above", "0", "--account", ALICE).exit_code == 1

    def test_bad_direction_is_a_usage_error(self, engine):
        assert engine("submit", "63000", "sideways", "0.05", "--account", ALICE).exit_code == 2

    def test_bad_stake_is_a_usage_error(self, engine):
        assert engine("submit", "63000", "above", "lots", "--account", ALICE).exit_code == 2

    def test_confirm_too_early_is_rejected(self, engine):
        engine("submit", "63000", "above", "0.05", "--account", ALICE)
        assert engine("confirm", str(START_PERIOD), "--account", ALICE).exit_code == 1

    def test_transfer_ownership(self, engine):
        as_json(engine("transfer-ownership", BOB, "--account", OWNER, "--json"))
        assert engine("record-reference", "64000", "--account", OWNER).exit_code == 1
        assert engine("record-reference", "64000", "--account", BOB).exit_code == 0


class TestFullRound:

    def test_win_is_credited_and_decryptable(self, engine, now):
        engine("record-reference", "64000", "--account", OWNER)
        engine("submit", "63000", "above", "0.05", "--account", ALICE)
        engine("submit", "63000", "below", "0.05", "--account", BOB)

        now["now"] += DAY_SECONDS
        assert engine("confirm", str(START_PERIOD), "--account", ALICE).exit_code == 0
        assert engine("confirm", str(START_PERIOD), "--account", BOB).exit_code == 0
        assert engine("confirm", str(START_PERIOD), "--account", ALICE).exit_code == 1

        alice = as_json(engine("decrypt-points", "--account", ALICE, "--json"))
        bob   = as_json(engine("decrypt-points", "--account", BOB, "--json"))
        assert alice["points"] == "0.05"
        assert bob["points"] == "0"
        assert as_json(engine("decrypt-result", "--account", ALICE, "--json"))["won"] is True
        assert as_json(engine("decrypt-result", "--account", BOB, "--json"))["won"] is False


class TestVerify:

    def test_clean_journal(self, engine):
        engine("record-reference", "64000", "--account", OWNER)
        result = engine("verify", "--format", "json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["valid"] is True
        assert data["total_entries"] == 2

    def test_tampered_journal(self, engine, config_file):
        engine("record-reference", "64000", "--account", OWNER)
        journal = config_file.parent / ".confidentialcast" / "journal.jsonl"
        journal.write_text(
            journal.read_text(encoding="utf-8").replace('"64000"', '"99999"'),
            encoding="utf-8",
        )

        assert engine("verify", "--quiet").exit_code == 1
        assert engine("latest").exit_code == 2


class TestDecryptForecast:

    def test_forecaster_decrypts_own_forecast(self, engine):
        engine("submit", "63000", "above", "0.05", "--account", ALICE)
        data = as_json(engine(
            "decrypt-forecast", ALICE, str(START_PERIOD), "--account", ALICE, "--json",
        ))
        assert data == {
            "account":   ALICE,
            "period":    START_PERIOD,
            "target":    "63000",
            "direction": "above",
        }

    def test_unrecognized_direction_code_is_unknown(self, engine):
        engine("submit", "63000", "7", "0.05", "--account", BOB)
        data = as_json(engine("decrypt-forecast", BOB, str(START_PERIOD), "--account", BOB, "--json"))
        assert data["direction"] == "unknown"

    def test_other_account_is_rejected(self, engine):
        engine("submit", "63000", "below", "0.05", "--account", ALICE)
        result = engine("decrypt-forecast", ALICE, str(START_PERIOD), "--account", BOB)
        assert result.exit_code == 1

    def test_nothing_to_decrypt(self, engine):
        data = as_json(engine(
            "decrypt-forecast", ALICE, str(START_PERIOD), "--account", ALICE, "--json",
        ))
        assert data["target"] is None
        assert data["direction"] is None


class TestAccountCasing:

    def test_mixed_case_account_settles_and_decrypts(self, engine, now):
        mixed = "0xABCDEF0000000000000000000000000000000002"
        engine("record-reference", "64000", "--account", OWNER)
        assert engine("submit", "63000", "above", "0.05", "--account", mixed).exit_code == 0

        now["now"] += DAY_SECONDS
        assert engine("confirm", str(START_PERIOD), "--account", mixed.lower()).exit_code == 0
        points = as_json(engine("decrypt-points", "--account", "0xabcdef0000000000000000000000000000000002", "--json"))
        assert points["points"] == "0.05"
