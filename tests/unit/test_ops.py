"""
Clock adapters, startup validation, the dev notifier and the operator CLI.
"""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.clock import ManualClock, SystemClock
from src.adapters.dev_notifier import DevNotifierAdapter
from src.app_shell import cli
from src.app_shell.config import ConfigError, validate_ops_rules
from src.rules.models import OpsRules

# --- Clock ---


def test_system_clock_is_aware_utc():
    now = SystemClock().now_utc()

    assert now.tzinfo is not None
    assert abs((datetime.now(UTC) - now).total_seconds()) < 1.0


def test_manual_clock():
    clock = ManualClock(datetime(2026, 1, 1))

    assert clock.now_utc().tzinfo == UTC
    assert clock.advance(days=1, hours=2) == datetime(2026, 1, 2, 2, tzinfo=UTC)
    clock.set(datetime(2027, 6, 1, tzinfo=UTC))
    assert clock.now_utc().year == 2027


# --- Startup validation ---


def test_required_env_missing(rules, tmp_path, monkeypatch):
    monkeypatch.delenv("LMX_PAYMENT_KEY", raising=False)
    strict = rules.model_copy(update={"ops": OpsRules(required_env=["LMX_PAYMENT_KEY"])})

    with pytest.raises(ConfigError, match="LMX_PAYMENT_KEY"):
        validate_ops_rules(strict, tmp_path)


def test_required_env_present_creates_data_dir(rules, tmp_path, monkeypatch):
    monkeypatch.setenv("LMX_PAYMENT_KEY", "x")
    strict = rules.model_copy(update={"ops": OpsRules(required_env=["LMX_PAYMENT_KEY"])})
    data_dir = tmp_path / "nested" / "data"

    validate_ops_rules(strict, data_dir)

    assert data_dir.is_dir()


# --- Renewal reminders ---


def test_reminders_sent_once(ctx, vendor, clock):
    notifier = DevNotifierAdapter()
    clock.advance(days=360)

    sent = ctx.entitlements.send_renewal_reminders(notifier)

    assert [s.vendor_id for s in sent] == [vendor.id]
    assert notifier.reminders_for(vendor.id)[0].plan_name == "Starter"
    assert notifier.reminders_for(vendor.id)[0].days_remaining == 5
    assert ctx.entitlements.send_renewal_reminders(notifier) == []


def test_renewal_rearms_reminder(ctx, vendor, clock):
    notifier = DevNotifierAdapter()
    clock.advance(days=360)
    ctx.entitlements.send_renewal_reminders(notifier)
    sub = ctx.entitlements.get_active_subscription(vendor.id)

    ctx.entitlements.renew(sub.id)
    clock.advance(days=365)
    notifier.clear()

    assert len(ctx.entitlements.send_renewal_reminders(notifier)) == 1


# --- CLI ---


RULES_FILE = Path(__file__).resolve().parents[2] / "rules.yaml"


@pytest.fixture
def cli_args(tmp_path):
    return ["--data-dir", str(tmp_path / "cli-data"), "--rules", str(RULES_FILE)]


def test_cli_migrate(cli_args, capsys):
    cli.main([*cli_args, "migrate"])

    assert "Applied 1 migration(s)." in capsys.readouterr().out


def test_cli_expiring_on_empty_db(cli_args, capsys):
    cli.main([*cli_args, "expiring"])

    out = capsys.readouterr().out
    assert "expiring within 7 days:  0" in out


def test_cli_quota_rejects_bad_id(cli_args):
    with pytest.raises(SystemExit) as exc:
        cli.main([*cli_args, "quota", "not-a-uuid"])

    assert exc.value.code == 1


def test_cli_bad_rules_path(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main(
            ["--data-dir", str(tmp_path), "--rules", str(tmp_path / "missing.yaml"), "expiring"]
        )

    assert exc.value.code == 1


def test_cli_reminders_lists_without_marking(cli_args, capsys):
    cli.main([*cli_args, "reminders"])

    assert "0 subscription(s) due" in capsys.readouterr().out
