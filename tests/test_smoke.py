from __future__ import annotations

from admin_core.smoke import run_smoke


def test_smoke_run_completes(caplog):
    caplog.set_level("INFO")
    assert run_smoke([]) == 0
    assert any("Created disc question" in rec.getMessage() for rec in caplog.records)
