from __future__ import annotations

from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

APP_PATH = Path(__file__).resolve().parents[1] / "parish_office_app.py"


def _build_app(tmp_path, monkeypatch, user_id: str, page: str) -> AppTest:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("PARISH_CACHE_PATH", str(tmp_path / "cache.db"))
    # Nothing listens on the discard port, so every request fails fast.
    monkeypatch.setenv("PARISH_API_URL", "http://127.0.0.1:9/api")
    monkeypatch.setenv("PARISH_API_TIMEOUT", "1")

    app = AppTest.from_file(str(APP_PATH), default_timeout=30)
    app.session_state["acting_role"] = "user"
    app.session_state["acting_user_id"] = user_id
    app.session_state["page-user"] = page
    return app


@pytest.mark.parametrize("page", ["Dashboard", "My Payments", "Notifications"])
def test_non_numeric_user_id_warns_instead_of_crashing(tmp_path, monkeypatch, page) -> None:  # type: ignore[no-untyped-def]
    app = _build_app(tmp_path, monkeypatch, "abc", page)

    app.run()

    assert not app.exception
    assert any("User ID" in warning.value for warning in app.sidebar.warning)


def test_valid_user_id_has_no_warning(tmp_path, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    app = _build_app(tmp_path, monkeypatch, " 12 ", "My Payments")

    app.run()

    assert not app.exception
    assert not app.sidebar.warning
