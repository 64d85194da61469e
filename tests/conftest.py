import sys
from pathlib import Path

import pytest

BACKEND = Path(__file__).resolve().parents[1] / "backend"
backend_str = str(BACKEND)
if backend_str not in sys.path:
    sys.path.insert(0, backend_str)

UPSTREAM_ENV = (
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "JIRA_BASE_URL",
    "JIRA_PROJECT_KEY",
    "JIRA_EMAIL",
    "JIRA_API_TOKEN",
)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Per-test config dir and no upstream credentials, so streams use canned replies."""
    from services.config_manager import ConfigManager

    monkeypatch.setenv("WORKFLOW_STUDIO_CONFIG_DIR", str(tmp_path / "config"))
    for name in UPSTREAM_ENV:
        monkeypatch.delenv(name, raising=False)
    ConfigManager.reset_instance()
    yield
    ConfigManager.reset_instance()


@pytest.fixture(autouse=True)
def _reset_sse_app_status():
    """sse-starlette keeps a module-level exit event bound to the first event loop."""
    import sse_starlette.sse as sse

    app_status = getattr(sse, "AppStatus", None)
    if app_status is not None and hasattr(app_status, "should_exit_event"):
        app_status.should_exit_event = None
    yield
