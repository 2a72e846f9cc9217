import pytest


_PROVIDER_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_API_BASE",
    "OPENAI_API_KEY",
    "OPENAI_API_BASE",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_API_BASE",
    "OLLAMA_API_BASE",
)


@pytest.fixture(autouse=True)
def isolate_user_environment(tmp_path, monkeypatch):
    """Point the home directory at a temporary one and drop provider keys.

    The global config file, the template directory and the pricing cache
    all live below the home directory; tests must never see or touch the
    real ones. Provider credentials from the developer's shell would
    otherwise leak into the settings the tests build.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for name in _PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield home
