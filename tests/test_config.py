import importlib
import sys

import pytest


def reload_config(monkeypatch, env=None):
    keys = [
        "FLASK_SECRET_KEY",
        "FLASK_ENV",
        "PORT",
        "CORS_ORIGINS",
        "LOG_LEVEL",
        "TARGET_CHUNK_SIZE",
        "MAX_CHUNK_SIZE",
        "OVERLAP_SIZE",
        "MIN_CHUNK_SIZE",
        "OUTPUT_DIR",
        "IMAGE_SOURCE_DIR",
        "SOURCE_DOCUMENT_NAME",
        "GITHUB_TOKEN",
        "GITHUB_REPO",
        "GITHUB_BRANCH",
        "GITHUB_API_URL",
        "REQUEST_TIMEOUT",
    ]
    for k in keys:
        monkeypatch.delenv(k, raising=False)
    env = env or {}
    for k, v in env.items():
        monkeypatch.setenv(k, str(v))

    # Mock load_dotenv so it doesn't read the .env file and override our monkeypatch
    import dotenv
    monkeypatch.setattr(dotenv, "load_dotenv", lambda **kwargs: None)

    sys.modules.pop("semantic_chunker.config", None)
    import semantic_chunker.config as config_module
    importlib.reload(config_module)
    return config_module


def test_config_defaults(monkeypatch):
    module = reload_config(monkeypatch)
    cfg = module.Config
    assert cfg.FLASK_ENV == "production"
    assert cfg.PORT == 5000
    assert isinstance(cfg.CORS_ORIGINS, list)
    assert (cfg.TARGET_CHUNK_SIZE, cfg.MAX_CHUNK_SIZE, cfg.OVERLAP_SIZE, cfg.MIN_CHUNK_SIZE) == (800, 1200, 150, 300)
    assert cfg.OUTPUT_DIR == "semantic_output"
    assert cfg.GITHUB_BRANCH == "main"
    assert cfg.REQUEST_TIMEOUT == 15
    assert cfg.github_configured() is False


def test_config_custom_env(monkeypatch):
    env = {
        "FLASK_SECRET_KEY": "secret",
        "PORT": "7000",
        "CORS_ORIGINS": "http://a.com, http://b.com",
        "LOG_LEVEL": "debug",
        "TARGET_CHUNK_SIZE": "500",
        "MAX_CHUNK_SIZE": "700",
        "OVERLAP_SIZE": "80",
        "MIN_CHUNK_SIZE": "200",
        "GITHUB_TOKEN": "ghp_abcdef",
        "GITHUB_REPO": "acme/sop-data",
    }
    cfg = reload_config(monkeypatch, env).Config
    assert cfg.PORT == 7000
    assert cfg.CORS_ORIGINS == ["http://a.com", "http://b.com"]
    assert cfg.LOG_LEVEL == "DEBUG"
    assert (cfg.TARGET_CHUNK_SIZE, cfg.MAX_CHUNK_SIZE, cfg.OVERLAP_SIZE, cfg.MIN_CHUNK_SIZE) == (500, 700, 80, 200)
    assert cfg.github_configured() is True
    assert "ghp_abcdef" not in repr(cfg())


@pytest.mark.parametrize(
    "env",
    [
        {"FLASK_SECRET_KEY": ""},
        {"GITHUB_REPO": "no-slash"},
        {"TARGET_CHUNK_SIZE": "1500"},
        {"OVERLAP_SIZE": "900"},
    ],
)
def test_config_validation_errors(monkeypatch, env):
    with pytest.raises(ValueError):
        reload_config(monkeypatch, env)
