from puppymatch import config


def test_api_url_default(monkeypatch):
    monkeypatch.delenv("PUPPYMATCH_API_URL", raising=False)
    assert config.get_api_url() == "https://frontend-take-home-service.fetch.com"


def test_api_url_env_override_strips_slash(monkeypatch):
    monkeypatch.setenv("PUPPYMATCH_API_URL", "http://localhost:8080/")
    assert config.get_api_url() == "http://localhost:8080"


def test_cache_dir(monkeypatch):
    monkeypatch.delenv("PUPPYMATCH_CACHE_DIR", raising=False)
    assert config.get_cache_dir() == "./data/cache/puppymatch"
    monkeypatch.setenv("PUPPYMATCH_CACHE_DIR", "/tmp/pm")
    assert config.get_cache_dir() == "/tmp/pm"


def test_numeric_settings_fall_back_on_bad_values(monkeypatch):
    monkeypatch.setenv("PUPPYMATCH_CACHE_TTL", "120")
    assert config.get_cache_ttl() == 120
    monkeypatch.setenv("PUPPYMATCH_CACHE_TTL", "soon")
    assert config.get_cache_ttl() == config.SEARCH_CACHE_TTL_SECONDS
    monkeypatch.setenv("PUPPYMATCH_MAX_RETRIES", "-4")
    assert config.get_max_retries() == config.MAX_RETRIES
    monkeypatch.delenv("PUPPYMATCH_MAX_RETRIES")
    assert config.get_max_retries() == 3
