from task_api.container import build_services
from task_api.repositories import InMemoryTaskRepository
from task_api.settings import get_settings


def test_defaults(monkeypatch):
    for name in [
        "PERSISTENCE_BACKEND",
        "SQLITE_DB_PATH",
        "CORS_ALLOW_ORIGINS",
        "JWT_ALGORITHM",
        "ACCESS_TOKEN_EXPIRE_MINUTES",
        "BCRYPT_ROUNDS",
        "LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)

    s = get_settings()
    assert s.persistence_backend == "memory"
    assert s.cors_allow_origins == ["*"]
    assert s.jwt_algorithm == "HS256"
    assert s.access_token_expire_minutes == 1440
    assert s.bcrypt_rounds == 10
    assert s.log_level == "INFO"


def test_overrides_and_fallbacks(monkeypatch):
    monkeypatch.setenv("PERSISTENCE_BACKEND", "postgres")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("BCRYPT_ROUNDS", "2")
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30")
    monkeypatch.setenv("JWT_ALGORITHM", "none")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = get_settings()
    assert s.persistence_backend == "memory"
    assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
    assert s.bcrypt_rounds == 10
    assert s.access_token_expire_minutes == 30
    assert s.jwt_algorithm == "HS256"
    assert s.log_level == "DEBUG"


def test_sqlite_backend_from_env(monkeypatch, tmp_path):
    db_path = tmp_path / "nested" / "tasks.db"
    monkeypatch.setenv("PERSISTENCE_BACKEND", "sqlite")
    monkeypatch.setenv("SQLITE_DB_PATH", str(db_path))
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")

    services = build_services()
    user, _ = services.accounts.register("Ann", "ann@x.com", "secret1")
    services.tasks.create(user["id"], "Persisted")

    assert db_path.exists()
    # A second set of services over the same file sees the data
    again = build_services()
    tasks, pagination = again.tasks.list(user["id"])
    assert [t["title"] for t in tasks] == ["Persisted"]
    assert pagination["total"] == 1


def test_memory_backend_is_default(monkeypatch):
    monkeypatch.delenv("PERSISTENCE_BACKEND", raising=False)
    services = build_services()
    assert isinstance(services.tasks._tasks, InMemoryTaskRepository)
