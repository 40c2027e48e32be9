from fleetpulse.config import env_int


def test_env_int_unset_uses_default(monkeypatch):
    monkeypatch.delenv("FLEETPULSE_TEST_INT", raising=False)
    assert env_int("FLEETPULSE_TEST_INT") is None
    assert env_int("FLEETPULSE_TEST_INT", 7) == 7


def test_env_int_parses_integer(monkeypatch):
    monkeypatch.setenv("FLEETPULSE_TEST_INT", " 42 ")
    assert env_int("FLEETPULSE_TEST_INT") == 42


def test_env_int_malformed_falls_back_with_warning(monkeypatch, caplog):
    monkeypatch.setenv("FLEETPULSE_TEST_INT", "forty-two")
    assert env_int("FLEETPULSE_TEST_INT", 3) == 3
    assert "FLEETPULSE_TEST_INT" in caplog.text
