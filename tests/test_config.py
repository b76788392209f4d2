from datetime import timedelta

import pytest

from entitle.checkout import ReplayPolicy
from entitle.config import Settings
from entitle.directory import Identity


def test_defaults() -> None:
    settings = Settings.from_env({})
    assert settings == Settings()
    assert settings.gateway_api_base == "https://api.razorpay.com"
    assert settings.database_url == "sqlite+aiosqlite:///entitle.db"
    assert settings.replay_policy is ReplayPolicy.EXTEND_FROM_NOW
    assert settings.plan_term == timedelta(days=365)
    assert settings.cors_origins == ("*",)


def test_reads_prefixed_variables() -> None:
    settings = Settings.from_env(
        {
            "ENTITLE_GATEWAY_KEY_ID": "rzp_live",
            "ENTITLE_GATEWAY_KEY_SECRET": "shh",
            "ENTITLE_PROMO_BACKEND": "REMOTE",
            "ENTITLE_AUTH_BACKEND": "static",
            "ENTITLE_STATIC_TOKENS": "t1:u1:u1@example.com, t2:u2",
            "ENTITLE_REPLAY_POLICY": "reject_consumed",
            "ENTITLE_PLAN_TERM_DAYS": "30",
            "ENTITLE_HTTP_TIMEOUT": "2.5",
            "ENTITLE_CORS_ORIGINS": "https://a.example.com, https://b.example.com",
            "ENTITLE_LOG_LEVEL": "debug",
        }
    )

    assert settings.gateway_key_id == "rzp_live"
    assert settings.promo_backend == "remote"
    assert settings.auth_backend == "static"
    assert settings.static_tokens == {
        "t1": Identity("u1", "u1@example.com"),
        "t2": Identity("u2", ""),
    }
    assert settings.replay_policy is ReplayPolicy.REJECT_CONSUMED
    assert settings.plan_term == timedelta(days=30)
    assert settings.http_timeout == 2.5
    assert settings.cors_origins == ("https://a.example.com", "https://b.example.com")
    assert settings.log_level == "DEBUG"


def test_secrets_stay_out_of_repr() -> None:
    settings = Settings(gateway_key_secret="shh", directory_service_key="service")
    assert "shh" not in repr(settings)
    assert "service" not in repr(settings)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PROMO_BACKEND", "redis"),
        ("AUTH_BACKEND", "none"),
        ("REPLAY_POLICY", "sometimes"),
        ("PLAN_TERM_DAYS", "0"),
        ("PLAN_TERM_DAYS", "a year"),
        ("HTTP_TIMEOUT", "-1"),
        ("LOG_LEVEL", "LOUD"),
        ("STATIC_TOKENS", "just-a-token"),
    ],
)
def test_invalid_values_raise(name: str, value: str) -> None:
    with pytest.raises(ValueError):
        Settings.from_env({f"ENTITLE_{name}": value})


def test_check_service() -> None:
    with pytest.raises(ValueError, match="GATEWAY_KEY_ID"):
        Settings().check_service()
    with pytest.raises(ValueError, match="DIRECTORY_URL"):
        Settings(gateway_key_id="k", gateway_key_secret="s").check_service()

    Settings(gateway_key_id="k", gateway_key_secret="s", auth_backend="static").check_service()
    Settings(
        gateway_key_id="k",
        gateway_key_secret="s",
        directory_url="https://data.example.com",
        directory_service_key="service",
    ).check_service()
