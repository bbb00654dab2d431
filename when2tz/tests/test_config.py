"""Tests for centralized configuration module."""

import os
from unittest.mock import patch

import pytest


class TestStoreSettings:
    """Test schedule store configuration."""

    def test_store_default_values(self):
        """Test store settings default to the JSON file backend."""
        from when2tz.config import StoreSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = StoreSettings()
            assert settings.backend == "file"
            assert settings.path == "data.json"
            assert settings.key_prefix == "when2tz:schedule:"

    def test_store_from_environment(self):
        """Test backend name is normalized."""
        from when2tz.config import StoreSettings

        env = {"STORE_BACKEND": " Redis ", "STORE_KEY_PREFIX": "w:"}
        with patch.dict(os.environ, env, clear=True):
            settings = StoreSettings()
            assert settings.backend == "redis"
            assert settings.key_prefix == "w:"

    def test_unknown_backend_rejected(self):
        """Test unsupported backends fail at load time."""
        from pydantic import ValidationError

        from when2tz.config import StoreSettings

        with patch.dict(os.environ, {"STORE_BACKEND": "sqlite"}, clear=True):
            with pytest.raises(ValidationError):
                StoreSettings()


class TestRedisSettings:
    """Test Redis configuration settings."""

    def test_redis_default_values(self):
        """Test Redis settings have sensible defaults."""
        from when2tz.config import RedisSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = RedisSettings()
            assert settings.host == "redis"
            assert settings.port == 6379
            assert settings.password == ""
            assert settings.max_connections == 50
            assert settings.pool_timeout_sec == 5.0

    def test_redis_from_environment(self):
        """Test Redis settings can be loaded from environment."""
        from when2tz.config import RedisSettings

        env = {
            "REDIS_HOST": "custom-redis",
            "REDIS_PORT": "6380",
            "REDIS_PASSWORD": "secret123",
            "REDIS_MAX_CONNECTIONS": "100",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = RedisSettings()
            assert settings.host == "custom-redis"
            assert settings.port == 6380
            assert settings.password == "secret123"
            assert settings.max_connections == 100


class TestPostgresSettings:
    """Test PostgreSQL configuration settings."""

    def test_postgres_default_values(self):
        from when2tz.config import PostgresSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = PostgresSettings()
            assert settings.host == "postgres"
            assert settings.database == "devdb"
            assert settings.pool_min_size == 1
            assert settings.pool_max_size == 10

    def test_postgres_dsn_generation(self):
        """Test DSN string generation for database connection."""
        from when2tz.config import PostgresSettings

        env = {
            "POSTGRES_HOST": "dbhost",
            "POSTGRES_PORT": "5433",
            "POSTGRES_USER": "myuser",
            "POSTGRES_PASSWORD": "mypass",
            "POSTGRES_DB": "mydb",
        }
        with patch.dict(os.environ, env, clear=True):
            dsn = PostgresSettings().get_dsn()
            assert "host=dbhost" in dsn
            assert "port=5433" in dsn
            assert "user=myuser" in dsn
            assert "password=mypass" in dsn
            assert "dbname=mydb" in dsn


class TestScheduleSettings:
    """Test schedule limits."""

    def test_schedule_defaults(self):
        from when2tz.config import ScheduleSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = ScheduleSettings()
            assert settings.max_slot_minutes == 240
            assert settings.default_slot_minutes == 30
            assert settings.default_time_zone == "UTC"
            assert settings.id_length == 10
            assert settings.max_days == 62

    def test_schedule_from_environment(self):
        from when2tz.config import ScheduleSettings

        env = {"SCHEDULE_MAX_SLOT_MINUTES": "120", "SCHEDULE_DEFAULT_TIME_ZONE": "Europe/Paris"}
        with patch.dict(os.environ, env, clear=True):
            settings = ScheduleSettings()
            assert settings.max_slot_minutes == 120
            assert settings.default_time_zone == "Europe/Paris"

    @pytest.mark.parametrize(
        "env",
        [
            {"SCHEDULE_MAX_SLOT_MINUTES": "300"},
            {"SCHEDULE_MAX_SLOT_MINUTES": "0"},
            {"SCHEDULE_DEFAULT_SLOT_MINUTES": "241"},
            {"SCHEDULE_MAX_SLOT_MINUTES": "60", "SCHEDULE_DEFAULT_SLOT_MINUTES": "90"},
        ],
    )
    def test_slot_length_limits_rejected(self, env):
        """Slot lengths stay within 1..240 whatever the environment says."""
        from pydantic import ValidationError

        from when2tz.config import ScheduleSettings

        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValidationError):
                ScheduleSettings()

    def test_max_slot_minutes_upper_bound_accepted(self):
        from when2tz.config import ScheduleSettings

        with patch.dict(os.environ, {"SCHEDULE_MAX_SLOT_MINUTES": "240"}, clear=True):
            assert ScheduleSettings().max_slot_minutes == 240


class TestCorsSettings:
    """Test CORS configuration settings."""

    def test_cors_default_values(self):
        from when2tz.config import CorsSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = CorsSettings()
            assert "http://localhost:3000" in settings.origins
            assert settings.allow_credentials is True

    def test_cors_wildcard_disables_credentials(self):
        """Test that wildcard origin disables credentials."""
        from when2tz.config import CorsSettings

        with patch.dict(os.environ, {"CORS_ORIGINS": "*"}, clear=True):
            settings = CorsSettings()
            assert settings.origins == ["*"]
            assert settings.allow_credentials is False


class TestSettings:
    """Test main Settings class that combines all settings."""

    def test_settings_singleton_pattern(self):
        """Test that get_settings returns the same instance."""
        from when2tz.config import clear_settings_cache, get_settings

        clear_settings_cache()
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self):
        from when2tz.config import clear_settings_cache, get_settings

        s1 = get_settings()
        clear_settings_cache()
        assert get_settings() is not s1

    def test_settings_has_all_subsections(self):
        from when2tz.config import Settings

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()
            for section in ("store", "redis", "postgres", "schedule", "cors", "debug"):
                assert hasattr(settings, section)

    def test_debug_settings(self):
        """Test debug flag configuration."""
        from when2tz.config import Settings

        env = {"REQUEST_DEBUG": "1", "STORE_DEBUG": "yes"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings()
            assert settings.debug.request is True
            assert settings.debug.store is True

    def test_debug_defaults_off(self):
        from when2tz.config import Settings

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()
            assert settings.debug.request is False
            assert settings.debug.store is False
