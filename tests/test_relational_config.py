from datetime import timedelta

import pytest
from pydantic import ValidationError

from multitool.core.db.relational import RelationalDBConfig
from multitool.core.errors import ConfigurationError


class TestRelationalDBConfig:
    def test_valid_config_passes_check(self, db_kwargs):
        RelationalDBConfig(**db_kwargs).check()

    def test_min_idle_greater_than_max_open(self, db_kwargs):
        db_kwargs.update(max_open_cons=2, min_idle_cons=3)

        with pytest.raises(ConfigurationError) as exc_info:
            RelationalDBConfig(**db_kwargs).check()

        assert "min_idle_cons" in str(exc_info.value)

    def test_min_idle_equal_to_max_open(self, db_kwargs):
        db_kwargs.update(max_open_cons=3, min_idle_cons=3)

        RelationalDBConfig(**db_kwargs).check()

    def test_zero_max_open(self, db_kwargs):
        db_kwargs.update(max_open_cons=0, min_idle_cons=0)

        with pytest.raises(ConfigurationError):
            RelationalDBConfig(**db_kwargs).check()

    @pytest.mark.parametrize("field", ["max_open_cons", "min_idle_cons"])
    def test_negative_counts_rejected(self, db_kwargs, field):
        db_kwargs[field] = -1

        with pytest.raises(ValidationError):
            RelationalDBConfig(**db_kwargs)

    @pytest.mark.parametrize("field", ["host", "password", "idle_timeout"])
    def test_required_fields(self, db_kwargs, field):
        db_kwargs.pop(field)

        with pytest.raises(ValidationError):
            RelationalDBConfig(**db_kwargs)

    def test_unknown_field_is_rejected(self, db_kwargs):
        with pytest.raises(ValidationError):
            RelationalDBConfig(**db_kwargs, max_connections=5)

    def test_serde_durations(self, db_kwargs):
        db_kwargs.update(
            conn_max_lifetime={"secs": 900, "nanos": 0},
            connection_timeout={"secs": 15, "nanos": 0},
            idle_timeout={"secs": 3600, "nanos": 0},
        )

        config = RelationalDBConfig(**db_kwargs)

        assert config.conn_max_lifetime == timedelta(minutes=15)
        assert config.connection_timeout == timedelta(seconds=15)
        assert config.idle_timeout == timedelta(hours=1)

    def test_url(self, db_kwargs):
        db_kwargs.update(username="app", password="p@ss/word", host="db.internal", port=6432, database="orders")

        url = RelationalDBConfig(**db_kwargs).url()

        assert url.drivername == "postgresql+asyncpg"
        assert url.username == "app"
        assert url.password == "p@ss/word"
        assert url.host == "db.internal"
        assert url.port == 6432
        assert url.database == "orders"
        assert "p@ss/word" not in url.render_as_string(hide_password=True)

    def test_password_hidden_from_repr(self, db_kwargs):
        assert "password='password'" not in repr(RelationalDBConfig(**db_kwargs))

    def test_echo_defaults_to_false(self, db_kwargs):
        assert RelationalDBConfig(**db_kwargs).echo is False
