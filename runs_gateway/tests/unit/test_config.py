"""Unit tests for gateway configuration."""

from runs_gateway.config import GatewayConfig, Settings, ensure_webhook_secret


def env_defaults(**overrides) -> Settings:
    values = {"smtp_host": "smtp.env.example.com", "from_name": "Env Runs"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestGatewayConfig:
    """Tests for GatewayConfig.load."""

    def test_stored_values_override_environment(self, make_store):
        store = make_store({"smtp_host": "smtp.stored.example.com"})

        config = GatewayConfig.load(store, defaults=env_defaults())

        assert config.smtp_host == "smtp.stored.example.com"
        assert config.from_name == "Env Runs"

    def test_unknown_stored_keys_ignored(self, make_store):
        store = make_store({"legacy_key": "x"})

        config = GatewayConfig.load(store, defaults=env_defaults())

        assert not hasattr(config, "legacy_key")

    def test_blank_port_uses_default(self, make_store):
        store = make_store({"smtp_port": ""})

        config = GatewayConfig.load(store, defaults=env_defaults(smtp_port=587))

        assert config.smtp_port == 587

    def test_stored_port_parsed(self, make_store):
        config = GatewayConfig.load(make_store({"smtp_port": "587"}), defaults=env_defaults())

        assert config.smtp_port == 587

    def test_authorised_senders(self):
        config = GatewayConfig(authorised_emails=" GM@example.com \n\nhare@example.com\r\n")

        assert config.authorised_senders == {"gm@example.com", "hare@example.com"}
        assert config.is_authorised("Hare@Example.com")
        assert not config.is_authorised("eve@example.com")

    def test_empty_allow_list_authorises_nobody(self):
        assert not GatewayConfig().is_authorised("gm@example.com")

    def test_sender_address_falls_back_to_smtp_user(self):
        assert GatewayConfig(smtp_user="user@example.com").sender_address == "user@example.com"
        assert GatewayConfig(smtp_user="user@example.com", from_email="runs@example.com").sender_address == (
            "runs@example.com"
        )


class TestWebhookSecret:
    def test_generated_when_blank(self, make_store):
        store = make_store({"webhook_secret": ""})

        secret = ensure_webhook_secret(store)

        assert len(secret) >= 24
        assert store.values["webhook_secret"] == secret
        assert ensure_webhook_secret(store) == secret

    def test_existing_secret_kept(self, make_store):
        store = make_store({"webhook_secret": "already-set"})

        assert ensure_webhook_secret(store) == "already-set"
        assert store.values == {"webhook_secret": "already-set"}
