from dataclasses import replace

from agora_callables.api.callables import EXTENSION_KEY
from agora_callables.flask_app import create_app


def test_create_app_registers_callables(app_config, services):
    app = create_app(app_config, services)

    rules = {rule.rule for rule in app.url_map.iter_rules()}
    for name in ("generateAgoraChatToken", "testAuth", "addAgoraUser", "addUser", "getRtcToken"):
        assert f"/{name}" in rules
    assert "/health" in rules
    assert "/ready" in rules
    assert app.config["APP_CONFIG"] is app_config
    assert app.extensions[EXTENSION_KEY] is services


def test_create_app_builds_services_when_omitted(app_config):
    app = create_app(app_config)

    services = app.extensions[EXTENSION_KEY]
    assert services.config is app_config
    assert services.chat_client.base_url == "https://chat.example.test"
    assert services.user_store.project_id == "demo-project"


def test_create_app_warns_in_auth_emulator_mode(app_config, services, caplog):
    cfg = replace(app_config, auth_emulator_host="localhost:9099")

    with caplog.at_level("WARNING", logger="agora_callables.flask_app"):
        create_app(cfg, services)

    assert "NOT verified" in caplog.text
