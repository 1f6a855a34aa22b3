import json

from form_alter_events.config import Settings
from form_alter_events.logging_config import configure_logging, get_logger


def test_json_logs_to_file(tmp_path):
    log_file = tmp_path / "logs" / "form_alter.log"
    configure_logging(Settings(log_level="DEBUG", json_logs=True, log_file=log_file))

    get_logger("tests.logging").info("form_alter_dispatched", form_id="user_form")

    lines = log_file.read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["event"] == "form_alter_dispatched"
    assert record["form_id"] == "user_form"
    assert record["level"] == "info"


def test_log_file_from_environment(tmp_path):
    settings = Settings.from_env({"FORM_ALTER_EVENTS_LOG_FILE": str(tmp_path / "x.log")})
    assert settings.log_file == tmp_path / "x.log"
    assert Settings.from_env({}).log_file is None


def test_console_logging_with_defaults():
    configure_logging(Settings())
    get_logger("tests.logging").debug("ignored_at_info")
