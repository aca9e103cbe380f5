import json
import signal

from text_to_wordbook import cli
from text_to_wordbook.domain import results


def _write_settings(tmp_path, **values):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(values), encoding="utf-8")
    return str(path)


def test_add_prints_result_and_restores_handler(monkeypatch, tmp_path, capsys):
    settings = _write_settings(tmp_path, dict_type=1, authorization="COOKIE=abc")
    seen = {}

    def fake_translate(query, options):
        seen["text"] = query.text
        seen["authorization"] = options.authorization
        seen["handler"] = signal.getsignal(signal.SIGINT)
        return results.result_payload("Word added: ephemeral")

    monkeypatch.setattr(cli, "translate", fake_translate)
    monkeypatch.setattr(cli, "setup_logging", lambda verbose: None)
    previous = signal.getsignal(signal.SIGINT)

    code = cli.main(["--settings", settings, "add", "ephemeral"])

    assert code == 0
    assert seen["text"] == "ephemeral"
    assert seen["authorization"] == "COOKIE=abc"
    assert seen["handler"] is not previous
    assert signal.getsignal(signal.SIGINT) is previous
    assert "Word added: ephemeral" in capsys.readouterr().out


def test_add_error_exit_code(monkeypatch, tmp_path):
    settings = _write_settings(tmp_path)
    monkeypatch.setattr(cli, "translate", lambda query, options: results.error_payload("nope"))
    monkeypatch.setattr(cli, "setup_logging", lambda verbose: None)

    assert cli.main(["--settings", settings, "add", "hello"]) == 1


def test_missing_settings_file(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "setup_logging", lambda verbose: None)
    assert cli.main(["--settings", str(tmp_path / "absent.json"), "validate"]) == 2


def test_validate(monkeypatch, tmp_path):
    settings = _write_settings(tmp_path, dict_type=3, authorization="tok")
    monkeypatch.setattr(cli, "setup_logging", lambda verbose: None)
    monkeypatch.setattr(cli, "validate_options", lambda options: {"result": True})

    assert cli.main(["--settings", settings, "validate"]) == 0
