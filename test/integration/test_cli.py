import json

import pytest

from skola_media.core.messages import FAILURE_MESSAGES
from skola_media.presentation import cli


@pytest.fixture
def cli_bundle(monkeypatch, fake_adapters):
    monkeypatch.setattr(cli, "get_media_adapter_bundle", lambda scratch_dir=None: fake_adapters)
    monkeypatch.setattr(cli, "configure_logging", lambda level=None: None)
    return fake_adapters


@pytest.mark.integration
def test_upload_command_prints_result(cli_bundle, tmp_path, capsys):
    photo = tmp_path / "a.jpg"
    photo.write_bytes(b"jpeg")

    code = cli.main(["upload", "rec1", str(photo), "--content-type", "image/jpeg", "--thumbnail"])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["original"]["storage_key"] == "rec1"
    assert out["thumbnail"]["storage_key"] == "resized-rec1"


@pytest.mark.integration
def test_url_command(cli_bundle, capsys):
    code = cli.main(["url", "rec1", "--prefer-thumbnail"])
    assert code == 0
    assert json.loads(capsys.readouterr().out)["url"] == "https://cdn.test/resized-rec1?sig=1"


@pytest.mark.integration
def test_failure_prints_actionable_message(cli_bundle, tmp_path, capsys):
    code = cli.main(
        ["upload", "rec1", str(tmp_path / "missing.jpg"), "--content-type", "image/jpeg"]
    )
    assert code == 1
    out = json.loads(capsys.readouterr().out)
    assert out["code"] == "FILE_ACCESS_ERROR"
    assert out["error"].startswith("El archivo no fue encontrado")


@pytest.mark.integration
def test_invalid_input_prints_message_not_traceback(cli_bundle, tmp_path, capsys):
    photo = tmp_path / "a.jpg"
    photo.write_bytes(b"jpeg")

    code = cli.main(["upload", "rec1", str(photo), "--content-type", " "])

    assert code == 1
    out = json.loads(capsys.readouterr().out)
    assert out["code"] is None
    assert out["error"] == FAILURE_MESSAGES["generic"]
    assert cli_bundle.storage.calls == []


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])
