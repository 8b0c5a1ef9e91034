import json
from unittest.mock import patch

from app.modules.study import cli

from tests.conftest import SAMPLE_MATERIAL, FakeProvider


def test_extract_prints_text(tmp_path, capsys):
    source = tmp_path / "notes.txt"
    source.write_text("Mitosis has four phases", encoding="utf-8")

    assert cli.main(["extract", str(source)]) == 0
    assert capsys.readouterr().out.strip() == "Mitosis has four phases"


def test_extract_reports_unsupported_content(tmp_path, capsys):
    source = tmp_path / "scan.png"
    source.write_bytes(b"\x89PNG fake")

    assert cli.main(["extract", str(source)]) == 1
    assert "OCR" in capsys.readouterr().out


def test_generate_prints_material(tmp_path, capsys):
    source = tmp_path / "notes.md"
    source.write_text("Photosynthesis basics", encoding="utf-8")
    provider = FakeProvider()

    with patch.object(cli, "get_provider", return_value=provider):
        assert cli.main(["generate", str(source), "--mime-type", "text/markdown", "--model", "m"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["summary"] == SAMPLE_MATERIAL["summary"]
    assert output["quiz"][0]["correctAnswerIndex"] == 0
    assert provider.calls[0][2] == "m"
