import pytest

from leadgen.cli import build_parser, main


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "cli.db"
    monkeypatch.delenv("LEADGEN_CONFIG", raising=False)
    monkeypatch.setenv("LEADGEN_DB_PATH", str(path))
    return path


def test_generate_arguments():
    args = build_parser().parse_args([
        "generate", "--location", "Austin", "--count", "3", "--exclude", "Acme", "--exclude", "Bravo",
    ])

    assert args.location == "Austin"
    assert args.count == 3
    assert args.exclude == ["Acme", "Bravo"]
    assert args.growth_stage == "Any"


def test_import_export_and_clear(db_path, tmp_path):
    source = tmp_path / "in.csv"
    source.write_text("Business Name,Website\nAcme,https://acme.com\nBravo,https://bravo.com\n", encoding="utf-8")
    target = tmp_path / "out.csv"

    assert main(["import", str(source)]) == 0
    assert main(["saved"]) == 0
    assert main(["export", str(target)]) == 0
    exported = target.read_text(encoding="utf-8")
    assert "https://acme.com" in exported
    assert "https://bravo.com" in exported

    assert main(["clear", "--yes"]) == 0
    assert main(["export", str(target)]) == 0
    assert "acme" not in target.read_text(encoding="utf-8")


def test_import_errors_are_reported_not_raised(db_path, tmp_path):
    source = tmp_path / "empty.csv"
    source.write_text("", encoding="utf-8")

    assert main(["import", str(source)]) == 1
