from __future__ import annotations

import logging
from pathlib import Path

import pytest

from translation_import.agents.importer import build_parser, main
from translation_import.core.config import ImportSettings
from translation_import.integrations.filesystem import LocalFilesystem


@pytest.fixture()
def export_file(tmp_path: Path) -> Path:
    path = tmp_path / "export.csv"
    path.write_text(
        "Bundle\tDomain\tKey\ten\tfr\n"
        "ShopBundle\tmessages\tcart.title\tCart\tPanier\n"
        "app\tmessages\tmenu.open\tOpen\tOuvrir\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ImportSettings:
    configured = ImportSettings(APP_TRANSLATIONS_PATH=str(tmp_path / "translations"))
    monkeypatch.setattr("translation_import.agents.importer.get_settings", lambda: configured)
    return configured


def run_cli(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return int(exc.value.code or 0)


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["en", "export.csv"])

    assert args.domains == "all"
    assert args.bundles == "all"
    assert args.force is False
    assert args.merge is False
    assert args.bundle == []


def test_main_reports_updated_files_once(
    tmp_path: Path, export_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    shop = tmp_path / "src" / "ShopBundle"
    argv = ["en,fr", str(export_file), "--bundle", f"ShopBundle={shop}"]

    assert run_cli(argv) == 0
    lines = capsys.readouterr().out.splitlines()

    shop_dir = shop / "Resources" / "translations"
    assert lines == [
        f"{shop_dir / 'messages.en.yml'} updated",
        f"{shop_dir / 'messages.fr.yml'} updated",
        f"{tmp_path / 'translations' / 'messages.en.yml'} updated",
        f"{tmp_path / 'translations' / 'messages.fr.yml'} updated",
    ]
    assert (shop_dir / "messages.fr.yml").read_text(encoding="utf-8") == "cart:\n  title: Panier\n"

    assert run_cli(argv) == 0
    assert capsys.readouterr().out == ""


def test_main_bundle_filter_limits_import(
    tmp_path: Path, export_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert run_cli(["en", str(export_file), "--bundles", "app"]) == 0

    out = capsys.readouterr().out
    assert "messages.en.yml updated" in out
    assert not (tmp_path / "src").exists()


def test_main_unknown_bundle_exits_with_configuration_error(
    tmp_path: Path, export_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert run_cli(["en", str(export_file)]) == 2
    assert capsys.readouterr().out == ""
    assert not (tmp_path / "translations").exists()


def test_main_rejects_malformed_filters(export_file: Path) -> None:
    assert run_cli(["en,,fr", str(export_file)]) == 2


def test_main_dry_run_does_not_write(
    tmp_path: Path, export_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert run_cli(["en", str(export_file), "--bundles", "app", "--dry-run"]) == 0

    assert "messages.en.yml updated" in capsys.readouterr().out
    assert not (tmp_path / "translations").exists()


def test_main_reports_updates_on_stdout_only(
    export_file: Path, capsys: pytest.CaptureFixture[str], caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO)

    assert run_cli(["en", str(export_file), "--bundles", "app"]) == 0

    assert capsys.readouterr().out.count("updated") == 1
    assert [
        record.getMessage()
        for record in caplog.records
        if record.levelno >= logging.INFO and record.getMessage().endswith(" updated")
    ] == []


def test_main_undecodable_source_exits_with_configuration_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    export = tmp_path / "export.csv"
    export.write_bytes(b"Bundle\tDomain\tKey\ten\napp\tmessages\tk\t\xff\xfe\n")

    assert run_cli(["en", str(export)]) == 2
    assert capsys.readouterr().out == ""
    assert not (tmp_path / "translations").exists()


def test_main_unreadable_existing_document_aborts_before_writing(
    tmp_path: Path,
    export_file: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    translations = tmp_path / "translations"
    translations.mkdir()
    (translations / "messages.en.yml").write_text("legacy: Legacy\n", encoding="utf-8")

    def deny(self: LocalFilesystem, path: Path) -> bytes:
        raise PermissionError(f"permission denied: {path}")

    monkeypatch.setattr(LocalFilesystem, "read", deny)

    assert run_cli(["en,fr", str(export_file), "--bundles", "app"]) == 1
    assert capsys.readouterr().out == ""
    assert sorted(path.name for path in translations.iterdir()) == ["messages.en.yml"]
