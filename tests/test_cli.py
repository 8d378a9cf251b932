import json

import pytest

from conftest import write_file
from punyblog.cachebust import DEFAULT_TAGS
from punyblog.cli import build_parser, config_from_args, main
from punyblog.config import load_config


def test_build_from_json_config(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "content" / "index.md", "---\nname: World\n---\nHello {{ name }} from {{ site }}")
    write_file(
        tmp_path / "site.json",
        json.dumps({"src": "content", "dest": "public", "template_vars": {"site": "Puny"}}),
    )
    main(["--config", "site.json"])
    out = capsys.readouterr().out
    assert "Build completed in" in out
    assert (tmp_path / "public" / "index.html").read_text(encoding="utf-8") == "<p>Hello World from Puny</p>"


def test_command_line_overrides_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "pages" / "a.md", "a")
    write_file(tmp_path / "site.json", json.dumps({"src": "content"}))
    main(["--config", "site.json", "--src", "pages", "--dest", "out", "--no-cachebust"])
    assert (tmp_path / "out" / "a.html").exists()


def test_missing_source_exits_with_error(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        main(["--src", "nowhere"])
    assert excinfo.value.code == 1
    assert "invalid configuration" in capsys.readouterr().err


def test_render_error_exits_with_error(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    write_file(tmp_path / "src" / "bad.md", "---\n- not a mapping\n---\n")
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 1
    assert "bad.md" in capsys.readouterr().err


def test_invalid_config_file_exits(tmp_path, capsys):
    path = tmp_path / "site.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit):
        load_config(path)
    assert "Invalid JSON" in capsys.readouterr().err


def test_missing_config_file_is_empty(tmp_path):
    assert load_config(tmp_path / "absent.toml") == {}


def test_toml_config_to_site_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "site.toml"
    path.write_text(
        'src = "src"\n'
        'partials = ["templates"]\n'
        'exclude = ["draft"]\n'
        'cachebust_key = "v"\n'
        "build_workers = 3\n"
        "[cachebust_tags]\n"
        'img = "src"\n'
        'a = "href"\n',
        encoding="utf-8",
    )
    config = load_config(path)
    args = build_parser(config, str(path)).parse_args(["--config", str(path)])
    site = config_from_args(args, config)
    assert site.path_src == (tmp_path / "src").resolve()
    assert site.path_dest == (tmp_path / "dist").resolve()
    assert site.paths_partials == [(tmp_path / "templates").resolve()]
    assert site.markdown_exclude == ["draft"]
    assert site.cachebust_key == "v"
    assert site.cachebust_tags == {"img": "src", "a": "href"}
    assert site.build_workers == 3
    assert site.cachebust_options(tmp_path).key == "v"


def test_yaml_config_defaults(tmp_path):
    path = tmp_path / "site.yaml"
    path.write_text("clean: yes\n", encoding="utf-8")
    config = load_config(path)
    args = build_parser(config, str(path)).parse_args([])
    site = config_from_args(args, config)
    assert site.clean is True
    assert site.cachebust is True
    assert site.cachebust_tags == DEFAULT_TAGS
