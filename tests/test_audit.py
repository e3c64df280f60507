from site_mirror.audit import audit


def test_reports_missing_files_once(config, caplog):
    config.assets_dir.mkdir(parents=True)
    (config.assets_dir / "present.css").write_text("")
    html = (
        '<link href="./assets/present.css"><img src="./assets/gone.png">'
        '<img src="./assets/gone.png">'
    )

    dangling = audit(html, ['load("./assets/lost.js")'], config.output_root, config)

    assert dangling == ["./assets/gone.png", "./assets/lost.js"]
    assert "Referenced asset missing: ./assets/gone.png" in caplog.text


def test_manifest_at_root(config):
    config.output_root.mkdir(parents=True)
    html = '<link rel="manifest" href="./manifest.json">'
    assert audit(html, [], config.output_root, config) == ["./manifest.json"]
    (config.output_root / "manifest.json").write_text("{}")
    assert audit(html, [], config.output_root, config) == []


def test_percent_encoded_reference(config):
    config.assets_dir.mkdir(parents=True)
    (config.assets_dir / "my logo.png").write_bytes(b"png")
    assert audit('<img src="./assets/my%20logo.png">', [], config.output_root, config) == []


def test_ignores_remote_and_unrelated_paths(config):
    html = '<img src="https://example.com/assets/a.png"><a href="./about.html">'
    assert audit(html, [], config.output_root, config) == []


def test_tilde_in_file_name(config):
    config.assets_dir.mkdir(parents=True)
    (config.assets_dir / "logo~2x.png").write_bytes(b"png")
    assert audit('<img src="./assets/logo~2x.png">', [], config.output_root, config) == []
