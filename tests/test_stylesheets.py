from site_mirror.resolver import resolve
from site_mirror.stylesheets import (
    extract_references,
    fetch_stylesheet_dependencies,
    process_stylesheets,
    rewrite_stylesheet_references,
)

STYLESHEET_URL = "https://example.com/assets/style.css"


class TestExtractReferences:
    def test_quote_styles(self):
        css = """
        .a { background: url('a.png'); }
        .b { background: url("b.png"); }
        .c { background: url(c.png); }
        """
        assert list(extract_references(css)) == ["a.png", "b.png", "c.png"]

    def test_filters_data_and_absolute(self):
        css = (
            "a{background:url(data:image/png;base64,AAAA)}"
            "b{background:url(https://cdn.example.net/x.png)}"
            "c{background:url(http://cdn.example.net/y.png)}"
            "d{background:url(//cdn.example.net/z.png)}"
        )
        assert list(extract_references(css)) == ["//cdn.example.net/z.png"]

    def test_is_lazy(self):
        refs = extract_references("a{background:url(a.png)} b{background:url(b.png)}")
        assert next(refs) == "a.png"
        assert next(refs) == "b.png"


class TestFetchDependencies:
    def test_font_resolved_against_stylesheet(self, config, fetcher, cache):
        fetcher.responses["https://example.com/fonts/a.woff2?v=2"] = b"wOF2"
        css = "@font-face { src: url('../fonts/a.woff2?v=2') format('woff2'); }"

        fetched = fetch_stylesheet_dependencies(css, STYLESHEET_URL, cache, config)

        assert fetcher.calls["https://example.com/fonts/a.woff2?v=2"] == 1
        assert (config.assets_dir / "a.woff2").read_bytes() == b"wOF2"
        assert [asset.rewritten_ref for asset, _ in fetched] == ["./assets/a.woff2"]

    def test_invalid_reference_is_recorded(self, config, cache):
        invalid = []
        fetch_stylesheet_dependencies("a{background:url(/dir/)}", STYLESHEET_URL, cache, config, invalid)
        assert [record.raw for record in invalid] == ["/dir/"]


class TestProcessStylesheets:
    def test_text_left_unchanged_by_default(self, config, fetcher, cache):
        fetcher.responses["https://example.com/assets/bg.png"] = b"png"
        sheet = resolve(STYLESHEET_URL, STYLESHEET_URL, config)
        css = b"body{background:url(bg.png)}"
        sheet.local_path.parent.mkdir(parents=True)
        sheet.local_path.write_bytes(css)

        assert process_stylesheets([(sheet, css)], cache, config) == 1
        assert sheet.local_path.read_bytes() == css
        assert (config.assets_dir / "bg.png").exists()

    def test_nested_stylesheets_followed(self, config, fetcher, cache):
        fetcher.responses["https://example.com/assets/theme/extra.css"] = b"p{background:url(dot.gif)}"
        fetcher.responses["https://example.com/assets/theme/dot.gif"] = b"GIF89a"
        sheet = resolve(STYLESHEET_URL, STYLESHEET_URL, config)

        scanned = process_stylesheets(
            [(sheet, b"@import url('theme/extra.css');")], cache, config
        )

        assert scanned == 2
        assert (config.assets_dir / "dot.gif").read_bytes() == b"GIF89a"

    def test_optional_rewrite(self, config, fetcher, cache):
        config.rewrite_css = True
        fetcher.responses["https://example.com/fonts/a.woff2?v=2"] = b"wOF2"
        sheet = resolve(STYLESHEET_URL, STYLESHEET_URL, config)
        sheet.local_path.parent.mkdir(parents=True)
        css = b"@font-face{src:url('../fonts/a.woff2?v=2')}"
        sheet.local_path.write_bytes(css)

        process_stylesheets([(sheet, css)], cache, config)

        assert sheet.local_path.read_bytes() == b"@font-face{src:url('a.woff2')}"


def test_rewrite_keeps_data_and_absolute(config):
    sheet = resolve(STYLESHEET_URL, STYLESHEET_URL, config)
    css = "a{background:url(data:image/gif;base64,R0)} b{background:url(https://x.example/y.png)}"
    assert rewrite_stylesheet_references(css, sheet, config) == css
