from site_mirror.scripts import (
    remote_storage_pattern,
    rewrite_remote_references,
    rewrite_script_files,
)

PREFIX = "https://storage.example.com/"
PDF_URL = "https://storage.example.com/bucket/file.pdf?token=xyz"


class TestRewriteRemoteReferences:
    def test_duplicate_url_fetched_once(self, config, fetcher, cache):
        fetcher.responses[PDF_URL] = b"%PDF-1.4"
        js = f'const a="{PDF_URL}";const b=\'{PDF_URL}\';'

        text, count = rewrite_remote_references(js, remote_storage_pattern(PREFIX), cache, config)

        assert text == 'const a="./assets/file.pdf";const b=\'./assets/file.pdf\';'
        assert count == 1
        assert fetcher.calls[PDF_URL] == 1
        assert (config.assets_dir / "file.pdf").read_bytes() == b"%PDF-1.4"

    def test_query_variants_share_local_file(self, config, fetcher, cache):
        first = "https://storage.example.com/b/img.png?v=1"
        second = "https://storage.example.com/b/img.png?v=2"
        fetcher.responses[first] = b"png"
        js = f"['{first}','{second}']"

        text, count = rewrite_remote_references(js, remote_storage_pattern(PREFIX), cache, config)

        assert text == "['./assets/img.png','./assets/img.png']"
        assert count == 2
        assert second not in fetcher.calls

    def test_prefix_collision_prefers_longer_match(self, config, fetcher, cache):
        short = "https://storage.example.com/b/a.png"
        long = "https://storage.example.com/b/a.png.map"
        fetcher.responses[short] = b"png"
        fetcher.responses[long] = b"{}"
        js = f"x('{short}');y('{long}')"

        text, _ = rewrite_remote_references(js, remote_storage_pattern(PREFIX), cache, config)

        assert text == "x('./assets/a.png');y('./assets/a.png.map')"

    def test_failed_fetch_still_rewritten(self, config, fetcher, cache):
        js = f'"{PDF_URL}"'
        text, count = rewrite_remote_references(js, remote_storage_pattern(PREFIX), cache, config)
        assert text == '"./assets/file.pdf"'
        assert count == 0
        assert len(cache.failed) == 1

    def test_other_hosts_untouched(self, config, cache):
        js = '"https://other.example.com/file.pdf"'
        text, count = rewrite_remote_references(js, remote_storage_pattern(PREFIX), cache, config)
        assert text == js
        assert count == 0


class TestRewriteScriptFiles:
    def test_only_script_files_scanned(self, config, fetcher, cache):
        config.remote_storage_prefix = PREFIX
        fetcher.responses[PDF_URL] = b"%PDF"
        config.assets_dir.mkdir(parents=True)
        (config.assets_dir / "app.js").write_text(f'fetch("{PDF_URL}")')
        (config.assets_dir / "notes.txt").write_text(PDF_URL)

        texts, total = rewrite_script_files(cache, config)

        assert total == 1
        assert (config.assets_dir / "app.js").read_text() == 'fetch("./assets/file.pdf")'
        assert (config.assets_dir / "notes.txt").read_text() == PDF_URL
        assert list(texts) == [config.assets_dir / "app.js"]

    def test_without_prefix_scripts_are_only_read(self, config, cache):
        config.assets_dir.mkdir(parents=True)
        (config.assets_dir / "app.mjs").write_text(f'fetch("{PDF_URL}")')

        texts, total = rewrite_script_files(cache, config)

        assert total == 0
        assert texts[config.assets_dir / "app.mjs"] == f'fetch("{PDF_URL}")'

    def test_missing_assets_dir(self, config, cache):
        assert rewrite_script_files(cache, config) == ({}, 0)
