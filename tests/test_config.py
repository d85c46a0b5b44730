import pytest

from mdview import config


@pytest.fixture
def cfg_path(tmp_path):
    return tmp_path / ".mdview.cfg"


class TestLastDocument:
    def test_missing_config(self, cfg_path):
        assert config.load_last_document(cfg_path) is None

    def test_empty_config(self, cfg_path):
        cfg_path.write_text("\n", encoding="utf-8")
        assert config.load_last_document(cfg_path) is None

    def test_stale_entry(self, cfg_path, tmp_path):
        cfg_path.write_text(f"{tmp_path / 'gone.md'}\n", encoding="utf-8")
        assert config.load_last_document(cfg_path) is None

    def test_save_then_load(self, cfg_path, tmp_path):
        doc = tmp_path / "doc.md"
        doc.write_text("# hi", encoding="utf-8")
        assert config.save_last_document(doc, cfg_path) is True
        assert config.load_last_document(cfg_path) == doc.resolve()

    def test_unwritable_config(self, tmp_path):
        assert config.save_last_document(tmp_path / "doc.md", tmp_path / "missing" / "cfg") is False


class TestEnvironment:
    def test_log_level_default(self, monkeypatch):
        monkeypatch.delenv(config.LOG_LEVEL_ENV, raising=False)
        assert config.log_level() == "WARNING"

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv(config.LOG_LEVEL_ENV, " debug ")
        assert config.log_level() == "DEBUG"

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv(config.LOG_LEVEL_ENV, "chatty")
        assert config.log_level() == "WARNING"

    def test_local_mathjax_comes_first(self, monkeypatch, tmp_path):
        bundle = tmp_path / "tex-svg.js"
        bundle.write_text("//", encoding="utf-8")
        monkeypatch.setenv(config.MATHJAX_ENV, str(bundle))
        sources = config.mathjax_script_sources()
        assert sources[0] == bundle.resolve().as_uri()
        assert sources[-len(config.MATHJAX_CDN_SOURCES):] == list(config.MATHJAX_CDN_SOURCES)

    def test_local_mermaid_comes_first(self, monkeypatch, tmp_path):
        bundle = tmp_path / "mermaid.min.js"
        bundle.write_text("//", encoding="utf-8")
        monkeypatch.setenv(config.MERMAID_ENV, str(bundle))
        assert config.mermaid_script_sources()[0] == bundle.resolve().as_uri()

    def test_cdn_fallback_when_env_points_nowhere(self, monkeypatch, tmp_path):
        monkeypatch.setenv(config.MERMAID_ENV, str(tmp_path / "absent.js"))
        assert config.mermaid_script_sources()[-1] == config.MERMAID_CDN_SOURCES[-1]
