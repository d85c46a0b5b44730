from mdview.page import (
    LINK_SCHEME,
    build_page,
    link_url,
    parse_link_url,
    placeholder_page,
    plain_text_page,
    quote_component,
)


class TestBuildPage:
    def test_fragment_is_wrapped(self):
        page = build_page("<p>body</p>", "doc.md")
        assert page.startswith("<!doctype html>")
        assert '<article class="markdown-body">\n<p>body</p>\n</article>' in page
        assert "<title>doc.md</title>" in page

    def test_client_bridge_is_defined(self):
        page = build_page("", "t")
        assert "window.handleMarkdownLinkClick" in page
        assert f'"{LINK_SCHEME}:"' in page
        assert "__SCHEME__" not in page

    def test_script_sources_are_embedded(self):
        page = build_page(
            "",
            "t",
            mathjax_sources=["file:///opt/tex-svg.js"],
            mermaid_sources=["https://cdn.example/mermaid.js"],
        )
        assert 'window.__mdviewMathJaxSources = ["file:///opt/tex-svg.js"];' in page
        assert 'window.__mdviewMermaidSources = ["https://cdn.example/mermaid.js"];' in page

    def test_title_is_escaped(self):
        assert "<title>a &lt;b&gt;</title>" in build_page("", "a <b>")

    def test_plain_text_fallback_escapes_source(self):
        page = plain_text_page("# <script>alert(1)</script>", "doc.md")
        assert '<pre class="plain-text"># &lt;script&gt;alert(1)&lt;/script&gt;</pre>' in page

    def test_placeholder(self):
        assert "<main>Nothing &amp; more</main>" in placeholder_page("Nothing & more")


class TestLinkUrls:
    def test_component_quoting_matches_encode_uri_component(self):
        assert quote_component("sub dir/a(1).md") == "sub%20dir%2Fa(1).md"

    def test_round_trip(self):
        url = link_url("../docs/Über uns.md", 1)
        assert url.startswith(f"{LINK_SCHEME}:")
        assert parse_link_url(url) == ("../docs/Über uns.md", 1)

    def test_missing_button_defaults_to_left(self):
        assert parse_link_url(f"{LINK_SCHEME}:a.md") == ("a.md", 0)

    def test_bad_button_defaults_to_left(self):
        assert parse_link_url(f"{LINK_SCHEME}:a.md?button=x") == ("a.md", 0)

    def test_other_schemes_are_ignored(self):
        assert parse_link_url("https://example.com/a.md") is None
        assert parse_link_url("file:///tmp/a.md") is None
