# File: tests/test_utils.py
import pytest

from site_binder.crawler.link_extractor import extract_links, extract_title
from site_binder.utils import (
    extract_domain,
    is_http_url,
    normalize_url,
    safe_filename,
    same_domain,
    unique_filename,
)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://example.com/", "http://example.com"),
        ("http://example.com/a/#top", "http://example.com/a"),
        ("http://example.com/a?q=1#x", "http://example.com/a?q=1"),
        ("  http://example.com/b  ", "http://example.com/b"),
    ],
)
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


def test_url_predicates():
    assert is_http_url("https://example.com/x")
    assert not is_http_url("ftp://example.com/")
    assert not is_http_url("/relative")
    assert extract_domain("http://Example.COM:8080/a") == "example.com"
    assert same_domain("http://example.com/a", "example.com")
    assert not same_domain("http://sub.example.com/a", "example.com")
    assert not same_domain("http://example.com/a", "")


@pytest.mark.parametrize(
    "name,expected",
    [
        ("About Us!", "About_Us"),
        ("  ??? ", "fallback"),
        (None, "fallback"),
        ("a" * 80, "a" * 50),
        ("Привет мир", "fallback"),
    ],
)
def test_safe_filename(name, expected):
    assert safe_filename(name, "fallback") == expected


def test_unique_filename():
    taken = {"index", "about"}
    assert unique_filename("contact", 3, taken) == "contact"
    assert unique_filename("about", 3, taken) == "about_3"
    taken.add("about_3")
    assert unique_filename("about", 3, taken) == "about_3_2"


def test_extract_links_filters_and_dedupes():
    html = """
    <a href="/docs">Docs</a>
    <a href="/docs/#intro">Docs again</a>
    <a href="">empty</a>
    <a href="#top">top</a>
    <a href="mailto:me@example.com">mail</a>
    <a href="tel:+123">call</a>
    <a href="https://other.org/">other</a>
    <a href="http://[broken">broken</a>
    <a href="guide"><img src="x.png"></a>
    """
    links = extract_links(html, "http://example.com/base/", "example.com")

    assert [link.url for link in links] == ["http://example.com/docs", "http://example.com/base/guide"]
    assert links[0].anchor_text == "Docs"
    # anchors without text fall back to the URL
    assert links[1].anchor_text == "http://example.com/base/guide"


def test_extract_title():
    assert extract_title("<title> Hello </title>") == "Hello"
    assert extract_title("<p>no title</p>") == ""
