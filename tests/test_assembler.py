# File: tests/test_assembler.py
from __future__ import annotations

import re

import pytest

from site_binder.config import ConversionOptions, SaveMode
from site_binder.crawler.models import ConvertedPage, PageLink, PageNode, Sitemap
from site_binder.report.assembler import assemble, assemble_combined, assemble_separate
from site_binder.report.json_report import render_json, to_json
from site_binder.report.structure import ROOT_ID, find_parent, render_structure, structure_edges

ROOT = "http://example.com"


@pytest.fixture()
def sitemap() -> Sitemap:
    root = PageNode(
        url=ROOT,
        title="Home",
        depth=0,
        links=[PageLink(f"{ROOT}/a", "A"), PageLink(f"{ROOT}/b", "B")],
    )
    a = PageNode(url=f"{ROOT}/a", title="About", depth=1, links=[PageLink(f"{ROOT}/a", "self"), PageLink(f"{ROOT}/c", "C")])
    b = PageNode(url=f"{ROOT}/b", title="Blog", depth=1, links=[PageLink(f"{ROOT}/c", "C")])
    c = PageNode(url=f"{ROOT}/c", title='Contact "us"', depth=2)
    return Sitemap(root_url=ROOT, domain="example.com", title="Home", pages=[root, a, b, c])


@pytest.fixture()
def converted(sitemap):
    return [ConvertedPage(url=p.url, title=p.title, content=f"Body of {p.title}") for p in sitemap.pages]


def test_combined_toc_matches_pages(sitemap, converted):
    result = assemble_combined(sitemap, converted, ConversionOptions(title="My Site"))

    content = result.content
    assert content.startswith("# My Site\n")
    toc = re.findall(r"^(\d+)\. \[(.+)\]\(#page-(\d+)\)$", content, flags=re.MULTILINE)
    assert [(int(n), int(anchor)) for n, _, anchor in toc] == [(1, 1), (2, 2), (3, 3), (4, 4)]
    positions = [content.index(f'<a id="page-{i}"></a>') for i in range(1, 5)]
    assert positions == sorted(positions)
    assert "## Page 2: About" in content
    assert "| Pages Processed | 4 |" in content
    assert "Partial result" not in content


def test_combined_title_falls_back_to_site_title(sitemap, converted):
    result = assemble_combined(sitemap, converted, ConversionOptions())
    assert result.content.startswith("# Home\n")


def test_combined_without_pages(sitemap):
    result = assemble_combined(sitemap, [], ConversionOptions(include_sitemap=False), partial=True, total=4)

    assert "## Table of Contents" in result.content
    assert "## Page 1" not in result.content
    assert "cancelled after 0 of 4 pages" in result.content
    assert "## Site Structure" not in result.content
    assert result.summary.endswith("(partial: 0/4 pages)")


def test_structure_has_one_inbound_edge_per_page(sitemap):
    edges = structure_edges(sitemap)

    children = [child for _, child in edges]
    assert sorted(children) == ["page1", "page2", "page3"]
    assert ("root", "page1") in edges
    assert ("root", "page2") in edges
    # first page in order that links to /c wins
    assert ("page1", "page3") in edges


def test_find_parent_ignores_self_links(sitemap):
    assert find_parent(sitemap, sitemap.pages[1]) == 0


def test_orphan_hangs_off_root():
    orphan = PageNode(url=f"{ROOT}/lost", title="Lost", depth=1)
    sitemap = Sitemap(root_url=ROOT, domain="example.com", title="Home", pages=[PageNode(ROOT, "Home", 0), orphan])
    assert structure_edges(sitemap) == [(ROOT_ID, "page1")]


def test_render_structure_escapes_quotes(sitemap):
    diagram = render_structure(sitemap)
    assert diagram.startswith("graph TD\n")
    assert 'page3["Contact #quot;us#quot;"]' in diagram
    assert diagram.count("-->") == 3


def test_separate_writes_unique_files(sitemap, tmp_path):
    pages = [
        ConvertedPage(url=f"{ROOT}/x", title="Same Title", content="one"),
        ConvertedPage(url=f"{ROOT}/y", title="Same Title", content="two"),
        ConvertedPage(url=f"{ROOT}/z", title="", content="three"),
        ConvertedPage(url=f"{ROOT}/index", title="index", content="four"),
    ]
    result = assemble_separate(sitemap, pages, ConversionOptions(), tmp_path)

    files = list(result.output_directory.iterdir())
    assert len(files) == len(pages) + 1
    names = [f.filename for f in result.files]
    assert len(set(names)) == len(names)
    assert names[0] == "Same_Title.md"
    assert names[1] == "Same_Title_2.md"
    assert names[2] == "z.md"
    assert "index.md" not in names
    assert result.index_file.name == "index.md"
    assert result.output_directory.name.startswith("example_com_")

    index = result.index_file.read_text(encoding="utf-8")
    for name in names:
        assert f"(./{name})" in index
    page_text = (result.output_directory / "Same_Title_2.md").read_text(encoding="utf-8")
    assert "two" in page_text
    assert f"| URL | [{ROOT}/y]({ROOT}/y) |" in page_text


def test_assemble_dispatches_on_save_mode(sitemap, converted, tmp_path):
    options = ConversionOptions(save_mode=SaveMode.SEPARATE)
    result = assemble(sitemap, converted, options, output_root=tmp_path)
    assert result.mode is SaveMode.SEPARATE
    assert result.output_directory.parent == tmp_path
    assert "Generated 4 page files + 1 index file" in result.summary


def test_json_summary(sitemap, converted, tmp_path):
    result = assemble_combined(sitemap, converted, ConversionOptions())
    assert '"type": "combined"' in to_json(result)

    path = render_json(sitemap, tmp_path / "reports" / "sitemap.json")
    assert path.exists()
    assert '"domain": "example.com"' in path.read_text(encoding="utf-8")
