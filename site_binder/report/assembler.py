# File: site_binder/report/assembler.py
"""site_binder.report.assembler: Сборка итогового Markdown из карты сайта и сконвертированных страниц."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Union
from urllib.parse import urlparse

from jinja2 import TemplateError

from site_binder.config import ConversionOptions, SaveMode
from site_binder.crawler.models import ConvertedPage, Sitemap
from site_binder.errors import AssemblyError
from site_binder.logger import logger
from site_binder.report import get_environment
from site_binder.report.structure import render_structure
from site_binder.utils import safe_filename, unique_filename

__all__ = ("GeneratedFile", "AssemblyResult", "assemble", "assemble_combined", "assemble_separate")

INDEX_NAME = "index"


@dataclass(slots=True)
class GeneratedFile:
    title: str
    url: str
    filename: str
    filepath: Path


@dataclass(slots=True)
class AssemblyResult:
    """Output of a conversion: a combined document or a directory of files."""

    mode: SaveMode
    content: Optional[str] = None
    output_directory: Optional[Path] = None
    index_file: Optional[Path] = None
    files: List[GeneratedFile] = field(default_factory=list)
    partial: bool = False
    processed: int = 0
    total: int = 0

    @property
    def total_files(self) -> int:
        return len(self.files) + 1 if self.index_file else 0

    @property
    def summary(self) -> str:
        if self.mode is SaveMode.SEPARATE and self.output_directory is not None:
            text = f"Generated {len(self.files)} page files + 1 index file in {self.output_directory.name}/"
        else:
            text = f"Combined {self.processed} pages into one document"
        if self.partial:
            text += f" (partial: {self.processed}/{self.total} pages)"
        return text

    def to_dict(self) -> Dict[str, Any]:
        def _path(p: Optional[Path]) -> Optional[str]:
            return str(p) if p is not None else None

        return {
            "type": "combined" if self.mode is SaveMode.COMBINED else "multiple_files",
            "partial": self.partial,
            "processed": self.processed,
            "total": self.total,
            "summary": self.summary,
            "output_directory": _path(self.output_directory),
            "index_file": _path(self.index_file),
            "total_files": self.total_files,
            "files": [
                {"title": f.title, "url": f.url, "filename": f.filename, "filepath": str(f.filepath)}
                for f in self.files
            ],
        }


def _document_title(sitemap: Sitemap, options: ConversionOptions) -> str:
    return options.title or sitemap.title or "Website Conversion"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _render(template_name: str, **context: Any) -> str:
    try:
        return get_environment().get_template(template_name).render(**context)
    except TemplateError as exc:
        raise AssemblyError(f"Failed to render {template_name}: {exc}") from exc


def assemble_combined(
    sitemap: Sitemap,
    pages: Sequence[ConvertedPage],
    options: ConversionOptions,
    *,
    partial: bool = False,
    total: Optional[int] = None,
) -> AssemblyResult:
    """Render every page into one document with a table of contents."""
    total = len(pages) if total is None else total
    content = _render(
        "combined.md.j2",
        title=_document_title(sitemap, options),
        sitemap=sitemap,
        pages=list(pages),
        partial=partial,
        processed=len(pages),
        total=total,
        structure=render_structure(sitemap) if options.include_sitemap else None,
    )
    return AssemblyResult(
        mode=SaveMode.COMBINED,
        content=content,
        partial=partial,
        processed=len(pages),
        total=total,
    )


def _output_directory(sitemap: Sitemap, output_dir: Path) -> Path:
    stamp = datetime.now(timezone.utc).isoformat().replace(":", "-").replace(".", "-").replace("+", "_")
    return output_dir / f"{safe_filename(sitemap.domain, 'site', max_length=100)}_{stamp}"


def assemble_separate(
    sitemap: Sitemap,
    pages: Sequence[ConvertedPage],
    options: ConversionOptions,
    output_dir: Union[str, Path],
    *,
    partial: bool = False,
    total: Optional[int] = None,
) -> AssemblyResult:
    """Write one Markdown file per page plus ``index.md`` into a fresh subdirectory."""
    total = len(pages) if total is None else total
    website_dir = _output_directory(sitemap, Path(output_dir).expanduser())
    generated = _timestamp()
    taken: Set[str] = {INDEX_NAME}
    files: List[GeneratedFile] = []

    try:
        website_dir.mkdir(parents=True, exist_ok=True)
        for index, page in enumerate(pages, start=1):
            base = safe_filename(page.title or urlparse(page.url).path, f"page_{index}")
            name = unique_filename(base, index, taken)
            taken.add(name)
            filename = f"{name}.md"
            filepath = website_dir / filename
            filepath.write_text(
                _render("page.md.j2", page=page, sitemap=sitemap, generated=generated),
                encoding="utf-8",
            )
            files.append(GeneratedFile(title=page.title, url=page.url, filename=filename, filepath=filepath))
            logger.debug("Generated file: %s", filename)

        index_path = website_dir / f"{INDEX_NAME}.md"
        index_path.write_text(
            _render(
                "index.md.j2",
                title=_document_title(sitemap, options),
                sitemap=sitemap,
                files=files,
                generated=generated,
                partial=partial,
                processed=len(pages),
                total=total,
                structure=render_structure(sitemap) if options.include_sitemap else None,
            ),
            encoding="utf-8",
        )
    except OSError as exc:
        raise AssemblyError(f"Failed to write output files to {website_dir}: {exc}") from exc

    logger.info("Generated %d page files + index in %s", len(files), website_dir)
    return AssemblyResult(
        mode=SaveMode.SEPARATE,
        output_directory=website_dir,
        index_file=index_path,
        files=files,
        partial=partial,
        processed=len(pages),
        total=total,
    )


def assemble(
    sitemap: Sitemap,
    pages: Sequence[ConvertedPage],
    options: ConversionOptions,
    *,
    output_root: Union[str, Path] = Path("output"),
    partial: bool = False,
    total: Optional[int] = None,
) -> AssemblyResult:
    """Dispatch on ``options.save_mode``."""
    if options.save_mode is SaveMode.SEPARATE:
        return assemble_separate(
            sitemap,
            pages,
            options,
            options.output_dir or output_root,
            partial=partial,
            total=total,
        )
    return assemble_combined(sitemap, pages, options, partial=partial, total=total)
