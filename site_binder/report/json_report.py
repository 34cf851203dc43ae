# site_binder/report/json_report.py

"""
Генерация JSON-отчёта для проекта SiteBinder.

Сериализация результата конвертации (AssemblyResult) или карты сайта в файл.
"""
import json
from pathlib import Path
from typing import Any, Dict, Union

from site_binder.crawler.models import Sitemap
from site_binder.report.assembler import AssemblyResult


def to_json(data: Union[AssemblyResult, Sitemap, Dict[str, Any]], *, pretty: bool = False) -> str:
    """Сериализует результат или карту сайта в строку JSON."""
    payload = data.to_dict() if hasattr(data, "to_dict") else data
    return json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)


def render_json(data: Union[AssemblyResult, Sitemap, Dict[str, Any]], output_path: Path | str) -> Path:
    """
    Сохраняет data в формате JSON по указанному пути.

    :param data: AssemblyResult, Sitemap или уже готовый словарь
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_binder.report.json_report import render_json
    report_path = render_json(result, 'reports/result.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    # Приводим к Path
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    # Запись в файл с отступами и Unicode
    output.write_text(to_json(data, pretty=True), encoding="utf-8")

    return output
