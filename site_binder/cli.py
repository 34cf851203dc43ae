#!/usr/bin/env python3
"""
Точка входа для запуска SiteBinder через командную строку.

Команды:
  convert URL   Обойти сайт, сконвертировать страницы и собрать Markdown
  sitemap URL   Только построить карту сайта и вывести её в JSON
  config        Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Дополнительно:
  --version, -v       Показать версию SiteBinder

Пример:
  site-binder convert https://example.com --max-depth 2 --max-pages 20 --output site.md
"""
import asyncio
import sys
from pathlib import Path

import click

from site_binder import __version__
from site_binder.config import SaveMode, load_config
from site_binder.engine import start_conversion, start_discovery
from site_binder.jobs import JobEvent
from site_binder.logger import init_logging
from site_binder.report.json_report import render_json, to_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def echo_progress(event: JobEvent) -> None:
    data = event.website_data
    line = f'[{event.progress:3d}%] {event.status.value}'
    if data.total_discovered:
        line += f' {data.completed}/{data.total_discovered}'
    if data.current_page:
        line += f' {data.current_page}'
    if data.estimated_time_remaining:
        line += f' (~{data.estimated_time_remaining}s left)'
    click.echo(line, err=True)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteBinder, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteBinder CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('convert', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-depth', '-d', type=click.IntRange(min=0), default=None, help='Максимальная глубина обхода')
@click.option('--max-pages', '-n', type=click.IntRange(min=1), default=None, help='Максимальное число страниц')
@click.option('--images/--no-images', 'include_images', default=None, help='Встраивать изображения')
@click.option('--screenshot/--no-screenshot', 'include_screenshot', default=None, help='Добавлять скриншоты')
@click.option('--sitemap/--no-sitemap', 'include_sitemap', default=None, help='Диаграмма структуры сайта')
@click.option('--links/--no-links', 'include_links', default=None, help='Раздел ссылок для каждой страницы')
@click.option(
    '--save-mode', '-m', 'save_mode',
    type=click.Choice([m.value for m in SaveMode]),
    default=None,
    help='combined: один документ; separate: файл на страницу + index.md'
)
@click.option('--title', '-t', default=None, help='Заголовок итогового документа')
@click.option(
    '--output-dir', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог для режима separate'
)
@click.option(
    '--output', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить объединённый документ в файл (stdout, если не указан)'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-сводку результата в файл'
)
@click.option('--timeout', 'timeout', type=float, default=None, help='Таймаут всей конвертации (секунд)')
@click.option('--quiet', '-q', is_flag=True, help='Не выводить прогресс')
@click.pass_context
def convert(ctx, url, max_depth, max_pages, include_images, include_screenshot, include_sitemap,
            include_links, save_mode, title, output_dir, output, json_output, timeout, quiet):
    """Сконвертировать сайт начиная с URL."""
    cfg = ctx.obj['config']
    try:
        options = cfg.options(
            max_depth=max_depth,
            max_pages=max_pages,
            include_images=include_images,
            include_screenshot=include_screenshot,
            include_sitemap=include_sitemap,
            include_links=include_links,
            save_mode=save_mode,
            title=title,
            output_dir=output_dir,
        )
    except ValueError as e:
        print_error(f'Invalid options: {e}')

    listener = None if quiet else echo_progress
    click.echo(f'Starting conversion: {url}', err=True)
    try:
        if timeout:
            result = asyncio.run(
                asyncio.wait_for(start_conversion(cfg, url, options, listener), timeout=timeout)
            )
        else:
            result = asyncio.run(start_conversion(cfg, url, options, listener))
    except asyncio.TimeoutError:
        print_error(f'Conversion did not finish within {timeout} seconds')
    except Exception as e:
        print_error(f'Conversion failed: {e}')

    if json_output:
        try:
            click.echo(f'JSON summary: {render_json(result, json_output)}', err=True)
        except Exception as e:
            print_error(f'Failed to save JSON: {e}')

    if result.content is None:
        click.echo(result.summary)
        click.echo(f'Index: {result.index_file}')
        return

    if output:
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(result.content, encoding='utf-8')
        except OSError as e:
            print_error(f'Failed to write {output}: {e}')
        click.echo(f'{result.summary}: {output}', err=True)
    else:
        click.echo(result.content)


@cli.command('sitemap', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-depth', '-d', type=click.IntRange(min=0), default=None, help='Максимальная глубина обхода')
@click.option('--max-pages', '-n', type=click.IntRange(min=1), default=None, help='Максимальное число страниц')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def sitemap(ctx, url, max_depth, max_pages, pretty):
    """Построить карту сайта и вывести её в JSON."""
    cfg = ctx.obj['config']
    options = cfg.options(max_depth=max_depth, max_pages=max_pages)
    try:
        discovered = asyncio.run(start_discovery(cfg, url, options))
    except Exception as e:
        print_error(f'Sitemap discovery failed: {e}')
    click.echo(to_json(discovered, pretty=pretty))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
