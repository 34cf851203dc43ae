# cli.py

"""
Точка входа для запуска SiteBinder из корня репозитория без установки пакета.

Пример запуска:
    python cli.py convert https://example.com --max-pages 20 --output site.md
    python cli.py --config configs/default.yaml sitemap https://example.com --pretty
"""
from site_binder.cli import cli

if __name__ == "__main__":
    cli()
