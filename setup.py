# setup.py
from setuptools import setup, find_packages

setup(
    name="site_binder",
    version="0.1.0",
    description="Асинхронный конвертер сайтов в Markdown SiteBinder",
    packages=find_packages(exclude=("tests", "tests.*")),  # автоматически найдёт папку site_binder
    package_data={"site_binder": ["templates/*.md.j2"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "html2text>=2024.2.26",
        "Jinja2>=3.1",
        "playwright>=1.40",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-binder=site_binder.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
