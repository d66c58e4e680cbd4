# setup.py
from setuptools import setup, find_packages

setup(
    name="llms-scout",
    version="0.1.0",
    description="Генератор llms.txt: пакетный обход сайта и сборка документа для LLM",
    packages=find_packages(include=["llms_scout", "llms_scout.*"]),
    package_data={"llms_scout": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "soupsieve>=2.5",
        "lxml>=4.9",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "Jinja2>=3.1",
        "playwright>=1.40",
        "google-genai>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "llms-scout=llms_scout.cli:cli",
        ],
    },
    python_requires=">=3.10",
)
