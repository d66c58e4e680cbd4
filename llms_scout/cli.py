# === FILE: llms_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа LLMSScout для командной строки.

Команды:
  generate  Обойти сайт и сгенерировать llms.txt (или llms-full.txt в режиме full)
  config    Показать текущую конфигурацию (секреты скрыты)

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --mode MODE         short → llms.txt, full → llms-full.txt
  --limit INT         Макс. число страниц (override max_pages активного режима)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (иначе только stderr)
  --log-format FORMAT Формат логирования

Команда generate:
  URL                 Адрес сайта
  --name TEXT         Название компании
  --description TEXT  Краткое описание компании
  --output PATH       Сохранить документ в файл (иначе печать в stdout)
  --json PATH         Сохранить JSON-отчёт об обходе
  --scan-timeout SEC  Общий таймаут (секунд)

Пример:
  llms-scout --mode full generate https://acme.example --name Acme --description "Rockets" --output llms-full.txt
"""
import asyncio
import sys
from pathlib import Path

import click

from llms_scout import __version__
from llms_scout.config import CrawlMode, load_config
from llms_scout.engine import start_scan
from llms_scout.errors import LLMSScoutError
from llms_scout.logger import init_logging
from llms_scout.report.json_report import render_json
from llms_scout.report.text_report import render_text

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='LLMSScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON (по умолчанию configs/default.yaml).'
)
@click.option(
    '--mode', '-m', 'mode',
    default=None,
    type=click.Choice([m.value for m in CrawlMode]),
    help='Режим обхода: short (llms.txt) или full (llms-full.txt)'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Макс. число страниц (override max_pages)'
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
    help='Путь к файлу логов (иначе только stderr)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(name)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, mode, limit, log_level, log_file, log_format):
    """Группа команд LLMSScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path).with_overrides(mode=mode, limit=limit)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('generate', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--name', '-n', 'company_name', required=True, help='Название компании')
@click.option('--description', '-d', 'company_description', required=True, help='Краткое описание компании')
@click.option(
    '--output', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить документ в файл'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--scan-timeout', 'scan_timeout',
    type=float,
    default=None,
    help='Общий таймаут генерации (секунд)'
)
@click.pass_context
def generate(ctx, url, company_name, company_description, output, json_output, scan_timeout):
    """Обойти сайт URL и сгенерировать документ."""
    cfg = ctx.obj['config']
    click.echo(f'Generating {cfg.mode.value} document for {url}', err=True)
    try:
        coro = start_scan(cfg, url, company_name, company_description)
        if scan_timeout:
            result = asyncio.run(asyncio.wait_for(coro, timeout=scan_timeout))
        else:
            result = asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Генерация не завершена за {scan_timeout} секунд')
    except LLMSScoutError as e:
        print_error(str(e))
    except Exception as e:
        print_error(f'Ошибка при генерации: {e}')

    if output:
        try:
            saved = render_text(result.document, output)
            click.echo(f'{result.filename}: {saved}', err=True)
        except OSError as e:
            print_error(f'Ошибка при сохранении документа: {e}')
    else:
        click.echo(result.text, nl=False)

    if json_output:
        try:
            saved_json = render_json(result, json_output)
            click.echo(f'JSON report: {saved_json}', err=True)
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


# expose these names at module level for test monkey-patching
cli.start_scan = start_scan
cli.render_json = render_json
cli.render_text = render_text

if __name__ == "__main__":
    cli()
