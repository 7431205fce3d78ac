"""
Интерактивное меню для s3audit с использованием rich и questionary.
"""
import argparse
from pathlib import Path
from typing import Optional

import questionary
from prompt_toolkit.completion import PathCompleter
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import DemoConfigModel, load_demo_config, resolve_demo_settings
from .driver import BucketSetupError, run_demo
from .logstream import (
    DEFAULT_MINIO_URL,
    DEFAULT_PARSEABLE_URL,
    DEFAULT_STREAMS,
    LogstreamError,
    ServiceNotReady,
    create_logstreams,
    minio_ready_url,
    parseable_ready_url,
    wait_until_ready,
)


console = Console()
path_completer = PathCompleter(expanduser=True)

DEMO_FIELDS = [
    "endpoint", "bucket", "region", "access_key", "secret_key", "aws_profile",
    "upload_dir", "download_dir", "min_files", "max_files", "min_size", "max_size",
    "seed", "delay_sec", "download_limit", "prefix", "probe_key",
]


def empty_demo_args() -> argparse.Namespace:
    return argparse.Namespace(**{name: None for name in DEMO_FIELDS})


def choose_config() -> tuple[bool, Optional[DemoConfigModel]]:
    """Возвращает (продолжать ли, модель конфига или None для значений по умолчанию)."""
    cwd = Path(".").resolve()
    configs = sorted(list(cwd.glob("*.yml")) + list(cwd.glob("*.yaml")))
    choices = ["Параметры по умолчанию"]
    choices.extend(cfg.name for cfg in configs)
    choices.append("Ввести путь вручную")
    choices.append("Вернуться в главное меню")

    choice = questionary.select("Выберите конфиг:", choices=choices, use_indicator=True).ask()
    if not choice or choice == "Вернуться в главное меню":
        return False, None
    if choice == "Параметры по умолчанию":
        return True, None

    if choice == "Ввести путь вручную":
        config_path = questionary.path(
            "Укажите путь к YAML-конфигу (например, demo.yaml):",
            completer=path_completer,
            validate=lambda p: Path(p).expanduser().exists() or "Файл не найден",
        ).ask()
        if not config_path:
            return False, None
    else:
        config_path = str(cwd / choice)

    try:
        return True, load_demo_config(config_path)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Не удалось прочитать конфиг: {escape(str(exc))}[/bold red]")
        questionary.press_any_key_to_continue("Нажмите любую клавишу для возврата в меню...").ask()
        return False, None


def run_demo_menu():
    console.clear()
    console.rule("[bold yellow]🚀 Запустить демо[/bold yellow]")

    proceed, config_model = choose_config()
    if not proceed:
        return

    cli_args = empty_demo_args()
    settings = resolve_demo_settings(cli_args, config_model)

    if questionary.confirm("Изменить параметры перед запуском?", default=False).ask():
        cli_args.endpoint = questionary.text("S3 endpoint:", default=settings.endpoint).ask() or None
        cli_args.bucket = questionary.text("Бакет:", default=settings.bucket).ask() or None
        seed_str = questionary.text(
            "Seed (пусто: случайный прогон):",
            default="" if settings.seed is None else str(settings.seed),
            validate=lambda v: v == "" or v.lstrip("-").isdigit() or "Введите целое число",
        ).ask()
        cli_args.seed = int(seed_str) if seed_str else None
        settings = resolve_demo_settings(cli_args, config_model)

    summary = Table(show_header=False, box=None)
    summary.add_column(style="cyan")
    summary.add_column(style="white")
    summary.add_row("Endpoint:", settings.endpoint)
    summary.add_row("Бакет:", settings.bucket)
    summary.add_row("Файлов:", f"{settings.min_files}..{settings.max_files}")
    summary.add_row("Размер:", f"{settings.min_size}..{settings.max_size} bytes")
    summary.add_row("Скачать обратно:", str(settings.download_limit))
    console.print(summary)

    try:
        run_demo(settings, console=console)
    except BucketSetupError as exc:
        console.print(f"[bold red]❌ {escape(str(exc))}[/bold red]")
    questionary.press_any_key_to_continue("Нажмите любую клавишу для возврата в меню...").ask()


def logstreams_menu():
    console.clear()
    console.rule("[bold yellow]📝 Создать logstream'ы в Parseable[/bold yellow]")

    parseable_url = questionary.text("URL Parseable:", default=DEFAULT_PARSEABLE_URL).ask()
    if not parseable_url:
        return
    username = questionary.text("Пользователь:", default="admin").ask()
    password = questionary.password("Пароль:", default="admin").ask()
    streams = questionary.checkbox(
        "Какие logstream'ы создать:",
        choices=[questionary.Choice(name, checked=True) for name in DEFAULT_STREAMS],
    ).ask()
    if not streams:
        return

    try:
        if questionary.confirm("Дождаться готовности Parseable и MinIO?", default=True).ask():
            with console.status("Ждём Parseable..."):
                wait_until_ready(parseable_ready_url(parseable_url))
            with console.status("Ждём MinIO..."):
                wait_until_ready(minio_ready_url(DEFAULT_MINIO_URL))
        created = create_logstreams(parseable_url, streams, username, password)
    except (ServiceNotReady, LogstreamError) as exc:
        console.print(f"[bold red]❌ {escape(str(exc))}[/bold red]")
    else:
        for name in created:
            console.print(f"[green]✅ Logstream {name} создан[/green]")
    questionary.press_any_key_to_continue("Нажмите любую клавишу для возврата в меню...").ask()


def run_interactive():
    """Запуск интерактивного меню."""
    while True:
        console.clear()
        console.rule("[bold]Меню s3audit[/bold]")
        choice = questionary.select(
            "Выберите действие:",
            choices=[
                "🚀 Запустить демо",
                "📝 Создать logstream'ы",
                questionary.Separator(),
                "⬅️ Выход"
            ],
            use_indicator=True
        ).ask()

        if choice is None or choice.startswith("⬅️"):
            break

        console.clear()

        if choice.startswith("🚀"):
            run_demo_menu()
        elif choice.startswith("📝"):
            logstreams_menu()


if __name__ == "__main__":
    try:
        run_interactive()
    except (KeyboardInterrupt, EOFError):
        console.print("\n[bold yellow]Выход по запросу пользователя.[/bold yellow]")
