import argparse
from rich.console import Console
from rich.markup import escape

from .config import load_demo_config, resolve_demo_settings
from .driver import BucketSetupError, run_demo
from .interactive import run_interactive
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


def build_parser() -> argparse.ArgumentParser:
    top_level_epilog = """
Быстрые примеры:

  # Создать logstream'ы в Parseable (minio_audit, minio_log)
  s3audit logstreams

  # Запустить демо против локального MinIO
  s3audit demo

  # Запустить демо с конфигом
  s3audit demo --config demo.yaml
"""
    parser = argparse.ArgumentParser(
        prog="s3audit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Генератор событий аудита MinIO для Parseable",
        epilog=top_level_epilog
    )
    parser.add_argument("--interactive", "-i", action="store_true", help="Запустить интерактивное меню")
    sub = parser.add_subparsers(dest="cmd", required=False)

    demo_epilog = """
Примеры запуска демо:

  # С параметрами по умолчанию (http://localhost:9000, бакет demo-bucket)
  s3audit demo

  # Другой бакет и воспроизводимая генерация файлов
  s3audit demo --bucket js-test-bucket --seed 42

  # Через профиль AWS CLI
  s3audit demo --endpoint http://minio:9000 --aws-profile minio
"""
    demo = sub.add_parser(
        "demo",
        help="Прогнать демо-сценарий операций S3",
        epilog=demo_epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    demo.add_argument("--config", help="YAML-файл с параметрами демо. Все параметры из конфига можно переопределить через CLI")
    demo.add_argument("--endpoint", default=None, help="URL S3 endpoint (по умолчанию: http://localhost:9000)")
    demo.add_argument("--bucket", default=None, help="Имя бакета (по умолчанию: demo-bucket)")
    demo.add_argument("--region", default=None, help="Регион для создания бакета (по умолчанию: us-east-1)")
    demo.add_argument("--access-key", dest="access_key", default=None, help="Ключ доступа (по умолчанию: minioadmin)")
    demo.add_argument("--secret-key", dest="secret_key", default=None, help="Секретный ключ (по умолчанию: minioadmin)")
    demo.add_argument("--aws-profile", dest="aws_profile", default=None, help="Имя профиля AWS CLI. Альтернатива --access-key/--secret-key")
    demo.add_argument("--upload-dir", dest="upload_dir", default=None, help="Каталог для сгенерированных файлов (по умолчанию: ./uploads)")
    demo.add_argument("--download-dir", dest="download_dir", default=None, help="Каталог для скачанных файлов (по умолчанию: ./downloads)")
    demo.add_argument("--min-files", type=int, dest="min_files", default=None, help="Минимум генерируемых файлов (по умолчанию: 1)")
    demo.add_argument("--max-files", type=int, dest="max_files", default=None, help="Максимум генерируемых файлов (по умолчанию: 5)")
    demo.add_argument("--min-size", type=int, dest="min_size", default=None, help="Минимальный размер файла в байтах (по умолчанию: 1000)")
    demo.add_argument("--max-size", type=int, dest="max_size", default=None, help="Максимальный размер файла в байтах (по умолчанию: 50000)")
    demo.add_argument("--seed", type=int, default=None, help="Seed генератора случайных чисел для воспроизводимого прогона")
    demo.add_argument("--delay-sec", type=float, dest="delay_sec", default=None, help="Пауза между загрузками/скачиваниями в секундах (по умолчанию: 0.5)")
    demo.add_argument("--download-limit", type=int, dest="download_limit", default=None, help="Сколько файлов скачать обратно (по умолчанию: 2)")
    demo.add_argument("--prefix", default=None, help="Префикс для фильтрованного списка объектов (по умолчанию: sample)")
    demo.add_argument("--probe-key", dest="probe_key", default=None, help="Несуществующий ключ для генерации 404 (по умолчанию: non-existent-file.txt)")

    ls = sub.add_parser("logstreams", help="Дождаться Parseable/MinIO и создать logstream'ы")
    ls.add_argument("--parseable-url", default=DEFAULT_PARSEABLE_URL, help="URL Parseable (по умолчанию: %(default)s)")
    ls.add_argument("--minio-url", default=DEFAULT_MINIO_URL, help="URL MinIO для проверки готовности (по умолчанию: %(default)s)")
    ls.add_argument("--username", default="admin", help="Пользователь Parseable (по умолчанию: admin)")
    ls.add_argument("--password", default="admin", help="Пароль Parseable (по умолчанию: admin)")
    ls.add_argument("--stream", dest="streams", action="append", default=None, help="Имя logstream'а (можно повторять; по умолчанию: minio_audit, minio_log)")
    ls.add_argument("--timeout", type=float, default=60, help="Сколько секунд ждать готовности сервисов (по умолчанию: 60)")
    ls.add_argument("--no-wait", dest="wait", action="store_false", help="Не ждать готовности сервисов")
    return parser


def run_demo_command(args, console: Console | None = None):
    console = console or Console()
    config_model = None
    if args.config:
        try:
            config_model = load_demo_config(args.config)
        except (OSError, ValueError) as exc:
            raise SystemExit(f"Не удалось прочитать конфиг: {exc}") from exc
    settings = resolve_demo_settings(args, config_model)
    try:
        return run_demo(settings, console=console)
    except BucketSetupError as exc:
        console.print(f"[bold red]❌ {escape(str(exc))}[/bold red]")
        raise SystemExit(1) from exc


def run_logstreams_command(args, console: Console | None = None):
    console = console or Console()
    streams = args.streams or DEFAULT_STREAMS
    try:
        if args.wait:
            console.print("⏳ Ждём Parseable...")
            wait_until_ready(parseable_ready_url(args.parseable_url), timeout=args.timeout)
            console.print("[green]✅ Parseable готов[/green]")
            console.print("⏳ Ждём MinIO...")
            wait_until_ready(minio_ready_url(args.minio_url), timeout=args.timeout)
            console.print("[green]✅ MinIO готов[/green]")
        created = create_logstreams(args.parseable_url, streams, args.username, args.password)
    except (ServiceNotReady, LogstreamError) as exc:
        console.print(f"[bold red]❌ {escape(str(exc))}[/bold red]")
        raise SystemExit(1) from exc
    for name in created:
        console.print(f"[green]📝 Logstream {name} создан[/green]")
    return created


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Запуск интерактивного меню, если указан флаг или нет команды
    if args.interactive or args.cmd is None:
        run_interactive()
        return

    if args.cmd == "demo":
        run_demo_command(args)
    elif args.cmd == "logstreams":
        run_logstreams_command(args)
