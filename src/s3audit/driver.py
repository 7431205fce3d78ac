"""
Демо-сценарий: последовательность вызовов S3 API, каждый из которых MinIO
пересылает в Parseable как событие аудита через webhook.
"""
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import DemoSettings
from .dataset import SyntheticFile, ensure_dir, generate_files
from .logstream import DEFAULT_MINIO_CONSOLE_URL, DEFAULT_PARSEABLE_URL, DEFAULT_STREAMS
from .storage import AwsCliStorage, ObjectRecord, StorageCommandError, public_read_policy

DEMO_APP_TAG = "parseable-minio-demo"


class BucketSetupError(Exception):
    """Не удалось проверить или создать бакет, прогон прерывается."""


@dataclass
class DemoResult:
    generated: int = 0
    uploaded: int = 0
    deleted_locally: int = 0
    listed: int = 0
    prefix_listed: int = 0
    downloaded: int = 0
    warnings: List[str] = field(default_factory=list)


def _warn(console: Console, result: DemoResult, message: str):
    result.warnings.append(message)
    console.print(f"[yellow]⚠️  {escape(message)}[/yellow]")


def ensure_bucket(storage: AwsCliStorage, region: str, console: Console, result: DemoResult):
    bucket = storage.bucket
    console.print(f"🔍 Проверяем бакет [cyan]{bucket}[/cyan]...")
    try:
        exists = storage.bucket_exists()
    except StorageCommandError as exc:
        raise BucketSetupError(f"Не удалось проверить бакет {bucket}: {exc}") from exc

    if not exists:
        console.print(f"📦 Создаём бакет [cyan]{bucket}[/cyan] ({region})...")
        try:
            storage.create_bucket(region)
        except StorageCommandError as exc:
            raise BucketSetupError(f"Не удалось создать бакет {bucket}: {exc}") from exc
        console.print(f"[green]✅ Бакет {bucket} создан[/green]")
    else:
        console.print(f"[green]✅ Бакет {bucket} уже существует[/green]")

    try:
        storage.set_bucket_policy(public_read_policy(bucket))
        console.print(f"🔒 Политика public-read установлена для {bucket}")
    except StorageCommandError as exc:
        _warn(console, result, f"Не удалось установить политику бакета: {exc}")


def upload_metadata(file: SyntheticFile) -> dict:
    return {
        "demo-app": DEMO_APP_TAG,
        "file-size": str(file.size_bytes),
        "upload-time": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    }


def upload_all(
    storage: AwsCliStorage,
    files: List[SyntheticFile],
    console: Console,
    result: DemoResult,
    delay_sec: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> List[SyntheticFile]:
    uploaded = []
    for file in files:
        console.print(f"📤 Загружаем {file.name} ({file.size_bytes} bytes)...")
        try:
            storage.put_object(file.name, file.local_path, "text/plain", upload_metadata(file))
        except StorageCommandError as exc:
            # Файл остаётся на диске: удаляем только после успешной загрузки
            console.print(f"[red]❌ Ошибка загрузки {file.name}: {escape(str(exc))}[/red]")
            result.warnings.append(f"upload failed: {file.name}")
        else:
            uploaded.append(file)
            result.uploaded += 1
            console.print(f"[green]✅ Загружен {file.name}[/green]")
            try:
                file.local_path.unlink()
                result.deleted_locally += 1
                console.print(f"🗑️  Удалён локальный файл {file.name}", style="dim")
            except OSError as exc:
                _warn(console, result, f"Не удалось удалить локальный файл {file.name}: {exc}")
        sleep(delay_sec)
    return uploaded


def print_objects(console: Console, bucket: str, objects: List[ObjectRecord]):
    table = Table(title=f"Объекты в {bucket}", box=None)
    table.add_column("key", style="cyan")
    table.add_column("size", justify="right")
    table.add_column("modified", style="dim")
    for obj in objects:
        table.add_row(obj.key, str(obj.size), str(obj.last_modified or ""))
    console.print(table)


def list_bucket(storage: AwsCliStorage, prefix: str, console: Console, result: DemoResult) -> List[ObjectRecord]:
    console.print(f"📋 Список объектов в бакете [cyan]{storage.bucket}[/cyan]:")
    objects = []
    try:
        objects = storage.list_objects(recursive=True)
    except StorageCommandError as exc:
        _warn(console, result, f"Не удалось получить список объектов: {exc}")
    else:
        result.listed = len(objects)
        print_objects(console, storage.bucket, objects)

    if prefix:
        try:
            prefixed = storage.list_objects(prefix=prefix, recursive=False)
        except StorageCommandError as exc:
            _warn(console, result, f"Не удалось получить список по префиксу '{prefix}': {exc}")
        else:
            result.prefix_listed = len(prefixed)
            console.print(f"📋 Найдено {len(prefixed)} объектов с префиксом '{prefix}'")
    return objects


def download_subset(
    storage: AwsCliStorage,
    files: List[SyntheticFile],
    download_dir: Path,
    console: Console,
    result: DemoResult,
    limit: int = 2,
    delay_sec: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Path]:
    download_dir = Path(download_dir)
    ensure_dir(download_dir)
    downloaded = []
    for file in files[:min(limit, len(files))]:
        dest = download_dir / f"downloaded_{file.name}"
        console.print(f"📥 Скачиваем {file.name}...")
        try:
            storage.get_object(file.name, dest)
        except StorageCommandError as exc:
            console.print(f"[red]❌ Ошибка скачивания {file.name}: {escape(str(exc))}[/red]")
            result.warnings.append(f"download failed: {file.name}")
        else:
            downloaded.append(dest)
            result.downloaded += 1
            console.print(f"[green]✅ Скачан {file.name} → {dest}[/green]")
        sleep(delay_sec)
    return downloaded


def additional_probes(storage: AwsCliStorage, probe_key: str, download_dir: Path, console: Console, result: DemoResult):
    console.print("🔧 Дополнительные операции для журнала аудита...")

    try:
        storage.get_bucket_policy()
        console.print("[green]✅ Политика бакета получена[/green]")
    except StorageCommandError:
        # Отсутствие политики штатно
        console.print("[yellow]⚠️  Политика бакета не найдена (это нормально)[/yellow]")

    probe_dest = Path(download_dir) / f".probe_{probe_key}"
    try:
        storage.get_object(probe_key, probe_dest)
    except StorageCommandError as exc:
        label = "404" if exc.is_not_found else f"exit {exc.returncode}"
        console.print(f"🔍 Запрос несуществующего объекта {probe_key} ({label}), событие аудита сгенерировано")
    else:
        _warn(console, result, f"Объект {probe_key} неожиданно существует")
        probe_dest.unlink(missing_ok=True)

    try:
        location = storage.get_bucket_location()
        console.print(f"🌍 Расположение бакета: {location}")
    except StorageCommandError as exc:
        _warn(console, result, f"Не удалось получить расположение бакета: {exc}")


def run_demo(
    settings: DemoSettings,
    storage: Optional[AwsCliStorage] = None,
    console: Optional[Console] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DemoResult:
    """
    Полный прогон: бакет → генерация → загрузка → список → скачивание → пробы.
    Бросает BucketSetupError, если бакет недоступен; остальные ошибки
    только пишутся в консоль и в DemoResult.warnings.
    """
    console = console or Console()
    storage = storage or AwsCliStorage(settings.to_target())
    result = DemoResult()

    console.rule("[bold]🚀 Parseable + MinIO демо[/bold]")
    ensure_bucket(storage, settings.region, console, result)

    rng = random.Random(settings.seed)
    files = generate_files(
        Path(settings.upload_dir),
        min_files=settings.min_files,
        max_files=settings.max_files,
        min_size=settings.min_size,
        max_size=settings.max_size,
        rng=rng,
    )
    result.generated = len(files)
    console.print(f"📁 Сгенерировано файлов: {len(files)}")
    for i, file in enumerate(files, 1):
        console.print(f"   {i}. {file.name} ({file.size_bytes} bytes)")
    console.print()

    uploaded = upload_all(storage, files, console, result, settings.delay_sec, sleep)
    console.print()
    list_bucket(storage, settings.prefix, console, result)
    console.print()
    download_subset(
        storage, uploaded, Path(settings.download_dir), console, result,
        settings.download_limit, settings.delay_sec, sleep,
    )
    console.print()
    additional_probes(storage, settings.probe_key, Path(settings.download_dir), console, result)

    console.print()
    console.print("[bold green]✅ Демо завершено[/bold green]")
    console.print(f"🔍 События аудита смотрите в Parseable: [cyan]{DEFAULT_PARSEABLE_URL}[/cyan]")
    for stream in DEFAULT_STREAMS:
        console.print(f"   - stream: [cyan]{stream}[/cyan]")
    console.print(f"🗂️  Консоль MinIO: [cyan]{DEFAULT_MINIO_CONSOLE_URL}[/cyan]")
    if result.warnings:
        console.print(f"[yellow]Предупреждений: {len(result.warnings)}[/yellow]")
    return result
