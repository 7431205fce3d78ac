from __future__ import annotations

from argparse import Namespace
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from .storage import S3Target


class DemoConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    endpoint: Optional[str] = None
    bucket: Optional[str] = None
    region: Optional[str] = None
    access_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("access_key", "access-key"),
    )
    secret_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("secret_key", "secret-key"),
    )
    aws_profile: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("aws_profile", "aws-profile"),
    )
    upload_dir: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("upload_dir", "upload-dir"),
    )
    download_dir: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("download_dir", "download-dir"),
    )
    # Генерация файлов
    min_files: Optional[int] = Field(default=None, ge=0, validation_alias=AliasChoices("min_files", "min-files"))
    max_files: Optional[int] = Field(default=None, ge=0, validation_alias=AliasChoices("max_files", "max-files"))
    min_size: Optional[int] = Field(default=None, gt=0, validation_alias=AliasChoices("min_size", "min-size"))
    max_size: Optional[int] = Field(default=None, gt=0, validation_alias=AliasChoices("max_size", "max-size"))
    seed: Optional[int] = None
    # Пауза между загрузками/скачиваниями, чтобы события аудита не сливались
    delay_sec: Optional[float] = Field(default=None, ge=0.0, validation_alias=AliasChoices("delay_sec", "delay-sec"))
    download_limit: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("download_limit", "download-limit"),
    )
    prefix: Optional[str] = None
    probe_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("probe_key", "probe-key"))

    @model_validator(mode="after")
    def check_ranges(self):
        if self.min_files is not None and self.max_files is not None and self.min_files > self.max_files:
            raise ValueError("min_files must not exceed max_files")
        if self.min_size is not None and self.max_size is not None and self.min_size > self.max_size:
            raise ValueError("min_size must not exceed max_size")
        return self


@dataclass
class DemoSettings:
    endpoint: str
    bucket: str
    region: str
    access_key: Optional[str]
    secret_key: Optional[str]
    aws_profile: Optional[str]
    upload_dir: str
    download_dir: str
    min_files: int
    max_files: int
    min_size: int
    max_size: int
    seed: Optional[int]
    delay_sec: float
    download_limit: int
    prefix: str
    probe_key: str

    def to_namespace(self) -> Namespace:
        return Namespace(**asdict(self))

    def to_target(self) -> S3Target:
        return S3Target(
            endpoint=self.endpoint,
            bucket=self.bucket,
            region=self.region,
            access_key=self.access_key,
            secret_key=self.secret_key,
            aws_profile=self.aws_profile,
        )


def load_demo_config(path: str) -> DemoConfigModel:
    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as fh:
        parsed = yaml.safe_load(fh) or {}
    if isinstance(parsed, dict) and "demo" in parsed and isinstance(parsed["demo"], dict):
        parsed = parsed["demo"]
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping at the top level.")
    try:
        return DemoConfigModel(**parsed)
    except ValidationError as exc:
        raise ValueError(f"Invalid demo configuration in {config_path}: {exc}") from exc


def resolve_demo_settings(cli_args: Namespace, config: Optional[DemoConfigModel]) -> DemoSettings:
    def pick(name: str, default=None):
        cli_value = getattr(cli_args, name, None)
        if cli_value is not None:
            return cli_value
        if config is not None:
            conf_value = getattr(config, name)
            if conf_value is not None:
                return conf_value
        return default

    endpoint = pick("endpoint", default="http://localhost:9000")
    bucket = pick("bucket", default="demo-bucket")
    if not endpoint:
        raise SystemExit("demo: missing endpoint (use --endpoint or set in config file)")
    if not bucket:
        raise SystemExit("demo: missing bucket (use --bucket or set in config file)")

    # Профиль AWS CLI имеет приоритет над ключами; ключи MinIO по умолчанию только без профиля
    aws_profile = pick("aws_profile")
    access_key = pick("access_key", default=None if aws_profile else "minioadmin")
    secret_key = pick("secret_key", default=None if aws_profile else "minioadmin")

    min_files = pick("min_files", default=1)
    max_files = pick("max_files", default=5)
    min_size = pick("min_size", default=1000)
    max_size = pick("max_size", default=50000)
    delay_sec = pick("delay_sec", default=0.5)
    download_limit = pick("download_limit", default=2)
    # Значения из CLI проходят те же проверки диапазонов, что и YAML
    try:
        DemoConfigModel(
            min_files=min_files,
            max_files=max_files,
            min_size=min_size,
            max_size=max_size,
            delay_sec=delay_sec,
            download_limit=download_limit,
        )
    except ValidationError as exc:
        raise SystemExit(f"demo: invalid parameters: {exc}") from exc

    return DemoSettings(
        endpoint=endpoint,
        bucket=bucket,
        region=pick("region", default="us-east-1"),
        access_key=access_key,
        secret_key=secret_key,
        aws_profile=aws_profile,
        upload_dir=pick("upload_dir", default="./uploads"),
        download_dir=pick("download_dir", default="./downloads"),
        min_files=min_files,
        max_files=max_files,
        min_size=min_size,
        max_size=max_size,
        seed=pick("seed"),
        delay_sec=delay_sec,
        download_limit=download_limit,
        prefix=pick("prefix", default="sample"),
        probe_key=pick("probe_key", default="non-existent-file.txt"),
    )
