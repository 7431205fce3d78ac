import json, os, subprocess
from dataclasses import dataclass
from pathlib import Path

# Обёртка над AWS CLI (aws s3api), каждая операция в отдельном subprocess

NOT_FOUND_MARKERS = ("404", "NoSuchKey", "NoSuchBucket", "Not Found", "NotFound")


class StorageCommandError(Exception):
    """Команда aws s3api завершилась с ненулевым кодом."""

    def __init__(self, op: str, returncode: int, stderr: str):
        self.op = op
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        super().__init__(f"{op} failed (exit {returncode}): {self.stderr[-200:]}")

    @property
    def is_not_found(self) -> bool:
        return any(marker in self.stderr for marker in NOT_FOUND_MARKERS)


@dataclass
class S3Target:
    endpoint: str
    bucket: str
    region: str = "us-east-1"
    access_key: str | None = None
    secret_key: str | None = None
    aws_profile: str | None = None


@dataclass
class ObjectRecord:
    key: str
    size: int
    last_modified: str | None = None


def _get_aws_env(access_key: str | None, secret_key: str | None, aws_profile: str | None) -> dict:
    env = os.environ.copy()
    env["AWS_EC2_METADATA_DISABLED"] = "true"
    # Для S3-совместимых бекендов (MinIO) автоматические checksums вызывают BadDigest
    env["AWS_S3_DISABLE_REQUEST_CHECKSUM"] = "true"
    if aws_profile:
        env["AWS_PROFILE"] = aws_profile
        env.pop("AWS_ACCESS_KEY_ID", None)
        env.pop("AWS_SECRET_ACCESS_KEY", None)
    elif access_key and secret_key:
        env["AWS_ACCESS_KEY_ID"] = access_key
        env["AWS_SECRET_ACCESS_KEY"] = secret_key
        env.pop("AWS_PROFILE", None)
    else:
        env.pop("AWS_PROFILE", None)
        env.pop("AWS_ACCESS_KEY_ID", None)
        env.pop("AWS_SECRET_ACCESS_KEY", None)
    return env


def public_read_policy(bucket: str) -> dict:
    return {
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"AWS": ["*"]},
            "Action": ["s3:GetObject"],
            "Resource": [f"arn:aws:s3:::{bucket}/*"],
        }],
    }


class AwsCliStorage:
    """Вызовы s3api против одного бакета на одном endpoint'е."""

    def __init__(self, target: S3Target, timeout: float | None = 60):
        self.target = target
        self.timeout = timeout
        self._env = _get_aws_env(target.access_key, target.secret_key, target.aws_profile)

    @property
    def bucket(self) -> str:
        return self.target.bucket.replace("s3://", "").split("/")[0]

    def _run(self, op: str, *args: str) -> subprocess.CompletedProcess:
        cmd = ["aws", "s3api", op, *args, "--endpoint-url", self.target.endpoint]
        if self.target.region:
            cmd.extend(["--region", self.target.region])
        if self.target.aws_profile:
            cmd.extend(["--profile", self.target.aws_profile])
        try:
            res = subprocess.run(cmd, capture_output=True, text=True, env=self._env, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise StorageCommandError(op, 127, "aws CLI not found in PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise StorageCommandError(op, -1, f"timed out after {self.timeout}s") from exc
        if res.returncode != 0:
            raise StorageCommandError(op, res.returncode, res.stderr)
        return res

    def _run_json(self, op: str, *args: str) -> dict:
        res = self._run(op, *args)
        if not res.stdout.strip():
            return {}
        try:
            return json.loads(res.stdout)
        except json.JSONDecodeError as exc:
            raise StorageCommandError(op, 0, f"unexpected output: {res.stdout[:200]}") from exc

    def bucket_exists(self) -> bool:
        try:
            self._run("head-bucket", "--bucket", self.bucket)
        except StorageCommandError as exc:
            if exc.is_not_found:
                return False
            raise
        return True

    def create_bucket(self, region: str | None = None):
        region = region or self.target.region
        args = ["--bucket", self.bucket]
        # us-east-1 не принимает LocationConstraint
        if region and region != "us-east-1":
            args.extend(["--create-bucket-configuration", f"LocationConstraint={region}"])
        self._run("create-bucket", *args)

    def set_bucket_policy(self, policy: dict):
        self._run("put-bucket-policy", "--bucket", self.bucket, "--policy", json.dumps(policy))

    def get_bucket_policy(self) -> str:
        data = self._run_json("get-bucket-policy", "--bucket", self.bucket)
        return data.get("Policy", "")

    def get_bucket_location(self) -> str:
        data = self._run_json("get-bucket-location", "--bucket", self.bucket)
        # Пустой LocationConstraint означает us-east-1
        return data.get("LocationConstraint") or "us-east-1"

    def put_object(self, key: str, path: Path, content_type: str, metadata: dict[str, str]) -> dict:
        args = ["--bucket", self.bucket, "--key", key, "--body", str(path), "--content-type", content_type]
        if metadata:
            args.extend(["--metadata", ",".join(f"{k}={v}" for k, v in metadata.items())])
        return self._run_json("put-object", *args)

    def get_object(self, key: str, dest: Path) -> dict:
        return self._run_json("get-object", "--bucket", self.bucket, "--key", key, str(dest))

    def list_objects(self, prefix: str = "", recursive: bool = True) -> list[ObjectRecord]:
        args = ["--bucket", self.bucket]
        if prefix:
            args.extend(["--prefix", prefix])
        if not recursive:
            args.extend(["--delimiter", "/"])
        data = self._run_json("list-objects-v2", *args)
        objects = []
        for obj in data.get("Contents", []):
            objects.append(ObjectRecord(
                key=obj["Key"],
                size=obj.get("Size", 0),
                last_modified=obj.get("LastModified"),
            ))
        if not recursive:
            # Без рекурсии "каталоги" приходят в CommonPrefixes и тоже считаются записями
            for common in data.get("CommonPrefixes", []):
                objects.append(ObjectRecord(key=common["Prefix"], size=0))
        return objects
