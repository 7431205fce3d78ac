import io
from argparse import Namespace
from pathlib import Path

import pytest
from rich.console import Console

from s3audit.config import resolve_demo_settings
from s3audit.storage import ObjectRecord, StorageCommandError


class FakeStorage:
    """In-memory stand-in for AwsCliStorage."""

    def __init__(self, bucket="demo-bucket", exists=False):
        self.bucket = bucket
        self.exists = exists
        self.objects = {}
        self.calls = []
        self.fail = {}
        self.policy = None
        self.seen_local_files = []

    def _check(self, op):
        self.calls.append(op)
        if op in self.fail:
            raise self.fail[op]

    def bucket_exists(self):
        self._check("head-bucket")
        return self.exists

    def create_bucket(self, region=None):
        self._check("create-bucket")
        self.exists = True

    def set_bucket_policy(self, policy):
        self._check("put-bucket-policy")
        self.policy = policy

    def get_bucket_policy(self):
        self._check("get-bucket-policy")
        if self.policy is None:
            raise StorageCommandError("get-bucket-policy", 254, "NoSuchBucketPolicy")
        return str(self.policy)

    def get_bucket_location(self):
        self._check("get-bucket-location")
        return "us-east-1"

    def put_object(self, key, path, content_type, metadata):
        self._check("put-object")
        self.seen_local_files.append(sorted(p.name for p in Path(path).parent.iterdir()))
        self.objects[key] = (Path(path).read_bytes(), content_type, dict(metadata))
        return {"ETag": '"abc"'}

    def get_object(self, key, dest):
        self._check("get-object")
        if key not in self.objects:
            raise StorageCommandError("get-object", 254, "An error occurred (NoSuchKey) ... 404")
        Path(dest).write_bytes(self.objects[key][0])
        return {"ContentLength": len(self.objects[key][0])}

    def list_objects(self, prefix="", recursive=True):
        self._check("list-objects-v2")
        return [
            ObjectRecord(key=k, size=len(v[0]), last_modified="2024-01-01T00:00:00Z")
            for k, v in sorted(self.objects.items())
            if k.startswith(prefix)
        ]


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides):
        values = {
            "upload_dir": str(tmp_path / "uploads"),
            "download_dir": str(tmp_path / "downloads"),
            "delay_sec": 0.0,
        }
        values.update(overrides)
        return resolve_demo_settings(Namespace(**values), None)
    return _make
