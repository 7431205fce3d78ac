from argparse import Namespace

import pytest

from s3audit.config import DemoConfigModel, load_demo_config, resolve_demo_settings


def test_defaults_without_config():
    settings = resolve_demo_settings(Namespace(), None)

    assert settings.endpoint == "http://localhost:9000"
    assert settings.bucket == "demo-bucket"
    assert settings.region == "us-east-1"
    assert (settings.min_files, settings.max_files) == (1, 5)
    assert (settings.min_size, settings.max_size) == (1000, 50000)
    assert settings.delay_sec == 0.5
    assert settings.download_limit == 2
    assert settings.prefix == "sample"
    assert settings.probe_key == "non-existent-file.txt"
    assert settings.access_key == "minioadmin"


def test_demo_section_and_dashed_aliases(tmp_path):
    path = tmp_path / "demo.yaml"
    path.write_text(
        "demo:\n"
        "  bucket: js-test-bucket\n"
        "  access-key: ak\n"
        "  secret-key: sk\n"
        "  max-files: 3\n"
        "  delay-sec: 0\n"
        "  unknown: ignored\n",
        encoding="utf-8",
    )

    model = load_demo_config(str(path))

    assert model.bucket == "js-test-bucket"
    assert model.access_key == "ak"
    assert model.max_files == 3
    assert model.delay_sec == 0


def test_cli_overrides_config():
    model = DemoConfigModel(bucket="from-config", endpoint="http://minio:9000")

    settings = resolve_demo_settings(Namespace(bucket="from-cli", endpoint=None), model)

    assert settings.bucket == "from-cli"
    assert settings.endpoint == "http://minio:9000"


def test_profile_disables_default_keys():
    settings = resolve_demo_settings(Namespace(aws_profile="minio"), None)

    assert settings.access_key is None
    assert settings.secret_key is None
    assert settings.to_target().aws_profile == "minio"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_demo_config(str(tmp_path / "nope.yaml"))


def test_non_mapping_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="mapping"):
        load_demo_config(str(path))


def test_inverted_size_range_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("min_size: 5000\nmax_size: 100\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid demo configuration"):
        load_demo_config(str(path))


def test_inverted_file_range_from_cli():
    with pytest.raises(SystemExit):
        resolve_demo_settings(Namespace(min_files=4, max_files=2), None)


@pytest.mark.parametrize("overrides", [
    {"download_limit": -1},
    {"delay_sec": -1.0},
    {"min_size": 0},
    {"min_files": -2},
])
def test_out_of_range_cli_values_rejected(overrides):
    with pytest.raises(SystemExit, match="invalid parameters"):
        resolve_demo_settings(Namespace(**overrides), None)


def test_zero_download_limit_and_delay_allowed():
    settings = resolve_demo_settings(Namespace(download_limit=0, delay_sec=0.0), None)

    assert settings.download_limit == 0
    assert settings.delay_sec == 0.0
