import json
from unittest.mock import patch

import pytest

from s3lib.cli import build_parser, main
from s3lib.infra.storage.s3_client import S3StorageClient
from tests.infra.fake_s3 import FakeS3


@pytest.fixture
def fake_s3():
    fake = FakeS3(endpoint_url="http://localhost:9000")
    fake.create_bucket("my-bucket")
    return fake


@pytest.fixture
def factory(fake_s3):
    built = []

    def _build(config):
        with patch.object(S3StorageClient, "_build_client", return_value=fake_s3):
            client = S3StorageClient(config)
        built.append(client)
        return client

    _build.built = built
    return _build


@pytest.fixture(autouse=True)
def credentials(monkeypatch):
    monkeypatch.setenv("S3LIB_REGION", "us-east-1")
    monkeypatch.setenv("S3LIB_ACCESS_KEY", "ak")
    monkeypatch.setenv("S3LIB_SECRET_KEY", "sk")


def test_upload_download_round_trip(tmp_path, factory, capsys):
    source = tmp_path / "in.txt"
    source.write_bytes(b"Hello, World!")
    target = tmp_path / "out.txt"

    code = main(
        ["--endpoint", "http://localhost:9000", "upload", "my-bucket", "test.txt", str(source)],
        factory,
    )
    assert code == 0
    assert capsys.readouterr().out.strip() == "http://localhost:9000/my-bucket/test.txt"

    code = main(["download", "my-bucket", "test.txt", "-o", str(target)], factory)
    assert code == 0
    assert target.read_bytes() == b"Hello, World!"


def test_download_to_stdout(factory, fake_s3, capsysbinary):
    main(["upload", "my-bucket", "raw.bin", "/dev/null"], factory)
    capsysbinary.readouterr()
    fake_s3.buckets["my-bucket"]["raw.bin"].body = b"\x00\x01binary"

    assert main(["download", "my-bucket", "raw.bin"], factory) == 0
    assert capsysbinary.readouterr().out == b"\x00\x01binary"


def test_upload_options_and_info(tmp_path, factory, fake_s3, capsys):
    source = tmp_path / "report.csv"
    source.write_bytes(b"a,b\n1,2\n")

    code = main(
        [
            "upload",
            "my-bucket",
            "reports/q1.csv",
            str(source),
            "--content-type",
            "text/csv",
            "--metadata",
            "owner=finance",
            "--metadata",
            "quarter=q1",
        ],
        factory,
    )
    assert code == 0
    extra = fake_s3.buckets["my-bucket"]["reports/q1.csv"].extra
    assert extra == {
        "ContentType": "text/csv",
        "Metadata": {"owner": "finance", "quarter": "q1"},
    }
    capsys.readouterr()

    assert main(["info", "my-bucket", "reports/q1.csv"], factory) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["key"] == "reports/q1.csv"
    assert info["size"] == 8
    assert info["storage_class"] == "STANDARD"


def test_ls_with_prefix(tmp_path, factory, capsys):
    source = tmp_path / "x"
    source.write_bytes(b"x")
    for key in ["test/a", "test/b", "other/c"]:
        main(["upload", "my-bucket", key, str(source)], factory)
    capsys.readouterr()

    assert main(["ls", "my-bucket", "--prefix", "test/"], factory) == 0
    listed = json.loads(capsys.readouterr().out)
    assert [item["key"] for item in listed] == ["test/a", "test/b"]


def test_rm_then_info_fails(tmp_path, factory, capsys):
    source = tmp_path / "x"
    source.write_bytes(b"x")
    main(["upload", "my-bucket", "gone.txt", str(source)], factory)

    assert main(["rm", "my-bucket", "gone.txt"], factory) == 0
    assert main(["info", "my-bucket", "gone.txt"], factory) == 1
    assert "ObjectNotFoundError" in capsys.readouterr().err


def test_missing_bucket_exit_code(factory):
    assert main(["ls", "ghost"], factory) == 1


def test_presign_commands(factory, capsys):
    assert main(["presign", "my-bucket", "k", "--expires", "60", "--mode", "upload"], factory) == 0
    url = capsys.readouterr().out.strip()
    assert "X-Amz-Expires=60" in url
    assert "op=put_object" in url

    assert main(["presign-post", "my-bucket", "k", "--max-size", "1024"], factory) == 0
    post = json.loads(capsys.readouterr().out)
    assert post["url"] == "http://localhost:9000/my-bucket"
    assert post["fields"]["key"] == "k"


def test_clients_are_closed(factory):
    main(["ls", "my-bucket"], factory)
    main(["ls", "ghost"], factory)

    assert factory.built
    assert all(client.closed for client in factory.built)


def test_missing_credentials_exit_code(monkeypatch):
    monkeypatch.delenv("S3LIB_SECRET_KEY")

    assert main(["ls", "my-bucket"]) == 2


def test_overrides_reach_config(factory):
    main(["--region", "eu-west-1", "--timeout", "3", "--debug", "ls", "my-bucket"], factory)

    config = factory.built[-1]._config
    assert config.region == "eu-west-1"
    assert config.timeout_seconds == 3.0
    assert config.debug is True


def test_bad_metadata_rejected():
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args(["upload", "b", "k", "f", "--metadata", "novalue"])

    assert excinfo.value.code == 2


def test_missing_upload_source_exit_code(tmp_path, factory, fake_s3, capsys):
    missing = tmp_path / "nowhere.txt"

    assert main(["upload", "my-bucket", "k", str(missing)], factory) == 1
    assert "nowhere.txt" in capsys.readouterr().err
    assert fake_s3.buckets["my-bucket"] == {}
    assert all(client.closed for client in factory.built)


def test_download_into_missing_directory_exit_code(tmp_path, factory, capsys):
    source = tmp_path / "in.txt"
    source.write_bytes(b"payload")
    main(["upload", "my-bucket", "k", str(source)], factory)
    capsys.readouterr()
    target = tmp_path / "no" / "dir" / "out.txt"

    assert main(["download", "my-bucket", "k", "-o", str(target)], factory) == 1
    assert "out.txt" in capsys.readouterr().err
    assert not target.exists()


@pytest.mark.parametrize("timeout", ["abc", "-1"])
def test_bad_timeout_environment_exit_code(monkeypatch, factory, capsys, timeout):
    monkeypatch.setenv("S3LIB_TIMEOUT_SECONDS", timeout)

    assert main(["ls", "my-bucket"], factory) == 2
    assert "S3LIB_TIMEOUT_SECONDS" in capsys.readouterr().err
    assert factory.built == []
