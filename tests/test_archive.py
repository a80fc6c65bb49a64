from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from finance_tracker.core.configuration import AppConfig
from finance_tracker.errors import ArchiveError
from finance_tracker.integration.archive import (
    BlobArchive,
    LocalArchive,
    NullArchive,
    archive_name,
    build_archive,
)


def test_archive_name_is_timestamped_and_sanitized() -> None:
    assert (
        archive_name("../../etc/my file.csv", now_ms=1700000000000, token="ab12cd34")
        == "1700000000000-ab12cd34-my_file.csv"
    )
    assert archive_name("", now_ms=5, token="00ff") == "5-00ff-upload.csv"


def test_archive_names_differ_within_the_same_millisecond() -> None:
    names = {archive_name("march.csv", now_ms=1700000000000) for _ in range(20)}

    assert len(names) == 20


@pytest.mark.anyio
async def test_local_archive_writes_payload(tmp_path: Path) -> None:
    archive = LocalArchive(str(tmp_path / "uploads"))

    location = await archive.store("march.csv", b"description,amount\n")

    assert location is not None
    assert Path(location).read_bytes() == b"description,amount\n"
    assert Path(location).name.endswith("-march.csv")


@pytest.mark.anyio
async def test_local_archive_keeps_both_copies_of_same_upload(tmp_path: Path) -> None:
    archive = LocalArchive(str(tmp_path))

    with patch("finance_tracker.integration.archive.time.time", return_value=1700000000.0):
        first = await archive.store("march.csv", b"first")
        second = await archive.store("march.csv", b"second")

    assert first != second
    assert Path(first).read_bytes() == b"first"
    assert Path(second).read_bytes() == b"second"


def test_local_archive_never_overwrites(tmp_path: Path) -> None:
    archive = LocalArchive(str(tmp_path))
    archive._write("1-abcd-march.csv", b"first")

    with pytest.raises(FileExistsError):
        archive._write("1-abcd-march.csv", b"second")
    assert (tmp_path / "1-abcd-march.csv").read_bytes() == b"first"


@pytest.mark.anyio
async def test_null_archive_returns_none() -> None:
    assert await NullArchive().store("march.csv", b"x") is None


@pytest.mark.anyio
async def test_blob_archive_puts_block_blob() -> None:
    response = MagicMock()
    response.raise_for_status.return_value = None
    mock_client = AsyncMock()
    mock_client.is_closed = False
    mock_client.put = AsyncMock(return_value=response)

    archive = BlobArchive(
        "https://acct.blob.core.windows.net/transaction-uploads/",
        sas_token="?sv=2021&sig=abc",
        client=mock_client,
    )

    location = await archive.store("march.csv", b"payload")

    assert location is not None
    assert location.startswith("https://acct.blob.core.windows.net/transaction-uploads/")
    assert "sig=" not in location
    args, kwargs = mock_client.put.call_args
    assert args[0] == f"{location}?sv=2021&sig=abc"
    assert kwargs["content"] == b"payload"
    assert kwargs["headers"]["x-ms-blob-type"] == "BlockBlob"


@pytest.mark.anyio
async def test_blob_archive_wraps_http_errors() -> None:
    request = httpx.Request("PUT", "https://acct.blob.core.windows.net/c/x")
    error_response = httpx.Response(403, request=request)
    mock_client = AsyncMock()
    mock_client.is_closed = False
    mock_client.put = AsyncMock(return_value=error_response)

    archive = BlobArchive("https://acct.blob.core.windows.net/c", client=mock_client)

    with pytest.raises(ArchiveError, match="403"):
        await archive.store("march.csv", b"payload")


@pytest.mark.anyio
async def test_blob_archive_wraps_transport_errors() -> None:
    mock_client = AsyncMock()
    mock_client.is_closed = False
    mock_client.put = AsyncMock(side_effect=httpx.ConnectError("boom"))

    archive = BlobArchive("https://acct.blob.core.windows.net/c", client=mock_client)

    with pytest.raises(ArchiveError):
        await archive.store("march.csv", b"payload")


def test_build_archive_prefers_blob_then_local(tmp_path: Path) -> None:
    assert isinstance(build_archive(AppConfig()), NullArchive)
    assert isinstance(build_archive(AppConfig(archive_dir=str(tmp_path))), LocalArchive)
    assert isinstance(
        build_archive(
            AppConfig(
                archive_dir=str(tmp_path),
                archive_container_url="https://acct.blob.core.windows.net/c",
            )
        ),
        BlobArchive,
    )
