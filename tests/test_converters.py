import stat
import sys
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
import pytest

from shared.clients.converter.ConverterClientManager import ConverterClientManager
from shared.clients.converter.gotenberg.ConverterClientGotenberg import ConverterClientGotenberg
from shared.clients.converter.soffice.ConverterClientSoffice import ConverterClientSoffice
from shared.clients.storage.StorageClientManager import StorageClientManager
from shared.clients.storage.local.StorageClientLocal import StorageClientLocal
from shared.models.errors import ConversionError

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="uses a shell script as fake soffice")

FAKE_SOFFICE = """#!/bin/sh
while [ "$#" -gt 1 ]; do
  if [ "$1" = "--outdir" ]; then out="$2"; fi
  shift
done
name=$(basename "$1")
printf '%%PDF-1.4 converted' > "$out/${name%.*}.pdf"
"""

RECORDING_SOFFICE = r"""#!/bin/sh
printf '%s\n' "$@" >> "$SOFFICE_ARGS_LOG"
""" + FAKE_SOFFICE.split("\n", 1)[1]

FAILING_SOFFICE = """#!/bin/sh
echo "source file could not be loaded" >&2
exit 3
"""


def _script(tmp_path, name, body):
    path = tmp_path / name
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return path


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "abc.docx"
    path.write_bytes(b"PK\x03\x04")
    return path


@posix_only
@pytest.mark.anyio
async def test_soffice_moves_output_onto_target(helper_config, tmp_path, monkeypatch, source):
    monkeypatch.setenv("CONVERTER_SOFFICE_BINARY", str(_script(tmp_path, "soffice", FAKE_SOFFICE)))
    client = ConverterClientSoffice(helper_config=helper_config)
    target = tmp_path / "out" / "abc.pdf"
    target.parent.mkdir()

    assert await client.do_healthcheck() is True
    assert await client.convert(source, target) == target
    assert target.read_bytes() == b"%PDF-1.4 converted"


@posix_only
@pytest.mark.anyio
async def test_soffice_gets_a_private_profile_per_conversion(helper_config, tmp_path, monkeypatch, source):
    log = tmp_path / "args.log"
    monkeypatch.setenv("SOFFICE_ARGS_LOG", str(log))
    monkeypatch.setenv("CONVERTER_SOFFICE_BINARY", str(_script(tmp_path, "soffice", RECORDING_SOFFICE)))
    client = ConverterClientSoffice(helper_config=helper_config)

    await client.convert(source, tmp_path / "first.pdf")
    await client.convert(source, tmp_path / "second.pdf")

    args = log.read_text().splitlines()
    profiles = [a.split("=", 1)[1] for a in args if a.startswith("-env:UserInstallation=")]
    outdirs = [args[i + 1] for i, a in enumerate(args) if a == "--outdir"]
    assert len(profiles) == 2
    assert profiles[0] != profiles[1]
    for uri, outdir in zip(profiles, outdirs):
        assert uri.startswith("file://")
        profile_dir = Path(url2pathname(urlparse(uri).path))
        assert profile_dir.parent == Path(outdir)
        assert not Path(outdir).exists()


@posix_only
@pytest.mark.anyio
async def test_soffice_non_zero_exit_is_conversion_error(helper_config, tmp_path, monkeypatch, source):
    monkeypatch.setenv("CONVERTER_SOFFICE_BINARY", str(_script(tmp_path, "soffice", FAILING_SOFFICE)))
    client = ConverterClientSoffice(helper_config=helper_config)
    target = tmp_path / "abc.pdf"

    with pytest.raises(ConversionError, match="could not be loaded"):
        await client.convert(source, target)
    assert not target.exists()


@pytest.mark.anyio
async def test_missing_source_is_conversion_error(helper_config, tmp_path):
    client = ConverterClientSoffice(helper_config=helper_config)

    with pytest.raises(ConversionError, match="does not exist"):
        await client.convert(tmp_path / "nope.docx", tmp_path / "nope.pdf")


@pytest.mark.anyio
async def test_gotenberg_posts_document_and_writes_pdf(helper_config, tmp_path, monkeypatch, source):
    monkeypatch.setenv("CONVERTER_GOTENBERG_URL", "http://gotenberg:3000/")
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "up"})
        return httpx.Response(200, content=b"%PDF-1.7 from gotenberg")

    client = ConverterClientGotenberg(helper_config=helper_config)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    target = tmp_path / "abc.pdf"

    assert await client.do_healthcheck() is True
    await client.convert(source, target)
    await client.close()

    assert target.read_bytes() == b"%PDF-1.7 from gotenberg"
    convert_request = seen[-1]
    assert convert_request.method == "POST"
    assert str(convert_request.url) == "http://gotenberg:3000/forms/libreoffice/convert"
    body = convert_request.read()
    assert b'filename="abc.docx"' in body
    assert b"PK\x03\x04" in body


@pytest.mark.anyio
async def test_gotenberg_error_status_is_conversion_error(helper_config, tmp_path, monkeypatch, source):
    monkeypatch.setenv("CONVERTER_GOTENBERG_URL", "http://gotenberg:3000")
    client = ConverterClientGotenberg(helper_config=helper_config)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503, text="busy")))

    with pytest.raises(ConversionError, match="503"):
        await client.convert(source, tmp_path / "abc.pdf")
    await client.close()


@pytest.mark.anyio
async def test_gotenberg_requires_boot(helper_config, tmp_path, monkeypatch, source):
    monkeypatch.setenv("CONVERTER_GOTENBERG_URL", "http://gotenberg:3000")
    client = ConverterClientGotenberg(helper_config=helper_config)

    with pytest.raises(ConversionError, match="boot"):
        await client.convert(source, tmp_path / "abc.pdf")


def test_managers_pick_configured_engines(helper_config, monkeypatch):
    monkeypatch.setenv("CONVERTER_ENGINE", "Gotenberg")
    monkeypatch.setenv("CONVERTER_GOTENBERG_URL", "http://gotenberg:3000")
    monkeypatch.delenv("STORAGE_ENGINE", raising=False)

    assert isinstance(ConverterClientManager(helper_config=helper_config).get_client(), ConverterClientGotenberg)
    assert isinstance(StorageClientManager(helper_config=helper_config).get_client(), StorageClientLocal)


def test_gotenberg_requires_url(helper_config, monkeypatch):
    monkeypatch.delenv("CONVERTER_GOTENBERG_URL", raising=False)
    with pytest.raises(ValueError, match="CONVERTER_GOTENBERG_URL"):
        ConverterClientGotenberg(helper_config=helper_config)
