import asyncio
import base64

import httpx
import pytest

from sprite_animator.errors import ResourceFetchError
from sprite_animator.llm.mock_client import placeholder_png
from sprite_animator.parsing.reply_parser import ImageReference
from sprite_animator.resources import FrameResult, ResourceStore, decode_data_url

PNG = placeholder_png()


class TestFrameResult:
    def test_materialized(self, tmp_path):
        path = tmp_path / "f.png"
        path.write_bytes(PNG)
        result = FrameResult(frame_index=0, path=path, mime_type="image/png")

        assert result.is_materialized
        assert result.location == str(path)
        assert result.read_bytes() == PNG

    def test_url_only(self):
        result = FrameResult(frame_index=2, url="https://x/y.png")

        assert not result.is_materialized
        assert result.location == "https://x/y.png"
        with pytest.raises(ValueError):
            result.read_bytes()

    def test_release_removes_file_and_is_idempotent(self, tmp_path):
        path = tmp_path / "f.png"
        path.write_bytes(PNG)
        result = FrameResult(frame_index=0, path=path)

        result.release()
        result.release()

        assert not path.exists()
        assert not result.is_materialized

    def test_release_url_is_noop(self):
        result = FrameResult(frame_index=0, url="https://x/y.png")
        result.release()

        assert result.url == "https://x/y.png"


class TestResourceStore:
    def test_default_directory_is_temporary(self):
        store = ResourceStore()
        assert store.directory.is_dir()
        assert "sprite_animator_" in store.directory.name

    def test_materialize_png(self, store):
        result = store.materialize(3, PNG, "image/png")

        assert result.path.name == "frame_03.png"
        assert result.path.read_bytes() == PNG
        assert result.mime_type == "image/png"

    def test_materialize_unknown_type_defaults_to_png_extension(self, store):
        result = store.materialize(0, b"data", None)

        assert result.path.suffix == ".png"

    def test_resolve_base64(self, store):
        ref = ImageReference(kind="base64", value=base64.b64encode(PNG).decode("ascii"))
        result = asyncio.run(store.resolve(1, ref))

        assert result.is_materialized
        assert result.mime_type == "image/png"
        assert result.read_bytes() == PNG

    def test_resolve_url_fetches_and_materializes(self, store, fake_http):
        fake_http.routes["https://x/y.png"] = httpx.Response(
            200, content=PNG, headers={"content-type": "image/png"}
        )
        ref = ImageReference(kind="markdown", value="https://x/y.png")

        result = asyncio.run(store.resolve(0, ref))

        assert result.is_materialized
        assert result.read_bytes() == PNG
        assert result.url is None

    def test_resolve_url_guesses_type_from_url(self, store, fake_http):
        fake_http.routes["https://x/y.jpg"] = httpx.Response(
            200, content=b"jpeg-bytes", headers={"content-type": "application/octet-stream"}
        )
        ref = ImageReference(kind="url", value="https://x/y.jpg")

        result = asyncio.run(store.resolve(0, ref))

        assert result.mime_type == "image/jpeg"

    def test_resolve_url_http_error_falls_back_to_url(self, store, fake_http):
        fake_http.routes["https://x/y.png"] = httpx.Response(403)
        ref = ImageReference(kind="url", value="https://x/y.png")

        result = asyncio.run(store.resolve(4, ref))

        assert not result.is_materialized
        assert result.url == "https://x/y.png"
        assert result.frame_index == 4

    def test_resolve_url_network_error_falls_back_to_url(self, store, fake_http):
        fake_http.routes["https://x/y.png"] = httpx.ConnectError("connection refused")
        ref = ImageReference(kind="url", value="https://x/y.png")

        result = asyncio.run(store.resolve(0, ref))

        assert result.location == "https://x/y.png"

    def test_fetch_raises_resource_fetch_error(self, store, fake_http):
        with pytest.raises(ResourceFetchError) as exc_info:
            asyncio.run(store.fetch("https://missing.example.com/a.png"))

        assert exc_info.value.url == "https://missing.example.com/a.png"
        assert "404" in str(exc_info.value)

    def test_resolve_data_url_decodes_without_request(self, store, fake_http):
        data_url = "data:image/png;base64," + base64.b64encode(PNG).decode("ascii")
        ref = ImageReference(kind="markdown", value=data_url)

        result = asyncio.run(store.resolve(2, ref))

        assert result.is_materialized
        assert result.read_bytes() == PNG
        assert result.mime_type == "image/png"
        assert result.path.name == "frame_02.png"
        assert fake_http.requested == []

    def test_resolve_bad_data_url_falls_back_with_short_warning(self, store, fake_http, caplog):
        data_url = "data:image/png;base64," + "!" * 5000
        ref = ImageReference(kind="markdown", value=data_url)

        with caplog.at_level("WARNING", logger="sprite_animator.resources"):
            result = asyncio.run(store.resolve(0, ref))

        assert not result.is_materialized
        assert result.url == data_url
        assert fake_http.requested == []
        assert "invalid base64 payload" in caplog.text
        assert "!" * 200 not in caplog.text


class TestDecodeDataUrl:
    def test_base64_payload(self):
        data, mime_type = decode_data_url("data:image/webp;base64," + base64.b64encode(b"webp").decode("ascii"))

        assert data == b"webp"
        assert mime_type == "image/webp"

    def test_percent_encoded_payload(self):
        data, mime_type = decode_data_url("data:text/plain,hello%20world")

        assert data == b"hello world"
        assert mime_type == "text/plain"

    def test_malformed(self):
        with pytest.raises(ResourceFetchError):
            decode_data_url("data:image/png;base64")


class TestResourceFetchError:
    def test_long_url_is_truncated_in_message(self):
        url = "https://x/" + "a" * 500
        err = ResourceFetchError(url, "HTTP 500")

        assert err.url == url
        assert len(str(err)) < 150
        assert str(err).endswith("...: HTTP 500")
