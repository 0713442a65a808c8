# relay_plugins/core_assets/tests/test_models.py

import pytest

from relay_plugins.core_assets.contracts import AssetStorageError, LoadAttempt, is_create_request
from relay_plugins.core_assets.models import Asset, AssetType, DataFormat, md5_hex


@pytest.mark.parametrize("asset_type, content_type, runtime_format, immutable", [
    (AssetType.IMAGE_BITMAP, "image/png", DataFormat.PNG, True),
    (AssetType.IMAGE_VECTOR, "image/svg+xml", DataFormat.SVG, True),
    (AssetType.PROJECT, "application/json", DataFormat.JSON, False),
    (AssetType.SOUND, "audio/x-wav", DataFormat.WAV, True),
    (AssetType.SPRITE, "application/json", DataFormat.JSON, True),
])
def test_asset_type_attributes(asset_type, content_type, runtime_format, immutable):
    assert asset_type.content_type == content_type
    assert asset_type.runtime_format is runtime_format
    assert asset_type.immutable is immutable


def test_asset_type_lookup_by_name():
    assert AssetType("ImageBitmap") is AssetType.IMAGE_BITMAP
    with pytest.raises(ValueError):
        AssetType("Costume")


def test_set_data_only_once():
    asset = Asset(asset_type=AssetType.SOUND, asset_id="beep", data_format=DataFormat.WAV)
    assert not asset.has_data

    asset.set_data(b"RIFF")

    assert asset.has_data
    with pytest.raises(AssetStorageError):
        asset.set_data(b"again")


def test_generate_id_uses_md5():
    asset = Asset.from_data(AssetType.IMAGE_VECTOR, DataFormat.SVG, b"<svg/>", generate_id=True)
    assert asset.asset_id == md5_hex(b"<svg/>")


def test_generate_id_keeps_existing_id():
    asset = Asset.from_data(AssetType.IMAGE_VECTOR, DataFormat.SVG, b"<svg/>", asset_id="mine", generate_id=True)
    assert asset.asset_id == "mine"


def test_text_helpers():
    asset = Asset(asset_type=AssetType.SPRITE)
    asset.encode_text_data('{"name": "cat"}', DataFormat.JSON)

    assert asset.data_format is DataFormat.JSON
    assert asset.decode_text() == '{"name": "cat"}'


def test_encode_data_uri():
    asset = Asset.from_data(AssetType.IMAGE_BITMAP, DataFormat.PNG, b"abc", asset_id="x")

    assert asset.encode_data_uri() == "data:image/png;base64,YWJj"
    assert asset.encode_data_uri("image/jpeg") == "data:image/jpeg;base64,YWJj"


def test_load_attempt_tags():
    assert LoadAttempt.skip().skipped

    async def nothing():
        return None

    coro = nothing()
    attempt = LoadAttempt.pending(coro)
    assert not attempt.skipped
    coro.close()


@pytest.mark.parametrize("asset_id, expected", [(None, True), ("", True), ("abc", False)])
def test_is_create_request(asset_id, expected):
    assert is_create_request(asset_id) is expected
