import pytest
from pydantic import ValidationError

from wp2contentful.models import AssetMap, ImageReference, PublishedAsset, file_name_from_url
from wp2contentful.parsers.rich_text_schema import heading, text_node, validate_rich_text


def test_file_name_from_url():
    assert file_name_from_url("https://x/wp-content/uploads/2024/01/photo.jpg?w=300") == "photo.jpg"
    assert file_name_from_url("https://x/uploads/caf%C3%A9.png") == "café.png"
    assert file_name_from_url("") == ""


def test_asset_map_is_read_only_lookup():
    asset_map = AssetMap([
        PublishedAsset(asset_id="a1", file_name="a.jpg", url="https://cdn/a1"),
        PublishedAsset(asset_id="a2", file_name="a.jpg", url="https://cdn/a2"),
    ])
    assert len(asset_map) == 1
    assert asset_map.asset_id_for("a.jpg") == "a1"
    assert asset_map.url_for("missing.jpg") is None
    with pytest.raises(TypeError):
        asset_map._by_name["b.jpg"] = None


def test_image_reference_is_frozen():
    image = ImageReference(source_url="https://x/a.jpg", alt_text="a", title="a", owner_post_id=1)
    with pytest.raises(ValidationError):
        image.title = "b"


def test_heading_levels_are_clamped():
    assert heading(5)["nodeType"] == "heading-3"
    assert heading(0)["nodeType"] == "heading-1"


def test_validate_rich_text_wraps_stray_text_and_drops_unknown_nodes():
    doc = validate_rich_text({"content": [text_node("loose"), {"nodeType": "embedded-entry-block"}, "junk"]})
    assert [n["nodeType"] for n in doc["content"]] == ["paragraph"]
    assert doc["content"][0]["content"][0]["value"] == "loose"
