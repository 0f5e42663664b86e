import logging

from wp2contentful.extractors.post_normalizer import normalize_post, normalize_posts
from wp2contentful.extractors.resource_index import ResourceIndex


def _index():
    return ResourceIndex({
        "tags": [{"id": 5, "name": "Go"}, {"id": 9, "name": "Rust"}],
        "categories": [{"id": 3, "name": "Dev &amp; Ops"}],
        "media": [{"id": 77, "source_url": "https://blog.example.com/uploads/hero.jpg", "alt_text": "Hero"}],
    })


def _raw(**overrides):
    raw = {
        "id": 42,
        "type": "post",
        "slug": "hello-world",
        "title": {"rendered": "Hello &amp; welcome"},
        "content": {"rendered": '<p>Intro</p><img class="x" src="https://blog.example.com/uploads/a.png" alt="First">'
                                '<p><img src=\'https://blog.example.com/uploads/b.png\'></p>'},
        "date_gmt": "2024-03-01T10:00:00",
        "featured_media": 77,
        "tags": [5, 2, 9],
        "categories": [3],
    }
    raw.update(overrides)
    return raw


def test_labels_resolve_in_source_order_skipping_misses(caplog):
    with caplog.at_level(logging.WARNING):
        post = normalize_post(_raw(), _index())
    assert post.tag_names == ("Go", "Rust")
    assert post.category_names == ("Dev & Ops",)
    assert "ID 2 not found" in caplog.text


def test_featured_image_is_prepended():
    post = normalize_post(_raw(), _index())
    assert post.featured_image_ref is not None
    assert post.featured_image_ref.alt_text == "Hero"
    assert [i.source_url.rsplit("/", 1)[-1] for i in post.images] == ["hero.jpg", "a.png", "b.png"]
    assert post.images[0].is_featured is True
    assert post.images[0].media_id == 77


def test_body_image_alt_defaults():
    post = normalize_post(_raw(featured_media=0), _index())
    assert [i.alt_text for i in post.images] == ["First", "Image from post 42"]
    assert all(i.owner_post_id == 42 for i in post.images)


def test_unresolvable_featured_media_does_not_block_post(caplog):
    with caplog.at_level(logging.WARNING):
        post = normalize_post(_raw(featured_media=999), _index())
    assert post.featured_image_ref is None
    assert post.featured_media_id == 999
    assert [i.is_featured for i in post.images] == [False, False]
    assert "Featured media with ID 999 not found" in caplog.text


def test_featured_without_alt_text_uses_default():
    index = ResourceIndex({"media": [{"id": 1, "source_url": "https://x/y.jpg", "alt_text": ""}]})
    post = normalize_post(_raw(featured_media=1, content={"rendered": ""}), index)
    assert post.featured_image_ref.title == "Featured image for post 42"


def test_scalar_fields():
    post = normalize_post(_raw(), _index())
    assert post.source_id == 42
    assert post.title == "Hello & welcome"
    assert post.slug == "hello-world"
    assert post.publish_date_utc == "2024-03-01T10:00:00+00:00"


def test_malformed_fields_degrade_to_empty_values():
    post = normalize_post({"id": "7", "title": None, "content": 12, "tags": "5", "featured_media": "x"}, _index())
    assert post.source_id == 7
    assert post.title == ""
    assert post.raw_html_content == ""
    assert post.tag_names == ()
    assert post.featured_media_id == 0
    assert post.publish_date_utc is None
    assert post.images == ()


def test_normalize_posts_skips_non_objects():
    posts = normalize_posts([_raw(), "garbage", _raw(id=43, slug="second")], _index())
    assert [p.slug for p in posts] == ["hello-world", "second"]
