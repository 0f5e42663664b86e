import json

import pytest

from conftest import raw_config

from wp2contentful.config import build_config, load_config
from wp2contentful.utils.errors import ConfigurationError


def test_defaults_and_endpoint_normalization():
    config = build_config(raw_config(), environ={})
    assert config.wordpress.endpoint == "https://blog.example.com/wp-json/wp/v2/"
    assert config.contentful.environment == "master"
    assert config.contentful.content_type == "blogPost"
    assert config.contentful.content_format == "richtext"
    assert config.contentful.locale == "en-US"
    assert config.migration.dry_run is False
    assert config.migration.dedupe_assets is False
    assert config.migration.snapshot_path == "reports/wp_posts.json"


def test_token_must_have_personal_access_token_prefix():
    raw = raw_config()
    raw["contentful"]["access_token"] = "not-a-pat"
    with pytest.raises(ConfigurationError) as exc:
        build_config(raw, environ={})
    assert "CFPAT-" in str(exc.value)


def test_missing_required_values():
    with pytest.raises(ConfigurationError) as exc:
        build_config({}, environ={})
    message = str(exc.value)
    assert "wordpress.endpoint" in message
    assert "contentful.access_token" in message
    assert "contentful.space_id" in message


def test_invalid_content_format():
    raw = raw_config()
    raw["contentful"]["content_format"] = "html"
    with pytest.raises(ConfigurationError):
        build_config(raw, environ={})


def test_environment_overrides_file_values():
    config = build_config(raw_config(), environ={
        "CONTENTFUL_ACCESS_TOKEN": "CFPAT-from-env",
        "CONTENTFUL_ENVIRONMENT": "staging",
    })
    assert config.contentful.access_token == "CFPAT-from-env"
    assert config.contentful.environment == "staging"


def test_build_config_does_not_mutate_input():
    raw = raw_config()
    build_config(raw, environ={"CONTENTFUL_SPACE_ID": "other"})
    assert raw["contentful"]["space_id"] == "space-1"


def test_load_config_from_file(tmp_path):
    path = tmp_path / "migration_config.json"
    path.write_text(json.dumps(raw_config(dry_run=True)), encoding="utf-8")
    config = load_config(str(path), environ={})
    assert config.migration.dry_run is True
    assert config.wordpress.import_post_count == 10


def test_missing_file_uses_environment(tmp_path):
    config = load_config(str(tmp_path / "absent.json"), environ={
        "WORDPRESS_ENDPOINT": "https://blog.example.com/wp-json/wp/v2/",
        "CONTENTFUL_ACCESS_TOKEN": "CFPAT-x",
        "CONTENTFUL_SPACE_ID": "s",
    })
    assert config.contentful.space_id == "s"


def test_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})


def test_non_object_json(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})
