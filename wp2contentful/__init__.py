"""
Top-level package for the WordPress → Contentful migration utility.

This package bundles all components required to read posts from the
WordPress REST API, resolve their tags, categories and images, convert
the HTML bodies to Markdown or Contentful Rich Text, upload the images as
Contentful assets and create and publish one entry per post.  Modules are
split into subpackages:

* :mod:`wp2contentful.extractors` – paginated fetching and post normalization
* :mod:`wp2contentful.parsers` – HTML to Markdown / Rich Text converters
* :mod:`wp2contentful.migrators` – Contentful API interactions
* :mod:`wp2contentful.models` – pipeline records
* :mod:`wp2contentful.utils` – errors, reporting, logging and pre-flight checks

Each layer has no direct knowledge of configuration or execution strategy;
orchestration is handled in :mod:`wp2contentful.migration_tool`.
"""

__version__ = "1.0.0"
