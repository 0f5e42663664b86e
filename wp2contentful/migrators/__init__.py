"""
Contentful API migrators and helpers.

This subpackage provides the Content Management API client and the two
publishing stages built on it: assets (create, process, publish) and
entries (create, publish).  It encapsulates rate limiting, automatic
retries, proper header injection (including ``X-Contentful-Version``) and
per-item failure isolation on a bounded worker pool.
"""
