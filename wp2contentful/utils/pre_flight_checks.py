import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import ContentTypeMissingError, MigrationError

logger = logging.getLogger(__name__)

# (field id, accepted Contentful types); content depends on the body format
REQUIRED_FIELDS = (
    ("postTitle", ("Symbol",)),
    ("slug", ("Symbol",)),
    ("content", None),
    ("publishDate", ("Date",)),
)
OPTIONAL_FIELDS = (
    ("featuredImage", ("Link",)),
    ("tags", ("Symbol",)),
    ("categories", ("Symbol",)),
)
CONTENT_FIELD_TYPES = {"richtext": ("RichText",), "markdown": ("Text",)}


class PreFlightCheckError(MigrationError):
    """Custom exception for pre-flight check failures."""
    pass


def _status(e: requests.HTTPError) -> Optional[int]:
    return e.response.status_code if e.response is not None else None


def run_contentful_pre_flight_checks(client, content_type_id: str) -> Dict[str, Any]:
    """
    Verifies that the Contentful space is reachable and ready for migration.

    Args:
        client: A ``ContentfulClient`` for the target space and environment.
        content_type_id: The content type entries will be created with.

    Returns:
        The content type definition.

    Raises:
        PreFlightCheckError: If the token, space or environment check fails.
        ContentTypeMissingError: If the content type does not exist.
    """
    logger.info("Running pre-flight checks...")

    # Check 1: Verify access token and space
    try:
        space = client.get_space()
    except requests.HTTPError as e:
        if _status(e) == 401:
            raise PreFlightCheckError("O token de acesso do Contentful é inválido ou expirou.")
        if _status(e) == 404:
            raise PreFlightCheckError(f"O space '{client.space_id}' não foi encontrado.")
        raise PreFlightCheckError(f"Erro inesperado ao verificar o space: {e}")
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Erro de rede ao tentar se conectar com a API do Contentful: {e}")
    logger.info("Space: %s", space.get("name", client.space_id))

    # Check 2: Verify environment
    try:
        client.get_environment()
    except requests.HTTPError as e:
        if _status(e) == 404:
            raise PreFlightCheckError(
                f"O environment '{client.environment}' não existe no space '{client.space_id}'."
            )
        raise PreFlightCheckError(f"Erro inesperado ao verificar o environment: {e}")
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Erro de rede ao verificar o environment: {e}")

    # Check 3: Verify content type
    try:
        content_types = client.get_content_types()
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Erro ao listar os content types: {e}")

    for content_type in content_types:
        if (content_type.get("sys") or {}).get("id") == content_type_id:
            logger.info("Pre-flight checks passed successfully.")
            return content_type

    available = [(ct.get("sys") or {}).get("id") for ct in content_types]
    raise ContentTypeMissingError(content_type_id, [ct for ct in available if ct])


def describe_required_fields(content_format: str) -> List[str]:
    """Human readable list of the fields the target content type needs."""
    lines = []
    for field_id, types in REQUIRED_FIELDS:
        accepted = types or CONTENT_FIELD_TYPES.get(content_format, ("RichText",))
        lines.append(f"{field_id} ({' or '.join(accepted)}, required)")
    for field_id, types in OPTIONAL_FIELDS:
        lines.append(f"{field_id} ({' or '.join(types)}, optional)")
    return lines


def check_content_type_fields(content_type: Dict[str, Any], content_format: str) -> List[str]:
    """
    Compare the content type's fields with what the migration writes.

    Returns one warning per missing required field or unexpected field type.
    Optional fields are only checked when present.
    """
    fields = {f.get("id"): f for f in content_type.get("fields") or [] if isinstance(f, dict)}
    warnings: List[str] = []

    for field_id, types in REQUIRED_FIELDS:
        accepted = types or CONTENT_FIELD_TYPES.get(content_format, ("RichText",))
        field = fields.get(field_id)
        if field is None:
            warnings.append(f"Missing required field '{field_id}' ({' or '.join(accepted)})")
        elif field.get("type") not in accepted:
            warnings.append(
                f"Field '{field_id}' has type {field.get('type')}, expected {' or '.join(accepted)}"
            )

    for field_id, types in OPTIONAL_FIELDS:
        field = fields.get(field_id)
        if field is not None and field.get("type") not in types:
            warnings.append(
                f"Field '{field_id}' has type {field.get('type')}, expected {' or '.join(types)}"
            )
    featured = fields.get("featuredImage")
    if featured is not None and featured.get("type") == "Link" and featured.get("linkType") != "Asset":
        warnings.append("Field 'featuredImage' must link to an Asset")

    for warning in warnings:
        logger.warning(warning)
    return warnings


def check_wordpress_endpoint(session: requests.Session, endpoint: str, timeout: Optional[float] = 30) -> Dict[str, Any]:
    """
    Verifies that the WordPress REST API answers and reports its post count.

    Returns:
        ``{"total": int | None, "total_pages": int | None, "sample": dict | None}``

    Raises:
        PreFlightCheckError: If the endpoint cannot be read.
    """
    url = f"{endpoint}posts"
    try:
        response = session.get(url, params={"per_page": 1}, timeout=timeout)
        response.raise_for_status()
        posts = response.json()
    except requests.HTTPError as e:
        raise PreFlightCheckError(f"A API do WordPress respondeu com erro ({_status(e)}): {e}")
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Erro de rede ao tentar se conectar com o WordPress: {e}")
    except ValueError as e:
        raise PreFlightCheckError(f"A resposta do WordPress não é JSON válido: {e}")

    if not isinstance(posts, list):
        raise PreFlightCheckError("A resposta do WordPress não é uma lista de posts.")

    def header_int(name: str) -> Optional[int]:
        value = response.headers.get(name)
        return int(value) if value and value.isdigit() else None

    return {
        "total": header_int("X-WP-Total"),
        "total_pages": header_int("X-WP-TotalPages"),
        "sample": posts[0] if posts else None,
    }
