"""
Leitura paginada da API REST do WordPress (``/wp-json/wp/v2/``).

Cada coleção (posts, tags, categorias, mídia) é buscada por completo, em
sequência, antes da normalização começar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from wp2contentful.config import WORDPRESS_MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

RESOURCE_KINDS = ("posts", "tags", "categories", "media")
AUX_KINDS = ("tags", "categories", "media")


@dataclass
class FetchResult:
    success: bool
    items: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class SourceData:
    posts: FetchResult
    tags: FetchResult
    categories: FetchResult
    media: FetchResult

    def resources(self, kind: str) -> List[Dict[str, Any]]:
        return getattr(self, kind).items


def _header_int(response: requests.Response, name: str) -> Optional[int]:
    value = response.headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def fetch_up_to(
    session: requests.Session,
    base_url: str,
    max_items: int,
    *,
    page_size: int = WORDPRESS_MAX_PAGE_SIZE,
    timeout: Optional[float] = None,
) -> FetchResult:
    """Busca até ``max_items`` itens de um endpoint de coleção do WordPress.

    Pagina com ``per_page``/``page`` até atingir ``max_items``, receber uma
    página vazia ou alcançar o total informado no cabeçalho ``X-WP-Total``.
    A última página pede apenas o que falta; como o WordPress calcula a
    posição da página a partir de ``per_page``, essa página reduzida também
    envia ``offset``.

    Args:
        session: Sessão ``requests`` usada para as chamadas.
        base_url: URL da coleção, por exemplo ``https://site/wp-json/wp/v2/posts``.
        max_items: Número máximo de itens a retornar.
        page_size: Tamanho máximo da página (o WordPress aceita até 100).
        timeout: Timeout opcional de cada requisição, em segundos.

    Returns:
        FetchResult: ``success`` é verdadeiro quando algum item foi obtido;
        ``error`` traz a falha que interrompeu a paginação, se houve.
    """
    page_size = max(1, min(int(page_size), WORDPRESS_MAX_PAGE_SIZE))
    items: List[Dict[str, Any]] = []
    total: Optional[int] = None
    total_pages: Optional[int] = None
    error: Optional[str] = None
    page = 1

    while len(items) < max_items:
        remaining = max_items - len(items)
        if total is not None:
            if len(items) >= total:
                break
            remaining = min(remaining, total - len(items))
        if total_pages is not None and page > total_pages:
            break

        per_page = min(page_size, remaining)
        params: Dict[str, Any] = {"per_page": per_page, "page": page}
        if items and per_page != page_size:
            params["offset"] = len(items)

        try:
            resp = session.get(base_url, params=params, timeout=timeout)
            resp.raise_for_status()
            batch = resp.json()
        except (requests.RequestException, ValueError) as e:
            error = f"{base_url} page {page}: {e}"
            logger.warning("Stopping pagination for %s after page error: %s", base_url, e)
            break

        if not isinstance(batch, list):
            error = f"{base_url} page {page}: unexpected payload of type {type(batch).__name__}"
            logger.warning("Stopping pagination for %s: response is not a list", base_url)
            break

        if total is None:
            total = _header_int(resp, "X-WP-Total")
        if total_pages is None and total is None:
            total_pages = _header_int(resp, "X-WP-TotalPages")

        if not batch:
            break
        items.extend(batch[:remaining])
        logger.debug("Fetched %d items from %s (page %d)", len(batch), base_url, page)
        page += 1

    return FetchResult(success=len(items) > 0, items=items, error=error)


def fetch_wordpress_data(
    session: requests.Session,
    endpoint: str,
    *,
    post_limit: int,
    aux_limit: int,
    page_size: int = WORDPRESS_MAX_PAGE_SIZE,
    timeout: Optional[float] = None,
) -> SourceData:
    """Busca posts e as coleções auxiliares, uma por vez.

    Uma coleção auxiliar que falha não interrompe a execução: as referências
    a ela simplesmente não serão resolvidas durante a normalização.

    Args:
        session: Sessão ``requests`` usada para as chamadas.
        endpoint: URL base da API, terminada em ``/`` (``.../wp-json/wp/v2/``).
        post_limit: Número máximo de posts.
        aux_limit: Número máximo de itens para tags, categorias e mídia.

    Returns:
        SourceData: o resultado de cada coleção.
    """
    results: Dict[str, FetchResult] = {}
    for kind in RESOURCE_KINDS:
        limit = post_limit if kind == "posts" else aux_limit
        url = f"{endpoint}{kind}"
        logger.info("Fetching up to %d %s from %s", limit, kind, url)
        result = fetch_up_to(session, url, limit, page_size=page_size, timeout=timeout)
        if result.error and kind in AUX_KINDS:
            logger.warning("Could not fetch all %s: %s", kind, result.error)
        logger.info("...got %d %s", len(result.items), kind)
        results[kind] = result
    return SourceData(**results)
