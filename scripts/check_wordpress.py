#!/usr/bin/env python3
"""
Testa a conexão com a API REST do WordPress configurada em
config/migration_config.json (wordpress.endpoint), mostra o total de posts
informado em X-WP-Total e um post de exemplo.
"""

import argparse
import re
import sys

import requests

from wp2contentful.config import DEFAULT_CONFIG_FILE, load_config
from wp2contentful.utils.errors import ConfigurationError
from wp2contentful.utils.pre_flight_checks import PreFlightCheckError, check_wordpress_endpoint


def _rendered(value):
    if isinstance(value, dict):
        return value.get("rendered") or ""
    return value or ""


def main():
    parser = argparse.ArgumentParser(description="Verificar a API REST do WordPress usada pela migração.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="Arquivo de configuração JSON.")
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuração inválida: {e}", file=sys.stderr)
        sys.exit(2)

    endpoint = config.wordpress.endpoint
    print(f"Testando {endpoint}posts ...")
    try:
        info = check_wordpress_endpoint(requests.Session(), endpoint, timeout=config.wordpress.timeout)
    except PreFlightCheckError as e:
        print(f"Falha: {e}", file=sys.stderr)
        sys.exit(3)

    total = info["total"]
    print(f"Total de posts: {total if total is not None else 'desconhecido'}")
    if info["total_pages"] is not None:
        print(f"Total de páginas (per_page=1): {info['total_pages']}")
    print(f"Posts configurados para importar: {config.wordpress.import_post_count}")

    sample = info["sample"]
    if not sample:
        print("Nenhum post retornado.")
        return

    content = _rendered(sample.get("content"))
    images = re.findall(r"<img\s", content)
    print("Post de exemplo:")
    print(f"  ID: {sample.get('id')}")
    print(f"  Título: {_rendered(sample.get('title'))}")
    print(f"  Slug: {sample.get('slug')}")
    print(f"  Data (GMT): {sample.get('date_gmt')}")
    print(f"  Imagem destacada: {sample.get('featured_media') or 'nenhuma'}")
    print(f"  Tags: {len(sample.get('tags') or [])} | Categorias: {len(sample.get('categories') or [])}")
    print(f"  Imagens no conteúdo: {len(images)}")
    print("Conexão OK.")


if __name__ == "__main__":
    main()
