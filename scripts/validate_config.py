#!/usr/bin/env python3
"""
Valida a configuração da migração para o Contentful sem escrever nada:
- Formato do token (CFPAT-) e campos obrigatórios de config/migration_config.json
- Acesso ao space e ao environment
- Existência do content type e tipos dos seus campos
"""

import argparse
import sys

from wp2contentful.config import DEFAULT_CONFIG_FILE, load_config
from wp2contentful.migrators.contentful_migrator import ContentfulClient
from wp2contentful.utils.errors import ConfigurationError, ContentTypeMissingError
from wp2contentful.utils.pre_flight_checks import (
    PreFlightCheckError,
    check_content_type_fields,
    describe_required_fields,
    run_contentful_pre_flight_checks,
)


def main():
    parser = argparse.ArgumentParser(description="Validar a configuração do Contentful usada pela migração.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="Arquivo de configuração JSON.")
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuração inválida: {e}", file=sys.stderr)
        sys.exit(2)

    cf = config.contentful
    print(f"Space: {cf.space_id} | Environment: {cf.environment} | Content type: {cf.content_type}")
    print(f"Formato do conteúdo: {cf.content_format}")

    client = ContentfulClient(cf.access_token, cf.space_id, cf.environment, base_url=cf.base_url, timeout=cf.timeout)
    try:
        content_type = run_contentful_pre_flight_checks(client, cf.content_type)
    except ContentTypeMissingError as e:
        print(f"{e}", file=sys.stderr)
        print(f"Content types disponíveis: {', '.join(e.available) or '(nenhum)'}", file=sys.stderr)
        print("Campos necessários:", file=sys.stderr)
        for line in describe_required_fields(cf.content_format):
            print(f"  - {line}", file=sys.stderr)
        sys.exit(2)
    except PreFlightCheckError as e:
        print(f"Falha na verificação: {e}", file=sys.stderr)
        sys.exit(3)

    warnings = check_content_type_fields(content_type, cf.content_format)
    if warnings:
        print("Avisos sobre os campos do content type:")
        for warning in warnings:
            print(f"  - {warning}")
    else:
        print("Todos os campos esperados estão presentes.")

    print("Configuração válida.")


if __name__ == "__main__":
    main()
