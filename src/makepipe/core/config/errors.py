"""
Exceções canônicas da camada de configuração do makepipe.

Este módulo define a hierarquia de exceções utilizada durante o
carregamento, a validação estrutural e a resolução da configuração.

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros estruturais são tratados como falhas fatais
    - Mensagens de erro são claras e direcionadas ao usuário

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa erro de execução de Segment
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do makepipe.

    Permite captura genérica de erros de configuração, distinguindo-os
    de falhas de validação ou execução de Segments.
    """


class ConfigFileNotFoundError(ConfigError):
    """
    Exceção levantada quando um arquivo de configuração explicitamente
    informado como defaults não é encontrado.

    Limites explícitos:
        - Não tenta inferir ou criar o arquivo automaticamente
        - Overrides locais ausentes não disparam este erro (são opcionais)
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz da configuração
    não é um dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"execution": {"quiet": false}}
        - override: {"execution": "silent"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """
