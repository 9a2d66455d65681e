"""Module-interface rewrite rules."""

from .base import (
    RewriteContext,
    RewriteResult,
    RewriteRule,
    RuleSet,
    property_access,
    transform_tree,
)
from .import_rewrite import ImportRewriteRule
from .export_rewrite import DefaultExportRule, NamedExportRule

DEFAULT_RULES = RuleSet([ImportRewriteRule(), DefaultExportRule(), NamedExportRule()])

__all__ = [
    'RewriteContext',
    'RewriteResult',
    'RewriteRule',
    'RuleSet',
    'property_access',
    'transform_tree',
    'ImportRewriteRule',
    'DefaultExportRule',
    'NamedExportRule',
    'DEFAULT_RULES',
]
