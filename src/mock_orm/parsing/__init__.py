"""Parsing module for the model declaration DSL."""

from mock_orm.parsing.model_lexer import ModelLexer
from mock_orm.parsing.model_parser import AssociationSpec, ModelParser, ModelSpec

__all__ = [
    "AssociationSpec",
    "ModelLexer",
    "ModelParser",
    "ModelSpec",
]
