"""Parser for the model declaration DSL.

Example::

    author { posts: has_many }
    post {
        author: belongs_to,
        comments: has_many(comment),
    }
    comment { post: belongs_to }
    photo
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from mock_orm.associations import (
    AssociationDeclaration,
    AssociationKind,
    ModelRegistry,
)
from mock_orm.errors import SchemaError
from mock_orm.parsing.model_lexer import ModelLexer


@dataclass
class AssociationSpec:
    """An association as parsed, before binding."""

    name: str
    kind: AssociationKind
    target: str | None = None
    inverse: str | None = None


@dataclass
class ModelSpec:
    """A model as parsed, before resolution."""

    name: str
    associations: list[AssociationSpec] = field(default_factory=list)


class ModelParser:
    """Parser for the model declaration DSL."""

    tokens = ModelLexer.tokens

    def __init__(self) -> None:
        self.lexer = ModelLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_schema_empty(self, p: yacc.YaccProduction) -> None:
        """schema : empty"""
        p[0] = []

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : model_def"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list model_def"""
        p[0] = p[1] + [p[2]]

    def p_model_def_bare(self, p: yacc.YaccProduction) -> None:
        """model_def : IDENTIFIER
                     | IDENTIFIER LBRACE RBRACE"""
        p[0] = ModelSpec(name=p[1])

    def p_model_def(self, p: yacc.YaccProduction) -> None:
        """model_def : IDENTIFIER LBRACE assoc_list RBRACE
                     | IDENTIFIER LBRACE assoc_list COMMA RBRACE"""
        p[0] = ModelSpec(name=p[1], associations=p[3])

    def p_assoc_list_single(self, p: yacc.YaccProduction) -> None:
        """assoc_list : assoc"""
        p[0] = [p[1]]

    def p_assoc_list_multiple(self, p: yacc.YaccProduction) -> None:
        """assoc_list : assoc_list assoc"""
        p[0] = p[1] + [p[2]]

    def p_assoc_list_comma(self, p: yacc.YaccProduction) -> None:
        """assoc_list : assoc_list COMMA assoc"""
        p[0] = p[1] + [p[3]]

    def p_assoc(self, p: yacc.YaccProduction) -> None:
        """assoc : IDENTIFIER COLON assoc_kind"""
        kind, target, inverse = p[3]
        p[0] = AssociationSpec(name=p[1], kind=kind, target=target, inverse=inverse)

    def p_assoc_kind_bare(self, p: yacc.YaccProduction) -> None:
        """assoc_kind : HAS_MANY
                      | BELONGS_TO"""
        p[0] = (self._kind(p[1]), None, None)

    def p_assoc_kind_target(self, p: yacc.YaccProduction) -> None:
        """assoc_kind : HAS_MANY LPAREN IDENTIFIER RPAREN
                      | BELONGS_TO LPAREN IDENTIFIER RPAREN"""
        p[0] = (self._kind(p[1]), p[3], None)

    def p_assoc_kind_inverse(self, p: yacc.YaccProduction) -> None:
        """assoc_kind : HAS_MANY LPAREN IDENTIFIER COMMA IDENTIFIER RPAREN"""
        p[0] = (AssociationKind.PLURAL, p[3], p[5])

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    @staticmethod
    def _kind(keyword: str) -> AssociationKind:
        return AssociationKind(keyword)

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse_specs(self, data: str) -> list[ModelSpec]:
        """Parse model declarations into unresolved specs."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.lexer.input("")
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        return specs or []

    def parse(self, data: str) -> ModelRegistry:
        """Parse model declarations and return a frozen ModelRegistry."""
        models: dict[str, dict[str, AssociationDeclaration]] = {}

        for spec in self.parse_specs(data):
            if spec.name in models:
                raise SchemaError(f"Model '{spec.name}' is already defined")
            declarations: dict[str, AssociationDeclaration] = {}
            for assoc in spec.associations:
                if assoc.name in declarations:
                    raise SchemaError(
                        f"Association '{spec.name}.{assoc.name}' is declared twice"
                    )
                declarations[assoc.name] = AssociationDeclaration(
                    kind=assoc.kind, target=assoc.target, inverse=assoc.inverse
                )
            models[spec.name] = declarations

        return ModelRegistry.build(models)
