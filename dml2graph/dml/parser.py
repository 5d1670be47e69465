"""
DML parsing utilities for dml2graph.

The parser understands the subset of the domain modelling language needed to
migrate data: packages, value types, external classes, domain classes with
slots and single inheritance, and relations with role multiplicities. Anything
else inside a block is skipped up to the next statement terminator.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from dml2graph.dml.models import (
    DomainClass,
    DomainEntity,
    DomainModel,
    DomainRelation,
    ExternalEntity,
    Role,
    Slot,
    qualify_name,
)

logger = logging.getLogger(__name__)

_COMMENT_PATTERN = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)
_TOKEN_PATTERN = re.compile(
    r"\s*(?:"
    r"(?P<name>\.?[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*)"
    r"|(?P<range>\.\.)"
    r"|(?P<number>\d+)"
    r"|(?P<symbol>\S)"
    r")"
)


class DMLParseError(ValueError):
    """Raised when a DML source cannot be turned into a domain model."""


@dataclass
class _Token:
    kind: str
    text: str
    line: int


@dataclass
class _PendingClass:
    domain_class: DomainClass
    package: Optional[str]
    superclass_ref: Optional[str]


@dataclass
class _PendingRole:
    type_ref: str
    name: Optional[str]
    lower: int = 0
    upper: Optional[int] = 1


@dataclass
class _PendingRelation:
    name: str
    package: Optional[str]
    roles: List[_PendingRole] = field(default_factory=list)


def _tokenize(text: str) -> List[_Token]:
    cleaned = _COMMENT_PATTERN.sub(lambda match: "\n" * match.group(0).count("\n"), text)
    tokens: List[_Token] = []
    position = 0
    line = 1
    while position < len(cleaned):
        match = _TOKEN_PATTERN.match(cleaned, position)
        if match is None or match.end() == position:
            break
        line += cleaned.count("\n", position, match.start(match.lastgroup))
        tokens.append(_Token(kind=match.lastgroup, text=match.group(match.lastgroup), line=line))
        line += cleaned.count("\n", match.start(match.lastgroup), match.end())
        position = match.end()
    return tokens


class _TokenStream:
    def __init__(self, tokens: List[_Token], source: str) -> None:
        self._tokens = tokens
        self._index = 0
        self._source = source

    def at_end(self) -> bool:
        return self._index >= len(self._tokens)

    def peek(self) -> Optional[_Token]:
        if self.at_end():
            return None
        return self._tokens[self._index]

    def next(self) -> _Token:
        token = self.peek()
        if token is None:
            raise DMLParseError(f"Unexpected end of input in {self._source}")
        self._index += 1
        return token

    def accept(self, text: str) -> bool:
        token = self.peek()
        if token is not None and token.text == text:
            self._index += 1
            return True
        return False

    def expect(self, text: str) -> _Token:
        token = self.next()
        if token.text != text:
            raise self.error(f"expected {text!r} but found {token.text!r}", token)
        return token

    def expect_name(self) -> str:
        token = self.next()
        if token.kind != "name":
            raise self.error(f"expected an identifier but found {token.text!r}", token)
        return token.text

    def skip_statement(self) -> None:
        """Skip tokens up to and including the next `;` at the current nesting level."""

        depth = 0
        while not self.at_end():
            token = self.next()
            if token.text == "{":
                depth += 1
            elif token.text == "}":
                depth -= 1
                if depth == 0:
                    self.accept(";")
                    return
            elif token.text == ";" and depth == 0:
                return

    def error(self, message: str, token: Optional[_Token] = None) -> DMLParseError:
        line = token.line if token else "?"
        return DMLParseError(f"{self._source}:{line}: {message}")


class DMLParser:
    """Parses DML sources into a `DomainModel`."""

    def __init__(self) -> None:
        self._classes: List[_PendingClass] = []
        self._relations: List[_PendingRelation] = []
        self._externals: Dict[str, str] = {}

    def parse(self, paths: Sequence[Path]) -> DomainModel:
        for path in paths:
            self._parse_source(Path(path).read_text(encoding="utf-8"), str(path))
        return self._build()

    def parse_text(self, text: str, source: str = "<string>") -> DomainModel:
        self._parse_source(text, source)
        return self._build()

    # Declarations ----------------------------------------------------------------
    def _parse_source(self, text: str, source: str) -> None:
        stream = _TokenStream(_tokenize(text), source)
        package: Optional[str] = None

        while not stream.at_end():
            token = stream.next()
            keyword = token.text

            if keyword == "package":
                package = stream.expect_name().lstrip(".")
                stream.expect(";")
            elif keyword == "class":
                self._parse_class(stream, package)
            elif keyword == "relation":
                self._parse_relation(stream, package)
            elif keyword == "external":
                stream.expect("class")
                self._parse_external(stream, package)
            elif keyword in {"valueType", "enum"}:
                stream.skip_statement()
            elif keyword == ";":
                continue
            else:
                raise stream.error(f"unexpected token {keyword!r}", token)

    def _parse_external(self, stream: _TokenStream, package: Optional[str]) -> None:
        full_name = _absolute_name(stream.expect_name(), package)
        alias = full_name.rsplit(".", 1)[-1]
        if stream.accept("as"):
            alias = stream.expect_name()
        stream.expect(";")
        self._externals[alias] = full_name

    def _parse_class(self, stream: _TokenStream, package: Optional[str]) -> None:
        declared = stream.expect_name()
        full_name = _absolute_name(declared, package)
        name = full_name.rsplit(".", 1)[-1]

        superclass_ref = None
        if stream.accept("extends"):
            superclass_ref = stream.expect_name()
        if stream.accept("implements"):
            stream.expect_name()
            while stream.accept(","):
                stream.expect_name()

        domain_class = DomainClass(name=name, full_name=full_name)
        self._classes.append(
            _PendingClass(domain_class=domain_class, package=package, superclass_ref=superclass_ref)
        )

        if stream.accept(";"):
            return

        stream.expect("{")
        while not stream.accept("}"):
            type_name = stream.expect_name()
            slot_name = stream.expect_name()
            if stream.accept("("):
                while not stream.accept(")"):
                    stream.next()
            stream.expect(";")
            domain_class.add_slot(Slot(name=slot_name, type_name=type_name))
        stream.accept(";")

    def _parse_relation(self, stream: _TokenStream, package: Optional[str]) -> None:
        relation = _PendingRelation(name=stream.expect_name(), package=package)
        stream.expect("{")

        while not stream.accept("}"):
            type_ref = stream.expect_name()
            stream.expect("playsRole")
            role = _PendingRole(type_ref=type_ref, name=None)
            token = stream.peek()
            if token is not None and token.kind == "name":
                role.name = stream.next().text
            if stream.accept("{"):
                self._parse_role_body(stream, role)
            else:
                stream.expect(";")
            stream.accept(";")
            relation.roles.append(role)

        stream.accept(";")
        if len(relation.roles) != 2:
            raise stream.error(
                f"relation {relation.name} declares {len(relation.roles)} roles, expected 2"
            )
        self._relations.append(relation)

    def _parse_role_body(self, stream: _TokenStream, role: _PendingRole) -> None:
        while not stream.accept("}"):
            token = stream.next()
            if token.text == "multiplicity":
                role.lower, role.upper = _parse_multiplicity(stream)
                stream.expect(";")
            elif token.text != ";":
                # indexed by, ordered and similar options carry no migration data
                while not stream.accept(";"):
                    stream.next()

    # Resolution ------------------------------------------------------------------
    def _build(self) -> DomainModel:
        model = DomainModel()
        for pending in self._classes:
            if pending.domain_class.full_name in model.classes:
                raise DMLParseError(f"Duplicate class declaration {pending.domain_class.full_name}")
            model.add_class(pending.domain_class)

        for pending in self._classes:
            if pending.superclass_ref:
                pending.domain_class.superclass = self._resolve_entity(
                    model, pending.superclass_ref, pending.package
                )
        _check_acyclic(model.get_domain_classes())

        for pending_relation in self._relations:
            first, second = (
                self._build_role(model, pending_role, pending_relation)
                for pending_role in pending_relation.roles
            )
            model.add_relation(DomainRelation(name=pending_relation.name, first_role=first, second_role=second))

        logger.debug(
            "Parsed %d domain classes and %d relations",
            len(model.classes),
            len(model.relations),
        )
        self._classes = []
        self._relations = []
        return model

    def _build_role(
        self,
        model: DomainModel,
        pending_role: _PendingRole,
        relation: _PendingRelation,
    ) -> Role:
        entity = self._resolve_entity(model, pending_role.type_ref, relation.package)
        if not isinstance(entity, DomainClass):
            raise DMLParseError(
                f"Relation {relation.name} references {pending_role.type_ref}, which is not a domain class"
            )
        return Role(
            type=entity,
            name=pending_role.name,
            multiplicity_lower=pending_role.lower,
            multiplicity_upper=pending_role.upper,
        )

    def _resolve_entity(self, model: DomainModel, reference: str, package: Optional[str]) -> DomainEntity:
        if reference.startswith("."):
            candidates = [reference[1:]]
        else:
            candidates = [qualify_name(package, reference), reference]

        for candidate in candidates:
            if candidate in model.classes:
                return model.classes[candidate]

        found = model.find_class(reference.lstrip("."))
        if found is not None:
            return found

        full_name = self._externals.get(reference, reference.lstrip("."))
        return ExternalEntity(name=full_name.rsplit(".", 1)[-1], full_name=full_name)


def _absolute_name(declared: str, package: Optional[str]) -> str:
    if declared.startswith("."):
        return declared[1:]
    return qualify_name(package, declared)


def _parse_multiplicity(stream: _TokenStream) -> Tuple[int, Optional[int]]:
    token = stream.next()
    if token.text == "*":
        return 0, None
    if token.kind != "number":
        raise stream.error(f"invalid multiplicity {token.text!r}", token)

    lower = int(token.text)
    if not stream.accept(".."):
        return lower, lower

    upper_token = stream.next()
    if upper_token.text == "*":
        return lower, None
    if upper_token.kind != "number":
        raise stream.error(f"invalid multiplicity bound {upper_token.text!r}", upper_token)
    return lower, int(upper_token.text)


def _check_acyclic(classes: Iterable[DomainClass]) -> None:
    for domain_class in classes:
        seen = set()
        current: Optional[DomainEntity] = domain_class
        while isinstance(current, DomainClass):
            if id(current) in seen:
                raise DMLParseError(f"Inheritance cycle detected at {domain_class.full_name}")
            seen.add(id(current))
            current = current.superclass


def load_domain_model(paths: Sequence[Path]) -> DomainModel:
    """Parse the given DML files, in order, into a single domain model."""

    return DMLParser().parse(paths)
