"""
Logical to physical name translation.

Class, slot and role names are camel case in the metamodel; the relational
source stores them upper case with `_` at each word boundary.
"""

from __future__ import annotations

from typing import Optional

from dml2graph.dml.models import DomainClass, DomainEntity

FOREIGN_KEY_PREFIX = "OID_"


def convert_to_db_style(name: str) -> str:
    """
    Convert a camel-case identifier to its upper-case database form.

    Examples:
        >>> convert_to_db_style("personContact")
        'PERSON_CONTACT'
        >>> convert_to_db_style("URL")
        'U_R_L'
    """

    if not name:
        raise ValueError("Cannot translate an empty identifier")

    parts = [name[0].upper()]
    for char in name[1:]:
        if char.isupper():
            parts.append("_")
        parts.append(char.upper())
    return "".join(parts)


def table_name(logical_name: str) -> str:
    return convert_to_db_style(logical_name)


def column_name(field_name: str) -> str:
    return convert_to_db_style(field_name)


def foreign_key_column(role_name: str) -> str:
    return FOREIGN_KEY_PREFIX + column_name(role_name)


def expected_table_name(domain_class: DomainClass) -> Optional[str]:
    """
    Return the table storing instances of `domain_class`.

    All classes of a hierarchy share the table of the root ancestor. `None` means
    the chain reaches a superclass that is not a domain class.
    """

    current: DomainEntity = domain_class
    while isinstance(current, DomainClass):
        if current.superclass is None:
            return table_name(current.name)
        current = current.superclass
    return None


def node_label(full_name: str) -> str:
    return full_name.replace(".", "_")
