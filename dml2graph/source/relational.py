"""
Relational source access for dml2graph.

Any DB-API 2.0 connection can back a `RelationalSource`; production runs use
MySQL through mysql-connector-python. Table and column names are interpolated
into the SQL text, so they must only ever come from the naming translator.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping, Sequence

import mysql.connector

from dml2graph.config import SourceSettings
from dml2graph.errors import MissingClassMetadataError, MissingColumnError

logger = logging.getLogger(__name__)

OID_COLUMN = "OID"
CLASS_INFO_TABLE = "FF$DOMAIN_CLASS_INFO"


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


class SourceRow(Mapping[str, Any]):
    """A fetched row keyed by upper-case column name."""

    def __init__(self, columns: Sequence[str], values: Sequence[Any], table: str = "") -> None:
        self._values = {column.upper(): value for column, value in zip(columns, values)}
        self._table = table

    def __getitem__(self, column: str) -> Any:
        return self._values[column.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def value(self, column: str) -> Any:
        try:
            return self[column]
        except KeyError:
            raise MissingColumnError(column, self._table) from None

    def oid(self, column: str = OID_COLUMN) -> int:
        return int(self.value(column))


class RelationalSource:
    """
    Streams rows from the relational store.

    Args:
        connection: Open DB-API connection, left non-autocommitting for the run.
        placeholder: Parameter marker of the driver (`%s` for MySQL, `?` for SQLite).
        fetch_size: Rows pulled from the cursor per round trip.
    """

    def __init__(self, connection: Any, *, placeholder: str = "%s", fetch_size: int = 500) -> None:
        self._connection = connection
        self.placeholder = placeholder
        self._fetch_size = fetch_size

    @classmethod
    def from_settings(cls, settings: SourceSettings, *, fetch_size: int = 500) -> "RelationalSource":
        connection = mysql.connector.connect(
            host=settings.host,
            port=settings.port,
            user=settings.username,
            password=settings.password,
            database=settings.database,
            autocommit=False,
        )
        logger.info("Connected to MySQL database %s on %s", settings.database, settings.host)
        return cls(connection, placeholder="%s", fetch_size=fetch_size)

    def query(self, sql: str, params: Sequence[Any] = (), *, table: str = "") -> Iterator[SourceRow]:
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, tuple(params))
            columns = [description[0] for description in cursor.description]
            while True:
                rows = cursor.fetchmany(self._fetch_size)
                if not rows:
                    break
                for values in rows:
                    yield SourceRow(columns, values, table)
        finally:
            cursor.close()

    def close(self) -> None:
        self._connection.close()


class ClassCatalog:
    """Looks up the class identifiers stored in `FF$DOMAIN_CLASS_INFO`."""

    def __init__(self, source: RelationalSource) -> None:
        self._source = source

    def class_id(self, full_name: str) -> int:
        sql = (
            f"SELECT DOMAIN_CLASS_ID FROM {quote_identifier(CLASS_INFO_TABLE)} "
            f"WHERE DOMAIN_CLASS_NAME = {self._source.placeholder}"
        )
        rows = list(self._source.query(sql, (full_name,), table=CLASS_INFO_TABLE))
        if not rows:
            raise MissingClassMetadataError(full_name)
        return int(rows[0].value("DOMAIN_CLASS_ID"))
