from typing import Any, Dict, List, Optional

from creatable.observability.logger import logger
from creatable.utils.exceptions import (
    DefinitionFormatError,
    DuplicateNameError,
    MissingNameError,
)


class Manipulator:
    """
    Checks a loaded table definition document and enriches it for templates.

    This class:
    - MUTATES the document in place
    - Applies default column values by column name
    - Links every column back to its owning table (column["table"])
    - Copies type/width from the column referenced by "ref"
    - Stops at the first invalid or duplicated name
    """

    def __init__(self, document: Dict[str, Any]):
        self.document = document
        self.defaults: Dict[str, Any] = _mapping(document.get("defaults") or {}, "defaults")
        self.tables: List[Dict[str, Any]] = _sequence(document.get("tables") or [], "tables")

    # ------------------------------------------------------------------
    # Default columns
    # ------------------------------------------------------------------

    def _build_default_columns(self) -> Dict[str, Dict[str, Any]]:
        default_columns: Dict[str, Dict[str, Any]] = {}
        columns = _sequence(self.defaults.get("columns") or [], "defaults.columns")
        for index, column in enumerate(columns):
            location = f"defaults.columns[{index}]"
            colname = _name_of(_mapping(column, location), location)
            if colname is None:
                raise MissingNameError("default column", location=location)
            if colname in default_columns:
                raise DuplicateNameError("default column", colname)
            default_columns[colname] = column
        return default_columns

    # ------------------------------------------------------------------
    # Column processing
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_defaults(column: Dict[str, Any], default_column: Dict[str, Any]):
        for key, value in default_column.items():
            if key not in column:
                column[key] = value

    @staticmethod
    def _resolve_ref(column: Dict[str, Any], location: str):
        ref_column = column.get("ref")
        if ref_column is None:
            return
        _mapping(ref_column, f"{location}.ref")
        # type is always taken from the referenced column, width only when unset
        column["type"] = ref_column.get("type")
        if "width" in ref_column and column.get("width") is None:
            column["width"] = ref_column["width"]

    def _manipulate_table(
        self,
        table: Dict[str, Any],
        tblname: str,
        default_columns: Dict[str, Dict[str, Any]],
    ):
        colnames = set()
        columns = _sequence(table.get("columns") or [], f"{tblname}.columns")
        for index, column in enumerate(columns):
            location = f"{tblname}.columns[{index}]"
            colname = _name_of(_mapping(column, location), location)
            if colname is None:
                raise MissingNameError("column", table=tblname, location=location)
            if colname in colnames:
                raise DuplicateNameError("column", colname, table=tblname)
            colnames.add(colname)

            default_column = default_columns.get(colname)
            if default_column:
                self._apply_defaults(column, default_column)

            column["table"] = table
            self._resolve_ref(column, f"{tblname}.{colname}")

        logger.debug("manipulated table %s (%d columns)", tblname, len(colnames))

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------

    def manipulate(self):
        default_columns = self._build_default_columns()

        tablenames = set()
        for index, table in enumerate(self.tables):
            location = f"tables[{index}]"
            tblname = _name_of(_mapping(table, location), location)
            if tblname is None:
                raise MissingNameError("table", location=location)
            if tblname in tablenames:
                raise DuplicateNameError("table", tblname)
            tablenames.add(tblname)
            self._manipulate_table(table, tblname, default_columns)


def _mapping(value: Any, location: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise DefinitionFormatError(
            f"{location}: expected a mapping, got: {type(value).__name__}"
        )
    return value


def _sequence(value: Any, location: str) -> List[Any]:
    if not isinstance(value, list):
        raise DefinitionFormatError(
            f"{location}: expected a list, got: {type(value).__name__}"
        )
    return value


def _name_of(record: Dict[str, Any], location: str) -> Optional[str]:
    name = record.get("name")
    if name is None or name == "":
        return None
    if isinstance(name, (dict, list)):
        raise DefinitionFormatError(f"{location}: name must be a scalar value")
    return name


def manipulate(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Manipulate ``document`` in place and return it.
    """
    Manipulator(document).manipulate()
    return document
