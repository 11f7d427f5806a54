from typing import Optional


class CreatableError(Exception):
    """
    Base exception for all creatable errors
    """
    pass


class DefinitionError(CreatableError):
    """
    Raised when a table definition document is invalid
    """
    pass


class MissingNameError(DefinitionError):
    """
    Raised when a default column, table or column has no name

    location points at the record, e.g. "tables[2]" or "t1.columns[0]".
    """

    def __init__(self, scope: str, table: Optional[str] = None, location: Optional[str] = None):
        self.scope = scope
        self.table = table
        self.location = location
        prefix = location or table
        if prefix is not None:
            message = f"{prefix}: {scope} name is missing."
        else:
            message = f"{scope} name is missing."
        super().__init__(message)


class DuplicateNameError(DefinitionError):
    """
    Raised when a name is declared twice in the same scope
    """

    def __init__(self, scope: str, name: str, table: Optional[str] = None):
        self.scope = scope
        self.name = name
        self.table = table
        label = f"{table}.{name}" if table is not None else name
        super().__init__(f"{label}: duplicated {scope} name.")


class DefinitionFormatError(DefinitionError):
    """
    Raised when loaded definition data is not shaped like a document
    """
    pass


class TemplateNotFoundError(CreatableError):
    """
    Raised when a template cannot be found on the search path
    """

    def __init__(self, template: str):
        self.template = template
        super().__init__(f"'{template}': template not found.")


class UsageError(CreatableError):
    """
    Raised for invalid command line or run configuration
    """
    pass
