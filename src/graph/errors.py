"""
Schema migration errors.

Each error keeps the label and property it refers to and renders a stable
message from them.
"""


class MigrationError(Exception):
    """Base class for errors raised by the migration helpers."""

    def __init__(self, message: str, label: str | None = None, property_name: str | None = None):
        super().__init__(message)
        self.label = label
        self.property_name = property_name


class DuplicateTargetError(MigrationError):
    """Raised when renaming a property onto one that already exists."""

    def __init__(self, label: str, property_name: str):
        super().__init__(
            f"Property `{property_name}` is already defined in `{label}`. "
            f"To overwrite, call `remove_property(:{label}, :{property_name})` before this method.",
            label=label,
            property_name=property_name,
        )


class _SchemaElementError(MigrationError):
    template = "{element} for {label}#{property_name}"
    element = ""

    def __init__(self, label: str, property_name: str):
        super().__init__(
            self.template.format(element=self.element, label=label, property_name=property_name),
            label=label,
            property_name=property_name,
        )


class DuplicateConstraintError(_SchemaElementError):
    """Raised when adding a uniqueness constraint that already exists."""

    element = "Duplicate constraint"


class NoSuchConstraintError(_SchemaElementError):
    """Raised when dropping a uniqueness constraint that does not exist."""

    element = "No such constraint"


class DuplicateIndexError(_SchemaElementError):
    """Raised when adding an index that already exists."""

    element = "Duplicate index"


class NoSuchIndexError(_SchemaElementError):
    """Raised when dropping an index that does not exist."""

    element = "No such index"


class MissingIdPolicyError(MigrationError):
    """Raised when a label has no registered id property policy."""

    def __init__(self, label: str):
        super().__init__(f"No id property policy registered for `{label}`", label=label)
