"""
Typed Exception Hierarchy for the DevSpace Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the forms layer, the backup dialog, the integrity panel) must react
to failures by type, not by parsing message strings:

    try:
        await data_store.restore_data_from_file(path)
    except ImportFormatError as e:
        show_error(f"Not a DevSpace backup: {e.reason}")
    except RestoreError as e:
        show_error(f"Could not read {e.path}")

Every exception has a CODE class attribute (machine-readable) and carries its
context as attributes, which the structured log formatter copies into the
JSON log line.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    DevspaceKernelError (base)
    |
    +-- DocumentError
    |   +-- DecodeError
    |   +-- ImportFormatError
    |   +-- MigrationError
    |
    +-- EntityError
    |   +-- EntityNotFoundError
    |   +-- InvalidFieldError
    |
    +-- PersistenceError
    |   +-- PersistenceUnavailableError
    |
    +-- BackupError
        +-- BackupWriteError
        +-- RestoreError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|------------------------------------------
Document     | DECODE_ERROR              | Persisted string is neither plain nor compressed
             | IMPORT_FORMAT_ERROR       | Imported JSON lacks the four collection arrays
             | MIGRATION_ERROR           | A data-version migration step failed
-------------|---------------------------|------------------------------------------
Entity       | ENTITY_NOT_FOUND          | Update/delete on unknown id (strict_ids only)
             | INVALID_FIELD             | Unknown field, protected field, bad enum value
-------------|---------------------------|------------------------------------------
Persistence  | PERSISTENCE_UNAVAILABLE   | No durable storage behind the adapter
-------------|---------------------------|------------------------------------------
Backup       | BACKUP_WRITE_FAILED       | Backup sink could not write the file
             | RESTORE_FAILED            | Backup file could not be read

===============================================================================
RECOVERY RULES
===============================================================================

1. DecodeError is recovered where the document is loaded: the store starts
   from an empty Document and logs the failure.
2. ImportFormatError becomes ``False`` from ``import_data`` and propagates
   from ``restore_from_file``.  A failed import never partially applies.
3. PersistenceUnavailableError is logged and swallowed at the store
   boundary; the session continues in memory.
4. Integrity issues are returned as data and never raised.
"""


class DevspaceKernelError(Exception):
    """
    Base exception for all kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "DEVSPACE_KERNEL_ERROR"


# Document-level exceptions


class DocumentError(DevspaceKernelError):
    """Base exception for document encoding, import and migration errors."""

    code: str = "DOCUMENT_ERROR"


class DecodeError(DocumentError):
    """Persisted string could not be decoded into a Document."""

    code: str = "DECODE_ERROR"

    def __init__(self, reason: str, raw_length: int = 0):
        self.reason = reason
        self.raw_length = raw_length
        super().__init__(f"Cannot decode stored document: {reason}")


class ImportFormatError(DocumentError):
    """Imported JSON does not have the shape of a Document."""

    code: str = "IMPORT_FORMAT_ERROR"

    def __init__(self, reason: str, missing: tuple[str, ...] = ()):
        self.reason = reason
        self.missing = missing
        super().__init__(f"Invalid data format: {reason}")


class MigrationError(DocumentError):
    """A data-version migration step raised."""

    code: str = "MIGRATION_ERROR"

    def __init__(self, from_version: str, to_version: str, reason: str):
        self.from_version = from_version
        self.to_version = to_version
        self.reason = reason
        super().__init__(
            f"Migration {from_version} -> {to_version} failed: {reason}"
        )


# Entity exceptions


class EntityError(DevspaceKernelError):
    """Base exception for entity-level errors."""

    code: str = "ENTITY_ERROR"


class EntityNotFoundError(EntityError):
    """No entity of the given kind has this id."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class InvalidFieldError(EntityError):
    """A field name or value is not acceptable for the entity kind."""

    code: str = "INVALID_FIELD"

    def __init__(self, entity_type: str, field_name: str, reason: str):
        self.entity_type = entity_type
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid field {entity_type}.{field_name}: {reason}")


# Persistence exceptions


class PersistenceError(DevspaceKernelError):
    """Base exception for storage adapter errors."""

    code: str = "PERSISTENCE_ERROR"


class PersistenceUnavailableError(PersistenceError):
    """The durable key-value storage cannot be reached."""

    code: str = "PERSISTENCE_UNAVAILABLE"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Storage unavailable for '{key}': {reason}")


# Backup / restore exceptions


class BackupError(DevspaceKernelError):
    """Base exception for backup and restore errors."""

    code: str = "BACKUP_ERROR"


class BackupWriteError(BackupError):
    """The backup sink failed to write the export file."""

    code: str = "BACKUP_WRITE_FAILED"

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Could not write backup {filename}: {reason}")


class RestoreError(BackupError):
    """The backup file could not be read."""

    code: str = "RESTORE_FAILED"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not read backup {path}: {reason}")
