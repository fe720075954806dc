from .auth_service import AuthError, AuthService
from .entry_service import (
    Entry,
    EntryInput,
    EntryNotFoundError,
    EntryService,
    EntryServiceError,
)
from .file_service import EntryFile, EntryFileService, FileServiceError
from .filename_sanitizer import (
    SanitizeResult,
    file_extension,
    filename_stem,
    sanitize_filename,
)
from .storage_service import StorageError, StorageService, StoredObject
from .supabase_client import SupabaseClient, SupabaseError

__all__ = [
    "AuthError",
    "AuthService",
    "Entry",
    "EntryInput",
    "EntryNotFoundError",
    "EntryService",
    "EntryServiceError",
    "EntryFile",
    "EntryFileService",
    "FileServiceError",
    "SanitizeResult",
    "file_extension",
    "filename_stem",
    "sanitize_filename",
    "StorageError",
    "StorageService",
    "StoredObject",
    "SupabaseClient",
    "SupabaseError",
]
