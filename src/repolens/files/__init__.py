"""File access module - repository checkout listing and reading."""

from repolens.files.ops import DirectoryEntry, FileSource, LocalFileSource, validate_path_in_repo

__all__ = ["DirectoryEntry", "FileSource", "LocalFileSource", "validate_path_in_repo"]
