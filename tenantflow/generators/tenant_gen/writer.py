"""File writer for tenant artifact generation."""
from pathlib import Path
from typing import List
from tenantflow.core.errors import FileSystemError
from tenantflow.generators.tenant_gen.types import GeneratedFile


def write_files(files: List[GeneratedFile], out_dir: Path) -> None:
    """
    Write generated files to the output directory.

    Args:
        files: List of GeneratedFile objects to write
        out_dir: Base output directory path

    Raises:
        FileSystemError: If a directory or file cannot be written
    """
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError("create directory for", str(out_dir), cause=e) from e

    for file in files:
        file_path = out_dir / file.path
        try:
            # Create parent directories if needed
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(file.content, encoding="utf-8")
        except OSError as e:
            raise FileSystemError("write", str(file_path), cause=e) from e
