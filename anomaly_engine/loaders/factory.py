"""
Loader factory module.

Selects the grade loader for a file based on its extension.
"""

from pathlib import Path

from anomaly_engine.loaders.base import GradeDataLoader, LoaderError
from anomaly_engine.loaders.excel_loader import ExcelGradeLoader
from anomaly_engine.loaders.json_loader import JsonSnapshotLoader

# Registry of file-backed loaders
_LOADERS: tuple[type[GradeDataLoader], ...] = (
    JsonSnapshotLoader,
    ExcelGradeLoader,
)


def get_supported_extensions() -> tuple[str, ...]:
    """
    Get all supported file extensions across all loaders.

    Returns:
        Tuple of supported extensions (e.g., ('.json', '.xlsx')).
    """
    extensions: list[str] = []
    for loader_cls in _LOADERS:
        extensions.extend(loader_cls.SUPPORTED_EXTENSIONS)
    return tuple(sorted(set(extensions)))


def create_loader(file_path: Path | str) -> GradeDataLoader:
    """
    Create the appropriate loader for a grade file.

    Args:
        file_path: Path to a JSON snapshot or Excel workbook.

    Returns:
        A loader bound to that file.

    Raises:
        LoaderError: If the file format is not supported.
    """
    path = Path(file_path)
    extension = path.suffix.lower()

    for loader_cls in _LOADERS:
        if extension in loader_cls.SUPPORTED_EXTENSIONS:
            return loader_cls(path)  # type: ignore[call-arg]

    supported = get_supported_extensions()
    raise LoaderError(
        f"Unsupported file format '{extension}'. Supported formats: {supported}",
        path,
    )
