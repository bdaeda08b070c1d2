"""Document extraction.

This module provides the DocumentExtractor, which finds supported
files under a path and reads each one into normalized text plus a
small metadata dictionary. Chunking happens later, in the pipeline.

Supported formats:
- .pdf via pdfplumber
- .md with optional YAML front matter
- .txt
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from docrag.core.exceptions import AcquisitionError, ExtractionError, UnsupportedFileError
from docrag.core.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".md", ".txt")
IGNORED_DIRECTORIES = frozenset({"node_modules", ".git"})

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


@dataclass
class ExtractedDocument:
    """Text read from one file.

    Attributes:
        source: Absolute path of the file
        text: Extracted text
        metadata: Document metadata ("title", optionally "page"/"pages")
    """
    source: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class FileStats:
    """Summary of the supported files under a directory.

    Attributes:
        total_files: Number of supported files
        total_size: Combined size in bytes
        file_types: File count per extension
    """
    total_files: int = 0
    total_size: int = 0
    file_types: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_size": self.total_size,
            "file_types": dict(self.file_types),
        }


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from a Markdown body.

    Returns:
        (front matter mapping, body). The mapping is empty when the
        document has no front matter.
    """
    match = _FRONT_MATTER.match(content)
    if not match:
        return {}, content

    data = yaml.safe_load(match.group(1))
    if not isinstance(data, dict):
        data = {}
    return data, content[match.end():]


class DocumentExtractor:
    """Read supported documents from a file or directory tree.

    Example:
        >>> extractor = DocumentExtractor()
        >>> documents = await extractor.extract("./docs")
        >>> documents[0].metadata["title"]
        'guide.md'
    """

    def __init__(self, extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS) -> None:
        self.extensions = tuple(ext.lower() for ext in extensions)

    def discover(self, root: Path) -> list[Path]:
        """List supported files under root, sorted by path.

        Raises:
            AcquisitionError: If the directory cannot be walked
        """
        if not root.exists():
            return []
        if root.is_file():
            return [root]

        try:
            files = [
                path
                for path in root.rglob("*")
                if path.is_file()
                and path.suffix.lower() in self.extensions
                and not IGNORED_DIRECTORIES.intersection(path.relative_to(root).parts)
            ]
        except OSError as e:
            raise AcquisitionError(
                f"Failed to process directory {root}: {e}",
                source=str(root),
                source_type="directory",
            ) from e

        return sorted(files)

    async def extract(self, path: str | Path) -> list[ExtractedDocument]:
        """Extract every supported file under path.

        A directory that does not exist yields no documents. Files that
        fail to parse are logged and skipped.

        Raises:
            UnsupportedFileError: If path is a single unsupported file
            AcquisitionError: If the directory cannot be walked
        """
        root = Path(path)
        if root.is_file() and root.suffix.lower() not in self.extensions:
            raise UnsupportedFileError(str(root), root.suffix.lower())

        documents: list[ExtractedDocument] = []
        for file_path in self.discover(root):
            try:
                documents.append(self.extract_file(file_path))
            except AcquisitionError as e:
                logger.warning(f"Failed to process file {file_path}: {e}")

        return documents

    def extract_file(self, file_path: Path) -> ExtractedDocument:
        """Read a single file.

        Raises:
            UnsupportedFileError: If the extension is not supported
            ExtractionError: If the file cannot be read or parsed
        """
        extension = file_path.suffix.lower()
        source = str(file_path.resolve())

        try:
            if extension == ".pdf":
                text, metadata = self._read_pdf(file_path)
            elif extension == ".md":
                text, metadata = self._read_markdown(file_path)
            elif extension == ".txt":
                text = file_path.read_text(encoding="utf-8")
                metadata = {"title": file_path.name}
            else:
                raise UnsupportedFileError(source, extension)
        except AcquisitionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Failed to read file {source}: {e}", file_path=source) from e

        return ExtractedDocument(source=source, text=text, metadata=metadata)

    def _read_markdown(self, file_path: Path) -> tuple[str, dict[str, Any]]:
        front_matter, body = parse_front_matter(file_path.read_text(encoding="utf-8"))
        metadata = dict(front_matter)
        metadata["title"] = str(front_matter.get("title") or file_path.name)
        return body, metadata

    def _read_pdf(self, file_path: Path) -> tuple[str, dict[str, Any]]:
        try:
            import pdfplumber
        except ImportError as e:
            raise ImportError(
                "pdfplumber is required for PDF extraction. "
                "Install it with: pip install pdfplumber"
            ) from e

        with pdfplumber.open(file_path) as pdf:
            info = pdf.metadata or {}
            pages = [page.extract_text() or "" for page in pdf.pages]

        return "\n\n".join(pages), {
            "title": str(info.get("Title") or file_path.name),
            "pages": len(pages),
        }

    def get_file_stats(self, path: str | Path) -> FileStats:
        """Count and size the supported files under path."""
        stats = FileStats()
        for file_path in self.discover(Path(path)):
            try:
                size = file_path.stat().st_size
            except OSError as e:
                logger.warning(f"Failed to get stats for {file_path}: {e}")
                continue
            ext = file_path.suffix.lower()
            stats.total_files += 1
            stats.total_size += size
            stats.file_types[ext] = stats.file_types.get(ext, 0) + 1
        return stats
