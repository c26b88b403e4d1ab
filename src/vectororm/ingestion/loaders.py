"""File loaders: plain text / markdown, PDF, DOCX, HTML."""

import asyncio
import re
from html import unescape
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup
from docx import Document as DocxDocument
from pypdf import PdfReader

from ..exceptions import DocumentLoadError
from .documents import Document, DocumentLoader


class FileLoader(DocumentLoader):
    """Base for loaders selected by file suffix. Parsing runs in a worker thread."""

    suffixes: tuple[str, ...] = ()
    doc_type: str = "text"

    def can_handle(self, source: str) -> bool:
        return Path(source).suffix.lower() in self.suffixes

    async def load(self, source: str) -> Document:
        path = Path(source)
        if not path.is_file():
            raise DocumentLoadError(source, "file does not exist")
        try:
            text, metadata = await asyncio.to_thread(self._extract, path)
        except DocumentLoadError:
            raise
        except Exception as e:
            raise DocumentLoadError(source, str(e)) from e
        return Document(text=text, source=source, type=self.doc_type, metadata=metadata)

    def _extract(self, path: Path) -> tuple[str, dict[str, Any]]:
        raise NotImplementedError


class TextLoader(FileLoader):
    suffixes = (".txt", ".md", ".markdown", ".rst")

    async def load(self, source: str) -> Document:
        document = await super().load(source)
        if Path(source).suffix.lower() in (".md", ".markdown"):
            document.type = "markdown"
        return document

    def _extract(self, path: Path) -> tuple[str, dict[str, Any]]:
        for enc in ("utf-8", "latin-1"):
            try:
                return path.read_text(encoding=enc), {"encoding": enc}
            except UnicodeDecodeError:
                continue
        raise DocumentLoadError(str(path), "could not decode text file")


class PDFLoader(FileLoader):
    suffixes = (".pdf",)
    doc_type = "pdf"

    def _extract(self, path: Path) -> tuple[str, dict[str, Any]]:
        reader = PdfReader(path)
        parts = [p.extract_text() or "" for p in reader.pages]
        meta: dict[str, Any] = {"pages": len(reader.pages)}
        if reader.metadata:
            meta["title"] = reader.metadata.get("/Title")
            meta["author"] = reader.metadata.get("/Author")
        return "\n\n".join(parts), meta


class DOCXLoader(FileLoader):
    suffixes = (".docx",)
    doc_type = "docx"

    def _extract(self, path: Path) -> tuple[str, dict[str, Any]]:
        doc = DocxDocument(path)
        paragraphs = [p.text for p in doc.paragraphs]
        tables_text = []
        for table in doc.tables:
            for row in table.rows:
                tables_text.append(" | ".join(cell.text for cell in row.cells))
        text = "\n".join(paragraphs)
        if tables_text:
            text += "\n\n" + "\n".join(tables_text)
        return text, {"paragraphs": len(paragraphs), "tables": len(doc.tables)}


class HTMLLoader(FileLoader):
    suffixes = (".html", ".htm")
    doc_type = "html"

    def _extract(self, path: Path) -> tuple[str, dict[str, Any]]:
        soup = BeautifulSoup(path.read_text(encoding="utf-8", errors="replace"), "html.parser")
        title = soup.title.get_text(strip=True) if soup.title else None
        for tag in soup(["script", "style"]):
            tag.decompose()
        text = unescape(soup.get_text(separator="\n"))
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r"\n\s*\n+", "\n\n", text)
        return text.strip(), {"title": title}
