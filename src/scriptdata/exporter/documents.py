"""
Data Document Exporter

Writes evaluated bindings as pretty-printed, key-sorted JSON documents, one
per DocumentSpec, with a size report per file and an end-of-run summary.

Writes are not transactional: a failure partway leaves earlier documents in
place. Runs are idempotent, so re-running from scratch is the recovery.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from scriptdata.assembler.recipe import DocumentSpec, Ref, SummaryLine, resolve_body
from scriptdata.exporter.sanitize import PLACEHOLDER, materialize
from scriptdata.sandbox.runtime import EvaluatedBinding

logger = logging.getLogger(__name__)


@dataclass
class ExportOptions:
    """Options for export."""
    output_dir: Optional[Path] = None
    placeholder: str = PLACEHOLDER
    indent: int = 2
    sort_keys: bool = True               # Stable output across runs


@dataclass
class WrittenDocument:
    """One document on disk."""
    filename: str
    path: Path
    size_bytes: int
    line_count: int

    def report_line(self) -> str:
        return f"{self.filename} ({self.size_bytes / 1024:.1f} KB, {self.line_count} lines)"


def dump_document(value: Any, indent: int = 2, sort_keys: bool = True) -> str:
    """Serialize pure data the way documents are written."""
    return json.dumps(value, indent=indent, sort_keys=sort_keys, ensure_ascii=False) + "\n"


class DocumentExporter:
    """Build and write data documents from evaluated bindings."""

    def __init__(
        self,
        bindings: Union[EvaluatedBinding, Mapping[str, Any]],
        options: Optional[ExportOptions] = None,
    ):
        if isinstance(bindings, EvaluatedBinding):
            bindings = bindings.values
        self.bindings: Dict[str, Any] = dict(bindings)
        self.options = options or ExportOptions()
        if self.options.output_dir is None:
            self.options.output_dir = Path("./data")

    def build(self, spec: DocumentSpec) -> Any:
        """Document value for a DocumentSpec, callables replaced."""
        return materialize(resolve_body(spec.body, self.bindings), self.options.placeholder)

    def write_document(self, filename: str, value: Any) -> WrittenDocument:
        """Sanitize and write one document."""
        data = materialize(value, self.options.placeholder)
        text = dump_document(data, self.options.indent, self.options.sort_keys)

        path = self.options.output_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(text)

        written = WrittenDocument(
            filename=filename,
            path=path,
            size_bytes=path.stat().st_size,
            line_count=text.count('\n'),
        )
        logger.info(f"  {written.report_line()}")
        return written

    def export_all(self, documents: List[DocumentSpec]) -> List[WrittenDocument]:
        """Write every document in order."""
        self.options.output_dir.mkdir(parents=True, exist_ok=True)
        return [self.write_document(spec.filename, self.build(spec)) for spec in documents]

    def count(self, ref: str) -> int:
        """Number of entries in a bound registry, 0 when absent or scalar."""
        value = Ref(ref).resolve(self.bindings)
        if isinstance(value, (dict, list)):
            return len(value)
        return 0

    def summary(self, lines: List[SummaryLine]) -> List[str]:
        """Formatted count lines for the end-of-run report."""
        width = max((len(line.label) for line in lines), default=0) + 1
        out = []
        for line in lines:
            counts = [self.count(ref) for ref in line.refs]
            out.append(f"{line.label + ':':<{width}} {line.template.format(*counts)}")
        return out
