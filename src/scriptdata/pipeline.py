"""
Extraction Pipeline

Strict top-to-bottom run:
1. Read the game script into memory
2. Assemble the executable subset the recipe describes
3. Check references across the ordered fragments
4. Evaluate in the sandbox (debug artifact written first)
5. Sanitize and write one JSON document per grouping

Nothing is written to the output directory except the debug artifact until
evaluation succeeds.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from scriptdata.assembler.assembler import FragmentAssembler
from scriptdata.assembler.recipe import Recipe, game_recipe
from scriptdata.assembler.references import ReferenceReport, check_references
from scriptdata.config import ExtractorConfig
from scriptdata.errors import ReferenceCheckError
from scriptdata.exporter.documents import DocumentExporter, ExportOptions, WrittenDocument
from scriptdata.fragments import AssembledScript
from scriptdata.sandbox.runtime import EvaluatedBinding, evaluate
from scriptdata.sandbox.stubs import SandboxEnvironment, build_environment

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Everything a successful run produced."""
    script: AssembledScript
    references: ReferenceReport
    bindings: EvaluatedBinding
    documents: List[WrittenDocument] = field(default_factory=list)
    summary: List[str] = field(default_factory=list)

    @property
    def warnings(self) -> int:
        return len(self.script.missing) + len(self.references.problems())


def read_source(path: Path) -> str:
    """Read the whole script; no streaming."""
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


class ExtractionPipeline:
    """One extraction run over one source file."""

    def __init__(
        self,
        config: ExtractorConfig,
        recipe: Optional[Recipe] = None,
        environment: Optional[SandboxEnvironment] = None,
    ):
        self.config = config
        self.recipe = recipe or game_recipe()
        self.environment = environment or build_environment(config.host_state)

    def assemble(self, text: str) -> Tuple[AssembledScript, ReferenceReport]:
        """Assemble the recipe and check references."""
        logger.info("Extracting data constants...")
        script = FragmentAssembler(text).assemble(self.recipe)

        report = check_references(script.fragments, self.environment.names())
        report.log()
        if self.config.strict_references and not report.ok:
            raise ReferenceCheckError(report.problems())
        return script, report

    def run(self, text: Optional[str] = None) -> ExtractionResult:
        """
        Execute the full pipeline.

        Args:
            text: Source text; read from config.source_path when None

        Raises:
            ReferenceCheckError: strict_references and the check failed
            EvaluationError / EvaluationTimeoutError: fatal sandbox failure
        """
        if text is None:
            logger.info(f"Reading {self.config.source_path}...")
            text = read_source(self.config.source_path)

        script, report = self.assemble(text)

        logger.info("Evaluating game data in sandbox...")
        bindings = evaluate(
            script,
            self.environment,
            self.recipe.binding_names(),
            timeout=self.config.eval_timeout,
            debug_path=self.config.debug_artifact,
        )

        logger.info("Writing JSON files:")
        exporter = DocumentExporter(bindings, ExportOptions(
            output_dir=self.config.output_dir,
            placeholder=self.config.placeholder,
        ))
        documents = exporter.export_all(self.recipe.documents)
        summary = exporter.summary(self.recipe.summary)

        logger.info("=== Extraction Summary ===")
        for line in summary:
            logger.info(line)
        logger.info(f"Done! JSON files written to: {self.config.output_dir}")

        return ExtractionResult(
            script=script,
            references=report,
            bindings=bindings,
            documents=documents,
            summary=summary,
        )
