"""
Debug dump tool for QA of statement parsing.
"""
from pathlib import Path
from typing import Dict
import logging

from ..core.tables import segment
from ..core.detectors import get_layout
from ..models.schema import ParseResult

logger = logging.getLogger(__name__)


class DebugDump:
    """Writes the intermediate state of a parse to disk."""

    def __init__(self, result: ParseResult):
        self.result = result
        self.layout = get_layout(result.template_id)

    def write(self, output_dir: Path) -> Dict[str, Path]:
        """
        Write the extracted text, the retained chunks and the statement.

        Args:
            output_dir: Directory to write the files into

        Returns:
            Mapping of artifact name to written path
        """
        output_dir.mkdir(parents=True, exist_ok=True)

        chunks = segment(self.result.text, self.layout)
        artifacts = {
            "extract": output_dir / "extract.txt",
            "chunks": output_dir / "chunks.txt",
            "statement": output_dir / "statement.json",
        }

        artifacts["extract"].write_text(self.result.text, encoding="utf-8")
        artifacts["chunks"].write_text(
            "".join(f"{chunk.text.strip()}\n" for chunk in chunks), encoding="utf-8"
        )
        artifacts["statement"].write_text(
            self.result.statement.model_dump_json(indent=2), encoding="utf-8"
        )

        logger.info(f"Debug dump written to {output_dir}")
        return artifacts


def create_debug_dump(result: ParseResult, output_dir: Path) -> Dict[str, Path]:
    """
    Convenience function to dump a parse result.

    Args:
        result: Parse result to dump
        output_dir: Directory to write the files into
    """
    return DebugDump(result).write(output_dir)
