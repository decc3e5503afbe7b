"""Accuracy measurement for the identity-document parser.

Compares parser output with hand-labelled values per document and reports
precision, recall, F1 and exact-match accuracy for each field. An empty
prediction counts as a miss rather than a wrong answer, which is how the
parser signals that it declined to guess.
"""

import csv
import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from src.extraction.identity_parser import ExtractedIdentity
from src.utils.logger import get_logger

logger = get_logger(__name__)

IDENTITY_FIELDS: tuple[str, ...] = ("name", "date_of_birth", "id_number")
TARGET_ACCURACY = 0.9


@dataclass
class FieldMetrics:
    """Counts and derived scores for one identity field."""

    field_name: str
    correct: int = 0
    wrong: int = 0
    missed: int = 0
    exact_matches: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.wrong + self.missed

    @property
    def precision(self) -> float:
        """Share of non-empty predictions that were right."""
        attempted = self.correct + self.wrong
        return self.correct / attempted if attempted else 0.0

    @property
    def recall(self) -> float:
        """Share of labelled values that were found correctly."""
        return self.correct / self.total if self.total else 0.0

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if p + r else 0.0

    @property
    def accuracy(self) -> float:
        """Share of labelled values matched character for character."""
        return self.exact_matches / self.total if self.total else 0.0


@dataclass
class BenchmarkResult:
    """Per-field metrics over a labelled document set."""

    total_documents: int
    evaluated_documents: int
    field_metrics: dict[str, FieldMetrics]
    errors: list[str] = field(default_factory=list)

    @property
    def overall_accuracy(self) -> float:
        scored = [m.accuracy for m in self.field_metrics.values() if m.total]
        return sum(scored) / len(scored) if scored else 0.0

    @property
    def overall_f1(self) -> float:
        scored = [m.f1 for m in self.field_metrics.values() if m.total]
        return sum(scored) / len(scored) if scored else 0.0


def _normalize(field_name: str, value: str) -> str:
    """Canonical form used for lenient comparison."""
    value = value.strip().lower()
    if field_name == "id_number":
        return re.sub(r"\D", "", value)
    return re.sub(r"\s+", " ", value)


class Evaluator:
    """Scores parser predictions against ground-truth labels."""

    def evaluate(
        self,
        predictions: dict[str, ExtractedIdentity],
        ground_truth: dict[str, dict[str, str]],
    ) -> BenchmarkResult:
        """Compare predictions with labels document by document.

        Args:
            predictions: Parser output keyed by document filename. Documents
                that failed OCR are simply absent.
            ground_truth: Expected field values keyed by filename. Only the
                fields present in a document's labels are scored.

        Returns:
            Aggregated per-field metrics.
        """
        metrics = {name: FieldMetrics(name) for name in IDENTITY_FIELDS}
        errors: list[str] = []
        evaluated = 0

        for filename, expected in ground_truth.items():
            predicted = predictions.get(filename)
            if predicted is None:
                errors.append(f"Missing prediction for {filename}")
            else:
                evaluated += 1

            for field_name, expected_value in expected.items():
                if field_name not in metrics or not expected_value:
                    continue
                self._score(
                    metrics[field_name],
                    getattr(predicted, field_name, "") if predicted else "",
                    expected_value,
                )

        return BenchmarkResult(
            total_documents=len(ground_truth),
            evaluated_documents=evaluated,
            field_metrics=metrics,
            errors=errors,
        )

    @staticmethod
    def _score(metrics: FieldMetrics, predicted: str, expected: str) -> None:
        if not predicted:
            metrics.missed += 1
            return
        if predicted.strip() == expected.strip():
            metrics.exact_matches += 1
            metrics.correct += 1
        elif _normalize(metrics.field_name, predicted) == _normalize(
            metrics.field_name, expected
        ):
            metrics.correct += 1
        else:
            metrics.wrong += 1

    def generate_report(
        self, result: BenchmarkResult, output_path: Path | None = None
    ) -> str:
        """Format a benchmark result as a plain-text table.

        Args:
            result: Benchmark results to format.
            output_path: Optional path to also write the report to.

        Returns:
            The report text.
        """
        lines = [
            "=" * 60,
            "IDENTITY PARSER BENCHMARK",
            "=" * 60,
            f"Documents:            {result.total_documents}",
            f"Evaluated:            {result.evaluated_documents}",
            f"Overall Accuracy:     {result.overall_accuracy:.2%}",
            f"Overall F1 Score:     {result.overall_f1:.3f}",
            "",
            f"{'Field':<16} {'Precision':>10} {'Recall':>10} {'F1':>8} {'Accuracy':>10}",
            "-" * 60,
        ]
        for name, m in result.field_metrics.items():
            lines.append(
                f"{name:<16} {m.precision:>10.2%} {m.recall:>10.2%} "
                f"{m.f1:>8.3f} {m.accuracy:>10.2%}"
            )

        passed = result.overall_accuracy >= TARGET_ACCURACY
        lines.extend(
            [
                "-" * 60,
                f"Target: >{TARGET_ACCURACY:.0%} accuracy - "
                f"{'PASSED' if passed else 'FAILED'}",
            ]
        )
        if result.errors:
            lines.append("")
            lines.append("Errors:")
            lines.extend(f"  - {error}" for error in result.errors)

        report = "\n".join(lines)
        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report)
            logger.info("Report written to %s", output_path)
        return report


def load_ground_truth(path: Path) -> dict[str, dict[str, str]]:
    """Load labels from JSON or CSV.

    JSON: ``{"card1.png": {"name": ..., "date_of_birth": ..., "id_number": ...}}``.
    CSV: a ``filename`` column plus one column per field; blank cells are
    treated as unlabelled.

    Raises:
        ValueError: If the file extension is neither ``.json`` nor ``.csv``.
    """
    if path.suffix == ".json":
        with open(path) as f:
            return json.load(f)

    if path.suffix == ".csv":
        labels: dict[str, dict[str, str]] = {}
        with open(path, newline="") as f:
            for row in csv.DictReader(f):
                filename = row.pop("filename")
                labels[filename] = {k: v for k, v in row.items() if v}
        return labels

    raise ValueError(f"Unsupported ground truth format: {path.suffix}")
