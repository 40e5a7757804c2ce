"""Import of documents and raw source files into a project.

Pipeline: classify the input path, collect documents, resolve id conflicts,
rewrite cross-references, then execute the resulting plan.
"""

from .classifier import classify_file, classify_path, is_valid_marvin_document
from .engine import (build_import_plan, execute_import_plan,
                     format_plan_summary, import_path)
from .resolver import (ResolvedDocument, ResolveResult, resolve_conflicts,
                       update_cross_references)
from .types import (ConflictStrategy, ImportClassification,
                    ImportClassificationType, ImportOptions, ImportPlan,
                    ImportPlanItem, ImportPlanItemAction, ImportResult,
                    IncomingDocument)

__all__ = [
    "ConflictStrategy",
    "ImportClassification",
    "ImportClassificationType",
    "ImportOptions",
    "ImportPlan",
    "ImportPlanItem",
    "ImportPlanItemAction",
    "ImportResult",
    "IncomingDocument",
    "ResolveResult",
    "ResolvedDocument",
    "build_import_plan",
    "classify_file",
    "classify_path",
    "execute_import_plan",
    "format_plan_summary",
    "import_path",
    "is_valid_marvin_document",
    "resolve_conflicts",
    "update_cross_references",
]
