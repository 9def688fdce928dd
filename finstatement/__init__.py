"""
finstatement
============

Extract a named financial statement (balance sheet, income statement, ...)
from a parsed filing, using semantic retrieval to find candidate tables and a
language model to pick the right one and clean up its markup.

Source code organization:
- core/           - Domain models and exception hierarchy
- documents/      - Document array loading and id lookup
- retrieval/      - Query formatting, vector search, semantic retriever
- extraction/     - Prompts, candidate selector, content reformatter
- validation/     - Numeric fidelity check
- llm/            - OpenAI-compatible chat client
- vectors/        - Embedding and Qdrant clients
- pipeline/       - Orchestrator and stage observers
- infrastructure/ - Config, logging, tracing
"""

from .core import DocConfig, Element, FinStatementError, PipelineResult
from .pipeline import ReportPipeline, run_pipeline, run_pipeline_async

__version__ = "0.1.0"

__all__ = [
    "DocConfig",
    "Element",
    "FinStatementError",
    "PipelineResult",
    "ReportPipeline",
    "run_pipeline",
    "run_pipeline_async",
]
