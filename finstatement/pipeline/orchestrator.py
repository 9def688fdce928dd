"""
Statement extraction pipeline.

Runs the stages in a fixed order:

    FORMAT_QUERY -> RETRIEVE -> SELECT -> RESOLVE_CONTENT -> REFORMAT -> DONE

Each stage consumes only the previous stage's output. The first failure aborts
the run and propagates unchanged; no partial result is ever returned.

Usage:
    from finstatement.pipeline import run_pipeline

    result = run_pipeline(elements, {
        "docName": "hood-10Q.pdf",
        "companyName": "Robinhood",
        "docType": "10-Q",
        "reportType": "Balance Sheet",
    })
    print(result.reformatted_content)
"""

from __future__ import annotations

import asyncio
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence

from ..core.exceptions import MissingSourceContent
from ..core.models import Candidate, DocConfig, Element, PipelineResult, SelectionDecision
from ..documents.element_index import ElementIndex
from ..extraction.candidate_selector import CandidateSelector
from ..extraction.reformatter import ContentReformatter
from ..infrastructure.config import Settings, get_config
from ..infrastructure.logger import correlation_id, get_correlation_id, get_logger, set_correlation_id
from ..infrastructure.tracing import trace_operation
from ..llm.client import OpenAIChatClient
from ..retrieval.query_formatter import format_query
from ..retrieval.retriever import DEFAULT_TOP_K, SemanticRetriever
from ..retrieval.vector_search import VectorSearch
from .observer import LoggingObserver, ObserverGroup, PipelineObserver

logger = get_logger("finstatement.pipeline.orchestrator")


class PipelineStage(str, Enum):
    """Pipeline states, in execution order."""
    FORMAT_QUERY = "format_query"
    RETRIEVE = "retrieve"
    SELECT = "select"
    RESOLVE_CONTENT = "resolve_content"
    REFORMAT = "reformat"
    DONE = "done"


@dataclass
class PipelineRun:
    """Intermediate values owned by a single run."""
    config: DocConfig
    elements: ElementIndex
    correlation_id: str
    stage: PipelineStage = PipelineStage.FORMAT_QUERY
    query: Optional[str] = None
    candidates: list[Candidate] = field(default_factory=list)
    decision: Optional[SelectionDecision] = None
    element: Optional[Element] = None
    original_content: Optional[str] = None
    reformatted_content: Optional[str] = None


class ReportPipeline:
    """Extract one financial statement from a parsed filing."""

    def __init__(
        self,
        retriever: SemanticRetriever,
        selector: CandidateSelector,
        reformatter: ContentReformatter,
        observers: Optional[Iterable[PipelineObserver]] = None,
        top_k: int = DEFAULT_TOP_K,
    ):
        """
        Args:
            retriever: Semantic retriever over the vector index
            selector: LLM candidate selector
            reformatter: LLM content reformatter
            observers: Stage observers (defaults to a LoggingObserver)
            top_k: Number of candidates to retrieve
        """
        self.retriever = retriever
        self.selector = selector
        self.reformatter = reformatter
        self.observers = ObserverGroup(observers if observers is not None else [LoggingObserver()])
        self.top_k = top_k

    @contextmanager
    def _stage(self, run: PipelineRun, stage: PipelineStage, **attributes: Any) -> Iterator[dict]:
        """Track one stage: observers, tracing span and timing."""
        run.stage = stage
        outcome: dict[str, Any] = {}
        self.observers.stage_started(stage.value, **attributes)
        start = time.perf_counter()
        try:
            with trace_operation(f"pipeline.{stage.value}", attributes):
                yield outcome
        except BaseException as e:
            self.observers.stage_failed(stage.value, (time.perf_counter() - start) * 1000, e)
            raise
        self.observers.stage_completed(stage.value, (time.perf_counter() - start) * 1000, **outcome)

    async def arun(
        self,
        document_array: Sequence[Element],
        config: DocConfig | Mapping[str, Any],
    ) -> PipelineResult:
        """
        Run the pipeline.

        Args:
            document_array: Elements of the parsed filing
            config: DocConfig or a raw mapping with the four config fields

        Returns:
            PipelineResult with the original and reformatted content

        Raises:
            ConfigInvalid: If the config is missing a field.
            RetrievalFailed: If retrieval errored or found nothing.
            SelectionParseFailed: If the model's selection could not be decoded.
            SelectionUnresolved: If the selected element is not in the document array.
            MissingSourceContent: If the selected element has no raw content.
            ReformatFailed: If reformatting could not be decoded or dropped numbers.
            UpstreamTimeout: If a model call timed out.
            UpstreamUnavailable: If a model service could not be reached.
        """
        doc_config = DocConfig.parse(config)
        previous_id = get_correlation_id()
        try:
            run = PipelineRun(
                config=doc_config,
                elements=ElementIndex(document_array),
                correlation_id=set_correlation_id(),
            )
            run_log = get_logger(
                "finstatement.pipeline.orchestrator",
                {"company_name": doc_config.company_name, "report_type": doc_config.report_type},
            )
            run_log.info(
                f"Extracting {doc_config.report_type} for {doc_config.company_name} "
                f"{doc_config.document_type} ({doc_config.document_name}), "
                f"{len(run.elements)} elements"
            )
            result = await self._execute(run)
            run_log.info(f"Pipeline complete: element {run.element.element_id}")
            return result
        finally:
            correlation_id.set(previous_id)

    async def _execute(self, run: PipelineRun) -> PipelineResult:
        with self._stage(run, PipelineStage.FORMAT_QUERY):
            run.query = format_query(run.config)

        with self._stage(run, PipelineStage.RETRIEVE, top_k=self.top_k) as outcome:
            run.candidates = await self.retriever.retrieve(run.query, self.top_k)
            outcome["candidate_count"] = len(run.candidates)

        with self._stage(run, PipelineStage.SELECT, candidate_count=len(run.candidates)) as outcome:
            run.decision, run.element = await self.selector.select(
                run.candidates, run.config, run.elements
            )
            outcome["element_id"] = run.decision.element_id

        with self._stage(run, PipelineStage.RESOLVE_CONTENT, element_id=run.element.element_id):
            raw_content = run.element.raw_content
            if not raw_content or not raw_content.strip():
                raise MissingSourceContent(
                    "Selected element has no raw content",
                    {"element_id": run.element.element_id},
                )
            run.original_content = raw_content

        with self._stage(run, PipelineStage.REFORMAT) as outcome:
            run.reformatted_content = await self.reformatter.reformat(run.original_content)
            outcome["content_chars"] = len(run.reformatted_content)

        run.stage = PipelineStage.DONE
        return PipelineResult(
            original_content=run.original_content,
            reformatted_content=run.reformatted_content,
        )

    def run(
        self,
        document_array: Sequence[Element],
        config: DocConfig | Mapping[str, Any],
    ) -> PipelineResult:
        """Synchronous wrapper around arun(). Must not be called from a running event loop."""
        return asyncio.run(self.arun(document_array, config))


async def run_pipeline_async(
    document_array: Sequence[Element],
    config: DocConfig | Mapping[str, Any],
    settings: Optional[Settings] = None,
    observers: Optional[Iterable[PipelineObserver]] = None,
) -> PipelineResult:
    """
    Build the default OpenAI and Qdrant clients, run once, then close them.

    Args:
        document_array: Elements of the parsed filing
        config: DocConfig or a raw mapping
        settings: Settings to build clients from (defaults to get_config().settings)
        observers: Stage observers

    Returns:
        PipelineResult

    Raises:
        ConfigInvalid: If the config is missing a field.
        ConfigurationError: If the settings fail validation.
        MissingConfigError: If an API key is not set.
    """
    # Validate before any client is built
    doc_config = DocConfig.parse(config)
    app_config = get_config()
    settings = settings or app_config.settings
    app_config.require_valid(settings)

    logger.debug(
        f"Building clients: llm={settings.llm.provider}, "
        f"index={settings.vector_index.host}:{settings.vector_index.port}/{settings.vector_index.collection_name}"
    )
    llm = OpenAIChatClient.from_config(settings.llm, api_key=app_config.llm_api_key(settings.llm.provider))
    try:
        index = VectorSearch.from_config(
            settings.vector_index, settings.embeddings, openai_api_key=app_config.openai_api_key
        )
    except BaseException:
        await llm.close()
        raise

    try:
        pipeline = ReportPipeline(
            retriever=SemanticRetriever(
                index,
                top_k=settings.vector_index.top_k,
                timeout=settings.vector_index.timeout,
            ),
            selector=CandidateSelector(
                llm,
                max_retries=settings.pipeline.selection_retries,
                temperature=settings.llm.temperature,
            ),
            reformatter=ContentReformatter(
                llm,
                enforce_numeric_fidelity=settings.pipeline.enforce_numeric_fidelity,
                temperature=settings.llm.temperature,
            ),
            observers=observers,
            top_k=settings.vector_index.top_k,
        )
        return await pipeline.arun(document_array, doc_config)
    finally:
        await index.close()
        await llm.close()


def run_pipeline(
    document_array: Sequence[Element],
    config: DocConfig | Mapping[str, Any],
    settings: Optional[Settings] = None,
    observers: Optional[Iterable[PipelineObserver]] = None,
) -> PipelineResult:
    """Synchronous entry point; see run_pipeline_async()."""
    return asyncio.run(run_pipeline_async(document_array, config, settings, observers))
