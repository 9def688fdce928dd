"""Render the semantic search question for a statement request."""

from ..core.models import DocConfig

SEARCH_QUERY_TEMPLATE = (
    "What is {company_name}'s {report_type} for their {document_type} statement "
    "in {document_name}?"
)


def format_query(config: DocConfig) -> str:
    """Build the natural-language search query for `config`."""
    return SEARCH_QUERY_TEMPLATE.format(
        company_name=config.company_name,
        report_type=config.report_type,
        document_type=config.document_type,
        document_name=config.document_name,
    )
