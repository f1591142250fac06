"""OpenTelemetry tracing helpers for the question-answering pipeline.

Each stage of a request (lexical search, semantic rerank, generation) can be
wrapped so that it is recorded as a span:

- ``search``     : the lexical shortlist built from the corpus
- ``rerank``     : embedding-based reordering, with whether it actually ran
- ``generation`` : the call to the text-generation service

Usage:

    from ocp_search.tracing import configure_tracing, get_tracer

    configure_tracing(endpoint="http://localhost:6006/v1/traces", service_name="ocp-search")
    tracer = get_tracer("ocp_search.pipeline")

When :func:`configure_tracing` is never called the global no-op provider is
used and spans are discarded.
"""
from __future__ import annotations

from typing import Callable

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

from .schema import Passage, RerankedCandidate, ScoredCandidate

ATTR_INPUT_VALUE = "input.value"
ATTR_OUTPUT_VALUE = "output.value"
ATTR_LLM_MODEL_NAME = "llm.model_name"
ATTR_RETRIEVAL_DOCUMENTS = "retrieval.documents"
ATTR_RERANK_INPUT = "rerank.input_documents"
ATTR_RERANK_SEMANTIC = "rerank.semantic"

_provider: TracerProvider | None = None


def configure_tracing(
    endpoint: str | None = None,
    service_name: str = "ocp-search",
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Create and register a global TracerProvider.

    Args:
        endpoint: OTLP HTTP endpoint URL to send traces to. When *None* and no
            custom *exporter* is given, spans are printed to stdout.
        service_name: Label identifying this service in the tracing backend.
        exporter: An already-constructed span exporter, e.g. an
            ``InMemorySpanExporter`` in tests. When provided, *endpoint* is ignored.

    Returns:
        The configured provider, also installed as the global OTel provider.
    """
    global _provider

    resource = Resource(attributes={SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)

    if exporter is not None:
        chosen_exporter: SpanExporter = exporter
    elif endpoint is not None:
        try:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError as exc:  # pragma: no cover
            raise ImportError(
                "opentelemetry-exporter-otlp-proto-http is required to export "
                "traces to an OTLP endpoint. Install the 'otlp' extra."
            ) from exc
        chosen_exporter = OTLPSpanExporter(endpoint=endpoint)
    else:
        chosen_exporter = ConsoleSpanExporter()

    provider.add_span_processor(SimpleSpanProcessor(chosen_exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from the provider set by :func:`configure_tracing`, if any."""
    if _provider is not None:
        return _provider.get_tracer(name)
    return trace.get_tracer(name)


def traced_search(
    search_fn: Callable[..., list[ScoredCandidate]],
    tracer: trace.Tracer,
) -> Callable[..., list[ScoredCandidate]]:
    """Wrap a lexical search callable so every call is recorded as a ``search`` span."""

    def _wrapped(question: str, *args, **kwargs) -> list[ScoredCandidate]:
        with tracer.start_as_current_span("search") as span:
            span.set_attribute(ATTR_INPUT_VALUE, question)
            try:
                results = search_fn(question, *args, **kwargs)
                span.set_attribute(ATTR_RETRIEVAL_DOCUMENTS, len(results))
                span.set_status(trace.StatusCode.OK)
                return results
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    return _wrapped


def traced_rerank(
    rerank_fn: Callable[[str, list[Passage]], list[RerankedCandidate]],
    tracer: trace.Tracer,
) -> Callable[[str, list[Passage]], list[RerankedCandidate]]:
    """Wrap a rerank callable; the span notes whether similarity scores were produced."""

    def _wrapped(query: str, passages: list[Passage]) -> list[RerankedCandidate]:
        with tracer.start_as_current_span("rerank") as span:
            span.set_attribute(ATTR_INPUT_VALUE, query)
            span.set_attribute(ATTR_RERANK_INPUT, len(passages))
            try:
                ranked = rerank_fn(query, passages)
                semantic = bool(ranked) and ranked[0].similarity is not None
                span.set_attribute(ATTR_RERANK_SEMANTIC, semantic)
                span.set_status(trace.StatusCode.OK)
                return ranked
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    return _wrapped


def traced_generation(
    answer_fn: Callable[..., str],
    tracer: trace.Tracer,
    model_name: str = "",
) -> Callable[..., str]:
    """Wrap an answer-generation callable so every call is recorded as a ``generation`` span.

    The span records the question, the model name when given, the first 500
    characters of the answer, and OK/ERROR status.
    """

    def _wrapped(question: str, passages: list[Passage], **kwargs) -> str:
        with tracer.start_as_current_span("generation") as span:
            span.set_attribute(ATTR_INPUT_VALUE, question)
            if model_name:
                span.set_attribute(ATTR_LLM_MODEL_NAME, model_name)
            try:
                answer = answer_fn(question, passages, **kwargs)
                span.set_attribute(ATTR_OUTPUT_VALUE, answer[:500])
                span.set_status(trace.StatusCode.OK)
                return answer
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    return _wrapped
