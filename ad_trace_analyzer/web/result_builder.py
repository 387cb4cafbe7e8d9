"""
Result builder for CLI and API output.
"""

from typing import Any, Dict

from ..formatters import abbreviate_url


def prepare_results(analyzer, analysis, audits) -> Dict[str, Any]:
    """
    Convert one analysis and its audit results to a JSON-ready structure.

    Args:
        analyzer: AdTraceAnalyzer that produced the analysis
        analysis: AnalysisResult
        audits: Dictionary mapping audit id -> AuditResult

    Returns:
        Dictionary with summary, audits and per-request timings
    """
    graph = analysis.graph
    timing = analysis.timing

    requests = []
    for node in sorted(graph.requests.values(), key=lambda n: (n.start_time, n.request_id)):
        simulated = timing.get(node.request_id)
        initiators = [dep for dep in graph.dependencies(node.request_id) if not graph.is_frame_root(dep)]
        requests.append({
            'request_id': node.request_id,
            'url': abbreviate_url(node.url),
            'frame_id': node.frame_id,
            'resource_type': node.resource_type,
            'captured_duration_ms': node.duration,
            'simulated_start_ms': simulated.start if simulated else None,
            'simulated_end_ms': simulated.end if simulated else None,
            'initiators': initiators,
            'redirects': list(node.redirect_chain),
        })

    total = timing.total_duration
    failed = sorted(
        audit_id for audit_id, result in audits.items()
        if result['score'] is not None and result['score'] < 0.9
    )

    return {
        'summary': {
            'total_requests': len(graph.requests),
            'total_events': len(analysis.events),
            'dropped_records': analysis.dropped_count,
            'cycle_edges_removed': len(analysis.warnings),
            'warnings': [str(warning) for warning in analysis.warnings],
            'simulated_load_ms': total,
            'simulated_load_formatted': analyzer.format_time(total),
            'failed_audits': failed,
        },
        'config': analyzer.config.to_dict(),
        'audits': audits,
        'requests': requests,
    }
