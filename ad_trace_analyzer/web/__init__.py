"""Output builders for the CLI and web API."""

from .result_builder import prepare_results

__all__ = ["prepare_results"]
