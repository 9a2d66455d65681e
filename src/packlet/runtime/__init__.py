"""Loader runtime embedded in every bundle."""

from .runtime import RUNTIME_EPILOGUE, RUNTIME_PREAMBLE, render_bundle, render_factory

__all__ = ['RUNTIME_PREAMBLE', 'RUNTIME_EPILOGUE', 'render_bundle', 'render_factory']
