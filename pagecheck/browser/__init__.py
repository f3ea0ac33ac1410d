"""Playwright integration for pagecheck."""

from .playwright_resolver import PlaywrightResolver, document_for, same_dom_node, translate_errors

__all__ = ["PlaywrightResolver", "document_for", "same_dom_node", "translate_errors"]
