"""
Main orchestrator for the HTML builder.

Wires the stages together: Preprocessor → TreeBuilder → substitution →
Serializer, with an optional TemplateCache in front of parsing so a template
read many times is parsed once.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from .node import Node, NodeKind
from .tree_builder import parse
from .serializer import serialize
from .template import substitute_recursive, collect_placeholders
from .template_cache import TemplateCache
from .schemas import RenderResult
from .config import Settings, get_settings
from .logger import get_module_logger, setup_logger

logger = get_module_logger("main")


class TemplateEngine:
    """
    Parses templates and renders them with parameters.

    1. Parse: markup → node forest (cached if a TemplateCache is used)
    2. Substitute: {{name}} placeholders → parameter values, on a copy
    3. Serialize: forest → markup
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[TemplateCache] = None,
        use_cache: bool = False,
        log_level: Optional[Union[int, str]] = None
    ):
        self.settings = settings or get_settings()

        setup_logger(level=log_level if log_level is not None else self.settings.log_level)

        if cache is None and use_cache:
            cache = TemplateCache(self.settings.cache_dir)
        self.cache = cache

        logger.info("TemplateEngine initialized")

    def parse(self, html: str) -> list[Node]:
        """Parse markup into a fresh forest (never cached)."""
        return parse(html, max_depth=self.settings.max_depth)

    def load(
        self,
        html: str,
        source_name: Optional[str] = None,
        force_refresh: bool = False
    ) -> list[Node]:
        """
        Get the parsed forest for a template, from the cache when possible.

        The returned nodes belong to the caller and may be mutated freely.
        """
        if self.cache is not None and not force_refresh:
            cached = self.cache.get(html, source_name=source_name)
            if cached is not None:
                return cached

        nodes = self.parse(html)

        if self.cache is not None:
            self.cache.put(html, nodes, source_name=source_name)
        return nodes

    def _render_nodes(self, nodes: list[Node], params: Optional[dict[str, str]]) -> RenderResult:
        root = Node.fragment(nodes)
        if params:
            substitute_recursive(root, params)

        unresolved = collect_placeholders(root)
        if unresolved:
            logger.warning(f"Unresolved placeholders: {', '.join(unresolved)}")

        doctype = next((n.text for n in nodes if n.kind == NodeKind.DOCTYPE), None)
        return RenderResult(
            html=serialize(root, self.settings.sort_attributes),
            doctype=doctype,
            unresolved=unresolved,
        )

    def render(
        self,
        html: str,
        params: Optional[dict[str, str]] = None,
        source_name: Optional[str] = None,
        force_refresh: bool = False
    ) -> RenderResult:
        """
        Parse a template, fill in its placeholders and serialize it.

        Args:
            html: Template markup
            params: Placeholder name -> value
            source_name: Source identifier for caching
            force_refresh: Skip cache if True

        Returns:
            RenderResult with the output markup
        """
        logger.info("Starting render")
        nodes = self.load(html, source_name=source_name, force_refresh=force_refresh)
        result = self._render_nodes(nodes, params)
        logger.info(f"Complete: {len(nodes)} root nodes, {len(result.html)} chars")
        return result

    def render_many(
        self,
        html: str,
        param_sets: Iterable[dict[str, str]],
        source_name: Optional[str] = None
    ) -> list[RenderResult]:
        """Parse a template once and render it for each parameter set."""
        template = self.load(html, source_name=source_name)
        return [
            self._render_nodes([node.copy() for node in template], params)
            for params in param_sets
        ]

    def render_file(
        self,
        file_path: Union[str, Path],
        params: Optional[dict[str, str]] = None,
        force_refresh: bool = False
    ) -> RenderResult:
        """Render a template file. The file stem prefixes its cache key."""
        file_path = Path(file_path)
        html = file_path.read_text(encoding="utf-8", errors="replace")
        return self.render(html, params, source_name=file_path.stem,
                           force_refresh=force_refresh)


def render_html(html: str, params: Optional[dict[str, str]] = None) -> str:
    """Convenience function to render a template string."""
    return TemplateEngine().render(html, params).html


def render_html_file(file_path: Union[str, Path], params: Optional[dict[str, str]] = None) -> str:
    """Convenience function to render a template file."""
    return TemplateEngine().render_file(file_path, params).html
