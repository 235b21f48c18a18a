"""
File-based cache of parsed templates.

Parsing the same template for every render is wasted work. The cache keeps
the parsed forest as JSON on disk (and in memory for this process) and always
hands out deep copies, so callers can substitute into what they get without
touching the cached tree.

On disk a forest is a flat pre-order list of nodes, each entry carrying its
child count instead of nested children, so entries for deep trees are written
and read without recursion.
"""

import json
import hashlib
from pathlib import Path
from typing import Optional, Union
from datetime import datetime

from pydantic import ValidationError

from .node import Node
from .config import get_settings
from .exceptions import TemplateCacheError
from .logger import get_module_logger

logger = get_module_logger("template_cache")


def flatten_forest(nodes: list[Node]) -> list[dict]:
    """Pre-order list of node dicts; "child_count" replaces "children"."""
    entries = []
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        entry = node.model_dump(mode="json", exclude={"children"})
        entry["child_count"] = len(node.children)
        entries.append(entry)
        stack.extend(reversed(node.children))
    return entries


def unflatten_forest(entries: list[dict]) -> list[Node]:
    """
    Rebuild a forest from flatten_forest() output.

    Raises:
        ValueError, KeyError: an entry is malformed or the list ends mid-tree
    """
    roots = []
    open_parents = []  # [node, children still to attach], innermost last

    for entry in entries:
        fields = dict(entry)
        child_count = int(fields.pop("child_count"))
        node = Node.model_validate(fields)

        if open_parents:
            parent = open_parents[-1]
            parent[0].children.append(node)
            parent[1] -= 1
            if parent[1] == 0:
                open_parents.pop()
        else:
            roots.append(node)

        if child_count > 0:
            if not node.accepts_children:
                raise ValueError(f"{node.kind.value} node cannot have children")
            open_parents.append([node, child_count])

    if open_parents:
        raise ValueError("cache entry ends before all children were read")
    return roots


class TemplateCache:
    """
    File-based cache for parsed node forests.

    Keys always include a hash of the template text, prefixed with the source
    name when one is given. Editing a template, or another template with the
    same name, therefore never reuses a stale parse.
    """

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None):
        """
        Initialize template cache.

        Args:
            cache_dir: Directory to store cache files.
                      Defaults to the configured HTML_BUILDER_CACHE_DIR.
        """
        if cache_dir is None:
            cache_dir = get_settings().cache_dir

        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._memory: dict[str, list[Node]] = {}

        logger.info(f"Template cache initialized at: {self.cache_dir}")

    def _generate_cache_key(self, html: str, source_name: Optional[str] = None) -> str:
        """
        Generate a cache key for a template.

        "page.html" + text -> "page-<16 hex digits of md5(text)>"; without a
        source name the key is the digest alone.
        """
        digest = hashlib.md5(html.encode('utf-8', errors='replace')).hexdigest()[:16]
        if not source_name:
            return digest

        # Keep only alnum, dash, underscore, dot so the key is a safe filename
        safe_name = "".join(c if c.isalnum() or c in '-_.' else '_' for c in source_name)
        safe_name = safe_name.replace('.html', '').replace('.htm', '')
        return f"{safe_name}-{digest}"

    def _cache_file(self, cache_key: str) -> Path:
        return self.cache_dir / f"{cache_key}.json"

    def _load(self, cache_key: str) -> list[Node]:
        cache_file = self._cache_file(cache_key)
        try:
            data = json.loads(cache_file.read_text(encoding="utf-8"))
            return unflatten_forest(data["nodes"])
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            raise TemplateCacheError(
                f"Failed to load cached template: {e}",
                cache_key=cache_key,
                details={"file": str(cache_file)},
            ) from e

    def get(self, html: str, source_name: Optional[str] = None) -> Optional[list[Node]]:
        """
        Retrieve a cached forest.

        Args:
            html: Template text (used for key generation if no source_name)
            source_name: Optional source identifier (e.g., filename)

        Returns:
            Deep copies of the cached nodes, or None on a miss
        """
        cache_key = self._generate_cache_key(html, source_name)

        nodes = self._memory.get(cache_key)
        if nodes is None:
            if not self._cache_file(cache_key).exists():
                logger.debug(f"Cache miss for key: {cache_key}")
                return None
            try:
                nodes = self._load(cache_key)
            except TemplateCacheError as e:
                logger.warning(e.message)
                return None
            self._memory[cache_key] = nodes
            logger.info(f"Cache hit for key: {cache_key}")

        return [node.copy() for node in nodes]

    def put(
        self,
        html: str,
        nodes: list[Node],
        source_name: Optional[str] = None
    ) -> str:
        """
        Store a parsed forest.

        Args:
            html: Template text
            nodes: Parsed nodes (copied; later changes to them are not cached)
            source_name: Optional source identifier

        Returns:
            Cache key used
        """
        cache_key = self._generate_cache_key(html, source_name)
        cache_file = self._cache_file(cache_key)

        stored = [node.copy() for node in nodes]
        cache_data = {
            "cache_key": cache_key,
            "source_name": source_name,
            "created_at": datetime.now().isoformat(),
            "nodes": flatten_forest(stored),
        }

        cache_file.write_text(json.dumps(cache_data, indent=2), encoding="utf-8")
        self._memory[cache_key] = stored
        logger.info(f"Cached template with key: {cache_key} -> {cache_file}")

        return cache_key

    def exists(self, html: str, source_name: Optional[str] = None) -> bool:
        """Check if a template is cached."""
        cache_key = self._generate_cache_key(html, source_name)
        return cache_key in self._memory or self._cache_file(cache_key).exists()

    def delete(self, html: str, source_name: Optional[str] = None) -> bool:
        """Delete a cached template."""
        cache_key = self._generate_cache_key(html, source_name)
        self._memory.pop(cache_key, None)
        cache_file = self._cache_file(cache_key)

        if cache_file.exists():
            cache_file.unlink()
            logger.info(f"Deleted cache for key: {cache_key}")
            return True
        return False

    def clear(self) -> int:
        """Clear all cached templates. Returns count of deleted files."""
        self._memory.clear()
        count = 0
        for cache_file in self.cache_dir.glob("*.json"):
            cache_file.unlink()
            count += 1
        logger.info(f"Cleared {count} cached templates")
        return count
