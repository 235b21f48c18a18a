"""
Preprocessor module for string-level markup cleanup.

Runs before the tree builder and prepares the text it scans:
- Removes comments
- Lowercases tag names (attribute names and values are left alone)
- Removes line breaks
- Pulls out the doctype declaration so it can become its own node

Every pass works on the whole buffer and returns a new string; the caller's
text is never modified.

Pipeline position: Stage 1 of 2 (Preprocessor → TreeBuilder).
Input:  raw markup string
Output: dict with cleaned_html, doctype, original_html, comments_removed, warnings
"""

import re
from typing import Optional

from .logger import get_module_logger
from .exceptions import UnterminatedCommentError

logger = get_module_logger("preprocessor")

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"
DOCTYPE_OPEN = "<!doctype"
_DOCTYPE = re.compile(re.escape(DOCTYPE_OPEN), re.IGNORECASE)

_WHITESPACE = re.compile(r"\s")


class Preprocessor:
    """
    Rule-based markup preprocessor.

    The passes run in a fixed order; lowercasing must see the doctype so that
    `<!DOCTYPE html>` is found by the case-insensitive lookup afterwards.
    """

    def remove_comments(self, html: str) -> tuple[str, int]:
        """
        Delete every <!--...--> span.

        Returns:
            Tuple of (text without comments, number of comments removed)

        Raises:
            UnterminatedCommentError: a comment is opened but never closed
        """
        parts = []
        count = 0
        pos = 0
        while True:
            start = html.find(COMMENT_OPEN, pos)
            if start == -1:
                parts.append(html[pos:])
                break
            end = html.find(COMMENT_CLOSE, start + len(COMMENT_OPEN))
            if end == -1:
                raise UnterminatedCommentError(start)
            parts.append(html[pos:start])
            pos = end + len(COMMENT_CLOSE)
            count += 1
        return "".join(parts), count

    def lowercase_tag_names(self, html: str) -> str:
        """
        Lowercase the tag name of every <...> span.

        The tag name runs from just after '<' to the first whitespace or the
        closing '>'. A '<' with no later '>' ends the pass; the tree builder
        reports that tag as unterminated.
        """
        parts = []
        pos = 0
        while True:
            start = html.find("<", pos)
            if start == -1:
                break
            end = html.find(">", start)
            if end == -1:
                break
            inner = html[start + 1:end]
            m = _WHITESPACE.search(inner)
            split = m.start() if m else len(inner)
            parts.append(html[pos:start + 1])
            parts.append(inner[:split].lower())
            parts.append(inner[split:])
            parts.append(">")
            pos = end + 1
        parts.append(html[pos:])
        return "".join(parts)

    def remove_line_breaks(self, html: str) -> str:
        """Delete newline characters (both \\n and \\r)."""
        return html.replace("\r", "").replace("\n", "")

    def extract_doctype(self, html: str) -> tuple[str, Optional[str]]:
        """
        Remove the first <!doctype ...> declaration.

        Returns:
            Tuple of (text without the declaration, doctype payload or None).
            For `<!doctype html>` the payload is "html".
        """
        # Matched on the text itself: lower() can change the length of a string
        m = _DOCTYPE.search(html)
        if m is None:
            return html, None
        start = m.start()

        end = html.find(">", start)
        if end == -1:
            # Left in place: the tree builder fails on the unterminated tag
            return html, None

        payload = html[m.end():end].strip()
        return html[:start] + html[end + 1:], payload

    def process(self, html: str) -> dict:
        """
        Run all passes over raw markup.

        Args:
            html: Raw markup string

        Returns:
            dict with:
                - cleaned_html: Text ready for the tree builder
                - doctype: Doctype payload, or None if there was no declaration
                - original_html: The input, untouched
                - comments_removed: How many comments were deleted
                - warnings: Notes about what was changed

        Raises:
            UnterminatedCommentError: a comment is opened but never closed
        """
        warnings = []

        # Step 1: comments go first so that markup inside them is never seen
        cleaned, comments_removed = self.remove_comments(html)
        if comments_removed:
            warnings.append(f"Removed {comments_removed} comments")

        # Step 2: tag names lowercased in place, attributes untouched
        cleaned = self.lowercase_tag_names(cleaned)

        # Step 3: line breaks removed
        cleaned = self.remove_line_breaks(cleaned)

        # Step 4: doctype pulled out into its own value
        cleaned, doctype = self.extract_doctype(cleaned)
        if doctype is not None:
            logger.debug(f"Extracted doctype: {doctype!r}")

        logger.debug(
            f"Preprocessing complete: {len(html)} -> {len(cleaned)} chars, "
            f"{comments_removed} comments removed"
        )
        return {
            "cleaned_html": cleaned,
            "doctype": doctype,
            "original_html": html,
            "comments_removed": comments_removed,
            "warnings": warnings,
        }


def preprocess(html: str) -> dict:
    """
    Convenience function to preprocess markup.

    Args:
        html: Raw markup string

    Returns:
        Preprocessed result dict
    """
    return Preprocessor().process(html)
