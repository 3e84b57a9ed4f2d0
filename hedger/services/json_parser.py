"""Centralized JSON parsing utilities for LLM responses."""

import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class JSONParseError(Exception):
    """Custom exception for JSON parsing failures."""


class LLMJSONParser:
    """Robust JSON parser for LLM responses.

    Handles markdown cleanup, extraction, validation, and targeted repairs.
    """

    @staticmethod
    def _remove_trailing_commas(json_text: str) -> str:
        """Remove trailing commas before closing braces/brackets."""
        if not json_text:
            return json_text
        json_text = re.sub(r",\s*(\})", r"\1", json_text)
        json_text = re.sub(r",\s*(\])", r"\1", json_text)
        # Remove duplicate commas that can appear after line removals
        json_text = re.sub(r",\s*,", ",", json_text)
        return json_text

    @staticmethod
    def _add_missing_commas(json_text: str) -> str:
        """Add missing commas between properties in a JSON string."""
        # A value (quote, number, bool, closing brace/bracket) followed by the
        # next key on a new line with no comma between them.
        return re.sub(
            r'(["\d]|true|false|null|}|])\s*\n(\s*["{])', r'\1,\n\2', json_text
        )

    @staticmethod
    def clean_markdown_formatting(content: str) -> str:
        """Remove markdown code block formatting from content."""
        if not content or not isinstance(content, str):
            return content

        cleaned = content.strip()

        patterns = [
            (r"^```json\s*\n?", ""),
            (r"^```\s*\n?", ""),
            (r"\n?```\s*$", ""),
            (r"```json\s*", ""),
            (r"```\s*", ""),
        ]

        for pattern, replacement in patterns:
            cleaned = re.sub(pattern, replacement, cleaned, flags=re.MULTILINE)

        return cleaned.strip()

    @staticmethod
    def _balanced_block(content: str, opener: str, closer: str) -> Optional[str]:
        """Return the first balanced block starting at opener, ignoring string contents."""
        start = content.find(opener)
        if start == -1:
            return None

        depth = 0
        in_string = False
        escape = False
        for i, ch in enumerate(content[start:], start):
            if in_string:
                if escape:
                    escape = False
                elif ch == "\\":
                    escape = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    return content[start:i + 1]
        return None

    @classmethod
    def extract_json_from_text(cls, content: str, prefer: str = "dict") -> str:
        """Extract a JSON object or array from mixed text content."""
        if not content:
            return content

        order = [("{", "}"), ("[", "]")]
        if prefer == "list":
            order.reverse()

        for opener, closer in order:
            block = cls._balanced_block(content, opener, closer)
            if block is not None:
                return block

        return content

    @staticmethod
    def validate_json_structure(data: Any, expected_type: Optional[str] = "dict") -> bool:
        """Validate that parsed JSON has the expected top-level type."""
        if expected_type is None:
            return True
        if expected_type == "list":
            return isinstance(data, list)
        if expected_type == "dict":
            return isinstance(data, dict)
        return True

    @classmethod
    def parse_llm_json(
        cls,
        content: str,
        expected_type: Optional[str] = "dict",
        fallback_value: Any = None,
    ) -> Any:
        """
        Parse JSON content from LLM response with robust error handling.

        Args:
            content: Raw content from LLM
            expected_type: Expected type ("list", "dict" or None)
            fallback_value: Value to return on parse failure

        Returns:
            Parsed JSON data or fallback_value

        Raises:
            JSONParseError: If parsing fails and no fallback provided
        """
        if not content:
            if fallback_value is not None:
                return fallback_value
            raise JSONParseError("Empty content provided")

        logger.debug("Original content length: %d", len(content))

        # Step 1: Clean markdown formatting
        cleaned_content = cls.clean_markdown_formatting(content)

        # Step 2: Extract the JSON block from any surrounding prose
        if cleaned_content.startswith("["):
            cleaned_content = cls.extract_json_from_text(cleaned_content, prefer="list")
        elif cleaned_content.startswith("{"):
            cleaned_content = cls.extract_json_from_text(cleaned_content, prefer="dict")
        else:
            cleaned_content = cls.extract_json_from_text(
                cleaned_content, prefer=expected_type or "dict"
            )
        cleaned_content = cleaned_content.strip()

        # Step 3: Parse, then repair and retry once
        try:
            parsed_data = json.loads(cleaned_content)
        except json.JSONDecodeError as e:
            logger.warning("Initial JSON decode failed: %s", e)
            repaired_text = cls._add_missing_commas(cleaned_content)
            repaired_text = cls._remove_trailing_commas(repaired_text)
            try:
                parsed_data = json.loads(repaired_text)
                logger.info("Parsed JSON successfully after repair")
            except json.JSONDecodeError as e2:
                preview = cleaned_content[:500].replace("\n", " ")
                logger.error("All repair attempts failed: %s; content: %s...", e2, preview)
                if fallback_value is not None:
                    return fallback_value
                raise JSONParseError(f"All repair attempts failed: {e2}") from e2

        # Step 4: Validate structure
        if not cls.validate_json_structure(parsed_data, expected_type):
            msg = "Invalid structure: expected %s, got %s"
            logger.warning(msg, expected_type, type(parsed_data).__name__)
            if fallback_value is not None:
                return fallback_value
            raise JSONParseError(msg % (expected_type, type(parsed_data).__name__))

        return parsed_data

    @classmethod
    def parse_hedge_analysis(cls, content: str) -> Dict[str, Any]:
        """Parse an LLM hedge analysis into a dict with a recommendations list.

        Accepts a bare array of recommendations as well as the expected
        ``{"summary": ..., "recommendations": [...]}`` object.
        """
        parsed = cls.parse_llm_json(content, expected_type=None)

        if isinstance(parsed, list):
            logger.warning("Received bare recommendation list; wrapping in object")
            parsed = {"recommendations": parsed}
        if not isinstance(parsed, dict):
            raise JSONParseError(f"Unexpected analysis payload: {type(parsed).__name__}")

        recommendations = parsed.get("recommendations") or []
        if not isinstance(recommendations, list):
            logger.warning("Recommendations field is not a list: %s", type(recommendations).__name__)
            recommendations = []

        valid: List[Dict[str, Any]] = []
        for i, rec in enumerate(recommendations):
            if not isinstance(rec, dict):
                logger.warning("Recommendation %d is not a dict: %s", i, type(rec).__name__)
                continue
            if "market" not in rec:
                logger.warning("Recommendation %d missing market", i)
            valid.append(rec)

        parsed["recommendations"] = valid
        return parsed
