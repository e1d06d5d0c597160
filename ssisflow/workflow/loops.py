"""
Loop expansion for fan-out steps.
Discovers the collection named by loop.input_data and produces one parameter
set per item.
"""

import copy
import logging
import os
import re
from typing import Any, Dict, List, Optional

from ..exceptions import LoopExpansionError
from ..variables import json_text
from ..variables.json_text import JsonNumber
from ..variables.substitution import PlaceholderResolver
from .types import LoopSpec

logger = logging.getLogger(__name__)


class LoopExpander:
    """
    Turns a loop step declaration into per-iteration parameter sets.

    Discovery, tried in order:
    - JSON array: each element is an item
    - JSON object: the first array among COLLECTION_FIELDS
    - JSON string: a single item
    - anything else: text split on newline, comma or semicolon
    """

    COLLECTION_FIELDS = ('packages_absolute', 'packages', 'items', 'files')
    SEPARATOR_PATTERN = re.compile(r'[\n,;]')
    OUTPUT_PATH_PARAMETER = 'output_file_path'

    def __init__(self, resolver: Optional[PlaceholderResolver] = None):
        self.resolver = resolver or PlaceholderResolver()

    def discover_items(self, spec: LoopSpec, results: Dict[str, Dict[str, Any]]) -> List[str]:
        """
        Resolve the loop input and discover its items.

        Raises:
            ReferenceResolutionError: If input_data references unavailable outputs
            LoopExpansionError: If no items can be discovered
        """
        resolved_input = self.resolver.resolve_string(spec.input_data, results)

        try:
            data = json_text.loads(resolved_input)
        except ValueError:
            items = self._split_text(resolved_input)
        else:
            if isinstance(data, list):
                items = self._stringify_items(data)
            elif isinstance(data, dict):
                items = self._items_from_object(data)
            elif isinstance(data, JsonNumber):
                items = self._split_text(resolved_input)
            elif isinstance(data, str):
                items = [data] if data.strip() else []
            elif data is None:
                items = []
            else:
                items = self._split_text(resolved_input)

        if not items:
            raise LoopExpansionError("loop input did not yield any items")

        logger.debug(f"Loop over '{spec.item_name}' discovered {len(items)} items")
        return items

    def expand(
        self,
        spec: LoopSpec,
        parameters: Dict[str, Any],
        results: Dict[str, Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Produce one resolved parameter map per discovered item.

        Args:
            spec: Loop configuration
            parameters: The step's declared parameters (never modified)
            results: Results captured by earlier steps

        Returns:
            Parameter maps in item order
        """
        items = self.discover_items(spec, results)
        return [self.apply_item(spec, parameters, item, results) for item in items]

    def apply_item(
        self,
        spec: LoopSpec,
        parameters: Dict[str, Any],
        item: str,
        results: Dict[str, Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Resolve a copy of the parameters and substitute one item into it."""
        resolved = self.resolver.resolve(copy.deepcopy(parameters), results)
        token = spec.item_token

        iteration_params = {}
        for key, value in resolved.items():
            if key == self.OUTPUT_PATH_PARAMETER and isinstance(value, str) and token in value:
                # Output files get a name derived from the item rather than its raw text
                iteration_params[key] = value.replace(token, self.safe_name(item))
            else:
                iteration_params[key] = self._substitute(value, token, item)
        return iteration_params

    @staticmethod
    def safe_name(item: str) -> str:
        """Final path segment of an item with its extension stripped."""
        base = re.split(r'[\\/]', item.rstrip('\\/'))[-1]
        return os.path.splitext(base)[0]

    def _substitute(self, value: Any, token: str, item: str) -> Any:
        if isinstance(value, str):
            return value.replace(token, item)
        elif isinstance(value, list):
            return [self._substitute(v, token, item) for v in value]
        elif isinstance(value, dict):
            return {k: self._substitute(v, token, item) for k, v in value.items()}
        return value

    def _items_from_object(self, data: Dict[str, Any]) -> List[str]:
        for field in self.COLLECTION_FIELDS:
            if isinstance(data.get(field), list):
                return self._stringify_items(data[field])
        raise LoopExpansionError(
            f"loop input JSON object did not contain an array field (looked for {', '.join(self.COLLECTION_FIELDS)})"
        )

    @staticmethod
    def _stringify_items(values: List[Any]) -> List[str]:
        items = []
        for value in values:
            if isinstance(value, str) and not isinstance(value, JsonNumber):
                if value.strip():
                    items.append(value)
            else:
                items.append(json_text.dumps(value))
        return items

    def _split_text(self, text: str) -> List[str]:
        parts = (part.strip() for part in self.SEPARATOR_PATTERN.split(text))
        return [part for part in parts if part]
