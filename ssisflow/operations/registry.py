"""
Operation registry for dispatching steps to named operations.

Workflow steps name an operation by its `Type`; the registry maps those names
to callables. Registries are plain objects passed to the executor, so several
can coexist in one process.
"""

import importlib
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..exceptions import OperationNotFoundError
from .types import InvocationContext, OperationFunc


logger = logging.getLogger(__name__)


class OperationRegistry:
    """
    Registry of named operations.

    Example:
        registry = OperationRegistry()

        @registry.operation("list_packages")
        def list_packages(params, context):
            ...
    """

    REGISTER_HOOK = "register_operations"

    def __init__(self, operations: Optional[Mapping[str, OperationFunc]] = None):
        """Initialize the registry, optionally with a name -> callable mapping."""
        self._operations: Dict[str, OperationFunc] = {}
        if operations:
            for name, func in operations.items():
                self.register(name, func)

    def register(self, name: str, func: OperationFunc) -> None:
        """
        Register an operation.

        Args:
            name: Operation name as used in a step's Type
            func: Callable taking (parameters, context)

        Raises:
            ValueError: If the name is empty or func is not callable
        """
        if not name or not name.strip():
            raise ValueError("Operation name cannot be empty")
        if not callable(func):
            raise ValueError(f"Operation '{name}' must be callable")

        if name in self._operations:
            logger.warning(f"Replacing registered operation: {name}")
        self._operations[name] = func
        logger.debug(f"Registered operation: {name}")

    def operation(self, name: str) -> Callable[[OperationFunc], OperationFunc]:
        """Decorator form of register()."""
        def decorator(func: OperationFunc) -> OperationFunc:
            self.register(name, func)
            return func
        return decorator

    def register_from_module(self, module_name: str) -> List[str]:
        """
        Import a module and let it add its operations.

        The module must define register_operations(registry).

        Returns:
            Names of the operations the module added
        """
        module = importlib.import_module(module_name)
        hook = getattr(module, self.REGISTER_HOOK, None)
        if hook is None or not callable(hook):
            raise ValueError(f"Module '{module_name}' does not define {self.REGISTER_HOOK}(registry)")

        before = set(self._operations)
        hook(self)
        added = sorted(set(self._operations) - before)
        logger.info(f"Loaded {len(added)} operations from {module_name}")
        return added

    def get(self, name: str) -> Optional[OperationFunc]:
        """Get an operation by name, or None."""
        return self._operations.get(name)

    def exists(self, name: str) -> bool:
        """Check if an operation is registered."""
        return name in self._operations

    def list_operations(self) -> List[str]:
        """List all registered operation names."""
        return sorted(self._operations)

    def invoke(self, name: str, parameters: Dict[str, Any], context: InvocationContext) -> Any:
        """
        Invoke an operation with resolved parameters.

        Raises:
            OperationNotFoundError: If no operation has that name
            Exception: Whatever the operation raises
        """
        func = self._operations.get(name)
        if func is None:
            raise OperationNotFoundError(name, self.list_operations())
        return func(parameters, context)
