"""
SSIS variable expression resolution.
Expands @[User::Name], @[System::Name] and @[Name] tokens against a flat
variable table.
"""

import re
from typing import Mapping, Optional


DEFAULT_MAX_DEPTH = 10


class ExpressionResolver:
    """
    Resolves variable expression tokens found in package content.

    - @[User::Name]   -> variables['Name'] (or variables['User::Name'])
    - @[System::Name] -> a fixed marker; runtime values cannot be known statically
    - @[Name]         -> variables['Name']

    Substituted values are expanded again with one less level of depth, so
    cyclic definitions stop once the depth budget is spent. Unknown tokens stay
    in the text verbatim.
    """

    TOKEN_PATTERN = re.compile(r'@\[([^\]]+)\]')
    USER_PREFIX = "User::"
    SYSTEM_PREFIX = "System::"

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth

    def resolve(self, text: str, variables: Mapping[str, str], max_depth: Optional[int] = None) -> str:
        """
        Expand every expression token in text.

        Args:
            text: Text containing @[...] tokens
            variables: Variable name -> value (names may carry a scope)
            max_depth: Remaining expansion depth (defaults to the resolver's)

        Returns:
            Text with resolvable tokens substituted
        """
        if max_depth is None:
            max_depth = self.max_depth
        if max_depth <= 0:
            return text

        def replace_token(match):
            reference = match.group(1)
            resolved = self._lookup(reference, variables)
            if not resolved:
                return match.group(0)
            return self.resolve(resolved, variables, max_depth - 1)

        return self.TOKEN_PATTERN.sub(replace_token, text)

    def _lookup(self, reference: str, variables: Mapping[str, str]) -> str:
        if reference.startswith(self.SYSTEM_PREFIX):
            return f"<System variable: {reference}>"

        if reference.startswith(self.USER_PREFIX):
            name = reference[len(self.USER_PREFIX):]
            value = variables.get(name)
            if value is None:
                value = variables.get(reference)
        else:
            value = variables.get(reference)

        if value is None:
            return ""
        return str(value)


def resolve_expression(text: str, variables: Mapping[str, str], max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Expand @[...] tokens in text; see ExpressionResolver."""
    return ExpressionResolver(max_depth).resolve(text, variables)
