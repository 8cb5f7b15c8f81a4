"""Flag declarations on a scope chain as used."""
from .scope import Scope


def mark_variable_as_used(scope: Scope, name: str) -> bool:
    """Record that a particular variable has been used in code.

    Starting from ``scope`` every scope up to the root is searched and every
    variable called ``name`` is flagged, not just the nearest one, so an outer
    declaration shadowed by an inner one is flagged too.

    The global scope is synthetic and sits above the program's real outermost
    scope, so a search starting there first descends through the first child
    scopes until it reaches a scope without children.

    Args:
        scope: Lexical scope active at the referencing position
        name: Identifier to look for

    Returns:
        True if at least one variable was found and flagged, False if not.
    """
    found = False

    if scope.is_global:
        while scope.child_scopes:
            scope = scope.child_scopes[0]

    while scope is not None:
        variable = scope.variables.get(name)
        if variable is not None:
            variable.mark_used()
            found = True
        scope = scope.upper

    return found
