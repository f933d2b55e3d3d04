"""Exception types raised inside coffeewatch."""


class CoffeewatchError(Exception):
    """Base class for all coffeewatch errors."""


class ConfigLoadError(CoffeewatchError):
    """Workspace settings could not be read or parsed."""


class CompileError(CoffeewatchError):
    """The compiler rejected a source file or could not be run."""
