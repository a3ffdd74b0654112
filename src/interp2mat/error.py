from __future__ import annotations

import enum
import warnings
from collections.abc import Mapping

import attrs

# ------------------------------------------------------------------------------
#                                   Exceptions
# ------------------------------------------------------------------------------


class InterpolationError(Exception):
    """Raised when encountering errors while building an interpolation operator."""

    pass


class InvalidMethodError(InterpolationError, ValueError):
    """Raised when the interpolation method is not recognized."""

    pass


class MalformedBoundaryConditionsError(InterpolationError, ValueError):
    """Raised when cubic boundary condition tables are inconsistent."""

    pass


class DimensionMismatchError(InterpolationError, ValueError):
    """Raised when array sizes or coordinates do not line up."""

    pass


class UnsupportedGridLayoutError(InterpolationError, ValueError):
    """Raised when a grid cannot be reduced to two increasing 1D axes."""

    pass


# ------------------------------------------------------------------------------
#                                    Warnings
# ------------------------------------------------------------------------------


class Interp2MatWarning(UserWarning):
    """Base class for non-fatal diagnostics."""

    pass


class MeshgridLayoutWarning(Interp2MatWarning):
    """Emitted when a meshgrid-layout grid is converted to ndgrid layout."""

    pass


class NonUniformSpacingWarning(Interp2MatWarning):
    """Emitted when a grid axis is not uniformly spaced."""

    pass


class OutOfBoundsWarning(Interp2MatWarning):
    """Emitted when query points fall outside the reference grid."""

    pass


# ------------------------------------------------------------------------------
#                           Error handling components
# ------------------------------------------------------------------------------


class ErrorHandlingAction(enum.Enum):
    """
    Error handling action descriptors.
    """

    IGNORE = "ignore"  #: Ignore the error.
    RAISE = "raise"  #: Raise the error.
    WARN = "warn"  #: Emit a warning.

    @classmethod
    def convert(cls, value):
        """
        Convert a string to an :class:`.ErrorHandlingAction`. Other values are
        returned unchanged.
        """
        if isinstance(value, str):
            return cls(value.lower())
        return value


@attrs.define
class ErrorHandlingConfiguration:
    """
    Error handling configuration.

    Parameters
    ----------
    meshgrid : ErrorHandlingAction, default: WARN
        Action when the reference grid is given in meshgrid layout. The grid
        is converted in all cases except ``RAISE``.

    spacing : ErrorHandlingAction, default: WARN
        Action when a grid axis is not uniformly spaced. The spacing computed
        from the first two samples is used in all cases except ``RAISE``.

    bounds : ErrorHandlingAction, default: IGNORE
        Action when query points lie outside the reference grid. Their rows
        in the operator are left empty in all cases except ``RAISE``.

    Examples
    --------
    >>> ErrorHandlingConfiguration(bounds="warn")
    ErrorHandlingConfiguration(meshgrid=<WARN>, spacing=<WARN>, bounds=<WARN>)
    """

    meshgrid: ErrorHandlingAction = attrs.field(
        default=ErrorHandlingAction.WARN,
        converter=ErrorHandlingAction.convert,
        validator=attrs.validators.instance_of(ErrorHandlingAction),
        repr=lambda x: f"<{x.name}>",
    )
    spacing: ErrorHandlingAction = attrs.field(
        default=ErrorHandlingAction.WARN,
        converter=ErrorHandlingAction.convert,
        validator=attrs.validators.instance_of(ErrorHandlingAction),
        repr=lambda x: f"<{x.name}>",
    )
    bounds: ErrorHandlingAction = attrs.field(
        default=ErrorHandlingAction.IGNORE,
        converter=ErrorHandlingAction.convert,
        validator=attrs.validators.instance_of(ErrorHandlingAction),
        repr=lambda x: f"<{x.name}>",
    )

    @classmethod
    def convert(cls, value):
        """
        Convert a value to an :class:`.ErrorHandlingConfiguration`.

        Parameters
        ----------
        value
            Value to convert. Dictionaries values are passed as keyword arguments
            to the constructor. ``None`` resolves to the global default
            configuration.

        Returns
        -------
        ErrorHandlingConfiguration
        """
        if value is None:
            return get_error_handling_config()
        if isinstance(value, Mapping):
            return cls(**value)
        else:
            return value


def handle_error(
    error: InterpolationError,
    action: ErrorHandlingAction,
    category: type[Warning] = Interp2MatWarning,
) -> None:
    """
    Report a diagnostic raised while building an operator.

    Parameters
    ----------
    error : .InterpolationError
        Exception describing the diagnostic. It is raised as is with
        ``RAISE``; its message is reused with ``WARN``.

    action : ErrorHandlingAction
        Configured action for this diagnostic.

    category : type, default: Interp2MatWarning
        Warning category emitted with ``WARN``.
    """
    if action is ErrorHandlingAction.RAISE:
        raise error
    if action is ErrorHandlingAction.WARN:
        warnings.warn(str(error), category, stacklevel=3)
    elif action is not ErrorHandlingAction.IGNORE:
        raise NotImplementedError(f"unhandled error handling action {action!r}")


_global_config = ErrorHandlingConfiguration()


def set_error_handling_config(value: Mapping | ErrorHandlingConfiguration) -> None:
    """
    Replace the configuration used when no per-call configuration is given.

    Parameters
    ----------
    value : Mapping | ErrorHandlingConfiguration
        New configuration. Fields missing from a mapping take their class
        defaults, not their current global values.

    Raises
    ------
    ValueError
        If ``value`` is neither a mapping nor an
        :class:`.ErrorHandlingConfiguration`.
    """
    global _global_config
    if isinstance(value, Mapping):
        value = ErrorHandlingConfiguration(**value)
    elif not isinstance(value, ErrorHandlingConfiguration):
        raise ValueError(
            f"could not convert {value!r} to an ErrorHandlingConfiguration"
        )
    _global_config = value


def get_error_handling_config() -> ErrorHandlingConfiguration:
    """
    Return the configuration used when no per-call configuration is given.
    """
    return _global_config
