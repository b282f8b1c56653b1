"""
Lazy rpy2 runtime shared by all R-backed functions.

Nothing in this module touches R until :func:`get_r_environment` is
first called, so ``import differential_counts`` works on machines without
R installed.

Usage:
    >>> from differential_counts.r_env import get_r_environment
    >>> r = get_r_environment()
    >>> deseq2 = r.lazy_import_r_packages("DESeq2")
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

logger = logging.getLogger(__name__)


class REnvironment:
    """Singleton host for rpy2 components, populated on first use."""

    _instance = None
    _initialized = False

    _ro: Any = None
    _numpy2ri: Any = None
    _pandas2ri: Any = None
    _importr: Any = None
    _RRuntimeError: Any = None
    _localconverter_func: Any = None
    _default_converter_instance: Any = None
    _get_conversion_func: Any = None
    _IntVector: Any = None
    _FloatVector: Any = None
    _StrVector: Any = None
    _BoolVector: Any = None
    _FactorVector: Any = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        try:
            import rpy2.robjects as ro
            from rpy2.robjects.packages import importr
            from rpy2.rinterface_lib.embedded import RRuntimeError
            from rpy2.robjects import pandas2ri, numpy2ri, default_converter
            from rpy2.robjects.conversion import localconverter, get_conversion
            from rpy2.robjects.vectors import (
                IntVector,
                FloatVector,
                StrVector,
                BoolVector,
                FactorVector,
            )
        except ImportError:
            raise ImportError(
                "rpy2 is not installed. Please install it via "
                "'pip install differential-counts[r]' or 'pip install rpy2'."
            )

        logger.debug("Initializing rpy2 components")
        self._ro = ro
        self._importr = importr
        self._RRuntimeError = RRuntimeError
        self._pandas2ri = pandas2ri
        self._numpy2ri = numpy2ri
        self._localconverter_func = localconverter
        self._default_converter_instance = default_converter
        self._get_conversion_func = get_conversion
        self._IntVector = IntVector
        self._FloatVector = FloatVector
        self._StrVector = StrVector
        self._BoolVector = BoolVector
        self._FactorVector = FactorVector
        self._packages: dict = {}

        type(self)._initialized = True

    @property
    def ro(self) -> Any:
        return self._ro

    @property
    def numpy2ri(self) -> Any:
        return self._numpy2ri

    @property
    def pandas2ri(self) -> Any:
        return self._pandas2ri

    @property
    def default_converter(self) -> Any:
        return self._default_converter_instance

    @property
    def localconverter(self) -> Any:
        return self._localconverter_func

    @property
    def get_conversion(self) -> Any:
        return self._get_conversion_func

    @property
    def RRuntimeError(self) -> Any:
        return self._RRuntimeError

    @property
    def IntVector(self) -> Any:
        return self._IntVector

    @property
    def FloatVector(self) -> Any:
        return self._FloatVector

    @property
    def StrVector(self) -> Any:
        return self._StrVector

    @property
    def BoolVector(self) -> Any:
        return self._BoolVector

    @property
    def FactorVector(self) -> Any:
        return self._FactorVector

    @property
    def NULL(self) -> Any:
        return self._ro.NULL

    def lazy_import_r_packages(self, packages: str | Sequence[str]) -> Any:
        """
        Import one or more R packages, caching the handles.

        Args:
            packages: A package name, or a sequence of names.

        Returns:
            The ``importr`` handle for a single name, or a tuple of handles
            in the order requested.
        """
        names = [packages] if isinstance(packages, str) else list(packages)
        handles = []
        for name in names:
            if name not in self._packages:
                logger.debug("Importing R package %s", name)
                self._packages[name] = self._importr(name)
            handles.append(self._packages[name])
        if isinstance(packages, str):
            return handles[0]
        return tuple(handles)

    def r2py(self, sexp: Any) -> Any:
        """Convert an R object to Python with the numpy + pandas converters."""
        with self._localconverter_func(
            self._default_converter_instance
            + self._numpy2ri.converter
            + self._pandas2ri.converter
        ):
            return self._get_conversion_func().rpy2py(sexp)


def get_r_environment() -> REnvironment:
    """Return the process-wide :class:`REnvironment`."""
    return REnvironment()
