"""R dependency management utilities."""

from __future__ import annotations

import logging
from typing import Sequence

logger = logging.getLogger(__name__)

# Track which packages have been checked
_checked_packages: set = set()


def _rpackages():
    try:
        import rpy2.robjects.packages as rpackages
        from rpy2.robjects.vectors import StrVector
    except ImportError:
        raise ImportError(
            "rpy2 is not installed. Please install it via "
            "'pip install differential-counts[r]' or 'pip install rpy2'."
        )
    return rpackages, StrVector


def is_r_package_installed(name: str) -> bool:
    """
    Check whether an R package is installed, without installing anything.

    Args:
        name: R package name, e.g. "DESeq2".

    Returns:
        True if the package is installed in the active R library.
    """
    rpackages, _ = _rpackages()
    return bool(rpackages.isinstalled(name))


# =============================================================================
# Base R dependencies (required for the dataset <-> R conversion)
# =============================================================================

# Bioconductor infrastructure used directly by the deseq2 module
BASE_R_PACKAGES = [
    "BiocManager",
    "SummarizedExperiment",
    "BiocGenerics",
    "S4Vectors",
]


def _install_missing(missing: Sequence[str]) -> None:
    rpackages, StrVector = _rpackages()

    utils = rpackages.importr("utils")
    utils.chooseCRANmirror(ind=1)  # Select first mirror automatically

    if not rpackages.isinstalled("BiocManager"):
        logger.info("Installing BiocManager...")
        utils.install_packages(StrVector(["BiocManager"]))

    bioc_manager = rpackages.importr("BiocManager")
    bioc_manager.install(StrVector(list(missing)), ask=False, update=False)


def install_base_dependencies() -> None:
    """
    Install the Bioconductor infrastructure packages in BASE_R_PACKAGES.

    Raises:
        ImportError: If rpy2 is not installed.

    Example:
        >>> install_base_dependencies()
    """
    rpackages, _ = _rpackages()

    missing = [
        pkg for pkg in BASE_R_PACKAGES
        if pkg != "BiocManager" and not rpackages.isinstalled(pkg)
    ]
    if missing:
        logger.info("Installing Bioconductor packages: %s", ", ".join(missing))
        _install_missing(missing)

    logger.info("Base R dependencies installed successfully.")


# =============================================================================
# Module-specific R dependencies
# =============================================================================

def ensure_r_dependencies(packages: Sequence[str]) -> None:
    """
    Checks if required R packages are installed.
    If not, attempts to install them using BiocManager via rpy2.

    Each package is checked at most once per process.

    Args:
        packages: Sequence of R package names to check/install.

    Raises:
        ImportError: If rpy2 is not installed.
        RuntimeError: If a package is still missing after installation.

    Example:
        >>> ensure_r_dependencies(["DESeq2"])
    """
    packages_to_check = [pkg for pkg in packages if pkg not in _checked_packages]
    if not packages_to_check:
        return

    rpackages, _ = _rpackages()

    missing_pkgs = [pkg for pkg in packages_to_check if not rpackages.isinstalled(pkg)]

    if missing_pkgs:
        logger.warning("Missing R packages detected: %s", ", ".join(missing_pkgs))
        logger.info("Attempting to install via BiocManager...")
        _install_missing(missing_pkgs)

        still_missing = [pkg for pkg in missing_pkgs if not rpackages.isinstalled(pkg)]
        if still_missing:
            raise RuntimeError(
                f"Failed to install R packages: {', '.join(still_missing)}"
            )
        logger.info("R packages installed successfully.")

    _checked_packages.update(packages_to_check)
