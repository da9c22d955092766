"""uistage - build a front-end project and stage its artifacts.

This package wraps a package manager's install/build commands, prunes
generated files from the build output, and copies the remaining artifacts
into a target directory that a separate product packages.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
