"""composite-sync — propagate a component repository's commit into a composite repository's submodule pin."""

__version__ = "0.1.0"
