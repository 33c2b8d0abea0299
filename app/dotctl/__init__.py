"""dotctl - dotfiles auto-adoption and Homebrew convergence for macOS."""

__version__ = "0.1.0"
