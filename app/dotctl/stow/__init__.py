"""GNU Stow integration for the managed dotfiles tree."""

from dotctl.stow.operator import StowAction, StowOperator, StowResult, list_packages

__all__ = ["StowAction", "StowOperator", "StowResult", "list_packages"]
