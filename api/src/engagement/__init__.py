"""Like tracking shared by posts and comments."""

from .likes import LikeResult, Likeable, toggle_like


__all__ = ["LikeResult", "Likeable", "toggle_like"]
