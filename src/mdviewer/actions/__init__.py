"""Action handler mixins for ViewerApp."""

from .navigation_actions import NavigationActionsMixin
from .view_actions import ViewActionsMixin

__all__ = [
    "NavigationActionsMixin",
    "ViewActionsMixin",
]
