# =============================================================================
# View List Widget
# =============================================================================
# The sidebar: one node per view the mailbox can show.
#
# Features:
#   - The five folders plus the Starred view, in a fixed order
#   - Icons per view
#   - Unread count on the active view
# =============================================================================

from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from hexmail.core import DEFAULT_VIEWS, ViewScope


class ViewList(Tree):
    """
    A tree widget listing the mailbox views.

    Selecting a node posts Tree.NodeSelected; the node's data holds the
    ViewScope under "scope".

    Usage:
        >>> views = ViewList("Mailbox")
        >>> views.load_views()
    """

    # Note: Avoid emojis with variation selectors (️) as they cause terminal width issues
    VIEW_ICONS = {
        "inbox": "📥",
        "starred": "★",
        "sent": "📤",
        "archive": "📦",
        "trash": "🗑",
        "drafts": "📝",
    }

    def __init__(self, label: str = "Mailbox", **kwargs) -> None:
        super().__init__(label, **kwargs)
        self.show_root = False
        self._nodes: dict[ViewScope, TreeNode] = {}

    def load_views(self, views: tuple[ViewScope, ...] = DEFAULT_VIEWS) -> None:
        """Populate the tree with `views`."""
        self.clear()
        self._nodes.clear()

        for scope in views:
            node = self.root.add_leaf(self._view_label(scope), data={"scope": scope})
            self._nodes[scope] = node

        self.root.expand()

    def _view_label(self, scope: ViewScope, unread: int = 0) -> str:
        icon = self.VIEW_ICONS.get(scope.name, "📁")
        if unread > 0:
            return f"{icon} {scope.label} ({unread})"
        return f"{icon} {scope.label}"

    def update_unread_count(self, scope: ViewScope, count: int) -> None:
        """Show `count` next to `scope` and clear the other counts."""
        for other, node in self._nodes.items():
            node.set_label(self._view_label(other, count if other == scope else 0))

    def select_view(self, scope: ViewScope) -> None:
        """Move the cursor to `scope` without posting a selection."""
        node = self._nodes.get(scope)
        if node is not None:
            self.move_cursor(node)

    def get_selected_view(self) -> ViewScope | None:
        node = self.cursor_node
        if node and node.data:
            return node.data.get("scope")
        return None
