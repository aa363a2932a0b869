import logging
from typing import Any, List, Sequence

from rich.markup import escape
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Label, LoadingIndicator, Markdown, Tree

from licensewalker.__version__ import __version__
from licensewalker.core.model import DependencyNode, LicenseSource
from licensewalker.core.render import count_sources, node_style
from licensewalker.core.walker import walk_packages

SOURCE_TITLES = {
    LicenseSource.DECLARED: "Declared in package metadata",
    LicenseSource.LICENSE_FILE: "LICENSE file in the source repository",
    LicenseSource.README: "README of the source repository",
    LicenseSource.UNKNOWN: "No license information found",
}


class LicenseScreen(ModalScreen):
    """Modal with the full annotation of one package."""

    DEFAULT_CSS = """
    LicenseScreen {
        align: center middle;
        background: rgba(0, 0, 0, 0.8);
    }
    #dialog {
        padding: 0 1;
        width: 85%;
        height: 85%;
        border: heavy $primary;
        background: $surface;
        layout: vertical;
    }
    #title {
        text-align: center;
        text-style: bold;
        background: $primary;
        color: white;
        width: 100%;
        padding: 1;
    }
    #content-scroll {
        height: 1fr;
        margin: 1 0;
        overflow-y: auto;
        scrollbar-gutter: stable;
    }
    #close-btn {
        width: 100%;
        dock: bottom;
    }
    """

    def __init__(self, node: DependencyNode) -> None:
        super().__init__()
        self.node = node

    def compose(self) -> ComposeResult:
        title = f"{self.node.name} v{self.node.version}" if self.node.version else self.node.name
        yield Vertical(
            Label(escape(title), id="title"),
            VerticalScroll(
                Markdown(self._build_report()),
                id="content-scroll"
            ),
            Button("Close (Esc)", variant="primary", id="close-btn"),
            id="dialog",
        )

    def _build_report(self) -> str:
        node = self.node
        md_output = [f"# {node.name}\n"]

        if node.cycle:
            md_output.append("**Circular dependency.** This package already appears above it in the tree.\n")
            return "\n".join(md_output)

        md_output.append(f"**Source:** {SOURCE_TITLES[node.source]}\n")
        md_output.append(f"> {node.license}\n")

        if node.children:
            md_output.append(f"### Dependencies ({len(node.children)})\n")
            for child in node.children:
                md_output.append(f"- `{child.name}`: {child.license}")

        return "\n".join(md_output)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss()

    def key_escape(self) -> None:
        self.dismiss()


class LicenseWalkerApp(App):
    TITLE = "License Walker"
    SUB_TITLE = f"v{__version__}"

    DEFAULT_CSS = """
    Screen { layout: vertical; }

    #info-bar {
        height: 3;
        dock: top;
        background: $surface;
        border-bottom: solid $primary;
        align: left middle;
        padding: 0 1;
    }

    .info-label {
        width: auto;
        height: 1;
        padding: 0 2;
        color: $text;
    }

    #tree-container {
        height: 1fr;
        border: none;
        margin: 0 1;
    }
    Tree { padding: 1; background: $surface; }

    #loading-container { height: 100%; align: center middle; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("l", "expand_node", "Expand"),
        Binding("h", "collapse_node", "Collapse"),
        Binding("space", "toggle_node", "Toggle"),
        Binding("enter", "show_details", "Details"),
        Binding("u", "toggle_filter", "Unknown Only"),
    ]

    show_only_unknown: bool = False
    resolved: int = 0
    total_pkgs: int = 0
    declared_pkgs: int = 0
    repo_pkgs: int = 0
    unknown_pkgs: int = 0
    error_message: str = ""

    def __init__(self, identifiers: Sequence[str]) -> None:
        super().__init__()
        self.identifiers = list(identifiers)
        self.trees: List[List[DependencyNode]] = []

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Horizontal(id="info-bar"):
            yield Label(f"[b]Packages:[/b] [cyan]{escape(', '.join(self.identifiers))}[/]", classes="info-label")
            yield Label("[b]Total:[/b] [blue]0[/]", id="lbl-total", classes="info-label")
            yield Label("[b]Declared:[/b] [blue]0[/]", id="lbl-declared", classes="info-label")
            yield Label("[b]Repository:[/b] [green]0[/]", id="lbl-repo", classes="info-label")
            yield Label("[b]Unknown:[/b] [red]0[/]", id="lbl-unknown", classes="info-label")

        with Container(id="main-area"):
            with Container(id="loading-container"):
                yield LoadingIndicator()
                yield Label("Starting walk...", id="status-label")

            with Container(id="tree-container"):
                yield Tree("Licenses", id="dep-tree")

        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#tree-container").display = False
        self.walk_dependencies()

    # --- ACTIONS ---

    def action_cursor_down(self) -> None:
        self.query_one("#dep-tree").action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#dep-tree").action_cursor_up()

    def action_expand_node(self) -> None:
        tree = self.query_one("#dep-tree")
        if tree.cursor_node:
            tree.cursor_node.expand()

    def action_collapse_node(self) -> None:
        tree = self.query_one("#dep-tree")
        node = tree.cursor_node
        if node:
            if node.is_expanded:
                node.collapse()
            elif node.parent:
                tree.select_node(node.parent)
                node.parent.collapse()

    def action_toggle_node(self) -> None:
        tree = self.query_one("#dep-tree")
        if tree.cursor_node:
            tree.cursor_node.toggle()

    def action_show_details(self) -> None:
        tree = self.query_one("#dep-tree")
        if tree.cursor_node and tree.cursor_node.data:
            self.push_screen(LicenseScreen(tree.cursor_node.data))

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        if event.node.data:
            self.push_screen(LicenseScreen(event.node.data))

    def action_toggle_filter(self) -> None:
        self.show_only_unknown = not self.show_only_unknown

        status = "enabled" if self.show_only_unknown else "disabled"
        msg = "Showing packages without license only." if self.show_only_unknown else "Showing all packages."
        self.notify(f"Filter {status}: {msg}", severity="information")

        if self.trees:
            self.render_tree()

    # --- LOGIC ---

    def _has_unknown_descendant(self, node: DependencyNode) -> bool:
        if node.source is LicenseSource.UNKNOWN and not node.cycle:
            return True
        return any(self._has_unknown_descendant(child) for child in node.children)

    def on_node_resolved(self, node: DependencyNode) -> None:
        self.resolved += 1
        self.update_status(f"Walking dependencies... ({self.resolved} packages resolved)")

    def update_status(self, msg: str) -> None:
        self.query_one("#status-label", Label).update(msg)

    def update_dashboard_ui(self) -> None:
        nodes = [node for tree in self.trees for node in tree]
        counts = count_sources(nodes)
        self.total_pkgs = sum(counts.values())
        self.declared_pkgs = counts[LicenseSource.DECLARED]
        self.repo_pkgs = counts[LicenseSource.LICENSE_FILE] + counts[LicenseSource.README]
        self.unknown_pkgs = counts[LicenseSource.UNKNOWN]

        self.query_one("#lbl-total", Label).update(f"[b]Total:[/b] [blue]{self.total_pkgs}[/]")
        self.query_one("#lbl-declared", Label).update(f"[b]Declared:[/b] [blue]{self.declared_pkgs}[/]")
        self.query_one("#lbl-repo", Label).update(f"[b]Repository:[/b] [green]{self.repo_pkgs}[/]")
        self.query_one("#lbl-unknown", Label).update(f"[b]Unknown:[/b] [red]{self.unknown_pkgs}[/]")

    def show_error(self, message: str) -> None:
        self.error_message = message
        self.query_one("#status-label", Label).update(f"[bold red]Fatal Error:[/]\n{escape(message)}")
        self.query_one("LoadingIndicator").display = False

    @work(thread=False)
    async def walk_dependencies(self) -> None:
        try:
            logging.info(f"Browser walk started for {self.identifiers}")
            self.trees = await walk_packages(self.identifiers, on_resolved=self.on_node_resolved)

            self.update_status("Rendering tree...")
            self.update_dashboard_ui()
            self.render_tree()

        except Exception as e:
            logging.exception("Fatal error in worker:")
            self.show_error(str(e))

    def render_tree(self) -> None:
        tree = self.query_one("#dep-tree")
        tree.clear()
        tree.root.expand()

        def add_nodes(tree_node: Any, nodes: Sequence[DependencyNode], depth: int) -> None:
            for child in nodes:
                if self.show_only_unknown and not self._has_unknown_descendant(child):
                    continue

                safe_name = escape(child.name)
                safe_license = escape(child.license)
                style = node_style(child)

                child_count = len(child.children)
                count_suffix = f" [dim]↳[/] {child_count}" if child_count > 0 else ""

                if child.cycle:
                    label = f"[dim](⟳) {safe_name} {escape(child.version)}[/]"
                elif child.source is LicenseSource.UNKNOWN:
                    label = f"[bold red](?) {safe_name}[/] [{style}]({safe_license})[/]{count_suffix}"
                else:
                    label = f"(•) {safe_name} [{style}]({safe_license})[/]{count_suffix}"

                new_node = tree_node.add(label, expand=(depth == 0 or self.show_only_unknown), data=child)
                add_nodes(new_node, child.children, depth + 1)

        for nodes in self.trees:
            add_nodes(tree.root, nodes, 0)

        self.query_one("#loading-container").display = False
        self.query_one("#tree-container").display = True
        tree.focus()
