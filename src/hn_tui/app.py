from __future__ import annotations

import logging
import webbrowser
from typing import Any, List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Header, ListView, LoadingIndicator, Rule, Static
from textual.worker import Worker, WorkerState

from .config import DEFAULTS, HN_WEB_URL
from .datamodels import PreviewState, StoryItem
from .messages import PreviewChanged
from .viewer import Viewer
from .widgets import (
    ErrorMessage,
    PreviewPane,
    StatusBar,
    StoryListItem,
    site_link,
    story_link,
)

logger = logging.getLogger("hn")

KEYBINDINGS_HINT = (
    "[b $accent]r[/] refresh, [b $accent]o[/] open link, "
    "[b $accent]c[/] open comments, [b $accent]s[/] site, [b $accent]q[/] quit"
)


class HackerNewsApp(App):
    TITLE = "Hacker News"
    SUB_TITLE = "Top stories"

    CSS_PATH = "app.css"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("o", "open_link", "Open link"),
        Binding("c", "open_comments", "Open comments"),
        Binding("s", "open_site", "Site submissions"),
    ]

    def __init__(
        self,
        viewer: Viewer,
        theme: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.viewer = viewer
        self._theme_name = theme or DEFAULTS["theme"]
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            with Vertical(id="left"):
                yield Static("Top Stories", classes="pane-title")
                yield ListView(id="stories-list")
            yield Rule(orientation="vertical")
            with VerticalScroll(id="right"):
                yield PreviewPane(id="preview")
        yield StatusBar()

    def on_mount(self) -> None:
        if self._theme_name in self.available_themes:
            self.theme = self._theme_name
        else:
            logger.warning("Unknown theme '%s', falling back to dracula", self._theme_name)
            self.theme = "dracula"

        # Preview changes arrive on worker threads; post_message hands them to the UI thread.
        self._unsubscribe = self.viewer.subscribe(
            lambda state: self.post_message(PreviewChanged(state))
        )
        self.query_one(PreviewPane).show(self.viewer.preview_state)
        self.query_one(StatusBar).set_keybindings(KEYBINDINGS_HINT)
        self._load_stories()
        self.query_one("#stories-list").focus()

    def on_unmount(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
        self.viewer.close()

    def _load_stories(self) -> None:
        self.query_one(StatusBar).loading_status = "Loading top stories..."
        stories_list = self.query_one("#stories-list", ListView)
        stories_list.clear()
        stories_list.mount(LoadingIndicator())
        self.run_worker(
            self.viewer.refresh_stories,
            name="stories_loader",
            thread=True,
            exclusive=True,
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if getattr(event.worker, "name", None) != "stories_loader":
            return
        if event.state is WorkerState.SUCCESS:
            self._handle_stories_loaded(event.worker.result or [])
        elif event.state is WorkerState.ERROR:
            self._handle_stories_error(event)

    def _handle_stories_loaded(self, stories: List[StoryItem]) -> None:
        status = self.query_one(StatusBar)
        status.loading_status = f"{len(stories)} stories"
        stories_list = self.query_one("#stories-list", ListView)
        stories_list.clear()
        for story in stories:
            stories_list.append(StoryListItem(story))

    def _handle_stories_error(self, event: Worker.StateChanged) -> None:
        self.query_one(StatusBar).loading_status = "Error loading stories."
        stories_list = self.query_one("#stories-list", ListView)
        stories_list.clear()

        error = getattr(event.worker, "error", None)
        kind = getattr(error, "kind", None)
        logger.error("Stories worker failed: %s", error)
        if kind:
            stories_list.mount(ErrorMessage(f"Failed to load top stories ({kind})"))
        else:
            stories_list.mount(ErrorMessage("Failed to load top stories."))

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        if isinstance(event.item, StoryListItem):
            self.viewer.request_preview(event.item.story.id)

    def on_story_list_item_hovered(self, message: StoryListItem.Hovered) -> None:
        self.viewer.request_preview(message.story.id)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, StoryListItem):
            webbrowser.open(story_link(event.item.story))

    def on_preview_changed(self, message: PreviewChanged) -> None:
        self._render_preview(message.state)

    def _render_preview(self, state: PreviewState) -> None:
        self.query_one(PreviewPane).show(state)
        self.query_one("#right", VerticalScroll).scroll_home(animate=False)

    def _highlighted_story(self) -> Optional[StoryItem]:
        item = self.query_one("#stories-list", ListView).highlighted_child
        if isinstance(item, StoryListItem):
            return item.story
        return None

    def action_refresh(self) -> None:
        self._load_stories()

    def action_open_link(self) -> None:
        story = self._highlighted_story()
        if story:
            webbrowser.open(story_link(story))

    def action_open_comments(self) -> None:
        story = self._highlighted_story()
        if story:
            webbrowser.open(f"{HN_WEB_URL}/item?id={story.id}")

    def action_open_site(self) -> None:
        story = self._highlighted_story()
        if story:
            webbrowser.open(site_link(story))
