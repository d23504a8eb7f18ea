from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup
from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import ListItem, LoadingIndicator, Static

from .config import HN_WEB_URL
from .datamodels import Comment, Failed, Loaded, Loading, PreviewState, StoryItem


# --- Formatting helpers ---
def hostname(url: Optional[str]) -> str:
    if not url:
        return "news.ycombinator.com"
    host = url
    for prefix in ("https://", "http://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
    if host.startswith("www."):
        host = host[len("www."):]
    return host.split("/", 1)[0] or "news.ycombinator.com"


def pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def html_to_text(markup: Optional[str]) -> str:
    """Plain text of an HN text field; paragraphs become blank-line separated."""
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "lxml")
    for p in soup.find_all("p"):
        p.insert_before("\n\n")
    return soup.get_text().strip()


def story_meta(story: StoryItem) -> str:
    when = story.time.astimezone().strftime("%m/%d/%y %I:%M %p")
    return (
        f"{pluralize(story.score, 'point')} by {story.by or '[deleted]'}  {when}  "
        f"{pluralize(len(story.kids), 'comment')}"
    )


def story_link(story: StoryItem) -> str:
    return story.url or f"{HN_WEB_URL}/item?id={story.id}"


def site_link(story: StoryItem) -> str:
    """Listing of HN submissions from the same site as the story."""
    return f"{HN_WEB_URL}/from?site={hostname(story.url)}"


# --- UI Widgets ---
class StoryListItem(ListItem):
    class Hovered(Message):
        """The mouse moved onto a story in the list."""
        def __init__(self, story: StoryItem) -> None:
            self.story = story
            super().__init__()

    def __init__(self, story: StoryItem):
        super().__init__()
        self.story = story

    def compose(self) -> ComposeResult:
        with Vertical(classes="story-container"):
            with Horizontal(classes="story-headline"):
                yield Static(self.story.title, classes="story-title")
                yield Static(f"({hostname(self.story.url)})", classes="story-host")
            yield Static(story_meta(self.story), classes="story-meta")

    def on_enter(self, event: events.Enter) -> None:
        self.post_message(self.Hovered(self.story))


class CommentView(Vertical):
    def __init__(self, comment: Comment):
        super().__init__(classes="comment")
        self.comment = comment

    def compose(self) -> ComposeResult:
        yield Static(f"by {self.comment.by or '[deleted]'}", classes="comment-author")
        yield Static(Text(html_to_text(self.comment.text)), classes="comment-text")
        for reply in self.comment.sub_comments:
            yield CommentView(reply)


class PreviewPane(Vertical):
    def show(self, state: PreviewState) -> None:
        self.remove_children()
        if isinstance(state, Loading):
            self.mount(LoadingIndicator())
        elif isinstance(state, Failed):
            self.mount(ErrorMessage(f"Failed to load story {state.story_id} ({state.kind})"))
        elif isinstance(state, Loaded):
            item = state.data.item
            widgets = [
                Static(Text(item.title, style="bold"), classes="preview-title"),
                Static(story_link(item), classes="preview-url"),
                Static(story_meta(item), classes="story-meta"),
            ]
            if item.text:
                widgets.append(Static(Text(html_to_text(item.text)), classes="preview-text"))
            widgets.extend(CommentView(c) for c in state.data.comments)
            self.mount(*widgets)
        else:
            self.mount(Static("Highlight a story to preview it here", classes="preview-hint"))


class StatusBar(Static):
    loading_status = reactive("")
    keybinding_hint = reactive("")

    def on_mount(self) -> None:
        self.update_display()

    def set_keybindings(self, hint: str) -> None:
        """Set the keybinding hint text."""
        self.keybinding_hint = hint

    def update_display(self) -> None:
        """Update the status bar display."""
        status_items = []
        if self.loading_status:
            status_items.append(self.loading_status)

        if self.keybinding_hint:
            status_items.append(self.keybinding_hint)

        self.update(" | ".join(status_items))

    def watch_loading_status(self, loading_status: str) -> None:
        self.update_display()

    def watch_keybinding_hint(self, keybinding_hint: str) -> None:
        self.update_display()


class ErrorMessage(Static):
    def __init__(self, message: str):
        super().__init__(Text(message, style="bold red"))
