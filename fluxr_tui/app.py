"""Textual board for one product: columns, keyboard drag, filters."""

from __future__ import annotations

import asyncio

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, OptionList, Static
from textual.widgets.option_list import Option

from fluxr.board.drag import DragState
from fluxr.board.exceptions import DragInProgressError, ItemNotFoundError, ProductNotFoundError, SyncError
from fluxr.board.models import COLUMNS, BoardItem, Column, DragLocation, ItemKind, Priority
from fluxr.board.partition import partition
from fluxr.board.service import BoardService

KIND_COLORS = {
    ItemKind.FEATURE: "cyan",
    ItemKind.BUG: "red",
    ItemKind.TASK: "yellow",
    ItemKind.PAGE: "magenta",
}

PRIORITY_BADGES = {
    Priority.MUST_HAVE.value: " [bold red]!![/]",
    Priority.NICE_TO_HAVE.value: " [yellow]![/]",
    Priority.NOT_PRIORITIZED.value: "",
}

PRIORITY_KEYS = {
    "1": Priority.MUST_HAVE.value,
    "2": Priority.NICE_TO_HAVE.value,
    "3": Priority.NOT_PRIORITIZED.value,
}


class CardSelected(Message):
    def __init__(self, markdown_content: str, title: str, card: ItemCard) -> None:
        super().__init__()
        self.markdown_content = markdown_content
        self.title = title
        self.card = card


class ItemCard(Static):
    can_focus = True

    def __init__(self, item: BoardItem, col_index: int, grabbed: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self.item = item
        self.col_index = col_index
        self.set_class(grabbed, "grabbed")

    def compose(self) -> ComposeResult:
        item = self.item
        color = KIND_COLORS.get(item.kind, "white")
        badge = PRIORITY_BADGES.get(item.effective_priority, "")
        yield Static(f"[bold {color}]{item.kind.value}[/] {item.name}{badge}")

    def on_focus(self) -> None:
        item = self.item
        lines = [
            f"# {item.name}",
            "",
            f"Kind: {item.kind.value}",
            f"Status: {item.status}",
            f"Priority: {item.effective_priority}",
        ]
        if item.image_url:
            lines.append(f"Screenshot: {item.image_url}")
        lines.extend(["", item.description or "(no description)"])
        self.post_message(CardSelected("\n".join(lines), item.id, self))


class BoardColumn(VerticalScroll):
    def __init__(
        self,
        column: Column,
        items: list[BoardItem],
        col_index: int,
        drop_index: int | None = None,
        grabbed_id: str | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.column = column
        self.items = items
        self.col_index = col_index
        self.drop_index = drop_index
        self.grabbed_id = grabbed_id

    def compose(self) -> ComposeResult:
        yield Static(
            f"[bold underline {self.column.color}]{self.column.title}[/] [dim]({len(self.items)})[/]",
            classes="column-header",
        )

        if not self.items and self.drop_index is None:
            yield Static("[dim]empty[/]", classes="empty-label")
            return

        for i, item in enumerate(self.items):
            if i == self.drop_index:
                yield Static("[reverse] drop here [/]", classes="drop-marker")
            yield ItemCard(
                item, col_index=self.col_index,
                grabbed=item.id == self.grabbed_id, classes="card",
            )
        if self.drop_index is not None and self.drop_index >= len(self.items):
            yield Static("[reverse] drop here [/]", classes="drop-marker")


class DetailPanel(VerticalScroll):
    content_text: reactive[str] = reactive("")
    title_text: reactive[str] = reactive("Details")

    def compose(self) -> ComposeResult:
        yield Static("[dim]Select a card to view details[/]", id="detail-content")

    def watch_content_text(self, value: str) -> None:
        try:
            widget = self.query_one("#detail-content", Static)
            widget.update(value)
        except Exception:
            pass

    def watch_title_text(self, value: str) -> None:
        self.border_title = value


class SearchScreen(ModalScreen[str | None]):
    CSS = """
    SearchScreen { align: center middle; }
    #search-dialog {
        width: 50; height: auto; max-height: 8;
        border: solid $primary; background: $surface; padding: 1 2;
    }
    #search-input { width: 100%; }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, current: str = "") -> None:
        super().__init__()
        self.current = current

    def compose(self) -> ComposeResult:
        with Vertical(id="search-dialog"):
            yield Static("[bold]Search name or description[/]")
            yield Input(value=self.current, placeholder="Empty clears the search", id="search-input")

    @on(Input.Submitted, "#search-input")
    def _on_submit(self, event: Input.Submitted) -> None:
        self.dismiss(event.value.strip())

    def action_cancel(self) -> None:
        self.dismiss(None)


class AddItemScreen(ModalScreen[dict | None]):
    CSS = """
    AddItemScreen { align: center middle; }
    #add-dialog {
        width: 50; height: auto; max-height: 16;
        border: solid $primary; background: $surface; padding: 1 2;
    }
    #add-title { text-align: center; padding-bottom: 1; }
    #add-name { width: 100%; }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def compose(self) -> ComposeResult:
        with Vertical(id="add-dialog"):
            yield Static("[bold]Add to Not Started[/]", id="add-title")
            yield OptionList(*(Option(k.value, id=k.value) for k in ItemKind), id="add-kind")
            yield Input(placeholder="Name", id="add-name")

    @on(Input.Submitted, "#add-name")
    def _on_submit(self, event: Input.Submitted) -> None:
        name = event.value.strip()
        if not name:
            return
        options = self.query_one("#add-kind", OptionList)
        index = options.highlighted if options.highlighted is not None else 0
        self.dismiss({"kind": list(ItemKind)[index].value, "name": name})

    def action_cancel(self) -> None:
        self.dismiss(None)


class ConfirmDeleteScreen(ModalScreen[bool]):
    CSS = """
    ConfirmDeleteScreen { align: center middle; }
    #confirm-dialog {
        width: 50; height: auto; max-height: 8;
        border: solid $error; background: $surface; padding: 1 2;
    }
    """

    BINDINGS = [
        Binding("y", "confirm", "Delete"),
        Binding("n", "cancel", "Keep"),
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, item: BoardItem) -> None:
        super().__init__()
        self.item = item

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Static(f"[bold red]Delete {self.item.kind.value}[/] {self.item.name}?")
            yield Static("[dim]y = delete, n = keep[/]")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class FluxrBoardApp(App):
    TITLE = "Fluxr Board"

    CSS = """
    #main-layout {
        height: 1fr;
        width: 100%;
    }

    #board {
        width: 1fr;
        height: 100%;
    }

    BoardColumn {
        width: 1fr;
        height: 100%;
        border-right: solid $surface-lighten-2;
        padding: 0;
    }

    BoardColumn.active-col {
        border-right: solid $accent;
        border-left: solid $accent;
    }

    .column-header {
        text-align: center;
        padding: 0;
        background: $surface-lighten-1;
        margin-bottom: 1;
        height: 1;
    }

    .empty-label {
        text-align: center;
        color: $text-muted;
    }

    .card {
        padding: 0 1;
        margin: 0;
    }

    .card:focus {
        background: $surface-lighten-1;
    }

    .card.grabbed {
        text-style: bold;
        background: $accent 30%;
    }

    .drop-marker {
        padding: 0 1;
        color: $accent;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $surface-lighten-1;
    }

    #detail-panel {
        width: 50;
        height: 100%;
        border-left: solid $primary;
        padding: 1 1;
        display: none;
    }

    #detail-panel.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("space", "grab", "Grab"),
        Binding("enter", "drop", "Drop"),
        Binding("escape", "cancel_drag", "Cancel", show=False),
        Binding("left", "col_left", "< Col", show=True),
        Binding("right", "col_right", "Col >", show=True),
        Binding("up", "card_up", "", show=False),
        Binding("down", "card_down", "", show=False),
        Binding("a", "add_item", "Add"),
        Binding("d", "delete_item", "Delete"),
        Binding("slash", "search", "Search"),
        Binding("f", "toggle_kind('feature')", "", show=False),
        Binding("b", "toggle_kind('bug')", "", show=False),
        Binding("t", "toggle_kind('task')", "", show=False),
        Binding("p", "toggle_kind('page')", "", show=False),
        Binding("1", "toggle_priority('1')", "", show=False),
        Binding("2", "toggle_priority('2')", "", show=False),
        Binding("3", "toggle_priority('3')", "", show=False),
        Binding("c", "clear_filters", "Clear"),
        Binding("i", "toggle_detail", "Detail"),
        Binding("question_mark", "help_screen", "?=Help"),
    ]

    def __init__(self, service: BoardService, product_slug: str, user_id: str) -> None:
        super().__init__()
        self.service = service
        self.product_slug = product_slug
        self.user_id = user_id
        self.active_col_index: int = 0
        self.drop_target: DragLocation | None = None
        self._focus_id: str | None = None
        self._render_lock = asyncio.Lock()

    def compose(self) -> ComposeResult:
        self._board = Horizontal(id="board")
        self._status_bar = Static("", id="status-bar")
        yield Header()
        with Horizontal(id="main-layout"):
            yield self._board
            yield DetailPanel(id="detail-panel")
        yield self._status_bar
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = self.product_slug
        self.run_worker(self._load_board(), exclusive=True, group="load")

    @on(CardSelected)
    def _on_card_selected(self, event: CardSelected) -> None:
        panel = self.query_one("#detail-panel", DetailPanel)
        panel.title_text = event.title
        panel.content_text = event.markdown_content
        self._focus_id = event.card.item.id
        if not self._is_dragging():
            self.active_col_index = event.card.col_index
            self._highlight_active_column()

    # -- Loading and rendering --

    async def _load_board(self) -> None:
        try:
            if self.service.product_id is None:
                await self.service.load(self.product_slug, self.user_id)
            else:
                await self.service.load_product(self.service.product_id)
        except ProductNotFoundError as e:
            self.notify(str(e), severity="error")
            return
        except SyncError as e:
            self.notify(e.user_message, severity="error")
            return
        await self._render_board()

    async def _render_board(self, items: list[BoardItem] | None = None) -> None:
        # Renders run one at a time, in the order they were requested.
        async with self._render_lock:
            if not self._board.is_attached:
                return
            if items is None:
                columns = self.service.columns()
            else:
                columns = partition(items, self.service.filters)
            session = self.service.controller.session
            grabbed_id = session.draggable_id if session.state is DragState.DRAGGING else None

            await self._board.remove_children()
            for i, column in enumerate(COLUMNS):
                drop_index = None
                if self.drop_target is not None and self.drop_target.bucket_id == column.id:
                    drop_index = self.drop_target.index
                await self._board.mount(BoardColumn(
                    column, columns[column.id], col_index=i,
                    drop_index=drop_index, grabbed_id=grabbed_id,
                ))
            self._highlight_active_column()
            self._restore_focus()
            self._update_status_bar()

    def _refresh_view(self, items: list[BoardItem] | None = None) -> None:
        self.run_worker(self._render_board(items), group="render")

    def _restore_focus(self) -> None:
        if self._focus_id is None:
            return
        for card in self.query(ItemCard):
            if card.item.id == self._focus_id:
                card.focus()
                return

    def _update_status_bar(self) -> None:
        filters = self.service.filters
        parts = []
        if filters.types:
            parts.append("kinds: " + ", ".join(sorted(filters.types)))
        if filters.priorities:
            parts.append("priority: " + ", ".join(sorted(filters.priorities)))
        if filters.search.strip():
            parts.append(f"search: {filters.search.strip()!r}")
        if self.drop_target is not None:
            title = next(c.title for c in COLUMNS if c.id == self.drop_target.bucket_id)
            parts.insert(0, f"[bold]moving to {title} #{self.drop_target.index + 1}[/]")
        text = "  |  ".join(parts) if parts else "[dim]no filters[/]"
        self._status_bar.update(text)

    # -- Column navigation --

    def _get_column_widgets(self) -> list[BoardColumn]:
        return list(self.query("BoardColumn"))

    def _highlight_active_column(self) -> None:
        for i, col in enumerate(self._get_column_widgets()):
            col.set_class(i == self.active_col_index, "active-col")

    def _cards_in_column(self, col_index: int) -> list[ItemCard]:
        cols = self._get_column_widgets()
        if col_index < 0 or col_index >= len(cols):
            return []
        return [w for w in cols[col_index].walk_children() if isinstance(w, ItemCard)]

    def _focused_card(self) -> ItemCard | None:
        focused = self.focused
        return focused if isinstance(focused, ItemCard) else None

    def _is_dragging(self) -> bool:
        return self.service.controller.session.state is DragState.DRAGGING

    def action_col_left(self) -> None:
        if self._is_dragging():
            self._shift_target(columns=-1)
        elif self.active_col_index > 0:
            self.active_col_index -= 1
            self._highlight_active_column()
            self._focus_first_in_active_col()

    def action_col_right(self) -> None:
        if self._is_dragging():
            self._shift_target(columns=1)
        elif self.active_col_index < len(COLUMNS) - 1:
            self.active_col_index += 1
            self._highlight_active_column()
            self._focus_first_in_active_col()

    def _focus_first_in_active_col(self) -> None:
        cards = self._cards_in_column(self.active_col_index)
        if cards:
            cards[0].focus()
        else:
            cols = self._get_column_widgets()
            if self.active_col_index < len(cols):
                cols[self.active_col_index].focus()

    def action_card_up(self) -> None:
        if self._is_dragging():
            self._shift_target(rows=-1)
            return
        cards = self._cards_in_column(self.active_col_index)
        if not cards:
            return
        try:
            idx = cards.index(self.focused)
            if idx > 0:
                cards[idx - 1].focus()
        except ValueError:
            cards[-1].focus()

    def action_card_down(self) -> None:
        if self._is_dragging():
            self._shift_target(rows=1)
            return
        cards = self._cards_in_column(self.active_col_index)
        if not cards:
            return
        try:
            idx = cards.index(self.focused)
            if idx < len(cards) - 1:
                cards[idx + 1].focus()
        except ValueError:
            cards[0].focus()

    # -- Keyboard drag --

    def action_grab(self) -> None:
        card = self._focused_card()
        if card is None:
            self.notify("Select a card first", severity="warning")
            return
        try:
            self.drop_target = self.service.grab(card.item.id)
        except (DragInProgressError, ItemNotFoundError):
            return
        self._refresh_view()

    def _shift_target(self, columns: int = 0, rows: int = 0) -> None:
        if self.drop_target is None:
            return
        ids = [c.id for c in COLUMNS]
        col = min(max(ids.index(self.drop_target.bucket_id) + columns, 0), len(ids) - 1)
        bucket_id = ids[col]
        session = self.service.controller.session
        count = len(self.service.columns()[bucket_id])
        # Inside its own bucket the card can only take an existing slot.
        if bucket_id == session.source.bucket_id:
            count -= 1
        index = self.drop_target.index if columns else self.drop_target.index + rows
        index = min(max(index, 0), max(count, 0))
        self.drop_target = DragLocation(bucket_id, index)
        self.active_col_index = col
        self.service.hover(self.drop_target)
        self._refresh_view()

    def action_drop(self) -> None:
        if not self._is_dragging():
            return
        self.drop_target = None
        self.run_worker(self._release(), exclusive=True, group="drop")

    async def _release(self) -> None:
        result = await self.service.release(on_optimistic=self._refresh_view)
        if result.error:
            self.notify(result.error, severity="error", timeout=6)
        self._refresh_view()

    def action_cancel_drag(self) -> None:
        if not self._is_dragging():
            return
        self.drop_target = None
        self.service.abort()
        self._refresh_view()

    # -- Filters --

    def action_toggle_kind(self, kind: str) -> None:
        self.service.filters.toggle_type(kind)
        self._refresh_view()

    def action_toggle_priority(self, key: str) -> None:
        self.service.filters.toggle_priority(PRIORITY_KEYS[key])
        self._refresh_view()

    def action_clear_filters(self) -> None:
        self.service.filters.clear()
        self._refresh_view()
        self.notify("Filters cleared")

    def action_search(self) -> None:
        def _on_search(query: str | None) -> None:
            if query is None:
                return
            self.service.filters.set_search(query)
            self._refresh_view()

        self.push_screen(SearchScreen(self.service.filters.search), callback=_on_search)

    # -- CRUD --

    def action_add_item(self) -> None:
        def _on_add(result: dict | None) -> None:
            if result:
                self.run_worker(self._add(ItemKind(result["kind"]), result["name"]))

        self.push_screen(AddItemScreen(), callback=_on_add)

    async def _add(self, kind: ItemKind, name: str) -> None:
        try:
            item = await self.service.add_item(kind, name)
        except SyncError as e:
            self.notify(e.user_message, severity="error")
            return
        self._focus_id = item.id
        self._refresh_view()
        self.notify(f"Added {kind.value}: {name}")

    def action_delete_item(self) -> None:
        card = self._focused_card()
        if card is None:
            self.notify("Select a card first", severity="warning")
            return
        item = card.item

        def _on_confirm(confirmed: bool) -> None:
            if confirmed:
                self.run_worker(self._delete(item))

        self.push_screen(ConfirmDeleteScreen(item), callback=_on_confirm)

    async def _delete(self, item: BoardItem) -> None:
        try:
            await self.service.delete_item(item.id)
        except ItemNotFoundError:
            pass
        except SyncError as e:
            self.notify(e.user_message, severity="error")
            return
        self._focus_id = None
        self._refresh_view()
        self.notify(f"Deleted {item.name}")

    # -- Refresh --

    def action_refresh(self) -> None:
        if self._is_dragging():
            return
        self.run_worker(self._load_board(), exclusive=True, group="load")
        self.notify("Board refreshed")

    # -- Detail toggle --

    def action_toggle_detail(self) -> None:
        panel = self.query_one("#detail-panel", DetailPanel)
        panel.toggle_class("visible")

    def action_help_screen(self) -> None:
        self.notify(
            "[bold]Keys:[/] space=grab  arrows=move  enter=drop  esc=cancel  "
            "f/b/t/p=kind  1/2/3=priority  c=clear  /=search  a=add  d=delete  "
            "i=detail  r=refresh  q=quit",
            timeout=6,
        )


def run_board() -> None:
    """Entry point for the fluxr-board CLI."""
    import sys

    from fluxr.cli import main

    main(["board", *sys.argv[1:]])
