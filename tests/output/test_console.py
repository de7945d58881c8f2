"""Tests for the Rich console factory and style lookups."""

from notegraph.output.console import (
    create_console,
    get_output,
    style_for_edge,
    style_for_status,
)


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console(width=40)
        console.print("[ng.ok]OK[/ng.ok] done")
        assert get_output(console) == "OK done\n"

    def test_no_ansi_off_terminal(self) -> None:
        console = create_console()
        console.print("[ng.error]boom[/ng.error]")
        assert "\x1b[" not in get_output(console)

    def test_width_default(self) -> None:
        assert create_console().width == 120


class TestStyles:
    def test_edge_styles(self) -> None:
        assert style_for_edge("strong") == "ng.edge.strong"
        assert style_for_edge("normal") == ""

    def test_status_styles(self) -> None:
        assert style_for_status("archived") == "ng.status.archived"
        assert style_for_status("draft") == ""
