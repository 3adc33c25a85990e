"""
Tests for the shell-profile patcher — guarded PATH export, idempotent.
"""

import logging

from clip_bridge_setup.core.services.shell_profile import (
    ensure_path,
    has_line,
    path_export_line,
)

BIN = "/home/dev/.local/bin"


class TestExportLine:
    def test_home_relative(self):
        line = path_export_line(BIN, "/home/dev")
        assert line == (
            'case ":$PATH:" in *":$HOME/.local/bin:"*) ;; '
            '*) export PATH="$HOME/.local/bin:$PATH" ;; esac'
        )

    def test_outside_home_is_literal(self):
        assert '"/opt/bridge:$PATH"' in path_export_line("/opt/bridge", "/home/dev")

    def test_sibling_of_home_is_not_rewritten(self):
        assert "$HOME" not in path_export_line("/home/devtools/bin", "/home/dev")

    def test_has_line_ignores_surrounding_whitespace(self):
        assert has_line("a\n   b  \nc", "b")
        assert not has_line("ab\n", "b")


class TestEnsurePath:
    def test_appends_to_existing_profiles_only(self, guest):
        guest.write("/home/dev/.profile", "# profile\n")
        report = ensure_path(guest, BIN)

        assert report.updated == ["/home/dev/.bashrc", "/home/dev/.profile"]
        assert report.missing == ["/home/dev/.zshrc"]
        assert not guest.local("/home/dev/.zshrc").exists()
        assert guest.read("/home/dev/.bashrc").endswith(path_export_line(BIN, "/home/dev") + "\n")

    def test_second_run_changes_nothing(self, guest):
        ensure_path(guest, BIN)
        before = guest.read("/home/dev/.bashrc")

        report = ensure_path(guest, BIN)

        assert report.updated == []
        assert report.unchanged == ["/home/dev/.bashrc"]
        assert guest.read("/home/dev/.bashrc") == before

    def test_missing_trailing_newline_is_respected(self, guest):
        guest.write("/home/dev/.bashrc", "alias x=y")
        ensure_path(guest, BIN)
        lines = guest.read("/home/dev/.bashrc").splitlines()
        assert lines[0] == "alias x=y"
        assert lines[-1] == path_export_line(BIN, "/home/dev")

    def test_no_profiles_warns(self, make_guest, caplog):
        caplog.set_level(logging.WARNING)
        bare = make_guest("Alpine")
        report = ensure_path(bare, BIN)
        assert not report.found_any
        assert "add /home/dev/.local/bin to PATH manually" in caplog.text
